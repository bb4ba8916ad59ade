from __future__ import annotations

import threading
import time
from typing import Optional

import pytest

from recipe_publishing.domain.errors import RepositoryError, StorageError, UploadCancelledError
from recipe_publishing.domain.models import Draft, ImageFile, TaxonomySelection
from recipe_publishing.domain.records import AssetAssociationRecord, RecipeRecord
from recipe_publishing.infra.db.base import RecipeRepository
from recipe_publishing.infra.storage.base import StorageProvider
from recipe_publishing.services.commit_coordinator import RecipeCommitCoordinator
from recipe_publishing.services.publisher import RecipePublisher
from recipe_publishing.services.upload_orchestrator import AssetUploadOrchestrator

PUBLIC_BASE = "https://cdn.test/recipes"


class StorageProviderStub(StorageProvider):
    """Object store fake; failures and stalls are keyed by a substring of the object key."""

    def __init__(self) -> None:
        self.put_keys: list[str] = []
        self.cancelled_keys: list[str] = []
        self.fail_when_key_contains: set[str] = set()
        self.stall_when_key_contains: set[str] = set()
        self.sleep_seconds = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    @property
    def put_count(self) -> int:
        return len(self.put_keys)

    def put_object(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        self.ensure_not_cancelled(object_key, cancel_event)
        with self._lock:
            self.put_keys.append(object_key)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if any(marker in object_key for marker in self.stall_when_key_contains):
                assert cancel_event is not None
                cancel_event.wait(timeout=5)
                with self._lock:
                    self.cancelled_keys.append(object_key)
                raise UploadCancelledError(object_key)
            if self.sleep_seconds:
                time.sleep(self.sleep_seconds)
            if any(marker in object_key for marker in self.fail_when_key_contains):
                raise StorageError(f"Simulated upload failure for {object_key}")
            return self.public_url(object_key)
        finally:
            with self._lock:
                self.in_flight -= 1

    def public_url(self, object_key: str) -> str:
        return f"{PUBLIC_BASE}/{object_key}"


class RecipeRepositoryStub(RecipeRepository):
    def __init__(self) -> None:
        self.recipes: list[RecipeRecord] = []
        self.associations: list[AssetAssociationRecord] = []
        self.association_attempts: list[AssetAssociationRecord] = []
        self.recipe_attempts = 0
        self.fail_recipe_insert = False
        self.fail_when_url_contains: set[str] = set()
        self.recipe_insert_delay = 0.0
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return self.recipe_attempts + len(self.association_attempts)

    def insert_recipe(self, record: RecipeRecord) -> None:
        with self._lock:
            self.recipe_attempts += 1
        if self.recipe_insert_delay:
            time.sleep(self.recipe_insert_delay)
        if self.fail_recipe_insert:
            raise RepositoryError("insert_recipe", "duplicate key value violates unique constraint")
        with self._lock:
            self.recipes.append(record)

    def insert_asset_association(self, record: AssetAssociationRecord) -> None:
        with self._lock:
            self.association_attempts.append(record)
        if any(marker in record.image_url for marker in self.fail_when_url_contains):
            raise RepositoryError("insert_asset_association", "connection reset")
        with self._lock:
            self.associations.append(record)


def make_draft(images: Optional[list[Optional[ImageFile]]] = None, **overrides: object) -> Draft:
    fields: dict[str, object] = dict(
        owner_id="user-42",
        title="Khmer Soup",
        overview="A sour fish soup",
        description="Samlor machu from Phnom Penh",
        prep_minutes=15,
        cook_minutes=40,
        ingredients="fish\ntamarind\nlemongrass",
        instructions="Simmer everything.",
        note="Best with rice",
        images=images if images is not None else [],
    )
    fields.update(overrides)
    return Draft(**fields)  # type: ignore[arg-type]


def two_images() -> list[Optional[ImageFile]]:
    return [
        ImageFile(filename="broth.jpg", data=b"\xff\xd8broth"),
        ImageFile(filename="noodles.png", data=b"\x89PNGnoodles"),
    ]


@pytest.fixture
def storage() -> StorageProviderStub:
    return StorageProviderStub()


@pytest.fixture
def repository() -> RecipeRepositoryStub:
    return RecipeRepositoryStub()


@pytest.fixture
def orchestrator(storage: StorageProviderStub) -> AssetUploadOrchestrator:
    return AssetUploadOrchestrator(storage, timeout_seconds=2.0)


@pytest.fixture
def coordinator(
    orchestrator: AssetUploadOrchestrator,
    repository: RecipeRepositoryStub,
) -> RecipeCommitCoordinator:
    return RecipeCommitCoordinator(orchestrator, repository, insert_timeout_seconds=2.0)


@pytest.fixture
def publisher(coordinator: RecipeCommitCoordinator) -> RecipePublisher:
    return RecipePublisher(coordinator)


@pytest.fixture
def khmer_soup() -> Draft:
    return make_draft(images=two_images(), taxonomy=TaxonomySelection(category_id=3, occasion_id=7))


@pytest.fixture
def draft_factory():
    return make_draft


@pytest.fixture
def images_factory():
    return two_images
