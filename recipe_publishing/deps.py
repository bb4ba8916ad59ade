# recipe_publishing/deps.py (lazy singletons for embedding applications)

from __future__ import annotations

from supabase import Client

from recipe_publishing.config import Settings, get_settings
from recipe_publishing.domain.errors import ConfigurationError
from recipe_publishing.infra.db.supabase_recipe_repo import (
    SupabaseRecipeRepository,
    SupabaseTaxonomyCatalog,
    create_supabase_client,
)
from recipe_publishing.infra.storage.base import StorageProvider
from recipe_publishing.infra.storage.r2_provider import R2StorageProvider
from recipe_publishing.infra.storage.supabase_provider import SupabaseStorageProvider
from recipe_publishing.services.commit_coordinator import RecipeCommitCoordinator
from recipe_publishing.services.publisher import RecipePublisher
from recipe_publishing.services.taxonomy_gate import ChoicePrompt
from recipe_publishing.services.upload_orchestrator import AssetUploadOrchestrator

_client: Client | None = None


def get_supabase(settings: Settings | None = None) -> Client:
    global _client
    if _client is None:
        settings = settings or get_settings()
        errors = settings.validate_backend()
        if errors:
            raise ConfigurationError(errors)
        _client = create_supabase_client(settings)
    return _client


def get_storage_provider(settings: Settings | None = None) -> StorageProvider:
    settings = settings or get_settings()
    if settings.STORAGE_BACKEND == "r2":
        return R2StorageProvider(settings)
    return SupabaseStorageProvider(get_supabase(settings), settings)


def get_taxonomy_catalog() -> SupabaseTaxonomyCatalog:
    return SupabaseTaxonomyCatalog(get_supabase())


def build_publisher(
    settings: Settings | None = None,
    prompt: ChoicePrompt | None = None,
) -> RecipePublisher:
    settings = settings or get_settings()
    orchestrator = AssetUploadOrchestrator(
        get_storage_provider(settings),
        timeout_seconds=settings.UPLOAD_TIMEOUT_SECONDS,
        max_concurrency=settings.MAX_CONCURRENT_UPLOADS,
        max_image_bytes=settings.MAX_IMAGE_BYTES,
        allowed_content_types=settings.ALLOWED_IMAGE_TYPES,
    )
    coordinator = RecipeCommitCoordinator(
        orchestrator,
        SupabaseRecipeRepository(get_supabase(settings)),
        insert_timeout_seconds=settings.INSERT_TIMEOUT_SECONDS,
    )
    return RecipePublisher(coordinator, prompt=prompt)
