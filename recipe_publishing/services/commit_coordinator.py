# recipe_publishing/services/commit_coordinator.py
"""
Recipe commit coordinator.

Runs one submission attempt through:

    IDLE -> AWAITING_TAXONOMY -> UPLOADING -> PERSISTING_RECIPE -> ASSOCIATING_ASSETS -> DONE
                                  |               |
                                  +-> ABORTED     +-> ABORTED

Failures before the recipe row exists abort the attempt. Once the row is
committed nothing is rolled back: failed image associations are collected
and the attempt still ends in DONE, reported as a partial failure.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence

from recipe_publishing.domain.errors import (
    AssetAssociationError,
    PublishingError,
    RecipeInsertError,
    RepositoryError,
    RepositoryTimeoutError,
    TaxonomyMissingError,
    ValidationError,
)
from recipe_publishing.domain.models import AssetRecord, DraftSnapshot, PipelineState, TaxonomySelection
from recipe_publishing.domain.records import AssetAssociationRecord, RecipeRecord
from recipe_publishing.infra.db.base import RecipeRepository
from recipe_publishing.services.content_keys import allocate_recipe_id
from recipe_publishing.services.draft_validation import is_complete, validate_snapshot
from recipe_publishing.services.upload_orchestrator import AssetUploadOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_INSERT_TIMEOUT_SECONDS = 10.0

SelectionSource = Callable[[], Awaitable[TaxonomySelection]]

_TRANSITIONS: dict[PipelineState, tuple[PipelineState, ...]] = {
    PipelineState.IDLE: (PipelineState.AWAITING_TAXONOMY, PipelineState.ABORTED),
    PipelineState.AWAITING_TAXONOMY: (PipelineState.UPLOADING, PipelineState.ABORTED),
    PipelineState.UPLOADING: (PipelineState.PERSISTING_RECIPE, PipelineState.ABORTED),
    PipelineState.PERSISTING_RECIPE: (PipelineState.ASSOCIATING_ASSETS, PipelineState.ABORTED),
    PipelineState.ASSOCIATING_ASSETS: (PipelineState.DONE,),
    PipelineState.DONE: (),
    PipelineState.ABORTED: (),
}


@dataclass
class CommitRun:
    """Mutable record of one attempt; read by the result reporter once terminal."""
    draft_id: str
    state: PipelineState = PipelineState.IDLE
    recipe_id: Optional[str] = None
    selection: Optional[TaxonomySelection] = None
    assets: list[AssetRecord] = field(default_factory=list)
    association_errors: list[AssetAssociationError] = field(default_factory=list)
    error: Optional[PublishingError] = None
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])

    def advance(self, new_state: PipelineState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {new_state.value}")
        logger.info(
            "Pipeline transition: draft=%s, recipe=%s, %s -> %s",
            self.draft_id,
            self.recipe_id,
            self.state.value,
            new_state.value,
        )
        self.state = new_state
        self.history.append(new_state)

    def abort(self, error: PublishingError) -> "CommitRun":
        self.error = error
        self.advance(PipelineState.ABORTED)
        return self


class RecipeCommitCoordinator:
    """
    Sequences uploads, the recipe insert and the image inserts for one attempt.

    Repository calls run in a worker thread under `insert_timeout_seconds`.
    A timeout stops the wait, not the thread: a request already on the wire can
    still commit. The Supabase client carries the same limit as its transport
    timeout (see `client_options`), which narrows but does not close that
    window, so a timed-out recipe insert may still exist when the caller resubmits.
    """

    def __init__(
        self,
        orchestrator: AssetUploadOrchestrator,
        repository: RecipeRepository,
        insert_timeout_seconds: float = DEFAULT_INSERT_TIMEOUT_SECONDS,
        id_allocator: Callable[[], str] = allocate_recipe_id,
    ):
        self._orchestrator = orchestrator
        self._repo = repository
        self.insert_timeout_seconds = insert_timeout_seconds
        self._allocate_id = id_allocator

    async def run(self, snapshot: DraftSnapshot, require_selection: SelectionSource) -> CommitRun:
        """
        Drive one attempt to a terminal state.

        Args:
            snapshot: Frozen copy of the draft
            require_selection: Awaits the taxonomy gate for this attempt

        Returns:
            The terminal CommitRun (DONE or ABORTED)
        """
        run = CommitRun(draft_id=snapshot.draft_id)

        problems = validate_snapshot(snapshot)
        if problems:
            logger.warning("Draft rejected before upload: draft=%s, errors=%s", snapshot.draft_id, problems)
            return run.abort(ValidationError(problems))

        run.advance(PipelineState.AWAITING_TAXONOMY)
        try:
            selection = await require_selection()
        except TaxonomyMissingError as error:
            return run.abort(error)
        if not is_complete(selection):
            return run.abort(TaxonomyMissingError())
        run.selection = selection

        run.recipe_id = self._allocate_id()
        run.advance(PipelineState.UPLOADING)
        try:
            run.assets = await self._orchestrator.upload_all(run.recipe_id, snapshot.attachments)
        except PublishingError as error:
            return run.abort(error)

        run.advance(PipelineState.PERSISTING_RECIPE)
        record = RecipeRecord.from_snapshot(run.recipe_id, snapshot, selection)
        try:
            await self._call_repository("insert_recipe", self._repo.insert_recipe, record)
        except RepositoryError as error:
            if run.assets:
                logger.warning(
                    "Recipe insert failed, %d uploaded image(s) left unreferenced: recipe=%s",
                    len(run.assets),
                    run.recipe_id,
                )
            return run.abort(RecipeInsertError(run.recipe_id, error.reason))

        run.advance(PipelineState.ASSOCIATING_ASSETS)
        run.association_errors = await self.associate_assets(run.recipe_id, run.assets)
        run.advance(PipelineState.DONE)
        return run

    async def associate_assets(
        self,
        recipe_id: str,
        assets: Sequence[AssetRecord],
    ) -> list[AssetAssociationError]:
        """
        Insert one image row per asset, concurrently and independently.

        Returns:
            The failures, ordered by slot; an empty list means every row was written
        """
        outcomes = await asyncio.gather(*(self._associate_one(recipe_id, asset) for asset in assets))
        failures = [outcome for outcome in outcomes if outcome is not None]
        failures.sort(key=lambda failure: failure.slot)
        return failures

    async def _associate_one(self, recipe_id: str, asset: AssetRecord) -> Optional[AssetAssociationError]:
        record = AssetAssociationRecord(recipe_id=recipe_id, image_url=asset.url)
        try:
            await self._call_repository("insert_asset_association", self._repo.insert_asset_association, record)
        except RepositoryError as error:
            logger.warning(
                "Image association failed: recipe=%s, slot=%d, reason=%s",
                recipe_id,
                asset.slot,
                error.reason,
            )
            return AssetAssociationError(recipe_id, asset.slot, asset.url, error.reason)
        return None

    async def _call_repository(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.insert_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error("%s timed out after %ss", operation, self.insert_timeout_seconds)
            raise RepositoryTimeoutError(operation, self.insert_timeout_seconds) from None
        except RepositoryError:
            raise
        except Exception as e:
            logger.exception("Unexpected error during %s", operation)
            raise RepositoryError(operation, str(e)) from e
