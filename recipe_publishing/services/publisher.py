# recipe_publishing/services/publisher.py
"""
Entry point for callers: snapshot the draft, pass the taxonomy gate once,
run the commit coordinator and report a SubmissionResult.
"""
from __future__ import annotations

import logging
from typing import Optional

from recipe_publishing.domain.models import Draft
from recipe_publishing.domain.results import PartialFailure, SubmissionResult, Success
from recipe_publishing.services.commit_coordinator import RecipeCommitCoordinator
from recipe_publishing.services.result_reporter import report
from recipe_publishing.services.taxonomy_gate import ChoicePrompt, TaxonomyGate

logger = logging.getLogger(__name__)


class RecipePublisher:
    """
    Publishes drafts through the commit coordinator.

    Responsibilities:
    - Keep one TaxonomyGate per draft so a draft never has two runs in flight
    - Hand the coordinator an immutable snapshot of the draft
    - Let callers retry the image rows of a partial failure
    """

    def __init__(
        self,
        coordinator: RecipeCommitCoordinator,
        prompt: Optional[ChoicePrompt] = None,
    ):
        self._coordinator = coordinator
        self._prompt = prompt
        self._gates: dict[str, TaxonomyGate] = {}

    def gate_for(self, draft_id: str) -> TaxonomyGate:
        gate = self._gates.get(draft_id)
        if gate is None:
            gate = self._gates[draft_id] = TaxonomyGate(draft_id)
        return gate

    def is_submitting(self, draft_id: str) -> bool:
        gate = self._gates.get(draft_id)
        return gate is not None and gate.busy

    async def submit(self, draft: Draft, prompt: Optional[ChoicePrompt] = None) -> SubmissionResult:
        """
        Publish a draft.

        Args:
            draft: The composer's draft; later edits do not affect this attempt
            prompt: Choice UI for category/occasion, overriding the publisher default

        Returns:
            Success, PartialFailure or Failure

        Raises:
            SubmissionInProgressError: If this draft already has an attempt in flight
        """
        # a snapshot that raises must not leave the gate open
        snapshot = draft.snapshot()
        gate = self.gate_for(draft.draft_id)
        attempt = gate.open()
        chooser = prompt or self._prompt

        try:
            run = await self._coordinator.run(
                snapshot,
                lambda: gate.require_selection(attempt, chooser, snapshot.taxonomy),
            )
        finally:
            gate.release(attempt)
            if not gate.busy:
                self._gates.pop(draft.draft_id, None)

        result = report(run)
        logger.info(
            "Submission finished: draft=%s, attempt=%d, outcome=%s, recipe=%s",
            draft.draft_id,
            attempt.number,
            type(result).__name__,
            run.recipe_id,
        )
        return result

    async def retry_associations(self, result: PartialFailure) -> SubmissionResult:
        """
        Re-insert only the image rows that failed; the recipe row is already committed.
        """
        errors = await self._coordinator.associate_assets(result.recipe_id, result.failed_assets)
        if not errors:
            logger.info("Image association retry succeeded: recipe=%s", result.recipe_id)
            return Success(recipe_id=result.recipe_id)

        failed = {error.slot for error in errors}
        return PartialFailure(
            recipe_id=result.recipe_id,
            failed_slots=tuple(sorted(failed)),
            failed_assets=tuple(asset for asset in result.failed_assets if asset.slot in failed),
            errors=tuple(errors),
        )
