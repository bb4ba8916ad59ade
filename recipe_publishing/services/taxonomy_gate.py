# recipe_publishing/services/taxonomy_gate.py
"""
One-shot category/occasion gate.

Each submission attempt gets a GateAttempt backed by a single future. The
future can be completed once; later choices are ignored, so re-rendering the
choice UI cannot start a second pipeline run. A gate admits one attempt at a
time: opening it again before the previous attempt is released raises
SubmissionInProgressError.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from recipe_publishing.domain.errors import SubmissionInProgressError, TaxonomyMissingError
from recipe_publishing.domain.models import TaxonomySelection

logger = logging.getLogger(__name__)


class ChoicePrompt(Protocol):
    """Surfaces the category/occasion picker; the picker reports back through the attempt."""

    def __call__(self, attempt: "GateAttempt") -> None:
        ...


class GateAttempt:
    def __init__(self, draft_id: str, number: int):
        self.draft_id = draft_id
        self.number = number
        self._category_id: Optional[int] = None
        self._occasion_id: Optional[int] = None
        self._future: asyncio.Future[TaxonomySelection] = asyncio.get_running_loop().create_future()

    @property
    def resolved(self) -> bool:
        return self._future.done()

    def choose_category(self, category_id: int) -> bool:
        if self.resolved:
            return False
        self._category_id = category_id
        return self._try_resolve()

    def choose_occasion(self, occasion_id: int) -> bool:
        if self.resolved:
            return False
        self._occasion_id = occasion_id
        return self._try_resolve()

    def offer(self, category_id: Optional[int], occasion_id: Optional[int]) -> bool:
        """
        Report both choices at once.

        Returns:
            True only for the call that resolved the attempt
        """
        if self.resolved:
            logger.debug("Ignoring taxonomy choice for settled attempt: draft=%s", self.draft_id)
            return False
        if category_id is not None:
            self._category_id = category_id
        if occasion_id is not None:
            self._occasion_id = occasion_id
        return self._try_resolve()

    def dismiss(self) -> bool:
        """The picker was closed without a complete choice."""
        if self.resolved:
            return False
        self._future.set_exception(TaxonomyMissingError())
        return True

    def abandon(self) -> None:
        if not self._future.done():
            self._future.cancel()

    async def wait(self) -> TaxonomySelection:
        return await self._future

    def _try_resolve(self) -> bool:
        if self._category_id is None or self._occasion_id is None:
            return False
        selection = TaxonomySelection(category_id=self._category_id, occasion_id=self._occasion_id)
        self._future.set_result(selection)
        logger.info(
            "Taxonomy selected: draft=%s, attempt=%d, category=%d, occasion=%d",
            self.draft_id,
            self.number,
            selection.category_id,
            selection.occasion_id,
        )
        return True


class TaxonomyGate:
    """Admits at most one in-flight submission attempt for one draft."""

    def __init__(self, draft_id: str):
        self.draft_id = draft_id
        self._active: Optional[GateAttempt] = None
        self._attempts = 0

    @property
    def busy(self) -> bool:
        return self._active is not None

    def open(self) -> GateAttempt:
        if self._active is not None:
            logger.warning("Rejected concurrent submission: draft=%s", self.draft_id)
            raise SubmissionInProgressError(self.draft_id)
        self._attempts += 1
        self._active = GateAttempt(self.draft_id, self._attempts)
        return self._active

    def release(self, attempt: GateAttempt) -> None:
        if self._active is attempt:
            self._active = None
            attempt.abandon()

    async def require_selection(
        self,
        attempt: GateAttempt,
        prompt: Optional[ChoicePrompt] = None,
        preselected: Optional[TaxonomySelection] = None,
    ) -> TaxonomySelection:
        """
        Wait until the attempt holds a full (category, occasion) pair.

        Preselected ids are applied first. If they do not form a full pair the
        prompt is shown to complete it.

        Raises:
            TaxonomyMissingError: If the picker is dismissed or there is no way to ask
        """
        if preselected is not None:
            attempt.offer(preselected.category_id, preselected.occasion_id)
        if not attempt.resolved:
            if prompt is not None:
                prompt(attempt)
            else:
                attempt.dismiss()
        return await attempt.wait()
