from __future__ import annotations

import asyncio

import pytest

from recipe_publishing.domain.errors import SubmissionInProgressError, TaxonomyMissingError
from recipe_publishing.domain.models import TaxonomySelection
from recipe_publishing.services.taxonomy_gate import GateAttempt, TaxonomyGate


class TestGateAttempt:
    def test_resolves_once_both_choices_exist(self) -> None:
        async def scenario() -> tuple[bool, bool, TaxonomySelection]:
            attempt = GateAttempt("draft-1", 1)
            first = attempt.choose_category(3)
            second = attempt.choose_occasion(7)
            return first, second, await attempt.wait()

        first, second, selection = asyncio.run(scenario())

        assert first is False
        assert second is True
        assert selection == TaxonomySelection(category_id=3, occasion_id=7)

    def test_selection_is_frozen_after_resolution(self) -> None:
        async def scenario() -> tuple[bool, bool, TaxonomySelection]:
            attempt = GateAttempt("draft-1", 1)
            attempt.offer(3, 7)
            again = attempt.offer(4, 8)
            category_change = attempt.choose_category(5)
            return again, category_change, await attempt.wait()

        again, category_change, selection = asyncio.run(scenario())

        assert again is False
        assert category_change is False
        assert selection == TaxonomySelection(3, 7)

    def test_partial_offer_waits_for_the_rest(self) -> None:
        async def scenario() -> bool:
            attempt = GateAttempt("draft-1", 1)
            attempt.offer(3, None)
            return attempt.resolved

        assert asyncio.run(scenario()) is False

    def test_dismiss_raises_taxonomy_missing(self) -> None:
        async def scenario() -> None:
            attempt = GateAttempt("draft-1", 1)
            attempt.choose_category(3)
            attempt.dismiss()
            await attempt.wait()

        with pytest.raises(TaxonomyMissingError):
            asyncio.run(scenario())


class TestTaxonomyGate:
    def test_second_open_is_rejected_while_busy(self) -> None:
        async def scenario() -> None:
            gate = TaxonomyGate("draft-1")
            gate.open()
            gate.open()

        with pytest.raises(SubmissionInProgressError) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.draft_id == "draft-1"

    def test_release_allows_a_new_attempt(self) -> None:
        async def scenario() -> tuple[int, int, bool]:
            gate = TaxonomyGate("draft-1")
            first = gate.open()
            first.offer(1, 2)
            gate.release(first)
            second = gate.open()
            return first.number, second.number, second.resolved

        first_number, second_number, second_resolved = asyncio.run(scenario())

        assert (first_number, second_number) == (1, 2)
        assert second_resolved is False

    def test_release_of_stale_attempt_keeps_gate_busy(self) -> None:
        async def scenario() -> bool:
            gate = TaxonomyGate("draft-1")
            first = gate.open()
            gate.release(first)
            gate.open()
            gate.release(first)
            return gate.busy

        assert asyncio.run(scenario()) is True

    def test_require_selection_uses_preselected_pair(self) -> None:
        prompted: list[GateAttempt] = []

        async def scenario() -> TaxonomySelection:
            gate = TaxonomyGate("draft-1")
            attempt = gate.open()
            return await gate.require_selection(attempt, prompted.append, TaxonomySelection(3, 7))

        assert asyncio.run(scenario()) == TaxonomySelection(3, 7)
        assert prompted == []

    def test_require_selection_waits_for_prompt(self) -> None:
        async def scenario() -> TaxonomySelection:
            gate = TaxonomyGate("draft-1")
            attempt = gate.open()
            loop = asyncio.get_running_loop()

            def prompt(pending: GateAttempt) -> None:
                loop.call_later(0.01, pending.choose_category, 3)
                loop.call_later(0.02, pending.choose_occasion, 7)

            return await gate.require_selection(attempt, prompt)

        assert asyncio.run(scenario()) == TaxonomySelection(3, 7)

    def test_require_selection_without_prompt_fails(self) -> None:
        async def scenario() -> None:
            gate = TaxonomyGate("draft-1")
            await gate.require_selection(gate.open())

        with pytest.raises(TaxonomyMissingError):
            asyncio.run(scenario())

    def test_partial_preselection_still_prompts(self) -> None:
        prompted: list[GateAttempt] = []

        def prompt(attempt: GateAttempt) -> None:
            prompted.append(attempt)
            attempt.choose_occasion(7)

        async def scenario() -> TaxonomySelection:
            gate = TaxonomyGate("draft-1")
            return await gate.require_selection(gate.open(), prompt, TaxonomySelection(3, None))

        selection = asyncio.run(asyncio.wait_for(scenario(), timeout=1))

        assert selection == TaxonomySelection(3, 7)
        assert len(prompted) == 1

    def test_partial_preselection_without_prompt_fails(self) -> None:
        async def scenario() -> None:
            gate = TaxonomyGate("draft-1")
            await gate.require_selection(gate.open(), None, TaxonomySelection(None, 7))

        with pytest.raises(TaxonomyMissingError):
            asyncio.run(asyncio.wait_for(scenario(), timeout=1))
