from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from recipe_publishing.domain.models import Draft, ImageFile, PipelineState, TaxonomySelection
from recipe_publishing.domain.records import AssetAssociationRecord, RecipeRecord, iso_interval


class TestPipelineState:
    def test_terminal_states(self) -> None:
        assert PipelineState.DONE.is_terminal
        assert PipelineState.ABORTED.is_terminal
        assert not PipelineState.UPLOADING.is_terminal
        assert not PipelineState.IDLE.is_terminal

    def test_is_string_enum(self) -> None:
        assert PipelineState.PERSISTING_RECIPE == "PERSISTING_RECIPE"


class TestDraftSnapshot:
    def test_keeps_empty_slots_and_indices(self) -> None:
        draft = Draft(
            owner_id="user-1",
            title="Khmer Soup",
            images=[None, ImageFile("broth.jpg", b"abc"), None, ImageFile("herbs.webp", b"def")],
        )

        snapshot = draft.snapshot()

        assert snapshot.attachments[0] is None
        assert snapshot.attachments[2] is None
        assert [a.slot for a in snapshot.present_attachments] == [1, 3]
        assert snapshot.present_attachments[0].content_type == "image/jpeg"

    def test_explicit_content_type_wins(self) -> None:
        draft = Draft(owner_id="u", title="t", images=[ImageFile("photo", b"x", content_type="image/png")])

        assert draft.snapshot().attachments[0].content_type == "image/png"

    def test_unknown_extension_falls_back_to_octet_stream(self) -> None:
        draft = Draft(owner_id="u", title="t", images=[ImageFile("photo.unknownext", b"x")])

        assert draft.snapshot().attachments[0].content_type == "application/octet-stream"

    def test_later_draft_edits_do_not_leak_into_snapshot(self) -> None:
        image_bytes = bytearray(b"original")
        draft = Draft(owner_id="u", title="Khmer Soup", images=[ImageFile("a.jpg", image_bytes)])

        snapshot = draft.snapshot()
        draft.title = "Edited"
        draft.images.append(ImageFile("b.jpg", b"new"))
        image_bytes[:] = b"mutated!"

        assert snapshot.title == "Khmer Soup"
        assert len(snapshot.attachments) == 1
        assert snapshot.attachments[0].data == b"original"

    def test_snapshot_is_frozen(self) -> None:
        snapshot = Draft(owner_id="u", title="t").snapshot()

        with pytest.raises(FrozenInstanceError):
            snapshot.title = "other"  # type: ignore[misc]

    def test_minutes_become_durations(self) -> None:
        snapshot = Draft(owner_id="u", title="t", prep_minutes=15, cook_minutes=90).snapshot()

        assert snapshot.prep_time == timedelta(minutes=15)
        assert snapshot.cook_time == timedelta(hours=1, minutes=30)

    def test_missing_minutes_stay_missing(self) -> None:
        snapshot = Draft(owner_id="u", title="t").snapshot()

        assert snapshot.prep_time is None
        assert snapshot.cook_time is None

    def test_draft_ids_are_unique(self) -> None:
        assert Draft(owner_id="u", title="t").draft_id != Draft(owner_id="u", title="t").draft_id


class TestRecipeRecord:
    def test_from_snapshot_maps_columns(self) -> None:
        snapshot = Draft(
            owner_id="user-1",
            title="Khmer Soup",
            overview="Sour soup",
            description="Family recipe",
            prep_minutes=15,
            cook_minutes=40,
            ingredients="fish",
            instructions="simmer",
            note=None,
        ).snapshot()

        record = RecipeRecord.from_snapshot("recipe-1", snapshot, TaxonomySelection(3, 7))
        row = record.to_row()

        assert row["recipe_id"] == "recipe-1"
        assert row["user_id"] == "user-1"
        assert row["recipe_name"] == "Khmer Soup"
        assert row["category_id"] == 3
        assert row["occasion_id"] == 7
        assert row["prep_time"] == "PT15M"
        assert row["cook_time"] == "PT40M"
        assert row["note"] is None

    def test_interval_rendering(self) -> None:
        assert iso_interval(timedelta(minutes=0)) == "PT0M"
        assert iso_interval(timedelta(hours=2)) == "PT120M"
        assert iso_interval(timedelta(seconds=90)) == "PT90S"


class TestAssetAssociationRecord:
    def test_row(self) -> None:
        record = AssetAssociationRecord(recipe_id="r1", image_url="https://cdn.test/r1/images/a.jpg")

        assert record.to_row() == {"recipe_id": "r1", "image_url": "https://cdn.test/r1/images/a.jpg"}

    def test_rejects_empty_url(self) -> None:
        with pytest.raises(PydanticValidationError):
            AssetAssociationRecord(recipe_id="r1", image_url="")
