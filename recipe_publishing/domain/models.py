# recipe_publishing/domain/models.py
"""
Domain models for the recipe publishing pipeline.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import NewType, Optional
from uuid import uuid4

RecipeId = NewType("RecipeId", str)


class PipelineState(str, Enum):
    """States of one submission attempt inside the commit coordinator."""
    IDLE = "IDLE"
    AWAITING_TAXONOMY = "AWAITING_TAXONOMY"
    UPLOADING = "UPLOADING"
    PERSISTING_RECIPE = "PERSISTING_RECIPE"
    ASSOCIATING_ASSETS = "ASSOCIATING_ASSETS"
    DONE = "DONE"
    ABORTED = "ABORTED"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.ABORTED)


@dataclass(frozen=True)
class TaxonomySelection:
    """The (category, occasion) pair required before anything is published."""
    category_id: int
    occasion_id: int


@dataclass(frozen=True)
class Category:
    category_id: int
    name: str


@dataclass(frozen=True)
class Occasion:
    occasion_id: int
    name: str


@dataclass
class ImageFile:
    """An image picked in the composer, not yet bound to a slot."""
    filename: str
    data: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    """One image of a snapshot, bound to the slot it was picked in."""
    slot: int
    filename: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AssetRecord:
    """An attachment that reached the object store."""
    slot: int
    object_key: str
    url: str


@dataclass(frozen=True)
class DraftSnapshot:
    """
    Immutable copy of a draft handed to the commit coordinator.
    The composer keeps mutating its own Draft; the pipeline only sees this.
    """
    draft_id: str
    owner_id: str
    title: str
    overview: str
    description: str
    prep_time: Optional[timedelta]
    cook_time: Optional[timedelta]
    ingredients: str
    instructions: str
    note: Optional[str]
    attachments: tuple[Optional[Attachment], ...]
    taxonomy: Optional[TaxonomySelection] = None

    @property
    def present_attachments(self) -> list[Attachment]:
        return [attachment for attachment in self.attachments if attachment is not None]


@dataclass
class Draft:
    """
    Client-held recipe submission, mutated freely by the composer.
    Empty image slots are kept as None so slot indices stay stable.
    """
    owner_id: str
    title: str
    overview: str = ""
    description: str = ""
    prep_minutes: Optional[int] = None
    cook_minutes: Optional[int] = None
    ingredients: str = ""
    instructions: str = ""
    note: Optional[str] = None
    images: list[Optional[ImageFile]] = field(default_factory=list)
    taxonomy: Optional[TaxonomySelection] = None
    draft_id: str = field(default_factory=lambda: uuid4().hex)

    def snapshot(self) -> DraftSnapshot:
        attachments: list[Optional[Attachment]] = []
        for slot, image in enumerate(self.images):
            if image is None:
                attachments.append(None)
                continue
            attachments.append(Attachment(
                slot=slot,
                filename=image.filename,
                data=bytes(image.data),
                content_type=image.content_type or _guess_content_type(image.filename),
            ))

        return DraftSnapshot(
            draft_id=self.draft_id,
            owner_id=self.owner_id,
            title=self.title,
            overview=self.overview,
            description=self.description,
            prep_time=_minutes(self.prep_minutes),
            cook_time=_minutes(self.cook_minutes),
            ingredients=self.ingredients,
            instructions=self.instructions,
            note=self.note,
            attachments=tuple(attachments),
            taxonomy=self.taxonomy,
        )


def _minutes(value: Optional[int]) -> Optional[timedelta]:
    return timedelta(minutes=value) if value is not None else None


def _guess_content_type(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"
