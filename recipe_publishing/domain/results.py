# recipe_publishing/domain/results.py
"""
Terminal outcomes of one submission attempt, returned to the caller and never persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from recipe_publishing.domain.errors import AssetAssociationError, PublishingError
from recipe_publishing.domain.models import AssetRecord


@dataclass(frozen=True)
class Success:
    recipe_id: str


@dataclass(frozen=True)
class PartialFailure:
    """
    The recipe row is committed but some images were not associated with it.
    `failed_assets` keeps the uploaded URLs so the caller can retry just those rows.
    """
    recipe_id: str
    failed_slots: tuple[int, ...]
    failed_assets: tuple[AssetRecord, ...] = ()
    errors: tuple[AssetAssociationError, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class Failure:
    reason: PublishingError
    recipe_id: str | None = None


SubmissionResult = Union[Success, PartialFailure, Failure]
