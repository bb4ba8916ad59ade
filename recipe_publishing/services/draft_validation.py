from __future__ import annotations

from datetime import timedelta
from typing import Optional

from recipe_publishing.domain.models import DraftSnapshot, TaxonomySelection

MISSING_OWNER_MESSAGE = "User ID is missing. Please log in."

_REQUIRED_TEXT_FIELDS = (
    ("title", "Recipe name"),
    ("overview", "Overview"),
    ("description", "Description"),
    ("ingredients", "Ingredients"),
    ("instructions", "Instructions"),
)


def _check_duration(label: str, value: Optional[timedelta]) -> Optional[str]:
    if value is None:
        return f"{label} is required"
    if value < timedelta(0):
        return f"{label} cannot be negative"
    return None


def validate_snapshot(snapshot: DraftSnapshot) -> list[str]:
    """Return every problem that must be fixed before anything is uploaded."""
    errors = []

    if not snapshot.owner_id or not snapshot.owner_id.strip():
        errors.append(MISSING_OWNER_MESSAGE)

    for attribute, label in _REQUIRED_TEXT_FIELDS:
        value = getattr(snapshot, attribute)
        if not value or not value.strip():
            errors.append(f"{label} is required")

    for label, value in (("Prep time", snapshot.prep_time), ("Cook time", snapshot.cook_time)):
        problem = _check_duration(label, value)
        if problem:
            errors.append(problem)

    for attachment in snapshot.present_attachments:
        if not attachment.data:
            errors.append(f"Image in slot {attachment.slot} is empty")

    return errors


def is_complete(selection: Optional[TaxonomySelection]) -> bool:
    return (
        selection is not None
        and selection.category_id is not None
        and selection.occasion_id is not None
    )
