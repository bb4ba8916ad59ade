"""
Recipe ids and storage keys.
The id exists before any row does, so every image of a recipe shares the `{recipe_id}/images/` prefix.
"""
from __future__ import annotations

import re
from uuid import uuid4

from recipe_publishing.domain.models import RecipeId

IMAGES_FOLDER = "images"


def allocate_recipe_id() -> RecipeId:
    """128-bit random id, rendered as a canonical UUID string."""
    return RecipeId(str(uuid4()))


def sanitize_filename(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", filename) or "file"


def images_prefix(recipe_id: str) -> str:
    return f"{recipe_id}/{IMAGES_FOLDER}/"


def storage_key_for(recipe_id: str, filename: str) -> str:
    """
    Format: {recipe_id}/images/{token}-{filename}

    The random token keeps two images with the same filename apart.
    """
    return f"{images_prefix(recipe_id)}{uuid4().hex}-{sanitize_filename(filename)}"
