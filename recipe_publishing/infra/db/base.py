# recipe_publishing/infra/db/base.py
"""
Abstract base classes for the relational side of the pipeline.
Each call is a single-row insert; no transaction spans two calls.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from recipe_publishing.domain.models import Category, Occasion
from recipe_publishing.domain.records import AssetAssociationRecord, RecipeRecord


class RecipeRepository(ABC):
    """
    Abstract interface for recipe persistence.

    Implementations:
    - SupabaseRecipeRepository: `recipe` and `image_recipe` tables
    """

    @abstractmethod
    def insert_recipe(self, record: RecipeRecord) -> None:
        """
        Insert one recipe row.

        Args:
            record: The recipe, keyed by its client-allocated recipe_id

        Raises:
            RepositoryError: If the insert fails
        """
        pass

    @abstractmethod
    def insert_asset_association(self, record: AssetAssociationRecord) -> None:
        """
        Insert one (recipe_id, image_url) row.

        Raises:
            RepositoryError: If the insert fails
        """
        pass


class TaxonomyCatalog(ABC):
    """Read-only catalogs feeding the category/occasion choice UI."""

    @abstractmethod
    def list_categories(self) -> list[Category]:
        pass

    @abstractmethod
    def list_occasions(self) -> list[Occasion]:
        pass
