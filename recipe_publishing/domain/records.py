from datetime import timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_serializer

from recipe_publishing.domain.models import DraftSnapshot, TaxonomySelection


def iso_interval(value: timedelta) -> str:
    """Render a duration the way Postgres `interval` columns accept it ("PT15M")."""
    seconds = int(value.total_seconds())
    if seconds % 60 == 0:
        return f"PT{seconds // 60}M"
    return f"PT{seconds}S"


class RecipeRecord(BaseModel):
    recipe_id: str
    user_id: str
    category_id: int
    occasion_id: int
    recipe_name: str
    overview: str = ""
    description: str = ""
    prep_time: timedelta
    cook_time: timedelta
    ingredients: str = ""
    instructions: str = ""
    note: Optional[str] = None

    @field_serializer("prep_time", "cook_time")
    def _serialize_interval(self, value: timedelta) -> str:
        return iso_interval(value)

    @classmethod
    def from_snapshot(
        cls,
        recipe_id: str,
        snapshot: DraftSnapshot,
        taxonomy: TaxonomySelection,
    ) -> "RecipeRecord":
        return cls(
            recipe_id=recipe_id,
            user_id=snapshot.owner_id,
            category_id=taxonomy.category_id,
            occasion_id=taxonomy.occasion_id,
            recipe_name=snapshot.title,
            overview=snapshot.overview,
            description=snapshot.description,
            prep_time=snapshot.prep_time,
            cook_time=snapshot.cook_time,
            ingredients=snapshot.ingredients,
            instructions=snapshot.instructions,
            note=snapshot.note,
        )

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class AssetAssociationRecord(BaseModel):
    recipe_id: str
    image_url: str = Field(min_length=1)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
