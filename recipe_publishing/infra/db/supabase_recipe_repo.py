from __future__ import annotations

import logging
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client, create_client
from supabase.client import ClientOptions

from recipe_publishing.config import Settings, get_settings
from recipe_publishing.domain.errors import ConfigurationError, RepositoryError
from recipe_publishing.domain.models import Category, Occasion
from recipe_publishing.domain.records import AssetAssociationRecord, RecipeRecord
from recipe_publishing.infra.db.base import RecipeRepository, TaxonomyCatalog

logger = logging.getLogger(__name__)


def create_supabase_client(settings: Settings | None = None) -> Client:
    settings = settings or get_settings()
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigurationError(["SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required"])
    return create_client(
        str(settings.SUPABASE_URL),
        settings.SUPABASE_SERVICE_ROLE_KEY,
        options=client_options(settings),
    )


def client_options(settings: Settings) -> ClientOptions:
    # httpx gives up on the request itself, not just the awaiting coroutine
    return ClientOptions(
        postgrest_client_timeout=settings.INSERT_TIMEOUT_SECONDS,
        storage_client_timeout=settings.UPLOAD_TIMEOUT_SECONDS,
    )


def _describe(error: APIError) -> str:
    return getattr(error, "message", None) or str(error)


class SupabaseRecipeRepository(RecipeRepository):
    RECIPE_TABLE = "recipe"
    IMAGE_TABLE = "image_recipe"

    def __init__(self, client: Client | None = None):
        self._client = client or create_supabase_client()
        logger.info("SupabaseRecipeRepository initialized")

    def insert_recipe(self, record: RecipeRecord) -> None:
        self._insert(self.RECIPE_TABLE, record.to_row(), "insert_recipe")
        logger.info("Inserted recipe: id=%s, owner=%s", record.recipe_id, record.user_id)

    def insert_asset_association(self, record: AssetAssociationRecord) -> None:
        self._insert(self.IMAGE_TABLE, record.to_row(), "insert_asset_association")
        logger.info("Inserted image association: recipe=%s, url=%s", record.recipe_id, record.image_url)

    def _insert(self, table: str, row: dict[str, Any], operation: str) -> None:
        try:
            result = self._client.table(table).insert(row).execute()
        except APIError as error:
            logger.error("Supabase rejected %s on %s: %s", operation, table, _describe(error))
            raise RepositoryError(operation, _describe(error)) from error
        except (ConnectionError, TimeoutError) as error:
            logger.error("Network error during %s: %s", operation, error)
            raise RepositoryError(operation, str(error)) from error

        if not result.data:
            raise RepositoryError(operation, f"no row returned from {table}")


class SupabaseTaxonomyCatalog(TaxonomyCatalog):
    CATEGORY_TABLE = "category"
    OCCASION_TABLE = "occasion"

    def __init__(self, client: Client | None = None):
        self._client = client or create_supabase_client()

    def list_categories(self) -> list[Category]:
        rows = self._select(self.CATEGORY_TABLE, "category_id, category_name", "category_id", "list_categories")
        return [Category(category_id=int(row["category_id"]), name=str(row["category_name"])) for row in rows]

    def list_occasions(self) -> list[Occasion]:
        rows = self._select(self.OCCASION_TABLE, "occasion_id, name", "occasion_id", "list_occasions")
        return [Occasion(occasion_id=int(row["occasion_id"]), name=str(row["name"])) for row in rows]

    def _select(self, table: str, columns: str, order_by: str, operation: str) -> list[dict[str, Any]]:
        try:
            result = self._client.table(table).select(columns).order(order_by).execute()
        except APIError as error:
            raise RepositoryError(operation, _describe(error)) from error
        except (ConnectionError, TimeoutError) as error:
            raise RepositoryError(operation, str(error)) from error
        return result.data or []
