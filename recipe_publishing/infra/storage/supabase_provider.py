# recipe_publishing/infra/storage/supabase_provider.py
"""
Supabase Storage provider: images live in a public bucket ("recipes" by default).
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from supabase import Client

from recipe_publishing.config import Settings, get_settings
from recipe_publishing.domain.errors import StorageError
from recipe_publishing.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class SupabaseStorageProvider(StorageProvider):
    def __init__(self, client: Client, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._client = client
        self.bucket_name = settings.RECIPE_BUCKET
        self.cache_control = settings.STORAGE_CACHE_CONTROL
        self.base_url = str(settings.SUPABASE_URL or "").rstrip("/")
        logger.info("SupabaseStorageProvider initialized: bucket=%s", self.bucket_name)

    def put_object(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        self.ensure_not_cancelled(object_key, cancel_event)
        try:
            self._client.storage.from_(self.bucket_name).upload(
                object_key,
                data,
                {
                    "content-type": content_type,
                    "cache-control": self.cache_control,
                    "upsert": "false",
                },
            )
        except Exception as e:
            # storage3 raises its own exception types depending on the version
            logger.error("Failed to upload to Supabase Storage: key=%s, error=%s", object_key, e)
            raise StorageError(f"Failed to upload {object_key}: {e}") from e

        logger.debug("Uploaded to Supabase Storage: key=%s, size=%d bytes", object_key, len(data))
        return self.public_url(object_key)

    def public_url(self, object_key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket_name}/{object_key}"

