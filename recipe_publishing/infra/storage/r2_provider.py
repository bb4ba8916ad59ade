# recipe_publishing/infra/storage/r2_provider.py
"""
Cloudflare R2 storage provider implementation.
R2 is S3-compatible, so we use boto3 with custom endpoint.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from recipe_publishing.config import Settings, get_settings
from recipe_publishing.domain.errors import ConfigurationError, StorageError
from recipe_publishing.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class R2StorageProvider(StorageProvider):
    """
    Cloudflare R2 storage provider using boto3 (S3-compatible).

    Settings required (see recipe_publishing.config):
    - R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME
    - R2_PUBLIC_URL: public base URL of the bucket, used to build image URLs
    """

    def __init__(self, settings: Optional[Settings] = None, client=None):
        settings = settings or get_settings()
        self.account_id = settings.R2_ACCOUNT_ID
        self.bucket_name = settings.R2_BUCKET_NAME
        self.public_base_url = (settings.R2_PUBLIC_URL or "").rstrip("/")
        self.cache_control = settings.STORAGE_CACHE_CONTROL

        missing = [
            name
            for name in ("R2_ACCOUNT_ID", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_BUCKET_NAME", "R2_PUBLIC_URL")
            if not getattr(settings, name)
        ]
        if missing and client is None:
            raise ConfigurationError([f"{name} is required" for name in missing])

        self.endpoint_url = f"https://{self.account_id}.r2.cloudflarestorage.com"

        self._client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=settings.R2_ACCESS_KEY_ID,
            aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
            config=Config(
                signature_version="s3v4",
                # the pipeline treats every failed call as final
                retries={"max_attempts": 1, "mode": "standard"},
                connect_timeout=settings.UPLOAD_TIMEOUT_SECONDS,
                read_timeout=settings.UPLOAD_TIMEOUT_SECONDS,
            ),
            region_name="auto",  # R2 uses 'auto' as region
        )

        logger.info(
            "R2StorageProvider initialized: bucket=%s, endpoint=%s",
            self.bucket_name,
            self.endpoint_url,
        )

    def put_object(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Upload bytes to R2 and return the public URL."""
        self.ensure_not_cancelled(object_key, cancel_event)
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=data,
                ContentType=content_type,
                CacheControl=f"max-age={self.cache_control}",
                # refuse to overwrite an existing key
                IfNoneMatch="*",
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("Failed to upload to R2: key=%s, code=%s", object_key, error_code)
            raise StorageError(f"Failed to upload {object_key}: {error_code}") from e
        except BotoCoreError as e:
            logger.error("Failed to upload to R2: key=%s, error=%s", object_key, e)
            raise StorageError(f"Failed to upload {object_key}: {e}") from e

        logger.debug("Uploaded to R2: key=%s, size=%d bytes", object_key, len(data))
        return self.public_url(object_key)

    def public_url(self, object_key: str) -> str:
        return f"{self.public_base_url}/{object_key}"

