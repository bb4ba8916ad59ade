# recipe_publishing/infra/storage/base.py
"""
Abstract base class for object storage providers.
This interface allows swapping between storage backends (Supabase Storage, R2, ...)
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Optional

from recipe_publishing.domain.errors import UploadCancelledError


class StorageProvider(ABC):
    """
    Abstract interface for the object store used by the upload orchestrator.

    Implementations:
    - SupabaseStorageProvider: Supabase Storage bucket
    - R2StorageProvider: Cloudflare R2 (S3-compatible)
    """

    @abstractmethod
    def put_object(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Store an object under a key that must not exist yet.

        Args:
            object_key: The key/path where the object will be stored
            data: Raw object bytes
            content_type: MIME type of the content (e.g., "image/png")
            cancel_event: Set by the caller when the upload is no longer wanted

        Returns:
            The publicly addressable URL of the stored object

        Raises:
            StorageError: If the store rejects or fails the upload
            UploadCancelledError: If cancel_event was set before the upload started
        """
        pass

    @abstractmethod
    def public_url(self, object_key: str) -> str:
        """Return the public URL an object is (or will be) served from."""
        pass

    @staticmethod
    def ensure_not_cancelled(object_key: str, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelledError(object_key)

