# recipe_publishing/services/upload_orchestrator.py
"""
Phase A: concurrent image uploads for one submission attempt.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Optional, Sequence

from recipe_publishing.domain.errors import (
    AssetRejectedError,
    StorageError,
    StorageTimeoutError,
    UploadCancelledError,
    UploadError,
)
from recipe_publishing.domain.models import AssetRecord, Attachment
from recipe_publishing.infra.storage.base import StorageProvider
from recipe_publishing.services.content_keys import storage_key_for

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONCURRENT_UPLOADS = 10


class AssetUploadOrchestrator:
    """
    Uploads every non-empty attachment slot concurrently.

    The first failing upload cancels the whole group: siblings still waiting
    for a slot never start, in-flight ones are cancelled, and the caller gets
    a single UploadError instead of a partial list. Objects that finished
    before the cancellation stay in the bucket unreferenced.
    """

    def __init__(
        self,
        storage: StorageProvider,
        timeout_seconds: float = DEFAULT_UPLOAD_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENT_UPLOADS,
        max_image_bytes: Optional[int] = None,
        allowed_content_types: Optional[Sequence[str]] = None,
        key_factory: Callable[[str, str], str] = storage_key_for,
    ):
        self._storage = storage
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max_concurrency
        self.max_image_bytes = max_image_bytes
        self.allowed_content_types = set(allowed_content_types) if allowed_content_types else None
        self._key_factory = key_factory

    async def upload_all(
        self,
        recipe_id: str,
        attachments: Sequence[Optional[Attachment]],
    ) -> list[AssetRecord]:
        """
        Upload all attachments under the recipe's prefix.

        Args:
            recipe_id: The allocated recipe id
            attachments: Slots in composer order; None marks an empty slot

        Returns:
            One AssetRecord per uploaded attachment, ordered by slot

        Raises:
            UploadError: If any upload failed; names the failed slot(s)
        """
        present = [attachment for attachment in attachments if attachment is not None]
        if not present:
            return []

        present.sort(key=lambda attachment: attachment.slot)
        results: list[Optional[AssetRecord]] = [None] * len(present)
        cancel_event = threading.Event()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        tasks: dict[asyncio.Task[None], Attachment] = {}
        for index, attachment in enumerate(present):
            task = asyncio.create_task(
                self._upload_one(recipe_id, attachment, index, results, semaphore, cancel_event),
                name=f"upload-{recipe_id}-slot-{attachment.slot}",
            )
            tasks[task] = attachment

        logger.info("Uploading %d image(s) for recipe=%s", len(tasks), recipe_id)

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            cancel_event.set()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        failures = [
            (tasks[task].slot, task.exception())
            for task in done
            if task.exception() is not None and not isinstance(task.exception(), UploadCancelledError)
        ]
        if not failures:
            return [record for record in results if record is not None]

        cancel_event.set()
        stragglers = list(pending)
        for task in stragglers:
            task.cancel()
        late_outcomes = await asyncio.gather(*stragglers, return_exceptions=True)
        for task, outcome in zip(stragglers, late_outcomes):
            if isinstance(outcome, (asyncio.CancelledError, UploadCancelledError)) or outcome is None:
                continue
            failures.append((tasks[task].slot, outcome))

        failures.sort(key=lambda failure: failure[0])
        failed_slots = [slot for slot, _ in failures]
        logger.error(
            "Upload group aborted: recipe=%s, failed_slots=%s, cancelled=%d",
            recipe_id,
            failed_slots,
            len(stragglers),
        )
        raise UploadError(failed_slots, [error for _, error in failures])

    async def _upload_one(
        self,
        recipe_id: str,
        attachment: Attachment,
        index: int,
        results: list[Optional[AssetRecord]],
        semaphore: asyncio.Semaphore,
        cancel_event: threading.Event,
    ) -> None:
        object_key = self._key_factory(recipe_id, attachment.filename)
        try:
            self._check_acceptable(attachment)
            async with semaphore:
                # a sibling may have failed while this one waited for a slot
                if cancel_event.is_set():
                    raise UploadCancelledError(object_key)
                url = await self._put(object_key, attachment, cancel_event)
        except UploadCancelledError:
            raise
        except Exception:
            cancel_event.set()
            raise

        results[index] = AssetRecord(slot=attachment.slot, object_key=object_key, url=url)
        logger.debug("Uploaded slot=%d key=%s", attachment.slot, object_key)

    def _check_acceptable(self, attachment: Attachment) -> None:
        if self.allowed_content_types is not None and attachment.content_type not in self.allowed_content_types:
            raise AssetRejectedError(attachment.filename, f"unsupported content type {attachment.content_type}")
        if self.max_image_bytes is not None and attachment.size > self.max_image_bytes:
            raise AssetRejectedError(
                attachment.filename,
                f"{attachment.size} bytes exceeds the {self.max_image_bytes} byte limit",
            )

    async def _put(self, object_key: str, attachment: Attachment, cancel_event: threading.Event) -> str:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self._storage.put_object,
                    object_key,
                    attachment.data,
                    attachment.content_type,
                    cancel_event,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Upload timed out: key=%s, timeout=%ss", object_key, self.timeout_seconds)
            raise StorageTimeoutError(object_key, self.timeout_seconds) from None
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to upload {object_key}: {e}") from e
