from __future__ import annotations

from typing import Sequence


class PublishingError(Exception):
    pass


class ValidationError(PublishingError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Invalid draft: {'; '.join(errors)}")
        self.errors = errors


class TaxonomyMissingError(ValidationError):
    def __init__(self, message: str = "Please select a category and occasion."):
        super().__init__([message])


class SubmissionInProgressError(PublishingError):
    def __init__(self, draft_id: str):
        super().__init__(f"A submission is already in progress for draft {draft_id}")
        self.draft_id = draft_id


class StorageError(PublishingError):
    pass


class StorageTimeoutError(StorageError):
    def __init__(self, object_key: str, timeout_seconds: float):
        super().__init__(f"Timeout uploading {object_key} after {timeout_seconds}s")
        self.object_key = object_key
        self.timeout_seconds = timeout_seconds


class AssetRejectedError(StorageError):
    def __init__(self, filename: str, reason: str):
        super().__init__(f"Asset {filename} rejected: {reason}")
        self.filename = filename
        self.reason = reason


class UploadCancelledError(StorageError):
    def __init__(self, object_key: str):
        super().__init__(f"Upload cancelled: {object_key}")
        self.object_key = object_key


class UploadError(PublishingError):
    def __init__(self, failed_slots: Sequence[int], causes: Sequence[BaseException] = ()):
        slots = ", ".join(str(slot) for slot in failed_slots)
        detail = f": {causes[0]}" if causes else ""
        super().__init__(f"Failed to upload image slot(s) {slots}{detail}")
        self.failed_slots = list(failed_slots)
        self.causes = list(causes)


class RepositoryError(PublishingError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Recipe repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class RepositoryTimeoutError(RepositoryError):
    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(operation, f"timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class RecipeInsertError(PublishingError):
    def __init__(self, recipe_id: str, reason: str):
        super().__init__(f"Failed to insert recipe {recipe_id}: {reason}")
        self.recipe_id = recipe_id
        self.reason = reason


class AssetAssociationError(PublishingError):
    def __init__(self, recipe_id: str, slot: int, url: str, reason: str):
        super().__init__(f"Failed to associate image slot {slot} with recipe {recipe_id}: {reason}")
        self.recipe_id = recipe_id
        self.slot = slot
        self.url = url
        self.reason = reason


class ConfigurationError(PublishingError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Configuration errors: {', '.join(errors)}")
        self.errors = errors
