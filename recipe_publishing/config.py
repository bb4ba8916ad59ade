from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    APP_ENV: str = "local"

    # Object store
    STORAGE_BACKEND: Literal["supabase", "r2"] = "supabase"
    RECIPE_BUCKET: str = "recipes"
    STORAGE_CACHE_CONTROL: str = "3600"
    R2_ACCOUNT_ID: Optional[str] = None
    R2_ACCESS_KEY_ID: Optional[str] = None
    R2_SECRET_ACCESS_KEY: Optional[str] = None
    R2_BUCKET_NAME: Optional[str] = None
    R2_PUBLIC_URL: Optional[str] = None

    # Pipeline limits
    UPLOAD_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    INSERT_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    MAX_CONCURRENT_UPLOADS: int = Field(default=10, ge=1)
    MAX_IMAGE_BYTES: int = Field(default=5 * 1024 * 1024, gt=0)
    ALLOWED_IMAGE_TYPES: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp", "image/gif"],
    )

    def validate_backend(self) -> list[str]:
        """Validate the settings the Supabase/R2 adapters need and return a list of errors."""
        errors = []

        if not self.SUPABASE_URL:
            errors.append("SUPABASE_URL is required")
        if not self.SUPABASE_SERVICE_ROLE_KEY:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required")

        if self.STORAGE_BACKEND == "r2":
            if not self.R2_ACCOUNT_ID:
                errors.append("R2_ACCOUNT_ID is required")
            if not self.R2_ACCESS_KEY_ID:
                errors.append("R2_ACCESS_KEY_ID is required")
            if not self.R2_SECRET_ACCESS_KEY:
                errors.append("R2_SECRET_ACCESS_KEY is required")
            if not self.R2_BUCKET_NAME:
                errors.append("R2_BUCKET_NAME is required")
            if not self.R2_PUBLIC_URL:
                errors.append("R2_PUBLIC_URL is required")

        return errors


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
