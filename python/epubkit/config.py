"""Library settings loaded from environment variables.

Rewriting Configuration:
    EPUBKIT_IMAGE_ROOT: URL prefix for rewritten image sources (default /images/)
    EPUBKIT_LINK_ROOT: URL prefix for rewritten document links (default /links/)

Logging Configuration:
    EPUBKIT_LOG_JSON: Render logs as JSON (true) or console-friendly text (false)

Archive Safety Configuration:
    EPUBKIT_MAX_ARCHIVE_ENTRIES: Maximum number of entries in an archive
    EPUBKIT_MAX_ARCHIVE_TOTAL_UNCOMPRESSED_BYTES: Maximum total uncompressed size
    EPUBKIT_MAX_ARCHIVE_SINGLE_ENTRY_UNCOMPRESSED_BYTES: Maximum size of one entry
    EPUBKIT_MAX_ARCHIVE_COMPRESSION_RATIO: Maximum uncompressed/compressed ratio
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

DEFAULT_IMAGE_ROOT = "/images/"
DEFAULT_LINK_ROOT = "/links/"


def normalize_root(value: str | None, default: str) -> str:
    """Trim a URL prefix and make sure it ends with a separator.

    Empty or missing values fall back to ``default``.
    """
    root = (value or "").strip() or default
    if not root.endswith("/"):
        root += "/"
    return root


class Settings(BaseSettings):
    """Library configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - image/link roots are trimmed and always end with "/"
    - archive safety limits must be >= 1
    """

    image_root: str = Field(default=DEFAULT_IMAGE_ROOT, alias="EPUBKIT_IMAGE_ROOT")
    link_root: str = Field(default=DEFAULT_LINK_ROOT, alias="EPUBKIT_LINK_ROOT")

    log_json: bool = Field(default=True, alias="EPUBKIT_LOG_JSON")

    # Archive safety limits
    max_archive_entries: int = Field(default=10_000, alias="EPUBKIT_MAX_ARCHIVE_ENTRIES")
    max_archive_total_uncompressed_bytes: int = Field(
        default=512 * 1024 * 1024, alias="EPUBKIT_MAX_ARCHIVE_TOTAL_UNCOMPRESSED_BYTES"
    )  # 512 MiB
    max_archive_single_entry_uncompressed_bytes: int = Field(
        default=64 * 1024 * 1024, alias="EPUBKIT_MAX_ARCHIVE_SINGLE_ENTRY_UNCOMPRESSED_BYTES"
    )  # 64 MiB
    max_archive_compression_ratio: int = Field(
        default=100, alias="EPUBKIT_MAX_ARCHIVE_COMPRESSION_RATIO"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("image_root", mode="before")
    @classmethod
    def _normalize_image_root(cls, value: str | None) -> str:
        return normalize_root(value, DEFAULT_IMAGE_ROOT)

    @field_validator("link_root", mode="before")
    @classmethod
    def _normalize_link_root(cls, value: str | None) -> str:
        return normalize_root(value, DEFAULT_LINK_ROOT)

    @model_validator(mode="after")
    def validate_archive_limits(self) -> "Settings":
        """Reject non-positive archive safety limits."""
        limits = {
            "EPUBKIT_MAX_ARCHIVE_ENTRIES": self.max_archive_entries,
            "EPUBKIT_MAX_ARCHIVE_TOTAL_UNCOMPRESSED_BYTES": self.max_archive_total_uncompressed_bytes,
            "EPUBKIT_MAX_ARCHIVE_SINGLE_ENTRY_UNCOMPRESSED_BYTES": (
                self.max_archive_single_entry_uncompressed_bytes
            ),
            "EPUBKIT_MAX_ARCHIVE_COMPRESSION_RATIO": self.max_archive_compression_ratio,
        }
        for name, value in limits.items():
            if value < 1:
                raise ValueError(f"{name} must be >= 1 (got {value})")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached library settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
