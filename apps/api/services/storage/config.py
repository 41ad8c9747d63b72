"""Upload storage settings.

Uploading is handled outside this service; only the credentials it needs
are checked here, once, when the app is created.
"""

# flake8: noqa: E501


from dataclasses import dataclass
from typing import List, Optional

from apps.api.exceptions import StorageConfigError

REQUIRED_SETTINGS = (
    "STORAGE_ACCESS_KEY",
    "STORAGE_SECRET_KEY",
    "STORAGE_ENDPOINT",
    "STORAGE_BUCKET",
)


@dataclass(slots=True, frozen=True)
class StorageSettings:
    """Object storage connection settings."""

    enabled: bool
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    endpoint: Optional[str] = None
    bucket: Optional[str] = None

    @classmethod
    def from_config(cls, config) -> "StorageSettings":
        return cls(
            enabled=bool(config.get("STORAGE_ENABLED")),
            access_key=config.get("STORAGE_ACCESS_KEY"),
            secret_key=config.get("STORAGE_SECRET_KEY"),
            endpoint=config.get("STORAGE_ENDPOINT"),
            bucket=config.get("STORAGE_BUCKET"),
        )


def missing_settings(config) -> List[str]:
    """Names of required storage settings that are unset or blank."""
    return [name for name in REQUIRED_SETTINGS if not (config.get(name) or "").strip()]


def check_storage_config(config) -> StorageSettings:
    """
    Validate storage settings at startup.

    Args:
        config: Flask config mapping

    Returns:
        The storage settings

    Raises:
        StorageConfigError: If storage is enabled but credentials are missing
    """
    settings = StorageSettings.from_config(config)
    if settings.enabled:
        missing = missing_settings(config)
        if missing:
            raise StorageConfigError(
                f"Storage is enabled but missing required settings: {', '.join(missing)}"
            )
    return settings
