"""Runtime configuration model for rescat.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from core.constants import DEFAULT_CATALOG_ROOT, DEFAULT_CATEGORY, DEFAULT_LOG_LEVEL
from core.errors import RescatConfigError


@dataclass(frozen=True)
class CatalogConfig:
    """Validated runtime configuration.

    Attributes:
        catalog_root: Root directory holding all resource categories.
        default_category: Category used when callers do not name one.
        log_level: Minimum structured log level name.
    """

    catalog_root: Path
    default_category: str
    log_level: str

    @classmethod
    def from_env(cls) -> "CatalogConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RescatConfigError: If environment values are invalid.
        """
        catalog_root_value = os.getenv("RESCAT_CATALOG_ROOT", str(DEFAULT_CATALOG_ROOT))
        category_value = os.getenv("RESCAT_DEFAULT_CATEGORY", DEFAULT_CATEGORY)
        log_level_value = os.getenv("RESCAT_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        return cls(
            catalog_root=Path(catalog_root_value).expanduser().resolve(),
            default_category=_parse_category(category_value),
            log_level=_parse_log_level(log_level_value),
        )


def _parse_category(raw_value: str) -> str:
    """Validate the default category environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Category directory name.

    Raises:
        RescatConfigError: If value is empty or contains path separators.
    """
    category = raw_value.strip()
    if not category or "/" in category or "\\" in category or category in (".", ".."):
        raise RescatConfigError(
            "Invalid RESCAT_DEFAULT_CATEGORY value: "
            f"expected a single directory name, got '{raw_value}'. "
            "Set RESCAT_DEFAULT_CATEGORY to a name such as 'domains'."
        )
    return category


def _parse_log_level(raw_value: str) -> str:
    """Parse the log level environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Upper-cased logging level name.

    Raises:
        RescatConfigError: If value is not a known logging level.
    """
    level_name = raw_value.strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        raise RescatConfigError(
            "Invalid RESCAT_LOG_LEVEL value: "
            f"expected a logging level name, got '{raw_value}'. "
            "Set RESCAT_LOG_LEVEL to DEBUG, INFO, WARNING, or ERROR."
        )
    return level_name
