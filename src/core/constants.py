"""Core constants used across rescat modules.

This module centralizes catalog layout names and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_CATALOG_ROOT = Path("catalog")
DEFAULT_CATEGORY = "domains"
DEFAULT_LOG_LEVEL = "INFO"
INDEX_FILE_NAME = "index.md"
VERSIONED_DIR_NAME = "versioned"
LATEST_VERSION_TOKEN = "latest"
FRONT_MATTER_DELIMITER = "---"
TEXT_ENCODING = "utf-8"
