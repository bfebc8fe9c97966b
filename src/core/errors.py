"""rescat exception hierarchy.

This module defines traceable catalog errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RescatError(Exception):
    """Base exception for all rescat failures."""


class RescatConfigError(RescatError):
    """Raised for invalid runtime configuration."""


class RescatStoreError(RescatError):
    """Raised for resource lifecycle and versioning failures."""


class DuplicateVersionError(RescatStoreError):
    """Raised when a write targets a version that already exists."""


class ResourceNotFoundError(RescatStoreError):
    """Raised when an operation requires a resource location that is missing."""


class RescatStorageError(RescatError):
    """Raised when the storage backend fails to read or write."""


class RescatDocumentError(RescatError):
    """Raised for malformed metadata documents."""
