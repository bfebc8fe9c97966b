"""Public SDK surface for rescat.

This module provides a stable import path for catalog users.
It re-exports the primary client, stores, and typed models.
"""

from __future__ import annotations

from core.config import CatalogConfig
from core.errors import (
    DuplicateVersionError,
    RescatError,
    RescatStoreError,
    ResourceNotFoundError,
)
from core.types import Resource, ResourceFile, ServiceRef
from store.catalog_sdk import CatalogClient
from store.resource_store import ResourceStore
from store.storage import CatalogStorage, FileSystemStorage
from store.version_resolver import resolve_version, satisfies

__all__ = [
    "CatalogClient",
    "CatalogConfig",
    "CatalogStorage",
    "DuplicateVersionError",
    "FileSystemStorage",
    "RescatError",
    "RescatStoreError",
    "Resource",
    "ResourceFile",
    "ResourceNotFoundError",
    "ResourceStore",
    "ServiceRef",
    "resolve_version",
    "satisfies",
]
