"""Python SDK for catalog operations.

This module exposes a client bound to one catalog root. It hands out
resource stores per category and domain-flavoured helpers on top of them.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

from core.config import CatalogConfig
from core.logging_config import configure_logging
from core.types import Resource, ResourceFile, ServiceRef
from store.resource_store import ResourceStore
from store.storage import CatalogStorage, FileSystemStorage

DOMAINS_CATEGORY = "domains"


class CatalogClient:
    """Primary SDK entry point for catalog workflows."""

    def __init__(
        self,
        config: CatalogConfig | None = None,
        storage: CatalogStorage | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            storage: Optional storage adapter; local files under the root by default.
        """
        self._config = config or CatalogConfig.from_env()
        configure_logging(self._config.log_level)
        self._storage = storage or FileSystemStorage(self._config.catalog_root)

    @property
    def config(self) -> CatalogConfig:
        return self._config

    def resources(self, category: str | None = None) -> ResourceStore:
        """Get a resource store for a category.

        Args:
            category: Category directory; the configured default when omitted.

        Returns:
            Store bound to this client's storage.
        """
        return ResourceStore(self._storage, category or self._config.default_category)

    def with_catalog_root(self, catalog_root: str) -> "CatalogClient":
        """Clone the client with a different catalog root.

        Args:
            catalog_root: New catalog root path.

        Returns:
            New SDK client instance.
        """
        resolved_root = Path(catalog_root).expanduser().resolve()
        return CatalogClient(replace(self._config, catalog_root=resolved_root))

    def write_domain(
        self,
        domain: Resource | Mapping[str, Any],
        path: str | None = None,
    ) -> Resource:
        return self._domains().write_resource(_as_resource(domain), path=path)

    def get_domain(self, domain_id: str, version: str | None = None) -> Resource | None:
        return self._domains().get_resource(domain_id, version)

    def version_domain(self, domain_id: str) -> str:
        return self._domains().version_resource(domain_id)

    def rm_domain(self, path: str) -> None:
        self._domains().remove_resource(path)

    def rm_domain_by_id(self, domain_id: str, version: str | None = None) -> bool:
        return self._domains().remove_resource_by_id(domain_id, version)

    def add_file_to_domain(
        self,
        domain_id: str,
        file: ResourceFile | Mapping[str, str],
        version: str | None = None,
    ) -> None:
        """Attach a file to the current or a versioned domain location.

        Args:
            domain_id: Domain identifier.
            file: ``ResourceFile`` or mapping with ``fileName``/``file_name`` and ``content``.
            version: Optional version token.
        """
        self._domains().add_file_to_resource(domain_id, _as_file(file), version)

    def domain_has_version(self, domain_id: str, version: str) -> bool:
        return self._domains().resource_has_version(domain_id, version)

    def add_service_to_domain(
        self,
        domain_id: str,
        service: ServiceRef | Mapping[str, Any],
        version: str | None = None,
    ) -> Resource:
        reference = service if isinstance(service, ServiceRef) else ServiceRef.from_dict(service)
        return self._domains().add_service_to_resource(domain_id, reference, version)

    def _domains(self) -> ResourceStore:
        return self.resources(DOMAINS_CATEGORY)


def _as_resource(payload: Resource | Mapping[str, Any]) -> Resource:
    if isinstance(payload, Resource):
        return payload
    return Resource.from_dict(payload)


def _as_file(payload: ResourceFile | Mapping[str, str]) -> ResourceFile:
    if isinstance(payload, ResourceFile):
        return payload
    file_name = payload.get("file_name") or payload.get("fileName") or ""
    return ResourceFile(file_name=str(file_name), content=str(payload.get("content", "")))
