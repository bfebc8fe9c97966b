"""Shared typed models.

This module defines immutable data models used by the storage adapter,
resource store, SDK, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Mapping

from core.errors import RescatDocumentError

RESOURCE_CORE_FIELDS = ("id", "name", "version", "summary", "markdown", "services")


@dataclass(frozen=True)
class ServiceRef:
    """Nested reference from a resource to a service version.

    Attributes:
        id: Referenced service identifier.
        version: Referenced service version or range.
    """

    id: str
    version: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.id, self.version)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "version": self.version}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ServiceRef":
        if "id" not in payload or "version" not in payload:
            raise RescatDocumentError(
                f"Invalid service reference {dict(payload)!r}: "
                "expected both 'id' and 'version' fields."
            )
        return cls(id=str(payload["id"]), version=str(payload["version"]))


@dataclass(frozen=True)
class Resource:
    """Versioned catalog resource.

    Attributes:
        id: Identifier stable across versions.
        name: Human readable name.
        version: Semver-formatted version string.
        summary: Short description.
        markdown: Opaque markdown body.
        services: Ordered nested service references.
        extra_fields: Unrecognized metadata preserved verbatim.
    """

    id: str
    name: str
    version: str
    summary: str = ""
    markdown: str = ""
    services: tuple[ServiceRef, ...] = ()
    extra_fields: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flatten the resource into its document mapping.

        Returns:
            Mapping with extra fields at top level and ``services`` only when set.
        """
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "summary": self.summary,
        }
        if self.services:
            payload["services"] = [service.to_dict() for service in self.services]
        for key, value in self.extra_fields.items():
            payload.setdefault(key, value)
        payload["markdown"] = self.markdown
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Resource":
        """Build a resource from a flat document mapping.

        Args:
            payload: Mapping with core fields and optional extras.

        Returns:
            Typed resource.

        Raises:
            RescatDocumentError: If required fields are missing.
        """
        missing = [name for name in ("id", "name", "version") if payload.get(name) is None]
        if missing:
            raise RescatDocumentError(
                f"Resource document is missing required fields: {', '.join(missing)}. "
                "Every resource needs an id, a name, and a version."
            )
        raw_services = payload.get("services") or []
        if not isinstance(raw_services, list):
            raise RescatDocumentError(
                f"Resource '{payload['id']}' has invalid services: expected a list."
            )
        extras = {
            key: value for key, value in payload.items() if key not in RESOURCE_CORE_FIELDS
        }
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            version=str(payload["version"]),
            summary=str(payload.get("summary") or ""),
            markdown=str(payload.get("markdown") or ""),
            services=tuple(ServiceRef.from_dict(item) for item in raw_services),
            extra_fields=extras,
        )


@dataclass(frozen=True)
class ResourceFile:
    """Auxiliary file attached to a resource location.

    Attributes:
        file_name: Literal file name written under the location.
        content: Text content.
    """

    file_name: str
    content: str


@dataclass(frozen=True)
class ResourceLocation:
    """Where a resource id lives inside its category.

    Attributes:
        root: Current location path relative to the catalog root.
        current_version: Version stored at the current location, if any.
        historical_versions: Frozen version strings under ``versioned/``.
    """

    root: PurePosixPath
    current_version: str | None
    historical_versions: tuple[str, ...]


@dataclass(frozen=True)
class ResolvedVersion:
    """Outcome of resolving a version token.

    Attributes:
        version: Concrete stored version string.
        is_current: True when the current location satisfied the request.
    """

    version: str
    is_current: bool
