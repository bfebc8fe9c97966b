"""Resource lifecycle store.

This module owns current and historical locations of catalog resources.
It provides write, read, freeze, remove, and attach operations, resolving
version tokens through the version resolver and moving data through the
storage adapter.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import PurePosixPath
from typing import Iterator

from core.constants import INDEX_FILE_NAME, VERSIONED_DIR_NAME
from core.errors import DuplicateVersionError, RescatStoreError, ResourceNotFoundError
from core.logging_config import get_logger
from core.types import Resource, ResourceFile, ResourceLocation, ServiceRef
from store.collection_merger import add_reference, merge_references
from store.storage import CatalogStorage
from store.version_resolver import VersionMatcher, precedence_key, resolve_version

_LOGGER = get_logger(__name__)


class ResourceStore:
    """Versioned resource store for one catalog category.

    This class maps resource ids to their current location and the
    frozen snapshots nested under ``versioned/``.
    """

    def __init__(
        self,
        storage: CatalogStorage,
        category: str,
        matcher: VersionMatcher | None = None,
    ) -> None:
        """Initialize a store bound to a storage handle.

        Args:
            storage: Storage adapter rooted at the catalog.
            category: Category directory, for example ``domains``.
            matcher: Optional semver range matcher override.
        """
        self._storage = storage
        self._category = category
        self._category_root = PurePosixPath(category)
        self._matcher = matcher
        self._label = category[:-1] if category.endswith("s") else category

    def write_resource(self, resource: Resource, path: str | None = None) -> Resource:
        """Write a resource to its current location.

        Args:
            resource: Resource payload.
            path: Optional custom location under the category.

        Returns:
            The resource as persisted, with deduplicated services.

        Raises:
            DuplicateVersionError: If the version already exists for the id.
            RescatStoreError: If the target location belongs elsewhere.
        """
        if _is_unsafe_segment(resource.version):
            raise RescatStoreError(
                f"Invalid version '{resource.version}' for {self._label} '{resource.id}': "
                "expected a single path segment such as 1.0.0."
            )
        location = self.locate(resource.id)
        if location is not None:
            known_versions = (*location.historical_versions, location.current_version)
            if resource.version in known_versions:
                raise DuplicateVersionError(
                    f"Failed to write {self._label} as the version {resource.version} "
                    "already exists"
                )
        target = self._target_location(resource.id, location, path)
        existing = self._storage.read_document(target)
        if existing is not None and existing.id != resource.id:
            raise RescatStoreError(
                f"Cannot write {self._label} '{resource.id}' to {target}: "
                f"the location already holds '{existing.id}'. Choose another path."
            )
        history_owner = self._history_owner(target) if existing is None else None
        if history_owner is not None and history_owner != resource.id:
            raise RescatStoreError(
                f"Cannot write {self._label} '{resource.id}' to {target}: "
                f"the location holds versions of '{history_owner}'. Choose another path."
            )
        stored_services = existing.services if existing is not None else ()
        persisted = replace(
            resource, services=merge_references(stored_services, resource.services)
        )
        self._storage.write_document(target, persisted)
        _LOGGER.info(
            "resource_written",
            category=self._category,
            resource_id=resource.id,
            version=resource.version,
            location=str(target),
        )
        return persisted

    def get_resource(self, resource_id: str, version: str | None = None) -> Resource | None:
        """Read a resource at a requested version.

        Args:
            resource_id: Resource identifier.
            version: Exact version, semver range, or ``latest``; current when omitted.

        Returns:
            Stored resource, or None when id or version cannot be resolved.
        """
        target = self._resolve_location(resource_id, version)
        if target is None:
            return None
        return self._storage.read_document(target)

    def version_resource(self, resource_id: str) -> str:
        """Freeze the current location into a historical snapshot.

        Args:
            resource_id: Resource identifier.

        Returns:
            Frozen version string.

        Raises:
            ResourceNotFoundError: If the resource has no current location.
            DuplicateVersionError: If the snapshot already exists.
        """
        location = self.locate(resource_id)
        if location is None or location.current_version is None:
            raise ResourceNotFoundError(
                f"Cannot version {self._label} '{resource_id}': no current version exists. "
                f"Write the {self._label} before versioning it."
            )
        version = location.current_version
        destination = location.root / VERSIONED_DIR_NAME / version
        if self._storage.exists(destination):
            raise DuplicateVersionError(
                f"Failed to version {self._label} '{resource_id}' as the version {version} "
                "already exists"
            )
        children = self._current_children(location.root)
        try:
            for child in children:
                self._storage.copy_tree(location.root / child, destination / child)
        except Exception:
            self._storage.remove_tree(destination)
            _LOGGER.error(
                "resource_version_freeze_rolled_back",
                category=self._category,
                resource_id=resource_id,
                version=version,
                stage="copy",
            )
            raise
        try:
            for child in children:
                self._storage.remove_tree(location.root / child)
        except Exception:
            self._restore_current(location.root, destination, children)
            _LOGGER.error(
                "resource_version_freeze_rolled_back",
                category=self._category,
                resource_id=resource_id,
                version=version,
                stage="remove",
            )
            raise
        _LOGGER.info(
            "resource_versioned",
            category=self._category,
            resource_id=resource_id,
            version=version,
            file_count=len(children),
        )
        return version

    def remove_resource(self, path: str) -> None:
        """Remove a resource tree by its path under the category.

        Args:
            path: Location relative to the category, e.g. ``/Payment``.

        Raises:
            ResourceNotFoundError: If nothing exists at the path.
        """
        target = self._category_root / _relative_path(path)
        if target == self._category_root or not self._storage.exists(target):
            raise ResourceNotFoundError(
                f"Cannot remove {self._label} at '{path}': no such location in "
                f"{self._category}."
            )
        self._storage.remove_tree(target)
        _LOGGER.info("resource_removed", category=self._category, location=str(target))

    def remove_resource_by_id(self, resource_id: str, version: str | None = None) -> bool:
        """Remove the current location or one resolved historical snapshot.

        Args:
            resource_id: Resource identifier.
            version: Optional version token; current when omitted.

        Returns:
            True when a location was removed, False when nothing resolved.
        """
        location = self.locate(resource_id)
        if location is None:
            return False
        resolved = resolve_version(
            version, location.current_version, location.historical_versions, self._matcher
        )
        if resolved is None:
            return False
        if resolved.is_current:
            for child in self._current_children(location.root):
                self._storage.remove_tree(location.root / child)
        else:
            versioned_root = location.root / VERSIONED_DIR_NAME
            self._storage.remove_tree(versioned_root / resolved.version)
            self._prune_if_empty(versioned_root)
        self._prune_if_empty(location.root)
        _LOGGER.info(
            "resource_removed",
            category=self._category,
            resource_id=resource_id,
            version=resolved.version,
            current=resolved.is_current,
        )
        return True

    def add_file_to_resource(
        self,
        resource_id: str,
        file: ResourceFile,
        version: str | None = None,
    ) -> None:
        """Write an auxiliary file next to a resource document.

        Args:
            resource_id: Resource identifier.
            file: File name and content.
            version: Optional version token; current when omitted.

        Raises:
            ResourceNotFoundError: If the target location does not exist.
            RescatStoreError: If the file name is not a plain name.
        """
        target = self._resolve_location(resource_id, version)
        if target is None:
            raise ResourceNotFoundError("Cannot find directory to write file to")
        if _is_reserved_file_name(file.file_name):
            raise RescatStoreError(
                f"Invalid file name '{file.file_name}': expected a plain file name "
                f"other than {INDEX_FILE_NAME}."
            )
        self._storage.write_file(target, file.file_name, file.content)
        _LOGGER.info(
            "resource_file_added",
            category=self._category,
            resource_id=resource_id,
            file_name=file.file_name,
            location=str(target),
        )

    def resource_has_version(self, resource_id: str, version: str) -> bool:
        return self._resolve_location(resource_id, version) is not None

    def add_service_to_resource(
        self,
        resource_id: str,
        service: ServiceRef,
        version: str | None = None,
    ) -> Resource:
        """Add a service reference to a stored resource if absent.

        Args:
            resource_id: Resource identifier.
            service: Reference to add.
            version: Optional version token; current when omitted.

        Returns:
            Resource after the merge.

        Raises:
            ResourceNotFoundError: If the resource version cannot be resolved.
        """
        target = self._resolve_location(resource_id, version)
        resource = self._storage.read_document(target) if target is not None else None
        if target is None or resource is None:
            raise ResourceNotFoundError(
                f"Cannot add service to {self._label} '{resource_id}' "
                f"(version {version or 'latest'}): {self._label} not found."
            )
        services = add_reference(resource.services, service)
        if services == resource.services:
            return resource
        updated = replace(resource, services=services)
        self._storage.write_document(target, updated)
        _LOGGER.info(
            "resource_service_added",
            category=self._category,
            resource_id=resource_id,
            version=resource.version,
            service_id=service.id,
            service_version=service.version,
        )
        return updated

    def list_versions(self, resource_id: str) -> tuple[str, ...]:
        """List every stored version of a resource by ascending precedence."""
        location = self.locate(resource_id)
        if location is None:
            return ()
        versions = list(location.historical_versions)
        if location.current_version is not None:
            versions.append(location.current_version)
        return tuple(sorted(set(versions), key=precedence_key))

    def list_resources(self, latest_only: bool = True) -> tuple[Resource, ...]:
        """List resources stored in the category.

        Args:
            latest_only: Only return current locations when True.

        Returns:
            Resources ordered by location path.
        """
        resources: list[Resource] = []
        for directory in self._iter_directories():
            current = self._storage.read_document(directory)
            if current is not None:
                resources.append(current)
            if latest_only:
                continue
            for version in self._storage.list_children(directory / VERSIONED_DIR_NAME):
                snapshot = self._storage.read_document(directory / VERSIONED_DIR_NAME / version)
                if snapshot is not None:
                    resources.append(snapshot)
        return tuple(resources)

    def locate(self, resource_id: str) -> ResourceLocation | None:
        """Find the location of a resource id inside the category.

        Args:
            resource_id: Resource identifier.

        Returns:
            Location with current and historical versions, or None.
        """
        for directory in self._iter_directories():
            current = self._storage.read_document(directory)
            if current is not None and current.id == resource_id:
                return ResourceLocation(
                    root=directory,
                    current_version=current.version,
                    historical_versions=self._historical_versions(directory),
                )
            if current is None and self._owns_history(directory, resource_id):
                return ResourceLocation(
                    root=directory,
                    current_version=None,
                    historical_versions=self._historical_versions(directory),
                )
        return None

    def _resolve_location(self, resource_id: str, version: str | None) -> PurePosixPath | None:
        location = self.locate(resource_id)
        if location is None:
            return None
        resolved = resolve_version(
            version, location.current_version, location.historical_versions, self._matcher
        )
        if resolved is None:
            return None
        if resolved.is_current:
            return location.root
        return location.root / VERSIONED_DIR_NAME / resolved.version

    def _target_location(
        self,
        resource_id: str,
        location: ResourceLocation | None,
        path: str | None,
    ) -> PurePosixPath:
        if path is None:
            return location.root if location is not None else self._category_root / resource_id
        target = self._category_root / _relative_path(path)
        if target == self._category_root:
            raise RescatStoreError(
                f"Invalid path '{path}' for {self._label} '{resource_id}': "
                "expected a directory below the category."
            )
        if location is not None and location.root != target:
            raise RescatStoreError(
                f"Cannot write {self._label} '{resource_id}' to {target}: it already lives at "
                f"{location.root}. Remove it before moving it to a new path."
            )
        return target

    def _iter_directories(self) -> Iterator[PurePosixPath]:
        pending = [self._category_root]
        while pending:
            directory = pending.pop(0)
            if directory != self._category_root:
                yield directory
            for child in self._storage.list_children(directory):
                child_path = directory / child
                if child != VERSIONED_DIR_NAME and self._storage.is_directory(child_path):
                    pending.append(child_path)

    def _historical_versions(self, root: PurePosixPath) -> tuple[str, ...]:
        versioned_root = root / VERSIONED_DIR_NAME
        return tuple(
            version
            for version in self._storage.list_children(versioned_root)
            if self._storage.exists(versioned_root / version / INDEX_FILE_NAME)
        )

    def _history_owner(self, root: PurePosixPath) -> str | None:
        versioned_root = root / VERSIONED_DIR_NAME
        for version in self._historical_versions(root):
            snapshot = self._storage.read_document(versioned_root / version)
            if snapshot is not None:
                return snapshot.id
        return None

    def _owns_history(self, root: PurePosixPath, resource_id: str) -> bool:
        versioned_root = root / VERSIONED_DIR_NAME
        for version in self._historical_versions(root):
            snapshot = self._storage.read_document(versioned_root / version)
            if snapshot is not None and snapshot.id == resource_id:
                return True
        return False

    def _current_children(self, root: PurePosixPath) -> tuple[str, ...]:
        return tuple(
            child for child in self._storage.list_children(root) if child != VERSIONED_DIR_NAME
        )

    def _restore_current(
        self,
        root: PurePosixPath,
        snapshot: PurePosixPath,
        children: tuple[str, ...],
    ) -> None:
        for child in children:
            current_child = root / child
            if self._storage.exists(current_child):
                if not self._storage.is_directory(current_child):
                    continue
                # partially removed trees are rebuilt from the snapshot
                self._storage.remove_tree(current_child)
            self._storage.copy_tree(snapshot / child, current_child)
        self._storage.remove_tree(snapshot)

    def _prune_if_empty(self, location: PurePosixPath) -> None:
        if self._storage.exists(location) and not self._storage.list_children(location):
            self._storage.remove_tree(location)


def _relative_path(path: str) -> PurePosixPath:
    parts = [part for part in PurePosixPath(path).parts if part not in ("/", ".")]
    if ".." in parts:
        raise RescatStoreError(
            f"Invalid path '{path}': parent directory references are not allowed."
        )
    return PurePosixPath(*parts)


def _is_unsafe_segment(name: str) -> bool:
    return not name or name in (".", "..") or "/" in name or "\\" in name


def _is_reserved_file_name(file_name: str) -> bool:
    return _is_unsafe_segment(file_name) or file_name in (INDEX_FILE_NAME, VERSIONED_DIR_NAME)
