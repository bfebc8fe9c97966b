"""Storage adapter for catalog locations.

This module defines the narrow storage interface the resource store
calls through, plus the local file-system implementation.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
import shutil
from typing import Protocol

from core.constants import INDEX_FILE_NAME, TEXT_ENCODING
from core.errors import RescatStorageError
from core.types import Resource
from store.frontmatter import parse_document, render_document


class CatalogStorage(Protocol):
    """Hierarchical storage consumed by the resource store.

    Locations are POSIX paths relative to the catalog root.
    """

    def exists(self, location: PurePosixPath) -> bool: ...

    def is_directory(self, location: PurePosixPath) -> bool: ...

    def list_children(self, location: PurePosixPath) -> tuple[str, ...]: ...

    def read_document(self, location: PurePosixPath) -> Resource | None: ...

    def write_document(self, location: PurePosixPath, resource: Resource) -> None: ...

    def copy_tree(self, source: PurePosixPath, destination: PurePosixPath) -> None: ...

    def remove_tree(self, location: PurePosixPath) -> None: ...

    def write_file(self, location: PurePosixPath, file_name: str, content: str) -> None: ...


class FileSystemStorage:
    """Local directory implementation of ``CatalogStorage``."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def exists(self, location: PurePosixPath) -> bool:
        return self._path(location).exists()

    def is_directory(self, location: PurePosixPath) -> bool:
        return self._path(location).is_dir()

    def list_children(self, location: PurePosixPath) -> tuple[str, ...]:
        """List child names of a directory, sorted; empty if missing."""
        directory = self._path(location)
        if not directory.is_dir():
            return ()
        return tuple(sorted(child.name for child in directory.iterdir()))

    def read_document(self, location: PurePosixPath) -> Resource | None:
        """Read the metadata document stored at a location.

        Args:
            location: Location directory.

        Returns:
            Parsed resource, or None when no document exists.

        Raises:
            RescatStorageError: If the document cannot be read.
            RescatDocumentError: If the document is malformed.
        """
        document_path = self._path(location) / INDEX_FILE_NAME
        if not document_path.is_file():
            return None
        try:
            text = document_path.read_text(encoding=TEXT_ENCODING)
        except OSError as error:
            raise RescatStorageError(
                f"Failed to read document at {document_path}: {error}. "
                "Check file permissions and retry."
            ) from error
        return parse_document(text, source=str(document_path))

    def write_document(self, location: PurePosixPath, resource: Resource) -> None:
        self.write_file(location, INDEX_FILE_NAME, render_document(resource))

    def copy_tree(self, source: PurePosixPath, destination: PurePosixPath) -> None:
        """Copy a file or directory tree to a new location.

        Args:
            source: Existing file or directory.
            destination: Target path; parents are created.

        Raises:
            RescatStorageError: If the copy fails.
        """
        source_path = self._path(source)
        destination_path = self._path(destination)
        try:
            destination_path.parent.mkdir(parents=True, exist_ok=True)
            if source_path.is_dir():
                shutil.copytree(source_path, destination_path)
            else:
                shutil.copy2(source_path, destination_path)
        except OSError as error:
            raise RescatStorageError(
                f"Failed to copy {source_path} to {destination_path}: {error}."
            ) from error

    def remove_tree(self, location: PurePosixPath) -> None:
        """Remove a file or directory tree; missing paths are ignored."""
        target = self._path(location)
        try:
            if target.is_dir():
                shutil.rmtree(target)
            elif target.exists():
                target.unlink()
        except OSError as error:
            raise RescatStorageError(f"Failed to remove {target}: {error}.") from error

    def write_file(self, location: PurePosixPath, file_name: str, content: str) -> None:
        """Write a text file directly under a location directory.

        Args:
            location: Location directory, created when absent.
            file_name: Literal file name.
            content: Text payload.

        Raises:
            RescatStorageError: If the write fails.
        """
        directory = self._path(location)
        target = directory / file_name
        try:
            directory.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding=TEXT_ENCODING)
        except OSError as error:
            raise RescatStorageError(
                f"Failed to write {target}: {error}. Check file permissions and retry."
            ) from error

    def _path(self, location: PurePosixPath) -> Path:
        if location.is_absolute() or ".." in location.parts:
            raise RescatStorageError(
                f"Location '{location}' escapes the catalog root. "
                "Use a relative path inside the catalog."
            )
        return self._root.joinpath(*location.parts)
