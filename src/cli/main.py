"""rescat CLI entry points.
This module exposes catalog commands for writing, reading, and versioning resources.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.version_commands import (
    add_version_commands,
    run_freeze_command,
    run_has_version_command,
    run_versions_command,
)
from core.config import CatalogConfig
from core.constants import TEXT_ENCODING
from core.errors import RescatError
from core.types import ResourceFile, ServiceRef
from store.catalog_sdk import CatalogClient
from store.frontmatter import parse_document, render_document


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="rescat", description="Versioned resource catalog CLI")
    parser.add_argument("--catalog-root", help="Override RESCAT_CATALOG_ROOT for this command")
    parser.add_argument(
        "--category",
        help="Resource category directory (defaults to RESCAT_DEFAULT_CATEGORY)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_write_command(subparsers)
    _add_get_command(subparsers)
    _add_list_command(subparsers)
    _add_remove_commands(subparsers)
    _add_file_command(subparsers)
    _add_service_command(subparsers)
    add_version_commands(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the rescat CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    handlers = {
        "write": _run_write_command,
        "get": _run_get_command,
        "list": _run_list_command,
        "rm": _run_rm_command,
        "rm-id": _run_rm_id_command,
        "add-file": _run_add_file_command,
        "add-service": _run_add_service_command,
        "freeze": run_freeze_command,
        "versions": run_versions_command,
        "has-version": run_has_version_command,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.error(f"Unsupported command: {args.command}")
    try:
        client = _build_client(args.catalog_root)
        return handler(client, args)
    except RescatError as error:
        print(f"error={error}")
        return 1


def _build_client(catalog_root: str | None) -> CatalogClient:
    """Build SDK client with optional catalog-root override.

    Args:
        catalog_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = CatalogConfig.from_env()
    if catalog_root:
        config = replace(config, catalog_root=Path(catalog_root).expanduser().resolve())
    return CatalogClient(config)


def _add_write_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("write", help="Write a resource from a markdown file")
    parser.add_argument("document", help="Markdown file with YAML front matter")
    parser.add_argument("--path", help="Custom location below the category")


def _add_get_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("get", help="Print a resource document")
    parser.add_argument("resource_id", help="Resource identifier")
    parser.add_argument("--version", help="Exact version, semver range, or latest")


def _add_list_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("list", help="List resources in the category")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Include versioned snapshots as well as current resources",
    )


def _add_remove_commands(subparsers: Any) -> None:
    rm_parser = subparsers.add_parser("rm", help="Remove a resource tree by path")
    rm_parser.add_argument("path", help="Location below the category, e.g. /Payment")
    rm_id_parser = subparsers.add_parser("rm-id", help="Remove a resource by id")
    rm_id_parser.add_argument("resource_id", help="Resource identifier")
    rm_id_parser.add_argument("--version", help="Only remove the resolved version")


def _add_file_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("add-file", help="Attach a file to a resource location")
    parser.add_argument("resource_id", help="Resource identifier")
    parser.add_argument("file", help="Local file to copy next to the resource document")
    parser.add_argument("--name", help="File name to store; defaults to the local name")
    parser.add_argument("--version", help="Target a versioned location")


def _add_service_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("add-service", help="Add a service reference to a resource")
    parser.add_argument("resource_id", help="Resource identifier")
    parser.add_argument("service_id", help="Referenced service identifier")
    parser.add_argument("service_version", help="Referenced service version")
    parser.add_argument("--version", help="Target resource version")


def _run_write_command(client: CatalogClient, args: argparse.Namespace) -> int:
    """Handle write command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    document_path = Path(args.document).expanduser()
    try:
        text = document_path.read_text(encoding=TEXT_ENCODING)
    except OSError as error:
        print(f"error=Failed to read {document_path}: {error}")
        return 1
    resource = parse_document(text, source=str(document_path))
    persisted = client.resources(args.category).write_resource(resource, path=args.path)
    print(f"{persisted.id}\t{persisted.version}")
    return 0


def _run_get_command(client: CatalogClient, args: argparse.Namespace) -> int:
    resource = client.resources(args.category).get_resource(args.resource_id, args.version)
    if resource is None:
        print(f"error=Resource '{args.resource_id}' ({args.version or 'latest'}) not found")
        return 1
    print(render_document(resource), end="")
    return 0


def _run_list_command(client: CatalogClient, args: argparse.Namespace) -> int:
    for resource in client.resources(args.category).list_resources(latest_only=not args.all):
        print(f"{resource.id}\t{resource.version}\t{resource.name}")
    return 0


def _run_rm_command(client: CatalogClient, args: argparse.Namespace) -> int:
    client.resources(args.category).remove_resource(args.path)
    return 0


def _run_rm_id_command(client: CatalogClient, args: argparse.Namespace) -> int:
    removed = client.resources(args.category).remove_resource_by_id(
        args.resource_id, args.version
    )
    if not removed:
        print(f"error=Resource '{args.resource_id}' ({args.version or 'latest'}) not found")
        return 1
    return 0


def _run_add_file_command(client: CatalogClient, args: argparse.Namespace) -> int:
    """Handle add-file command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    local_path = Path(args.file).expanduser()
    try:
        content = local_path.read_text(encoding=TEXT_ENCODING)
    except OSError as error:
        print(f"error=Failed to read {local_path}: {error}")
        return 1
    file = ResourceFile(file_name=args.name or local_path.name, content=content)
    client.resources(args.category).add_file_to_resource(args.resource_id, file, args.version)
    return 0


def _run_add_service_command(client: CatalogClient, args: argparse.Namespace) -> int:
    service = ServiceRef(id=args.service_id, version=args.service_version)
    resource = client.resources(args.category).add_service_to_resource(
        args.resource_id, service, args.version
    )
    for reference in resource.services:
        print(f"{reference.id}\t{reference.version}")
    return 0
