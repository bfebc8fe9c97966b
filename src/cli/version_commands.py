"""Version lifecycle command wiring for the rescat CLI."""

from __future__ import annotations

import argparse
from typing import Any

from store.catalog_sdk import CatalogClient


def add_version_commands(subparsers: Any) -> None:
    """Register freeze, versions, and has-version subcommands."""
    freeze_parser = subparsers.add_parser(
        "freeze",
        help="Move the current resource into its versioned snapshot",
    )
    freeze_parser.add_argument("resource_id", help="Resource identifier")
    versions_parser = subparsers.add_parser("versions", help="List stored versions")
    versions_parser.add_argument("resource_id", help="Resource identifier")
    has_version_parser = subparsers.add_parser(
        "has-version",
        help="Check whether a version, range, or 'latest' resolves",
    )
    has_version_parser.add_argument("resource_id", help="Resource identifier")
    has_version_parser.add_argument("version", help="Exact version, semver range, or latest")


def run_freeze_command(client: CatalogClient, args: argparse.Namespace) -> int:
    """Freeze the current location and print the frozen version."""
    version = client.resources(args.category).version_resource(args.resource_id)
    print(version)
    return 0


def run_versions_command(client: CatalogClient, args: argparse.Namespace) -> int:
    """Print every stored version, oldest first; exit 1 when none exist."""
    store = client.resources(args.category)
    versions = store.list_versions(args.resource_id)
    if not versions:
        print(f"error=No versions found for '{args.resource_id}'")
        return 1
    location = store.locate(args.resource_id)
    current_version = location.current_version if location is not None else None
    for version in versions:
        marker = "current" if version == current_version else "versioned"
        print(f"{version}\t{marker}")
    return 0


def run_has_version_command(client: CatalogClient, args: argparse.Namespace) -> int:
    """Print true/false and exit 0 only when the version resolves."""
    found = client.resources(args.category).resource_has_version(args.resource_id, args.version)
    print("true" if found else "false")
    return 0 if found else 1
