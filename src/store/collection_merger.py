"""Nested reference deduplication.

This module merges service reference lists by their ``(id, version)`` key,
keeping the first occurrence and preserving order.
"""

from __future__ import annotations

from typing import Iterable

from core.types import ServiceRef


def merge_references(
    existing: Iterable[ServiceRef],
    incoming: Iterable[ServiceRef] = (),
) -> tuple[ServiceRef, ...]:
    """Concatenate reference lists, dropping repeated keys.

    Args:
        existing: References already held, kept first.
        incoming: References to append when not already present.

    Returns:
        Deduplicated references in first-seen order.
    """
    seen: set[tuple[str, str]] = set()
    merged: list[ServiceRef] = []
    for reference in (*existing, *incoming):
        if reference.key in seen:
            continue
        seen.add(reference.key)
        merged.append(reference)
    return tuple(merged)


def add_reference(existing: Iterable[ServiceRef], item: ServiceRef) -> tuple[ServiceRef, ...]:
    """Append one reference unless its key is already present."""
    current = tuple(existing)
    if any(reference.key == item.key for reference in current):
        return current
    return (*current, item)
