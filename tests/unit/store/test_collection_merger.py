"""Unit tests for nested reference deduplication."""

from __future__ import annotations

from core.types import ServiceRef
from store.collection_merger import add_reference, merge_references


def test_merge_drops_later_duplicates() -> None:
    """First occurrence should win and order should be preserved."""
    orders = ServiceRef(id="Orders", version="1.0.0")
    payments = ServiceRef(id="Payments", version="2.0.0")

    merged = merge_references([orders, payments, ServiceRef(id="Orders", version="1.0.0")])

    assert merged == (orders, payments)


def test_merge_keeps_same_id_with_other_version() -> None:
    """References differing only by version are distinct."""
    first = ServiceRef(id="Orders", version="1.0.0")
    second = ServiceRef(id="Orders", version="2.0.0")

    assert merge_references([first], [second, first]) == (first, second)


def test_add_reference_appends_missing_item() -> None:
    """Missing references should be appended at the end."""
    existing = (ServiceRef(id="Orders", version="1.0.0"),)
    item = ServiceRef(id="Payments", version="2.0.0")

    assert add_reference(existing, item) == (*existing, item)


def test_add_reference_returns_existing_when_present() -> None:
    """Present references should leave the list unchanged."""
    existing = (ServiceRef(id="Orders", version="1.0.0"),)

    assert add_reference(existing, ServiceRef(id="Orders", version="1.0.0")) == existing
