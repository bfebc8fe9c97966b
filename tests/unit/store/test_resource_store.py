"""Unit tests for resource lifecycle persistence."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from core.errors import (
    DuplicateVersionError,
    RescatStorageError,
    RescatStoreError,
    ResourceNotFoundError,
)
from core.types import ResourceFile, ServiceRef
from store.resource_store import ResourceStore
from store.storage import FileSystemStorage


def _store(catalog_root: Path) -> ResourceStore:
    return ResourceStore(FileSystemStorage(catalog_root), "domains")


class _FailingRemoveStorage(FileSystemStorage):
    """File storage that fails when removing a chosen child name."""

    def __init__(self, root: Path, failing_name: str) -> None:
        super().__init__(root)
        self._failing_name = failing_name

    def remove_tree(self, location: PurePosixPath) -> None:
        if location.name == self._failing_name and "versioned" not in location.parts:
            raise RescatStorageError(f"simulated failure removing {location}")
        super().remove_tree(location)


class _FailingCopyStorage(FileSystemStorage):
    """File storage that fails when copying a chosen child name."""

    def __init__(self, root: Path, failing_name: str) -> None:
        super().__init__(root)
        self._failing_name = failing_name

    def copy_tree(self, source: PurePosixPath, destination: PurePosixPath) -> None:
        if source.name == self._failing_name:
            raise RescatStorageError(f"simulated failure copying {source}")
        super().copy_tree(source, destination)


def test_write_then_get_round_trips_resource(catalog_root, payment_domain) -> None:
    """Written resources should read back structurally equal."""
    store = _store(catalog_root)
    domain = payment_domain(extra_fields={"owners": ["dboyne"], "badges": [{"content": "New"}]})
    store.write_resource(domain)

    loaded = store.get_resource("Payment", "0.0.1")

    assert loaded == domain


def test_write_uses_id_as_default_path(catalog_root, payment_domain) -> None:
    """Resources without a path should land under <category>/<id>."""
    store = _store(catalog_root)

    store.write_resource(payment_domain())

    assert (catalog_root / "domains" / "Payment" / "index.md").is_file()


def test_write_uses_custom_path(catalog_root, payment_domain) -> None:
    """An explicit path should override the id-derived location."""
    store = _store(catalog_root)

    store.write_resource(payment_domain(), path="/Inventory/Payment")

    assert (catalog_root / "domains" / "Inventory" / "Payment" / "index.md").is_file()
    assert store.get_resource("Payment") == payment_domain()


def test_write_rejects_existing_current_version(catalog_root, payment_domain) -> None:
    """Writing the same id and version twice should fail without changes."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    before = (catalog_root / "domains" / "Payment" / "index.md").read_text(encoding="utf-8")

    with pytest.raises(DuplicateVersionError, match="version 0.0.1 already exists"):
        store.write_resource(payment_domain(summary="changed"))

    after = (catalog_root / "domains" / "Payment" / "index.md").read_text(encoding="utf-8")
    assert after == before


def test_write_rejects_frozen_version(catalog_root, payment_domain) -> None:
    """A version already frozen into history cannot be recreated."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")

    with pytest.raises(DuplicateVersionError):
        store.write_resource(payment_domain())

    assert store.get_resource("Payment") is None


def test_write_rejects_second_location_for_same_id(catalog_root, payment_domain) -> None:
    """One id should never get two current locations."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    with pytest.raises(RescatStoreError):
        store.write_resource(payment_domain("0.0.2"), path="/Elsewhere/Payment")

    assert not (catalog_root / "domains" / "Elsewhere").exists()


def test_write_dedups_services(catalog_root, payment_domain) -> None:
    """Repeated service references should collapse to one entry."""
    store = _store(catalog_root)
    service = ServiceRef(id="PaymentService", version="1.0.0")
    store.write_resource(
        payment_domain(services=(service, service, service)),
        path="/Inventory/InventoryService",
    )

    loaded = store.get_resource("Payment")

    assert loaded is not None and loaded.services == (service,)


def test_overwrite_of_draft_keeps_stored_services(catalog_root, payment_domain) -> None:
    """Overwriting a draft should add services to the stored list if absent."""
    store = _store(catalog_root)
    first = ServiceRef(id="PaymentService", version="1.0.0")
    second = ServiceRef(id="RefundService", version="0.1.0")
    store.write_resource(payment_domain(services=(first,)))

    persisted = store.write_resource(payment_domain("0.0.2", services=(second, first)))

    assert persisted.services == (first, second)


def test_get_returns_none_for_unknown_resource(catalog_root) -> None:
    """Unknown ids should resolve to an absent result."""
    store = _store(catalog_root)

    assert store.get_resource("Payment") is None


def test_get_returns_none_for_unknown_version(catalog_root, payment_domain) -> None:
    """Known ids with an unknown version should resolve to absent."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    assert store.get_resource("Payment", "1.0.0") is None


def test_version_moves_document_and_files(catalog_root, payment_domain) -> None:
    """Freezing should move the document and auxiliary files into history."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    (catalog_root / "domains" / "Payment" / "schema.json").write_text("SCHEMA!", encoding="utf-8")

    version = store.version_resource("Payment")

    domain_root = catalog_root / "domains" / "Payment"
    assert version == "0.0.1"
    assert (domain_root / "versioned" / "0.0.1" / "index.md").is_file()
    assert (domain_root / "versioned" / "0.0.1" / "schema.json").read_text() == "SCHEMA!"
    assert not (domain_root / "index.md").exists()
    assert not (domain_root / "schema.json").exists()
    assert store.get_resource("Payment") is None
    assert store.get_resource("Payment", "0.0.1") == payment_domain()


def test_version_copies_nested_directories(catalog_root, payment_domain) -> None:
    """Freezing should copy auxiliary directories recursively."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    nested = catalog_root / "domains" / "Payment" / "schemas" / "v1"
    nested.mkdir(parents=True)
    (nested / "event.json").write_text("{}", encoding="utf-8")

    store.version_resource("Payment")

    frozen = catalog_root / "domains" / "Payment" / "versioned" / "0.0.1"
    assert (frozen / "schemas" / "v1" / "event.json").is_file()
    assert not (catalog_root / "domains" / "Payment" / "schemas").exists()


def test_version_raises_without_current(catalog_root) -> None:
    """Freezing an unknown resource should report not found."""
    store = _store(catalog_root)

    with pytest.raises(ResourceNotFoundError):
        store.version_resource("Payment")


def test_version_rolls_back_when_copy_fails(catalog_root, payment_domain) -> None:
    """A failed copy should leave current intact and no snapshot behind."""
    storage = _FailingCopyStorage(catalog_root, "schema.json")
    store = ResourceStore(storage, "domains")
    store.write_resource(payment_domain())
    (catalog_root / "domains" / "Payment" / "schema.json").write_text("SCHEMA!", encoding="utf-8")

    with pytest.raises(RescatStorageError):
        store.version_resource("Payment")

    assert not (catalog_root / "domains" / "Payment" / "versioned" / "0.0.1").exists()
    assert store.get_resource("Payment") == payment_domain()


def test_version_rolls_back_when_remove_fails(catalog_root, payment_domain) -> None:
    """A failed removal should restore current and drop the snapshot."""
    storage = _FailingRemoveStorage(catalog_root, "schema.json")
    store = ResourceStore(storage, "domains")
    store.write_resource(payment_domain())
    (catalog_root / "domains" / "Payment" / "schema.json").write_text("SCHEMA!", encoding="utf-8")

    with pytest.raises(RescatStorageError):
        store.version_resource("Payment")

    assert store.list_versions("Payment") == ("0.0.1",)
    assert store.get_resource("Payment") == payment_domain()


def test_payment_lifecycle_scenario(catalog_root, payment_domain) -> None:
    """Latest should follow the new current while history keeps the old payload."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")
    store.write_resource(payment_domain("1.0.0", summary="Second generation"))

    latest = store.get_resource("Payment")
    original = store.get_resource("Payment", "0.0.1")

    assert latest == payment_domain("1.0.0", summary="Second generation")
    assert original == payment_domain()
    assert store.list_versions("Payment") == ("0.0.1", "1.0.0")


def test_get_resolves_range_to_highest_history(catalog_root, payment_domain) -> None:
    """Ranges should prefer the highest frozen match when current misses."""
    store = _store(catalog_root)
    for version in ("0.0.1", "0.0.3", "0.0.2"):
        store.write_resource(payment_domain(version))
        store.version_resource("Payment")
    store.write_resource(payment_domain("1.0.0"))

    resolved = store.get_resource("Payment", "0.0.x")

    assert resolved is not None and resolved.version == "0.0.3"


@pytest.mark.parametrize(
    ("token", "expected"),
    [("latest", True), ("0.0.1", True), ("0.0.x", True), ("^0.0.1", True), ("5.0.0", False)],
)
def test_resource_has_version(catalog_root, payment_domain, token, expected) -> None:
    """Has-version should cover latest, exact, and range tokens."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    assert store.resource_has_version("Payment", token) is expected


def test_remove_resource_by_path(catalog_root, payment_domain) -> None:
    """Removing by path should delete the whole location tree."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")
    store.write_resource(payment_domain("0.0.2"))

    store.remove_resource("/Payment")

    assert not (catalog_root / "domains" / "Payment").exists()


def test_remove_resource_by_missing_path_raises(catalog_root) -> None:
    """Removing an unknown path should report not found."""
    store = _store(catalog_root)

    with pytest.raises(ResourceNotFoundError):
        store.remove_resource("/Payment")


def test_remove_by_id_without_version_keeps_history(catalog_root, payment_domain) -> None:
    """Removing by id should only delete the current location."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")
    store.write_resource(payment_domain("0.0.2"))

    removed = store.remove_resource_by_id("Payment")

    assert removed is True
    assert not (catalog_root / "domains" / "Payment" / "index.md").exists()
    assert store.get_resource("Payment", "0.0.1") == payment_domain()


def test_remove_by_id_and_current_version(catalog_root, payment_domain) -> None:
    """A version matching current should remove the current document."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    store.remove_resource_by_id("Payment", "0.0.1")

    assert not (catalog_root / "domains" / "Payment" / "index.md").exists()


def test_remove_by_id_and_historical_version(catalog_root, payment_domain) -> None:
    """A historical version should be removed without touching current."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")
    store.write_resource(payment_domain("0.0.2", name="Inventory Adjusted"))

    store.remove_resource_by_id("Payment", "0.0.1")

    assert not (catalog_root / "domains" / "Payment" / "versioned").exists()
    assert store.get_resource("Payment") == payment_domain("0.0.2", name="Inventory Adjusted")


def test_remove_by_id_returns_false_when_unresolved(catalog_root, payment_domain) -> None:
    """Unresolved removals should be a no-op."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    removed = store.remove_resource_by_id("Payment", "9.9.9")

    assert removed is False and store.get_resource("Payment") is not None


def test_add_file_to_current_location(catalog_root, payment_domain) -> None:
    """Files should be written next to the current document."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    store.add_file_to_resource("Payment", ResourceFile(file_name="test.txt", content="hello"))

    assert (catalog_root / "domains" / "Payment" / "test.txt").read_text() == "hello"


def test_add_file_to_versioned_location(catalog_root, payment_domain) -> None:
    """Version-qualified files should be written into the snapshot."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")

    store.add_file_to_resource(
        "Payment", ResourceFile(file_name="test.txt", content="hello"), "0.0.1"
    )

    assert (catalog_root / "domains" / "Payment" / "versioned" / "0.0.1" / "test.txt").is_file()


def test_add_file_raises_for_missing_resource(catalog_root) -> None:
    """Attaching to an unknown resource should fail before writing."""
    store = _store(catalog_root)

    with pytest.raises(ResourceNotFoundError, match="Cannot find directory to write file to"):
        store.add_file_to_resource("Payment", ResourceFile(file_name="test.txt", content="x"))

    assert not (catalog_root / "domains").exists()


def test_add_file_rejects_index_document_name(catalog_root, payment_domain) -> None:
    """Attachments should not overwrite the metadata document."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    with pytest.raises(RescatStoreError):
        store.add_file_to_resource("Payment", ResourceFile(file_name="index.md", content="x"))


def test_add_service_appends_new_reference(catalog_root, payment_domain) -> None:
    """New service references should be appended."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())

    store.add_service_to_resource("Payment", ServiceRef(id="Order Service", version="2.0.0"))

    loaded = store.get_resource("Payment")
    assert loaded is not None
    assert loaded.services == (ServiceRef(id="Order Service", version="2.0.0"),)


def test_add_service_ignores_existing_reference(catalog_root, payment_domain) -> None:
    """Existing service references should leave the list unchanged."""
    store = _store(catalog_root)
    service = ServiceRef(id="Order Service", version="2.0.0")
    store.write_resource(payment_domain(services=(service,)))

    store.add_service_to_resource("Payment", ServiceRef(id="Order Service", version="2.0.0"))

    loaded = store.get_resource("Payment")
    assert loaded is not None and loaded.services == (service,)


def test_add_service_raises_for_missing_resource(catalog_root) -> None:
    """Adding to an unknown resource should report not found."""
    store = _store(catalog_root)

    with pytest.raises(ResourceNotFoundError):
        store.add_service_to_resource("Payment", ServiceRef(id="A", version="1.0.0"))


def test_list_resources_includes_history_on_request(catalog_root, payment_domain) -> None:
    """Listing should show current resources and optionally snapshots."""
    store = _store(catalog_root)
    store.write_resource(payment_domain())
    store.version_resource("Payment")
    store.write_resource(payment_domain("0.0.2"))

    latest = store.list_resources()
    everything = store.list_resources(latest_only=False)

    assert [item.version for item in latest] == ["0.0.2"]
    assert sorted(item.version for item in everything) == ["0.0.1", "0.0.2"]


def test_write_rejects_path_holding_other_history(catalog_root, payment_domain) -> None:
    """A custom path should not adopt the snapshots of another resource."""
    store = _store(catalog_root)
    store.write_resource(payment_domain("1.0.0"), path="/Shared")
    store.version_resource("Payment")

    with pytest.raises(RescatStoreError, match="holds versions of 'Payment'"):
        store.write_resource(payment_domain("1.0.0", id="Orders"), path="/Shared")

    assert store.get_resource("Payment", "1.0.0") == payment_domain("1.0.0")
    assert store.locate("Orders") is None


@pytest.mark.parametrize("version", ["1/2", "..", "", "1\\2"])
def test_write_rejects_versions_that_are_not_one_segment(
    catalog_root, payment_domain, version
) -> None:
    """Versions become directory names and must stay a single segment."""
    store = _store(catalog_root)

    with pytest.raises(RescatStoreError, match="Invalid version"):
        store.write_resource(payment_domain(version))

    assert not (catalog_root / "domains").exists()
