"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def catalog_root(tmp_path: Path) -> Path:
    """Empty catalog root directory for one test."""
    root = tmp_path / "catalog"
    root.mkdir()
    return root


@pytest.fixture
def payment_domain() -> Callable[..., Any]:
    """Factory for the Payment domain used across store tests."""
    from core.types import Resource

    def _build(version: str = "0.0.1", **overrides: Any) -> Resource:
        fields: dict[str, Any] = {
            "id": "Payment",
            "name": "Payment Domain",
            "version": version,
            "summary": "All things to do with the payment systems",
            "markdown": "# Hello world",
        }
        fields.update(overrides)
        return Resource(**fields)

    return _build
