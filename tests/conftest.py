"""Shared test fixtures for the packed-registry test suite.

Every test gets its own ``Registry`` and an empty declaration list, so
registrations made by one test never leak into another.
"""
import weakref

import pytest

import packed_registry.autoreg as autoreg
import packed_registry.registry as registry_module
from packed_registry import Registry


@pytest.fixture
def registry():
    """Fresh registry with default configuration."""
    return Registry()


@pytest.fixture(autouse=True)
def isolated_declarations(monkeypatch):
    """Start each test with no declarations and no loaded registration modules."""
    monkeypatch.setattr(autoreg, "_DECLARATIONS", [])
    monkeypatch.setattr(autoreg, "_APPLIED", weakref.WeakKeyDictionary())
    monkeypatch.setattr(autoreg, "_LOADED_MODULES", {})


@pytest.fixture(autouse=True)
def isolated_global_registry(monkeypatch):
    """Make ``global_registry()`` build a new instance for each test."""
    monkeypatch.setattr(registry_module, "_GLOBAL_REGISTRY", None)
