"""Shared test fixtures for taskboard tests."""

import sys
from pathlib import Path

import pytest

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.manager import BoardManager
from taskboard.store import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def manager(store):
    return BoardManager(store=store)
