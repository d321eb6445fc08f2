"""Pytest configuration and fixtures for toybox_mcp tests."""

import pytest
import sys
from pathlib import Path

# Add the project root to the path so the package imports without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from toybox_mcp.locking import LockOptions
from toybox_mcp.registry import RepositoryRegistry
from toybox_mcp.storage import ConfigStore

# Short backoff so contention tests finish quickly; enough retries that
# a handful of concurrent updates never exhaust the budget.
FAST_LOCK = LockOptions(retries=50, stale=5.0, min_delay=0.005, factor=1.5, max_delay=0.05)


@pytest.fixture
def lock_options():
    """Fast lock policy for tests."""
    return FAST_LOCK


@pytest.fixture
def config_path(tmp_path):
    """Registry document path inside the test's temp directory."""
    return tmp_path / ".toybox.json"


@pytest.fixture
def store(config_path, lock_options):
    """A ConfigStore on a temp path."""
    return ConfigStore(config_path, lock_options=lock_options)


@pytest.fixture
def registry(store):
    """A RepositoryRegistry over the temp store."""
    return RepositoryRegistry(store)

