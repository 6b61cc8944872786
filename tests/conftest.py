"""
Shared fixtures for the task list tests
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tasklist.core.store import TaskStore
from tasklist.storage.adapters import LocalAdapter, StorageBackend, StorageMode
from tasklist.storage.kvstore import KeyValueStorage
from tasklist.ui.controller import TaskController

from fakes import FakeRemoteAdapter

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def kv_storage(tmp_path):
    return KeyValueStorage(str(tmp_path / "storage.json"))


@pytest.fixture
def local_adapter(kv_storage):
    return LocalAdapter(kv_storage)


@pytest.fixture
def messages():
    """Collects notify() calls"""
    return []


@pytest.fixture
def local_controller(local_adapter, messages):
    backend = StorageBackend(StorageMode.LOCAL, local_adapter)
    return TaskController(TaskStore(), backend, notify=messages.append, clock=lambda: NOW)


@pytest.fixture
def fake_remote():
    return FakeRemoteAdapter()


@pytest.fixture
def remote_controller(fake_remote, messages):
    backend = StorageBackend(StorageMode.REMOTE, fake_remote)
    controller = TaskController(TaskStore(), backend, notify=messages.append, clock=lambda: NOW)
    controller.load()
    return controller
