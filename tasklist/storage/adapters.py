"""
Persistence adapters for the task store.
Local mode keeps a JSON blob in a key-value file, remote mode talks to the REST backend.
The mode is chosen once at startup by select_backend().
"""

import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from tasklist.core.errors import NetworkError, ServerError, StorageError
from tasklist.core.models import Task, format_timestamp, utc_now
from tasklist.core.store import filter_tasks
from tasklist.storage.kvstore import KeyValueStorage

DEFAULT_STORAGE_KEY = 'taskManager_tasks'


class StorageMode(Enum):
    """Persistence variants"""
    LOCAL = "local"
    REMOTE = "remote"


def compute_stats(tasks: Sequence[Task], now=None) -> Dict[str, int]:
    """Aggregate counts in the shape of GET /api/stats"""
    now = now or utc_now()
    completed = sum(1 for task in tasks if task.completed)
    overdue = sum(
        1 for task in tasks
        if task.deadline is not None and task.deadline < now and not task.completed
    )
    return {
        'total': len(tasks),
        'completed': completed,
        'pending': len(tasks) - completed,
        'overdue': overdue,
    }


def sample_tasks() -> List[Task]:
    """Welcome tasks written on the very first local load"""
    now = utc_now()
    return [
        Task(id='1', text='Welcome to Task Manager! Click the checkbox to mark this as complete.',
             created_at=now),
        Task(id='2', text='Try adding a new task with a deadline',
             deadline=now + timedelta(days=1), created_at=now),
        Task(id='3', text='Use the filter buttons to view different task categories',
             completed=True, created_at=now),
    ]


def encode_tasks(tasks: Sequence[Task], indent: Optional[int] = None) -> str:
    return json.dumps([task.to_dict() for task in tasks], indent=indent)


def decode_tasks(blob: str) -> List[Task]:
    """
    Parse a JSON task array

    Raises:
        StorageError: If the blob is not a valid array of task records
            with unique ids
    """
    try:
        data = json.loads(blob)
    except ValueError as e:
        raise StorageError(f"Stored tasks are not valid JSON: {e}")

    if not isinstance(data, list):
        raise StorageError("Stored tasks must be a JSON array")

    try:
        tasks = [Task.from_dict(item) for item in data]
    except ValueError as e:
        raise StorageError(f"Stored task is malformed: {e}")

    seen = set()
    for task in tasks:
        if task.id in seen:
            raise StorageError(f"Duplicate task id: {task.id}")
        seen.add(task.id)
    return tasks


class PersistenceAdapter(ABC):
    """Abstract base class for persistence variants"""

    name = "base"

    @abstractmethod
    def load(self, task_filter: str = 'all') -> List[Task]:
        """Read the task collection"""
        pass

    @abstractmethod
    def save_all(self, tasks: Sequence[Task]):
        """Write the full collection"""
        pass

    @abstractmethod
    def create(self, task: Task) -> Task:
        """Persist a new task and return the stored record"""
        pass

    @abstractmethod
    def update(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        """Persist a partial update; None means apply it in memory"""
        pass

    @abstractmethod
    def delete(self, task_id: str):
        """Persist a removal"""
        pass

    @abstractmethod
    def stats(self) -> Dict[str, int]:
        """Aggregate counts: total, completed, pending, overdue"""
        pass


class LocalAdapter(PersistenceAdapter):
    """
    Serializes the whole collection into one key-value entry.
    Per-task hooks are no-ops; the caller writes the would-be collection
    with save_all() before changing its store.
    """

    name = "local"

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_STORAGE_KEY,
                 seed_samples: bool = False):
        self.logger = logging.getLogger(__name__)
        self.storage = storage
        self.key = key
        self.seed_samples = seed_samples

    def load(self, task_filter: str = 'all') -> List[Task]:
        blob = self.storage.get_item(self.key)
        if blob is None:
            if not self.seed_samples:
                return []
            tasks = sample_tasks()
            self.save_all(tasks)
            self.logger.info(f"Seeded {len(tasks)} sample tasks")
            return filter_tasks(tasks, task_filter)

        tasks = decode_tasks(blob)
        self.logger.debug(f"Loaded {len(tasks)} tasks from local storage")
        return filter_tasks(tasks, task_filter)

    def save_all(self, tasks: Sequence[Task]):
        self.storage.set_item(self.key, encode_tasks(tasks))
        self.logger.debug(f"Saved {len(tasks)} tasks to local storage")

    def create(self, task: Task) -> Task:
        return task

    def update(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        return None

    def delete(self, task_id: str):
        pass

    def stats(self) -> Dict[str, int]:
        return compute_stats(self.load())


class RemoteAdapter(PersistenceAdapter):
    """REST client for the task backend, one request per operation"""

    name = "remote"

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue one request against /api

        Raises:
            NetworkError: If the backend cannot be reached
            ServerError: If the backend answers with an error status
        """
        url = f"{self.base_url}/api{endpoint}"
        data = json.dumps(payload).encode('utf-8') if payload is not None else None
        req = urllib.request.Request(
            url,
            data=data,
            method=method,
            headers={'Content-Type': 'application/json', 'Accept': 'application/json'}
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                if response.status == 204:
                    return None
                body = response.read()
        except urllib.error.HTTPError as e:
            message = self._error_message(e)
            self.logger.error(f"API request failed: {method} {url} -> {e.code} {message}")
            raise ServerError(e.code, message)
        except (urllib.error.URLError, socket.timeout, ConnectionError) as e:
            self.logger.error(f"API request failed: {method} {url}: {e}")
            raise NetworkError(f"Backend unreachable: {e}")

        try:
            return json.loads(body) if body else None
        except ValueError:
            raise ServerError(response.status, "Response is not valid JSON")

    @staticmethod
    def _error_message(error: urllib.error.HTTPError) -> str:
        try:
            body = json.loads(error.read() or b'{}')
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get('error'):
            return str(body['error'])
        return f"HTTP error! status: {error.code}"

    def _to_task(self, raw: Any) -> Task:
        try:
            return Task.from_dict(raw)
        except ValueError as e:
            raise ServerError(200, f"Malformed task in response: {e}")

    def load(self, task_filter: str = 'all') -> List[Task]:
        endpoint = '/tasks'
        if task_filter != 'all':
            endpoint += '?' + urllib.parse.urlencode({'filter': task_filter})
        rows = self._request('GET', endpoint)
        if not isinstance(rows, list):
            raise ServerError(200, "Expected a task array")
        return [self._to_task(row) for row in rows]

    def get(self, task_id: str) -> Task:
        return self._to_task(self._request('GET', f"/tasks/{urllib.parse.quote(task_id)}"))

    def save_all(self, tasks: Sequence[Task]):
        pass

    def create(self, task: Task) -> Task:
        payload = {
            'text': task.text,
            'deadline': format_timestamp(task.deadline) if task.deadline else None,
        }
        created = self._to_task(self._request('POST', '/tasks', payload))
        self.logger.info(f"Created task {created.id} via API")
        return created

    def update(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        payload = dict(changes)
        if 'deadline' in payload:
            deadline = payload['deadline']
            payload['deadline'] = format_timestamp(deadline) if deadline else None
        return self._to_task(self._request('PUT', f"/tasks/{urllib.parse.quote(task_id)}", payload))

    def delete(self, task_id: str):
        self._request('DELETE', f"/tasks/{urllib.parse.quote(task_id)}")

    def stats(self) -> Dict[str, int]:
        return self._request('GET', '/stats')


class StorageBackend(NamedTuple):
    """Persistence variant chosen for the session"""
    mode: StorageMode
    adapter: PersistenceAdapter


def select_backend(config) -> StorageBackend:
    """
    Choose the persistence variant once, at startup

    In remote mode the backend is probed with a stats call; if it is not
    available the session falls back to local storage for good.

    Args:
        config: Config instance

    Returns:
        StorageBackend for the session
    """
    logger = logging.getLogger(__name__)
    local = LocalAdapter(
        KeyValueStorage(config.get('storage.local_path', 'data/storage.json')),
        key=config.get('storage.local_key', DEFAULT_STORAGE_KEY),
        seed_samples=config.get('storage.seed_samples', True)
    )

    mode = str(config.get('storage.mode', 'remote')).lower()
    if mode == StorageMode.LOCAL.value:
        logger.info("Using local storage")
        return StorageBackend(StorageMode.LOCAL, local)
    if mode != StorageMode.REMOTE.value:
        raise ValueError(f"Unknown storage mode: {mode}")

    remote = RemoteAdapter(
        config.get('remote.base_url', 'http://127.0.0.1:3000'),
        timeout=float(config.get('remote.timeout', 5))
    )
    try:
        remote.stats()
    except (NetworkError, ServerError) as e:
        logger.warning(f"API not available, falling back to local storage: {e}")
        return StorageBackend(StorageMode.LOCAL, local)

    logger.info(f"Connected to API backend at {remote.base_url}")
    return StorageBackend(StorageMode.REMOTE, remote)
