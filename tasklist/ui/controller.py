"""
Task controller: turns user intents into store mutations and persistence writes.

Each intent hands the store a commit hook that persists the change before
the store is mutated. Remote mode sends one request; local mode writes the
would-be collection. A failed write is reported through notify() and leaves
the store as it was.
"""

import json
import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple, Union

from tasklist.core.errors import (
    InvalidInputError, RemoteError, StorageError, TaskListError, TaskNotFoundError
)
from tasklist.core.models import Task, utc_now
from tasklist.core.store import FILTERS, TaskStore
from tasklist.storage.adapters import StorageBackend, StorageMode, compute_stats, decode_tasks, encode_tasks
from tasklist.ui import render


class TaskController:
    """
    Orchestrates add/toggle/edit/delete/filter for one session
    """

    def __init__(
        self,
        store: TaskStore,
        backend: StorageBackend,
        notify: Optional[Callable[[str], None]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize controller

        Args:
            store: Task store owned by this session
            backend: Persistence variant chosen at startup
            notify: Callback for user-visible messages
            clock: Source of the current time
        """
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.backend = backend
        self.notify = notify or (lambda message: self.logger.warning(message))
        self.clock = clock
        self.current_filter = 'all'
        self.editing_task_id: Optional[str] = None

    @property
    def adapter(self):
        return self.backend.adapter

    @property
    def is_remote(self) -> bool:
        return self.backend.mode is StorageMode.REMOTE

    def load(self) -> bool:
        """Fill the store from the adapter"""
        try:
            tasks = self.adapter.load(self._fetch_filter())
        except TaskListError as e:
            self.logger.error(f"Failed to load tasks: {e}")
            self.notify('Failed to load tasks.')
            return False

        self.store.replace_all(tasks)
        self.logger.info(f"Loaded {len(tasks)} tasks ({self.adapter.name})")
        return True

    def _fetch_filter(self) -> str:
        return self.current_filter if self.is_remote else 'all'

    def _commit_create(self, draft: Task) -> Task:
        task = self.adapter.create(draft)
        if not self.is_remote:
            self.adapter.save_all([task] + self.store.list())
        return task

    def _commit_update(self, task_id: str, changes) -> Optional[Task]:
        updated = self.adapter.update(task_id, changes)
        if updated is None and not self.is_remote:
            updated = self.store.find_by_id(task_id).apply(changes)
            self.adapter.save_all([updated if task.id == task_id else task
                                   for task in self.store.list()])
        return updated

    def _commit_delete(self, task_id: str):
        self.adapter.delete(task_id)
        if not self.is_remote:
            self.adapter.save_all([task for task in self.store.list() if task.id != task_id])

    def add_task(self, text: str, deadline: Optional[datetime] = None) -> Optional[Task]:
        """Add a task; empty text is ignored"""
        try:
            task = self.store.add(text, deadline, commit=self._commit_create)
        except InvalidInputError:
            return None
        except TaskListError as e:
            self.logger.error(f"Failed to create task: {e}")
            self.notify('Failed to save task. Please try again.')
            return None

        self.logger.info(f"Added task {task.id}")
        return task

    def toggle_task(self, task_id: str) -> Optional[Task]:
        task = self.store.find_by_id(task_id)
        if task is None:
            return None

        try:
            updated = self.store.update(task_id, {'completed': not task.completed},
                                        commit=self._commit_update)
        except TaskListError as e:
            self.logger.error(f"Failed to update task {task_id}: {e}")
            self.notify('Failed to update task. Please try again.')
            return None

        self.logger.info(f"Toggled task {task_id}: {updated.completed}")
        return updated

    def begin_edit(self, task_id: str) -> bool:
        """Idle -> Editing"""
        if self.store.find_by_id(task_id) is None:
            return False
        self.editing_task_id = task_id
        return True

    def commit_edit(self, text: str) -> Optional[Task]:
        """
        Editing -> Idle, saving the new text if it is non-empty and changed

        Returns:
            The updated task, or None when nothing was persisted
        """
        task_id = self.editing_task_id
        if task_id is None:
            return None
        self.editing_task_id = None

        task = self.store.find_by_id(task_id)
        new_text = (text or '').strip()
        if task is None or not new_text or new_text == task.text:
            return None

        try:
            updated = self.store.update(task_id, {'text': new_text}, commit=self._commit_update)
        except TaskListError as e:
            self.logger.error(f"Failed to update task {task_id}: {e}")
            self.notify('Failed to update task. Please try again.')
            return None

        self.logger.info(f"Edited task {task_id}")
        return updated

    def cancel_edit(self):
        """Editing -> Idle, discarding changes"""
        self.editing_task_id = None

    def delete_task(self, task_id: str, confirmed: bool = False) -> bool:
        """Remove a task once the user has confirmed"""
        if not confirmed:
            return False

        try:
            self.store.remove(task_id, commit=self._commit_delete)
        except TaskNotFoundError as e:
            self.notify(str(e))
            return False
        except TaskListError as e:
            self.logger.error(f"Failed to delete task {task_id}: {e}")
            self.notify('Failed to delete task. Please try again.')
            return False

        if self.editing_task_id == task_id:
            self.editing_task_id = None
        self.logger.info(f"Deleted task {task_id}")
        return True

    def set_filter(self, task_filter: str) -> bool:
        if task_filter not in FILTERS:
            return False
        self.current_filter = task_filter

        if self.is_remote:
            try:
                self.store.replace_all(self.adapter.load(task_filter))
            except RemoteError as e:
                self.logger.error(f"Failed to filter tasks via API: {e}")
                self.notify('Failed to load tasks. Please try again.')
        return True

    def clear_all(self, confirmed: bool = False) -> bool:
        """Delete every task once the user has confirmed"""
        if not confirmed:
            return False

        try:
            if self.is_remote:
                # the store may hold only the filtered subset
                for task in self.adapter.load('all'):
                    self.adapter.delete(task.id)
                    if self.store.find_by_id(task.id) is not None:
                        self.store.remove(task.id)
            else:
                self.adapter.save_all([])
                self.store.clear()
        except TaskListError as e:
            self.logger.error(f"Failed to clear tasks: {e}")
            self.notify('Failed to delete tasks. Please try again.')
            return False

        self.editing_task_id = None
        self.logger.info("Cleared all tasks")
        return True

    def export_tasks(self) -> Tuple[str, str]:
        """Return (filename, JSON text) for download"""
        filename = f"tasks_{self.clock().date().isoformat()}.json"
        return filename, encode_tasks(self.store.list(), indent=2)

    def import_tasks(self, payload: Union[str, bytes]) -> bool:
        """
        Replace the collection with the tasks in an export file

        Args:
            payload: File contents
        """
        try:
            if isinstance(payload, bytes):
                payload = payload.decode('utf-8')
            data = json.loads(payload)
        except ValueError:
            self.notify('Error importing tasks. Please check the file format.')
            return False

        if not isinstance(data, list):
            self.notify('Invalid file format. Please select a valid tasks file.')
            return False

        try:
            tasks = decode_tasks(payload)
        except StorageError as e:
            self.logger.warning(f"Rejected import: {e}")
            self.notify('Error importing tasks. Please check the file format.')
            return False

        try:
            if self.is_remote:
                self._push_tasks(tasks)
            else:
                self.adapter.save_all(tasks)
                self.store.replace_all(tasks)
        except TaskListError as e:
            self.logger.error(f"Failed to import tasks: {e}")
            self.notify('Failed to import tasks. Please try again.')
            return False

        self.editing_task_id = None
        self.logger.info(f"Imported {len(tasks)} tasks")
        self.notify('Tasks imported successfully!')
        return True

    def _push_tasks(self, tasks):
        """Recreate imported tasks on the backend, oldest first, then reload"""
        try:
            for task in reversed(tasks):
                created = self.adapter.create(task)
                if task.completed:
                    self.adapter.update(created.id, {'completed': True})
        finally:
            self.store.replace_all(self.adapter.load(self.current_filter))

    def visible_tasks(self):
        return self.store.list(self.current_filter)

    def count_label(self) -> str:
        return render.count_label(self.store.list(), self.current_filter)

    def empty_state(self) -> Tuple[str, str]:
        return render.empty_state(self.current_filter)

    def render_tasks(self):
        return render.render_task_list(self.store.list(), self.current_filter,
                                       self.editing_task_id, self.clock())

    def stats(self) -> Dict[str, int]:
        """Aggregate counts; computed in memory if the backend is unreachable"""
        try:
            return self.adapter.stats()
        except TaskListError as e:
            self.logger.warning(f"Failed to fetch stats: {e}")
            return compute_stats(self.store.list(), self.clock())
