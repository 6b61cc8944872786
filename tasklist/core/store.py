"""
In-memory ordered task collection.
Single source of truth for the UI; newest tasks first.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from tasklist.core.errors import InvalidInputError, TaskNotFoundError
from tasklist.core.models import Task, validate_changes

FILTERS = ('all', 'pending', 'completed')


def filter_tasks(tasks: Iterable[Task], task_filter: str = 'all') -> List[Task]:
    """
    Select the tasks visible under a filter, preserving order

    Args:
        tasks: Task collection
        task_filter: 'all', 'pending' or 'completed'

    Returns:
        Filtered list
    """
    if task_filter == 'pending':
        return [task for task in tasks if not task.completed]
    if task_filter == 'completed':
        return [task for task in tasks if task.completed]
    return list(tasks)


class TaskStore:
    """
    Ordered task collection

    Mutating operations accept an optional ``commit`` hook, called before the
    collection changes. If the hook raises, the collection is left untouched.
    """

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self.logger = logging.getLogger(__name__)
        self._tasks: List[Task] = list(tasks or [])

    def __len__(self) -> int:
        return len(self._tasks)

    def list(self, task_filter: str = 'all') -> List[Task]:
        return filter_tasks(self._tasks, task_filter)

    def find_by_id(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def add(
        self,
        text: str,
        deadline: Optional[datetime] = None,
        commit: Optional[Callable[[Task], Task]] = None
    ) -> Task:
        """
        Create a task and put it first

        Args:
            text: Task description (trimmed)
            deadline: Optional deadline
            commit: Persistence hook; receives the draft and returns the stored record

        Returns:
            The task now at the head of the collection

        Raises:
            InvalidInputError: If text is empty
        """
        task = Task.create(text, deadline)
        if commit is not None:
            task = commit(task)
        return self.insert(task)

    def insert(self, task: Task) -> Task:
        """Prepend an already-built task"""
        if self.find_by_id(task.id) is not None:
            raise InvalidInputError(f"Duplicate task id: {task.id}")
        self._tasks.insert(0, task)
        self.logger.debug(f"Inserted task {task.id}")
        return task

    def update(
        self,
        task_id: str,
        changes: Dict[str, Any],
        commit: Optional[Callable[[str, Dict[str, Any]], Optional[Task]]] = None
    ) -> Task:
        """
        Apply a partial update

        Args:
            task_id: Target task
            changes: Any subset of text, completed, deadline
            commit: Persistence hook; may return the stored record, or None
                to have the change applied locally

        Raises:
            TaskNotFoundError: If no task has this id
            InvalidInputError: If the payload is malformed
        """
        index = self._index_of(task_id)
        changes = validate_changes(changes)

        updated = commit(task_id, changes) if commit is not None else None
        if updated is None:
            updated = self._tasks[index].apply(changes)

        self._tasks[index] = updated
        return updated

    def remove(self, task_id: str, commit: Optional[Callable[[str], Any]] = None):
        """
        Remove a task

        Raises:
            TaskNotFoundError: If no task has this id
        """
        index = self._index_of(task_id)
        if commit is not None:
            commit(task_id)
        del self._tasks[index]
        self.logger.debug(f"Removed task {task_id}")

    def replace_all(self, tasks: Iterable[Task]):
        self._tasks = list(tasks)

    def clear(self):
        self._tasks = []

    def counts(self) -> Tuple[int, int, int]:
        """Return (total, pending, completed)"""
        total = len(self._tasks)
        completed = sum(1 for task in self._tasks if task.completed)
        return total, total - completed, completed

    def _index_of(self, task_id: str) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise TaskNotFoundError(task_id)
