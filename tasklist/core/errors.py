"""
Error types shared by the task store, persistence adapters and controller.
"""


class TaskListError(Exception):
    """Base class for all recoverable task list errors"""


class InvalidInputError(TaskListError):
    """Empty text or malformed update payload"""


class TaskNotFoundError(TaskListError):
    """Operation targets a task id that does not exist"""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StorageError(TaskListError):
    """Persisted blob or import file could not be read"""


class RemoteError(TaskListError):
    """Base class for failures of the REST backend"""


class NetworkError(RemoteError):
    """Backend could not be reached"""


class ServerError(RemoteError):
    """Backend answered with a non-success status"""

    def __init__(self, status: int, message: str):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message
