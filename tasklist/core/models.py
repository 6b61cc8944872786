"""
Task record and timestamp helpers.

Wire representation (REST API, local storage blob, export file):
    {"id": str, "text": str, "completed": bool,
     "deadline": ISO-8601 str or null, "createdAt": ISO-8601 str}
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tasklist.core.errors import InvalidInputError

UPDATABLE_FIELDS = ('text', 'completed', 'deadline')


def utc_now() -> datetime:
    """Current time as an aware UTC datetime, truncated to milliseconds"""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime the way browsers do (millisecond precision, Z suffix)"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec='milliseconds')
    return text.replace('+00:00', 'Z')


def parse_timestamp(value: str) -> datetime:
    """
    Decode an ISO-8601 timestamp

    Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_deadline_input(value: Optional[str]) -> Optional[datetime]:
    """
    Decode a browser datetime-local field value

    The browser sends local wall-clock time without an offset, so naive
    values are interpreted in the server's local timezone.

    Raises:
        InvalidInputError: If the value is not a valid date/time
    """
    if value is None or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise InvalidInputError(f"Invalid deadline: {value}")
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.astimezone(timezone.utc)


@dataclass
class Task:
    id: str
    text: str
    completed: bool = False
    deadline: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(cls, text: str, deadline: Optional[datetime] = None) -> 'Task':
        """
        Build a new pending task

        Raises:
            InvalidInputError: If text is empty after trimming
        """
        cleaned = (text or '').strip()
        if not cleaned:
            raise InvalidInputError("Task text is required")
        return cls(id=uuid.uuid4().hex, text=cleaned, deadline=deadline)

    def apply(self, changes: Dict[str, Any]) -> 'Task':
        """Return a copy with the given fields replaced"""
        return replace(self, **{key: changes[key] for key in UPDATABLE_FIELDS if key in changes})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'completed': self.completed,
            'deadline': format_timestamp(self.deadline) if self.deadline else None,
            'createdAt': format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'Task':
        """
        Revive a task from its wire representation

        Raises:
            ValueError: If the record is malformed
        """
        if not isinstance(raw, dict):
            raise ValueError("Task record must be an object")
        try:
            task_id = raw['id']
            text = raw['text']
        except KeyError as e:
            raise ValueError(f"Task record missing field: {e.args[0]}")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Task text must be a non-empty string")

        completed = raw.get('completed', False)
        if not isinstance(completed, bool):
            raise ValueError("Task completed flag must be a boolean")

        deadline = raw.get('deadline')
        created_at = raw.get('createdAt')
        return cls(
            id=str(task_id),
            text=text.strip(),
            completed=completed,
            deadline=parse_timestamp(deadline) if deadline else None,
            created_at=parse_timestamp(created_at) if created_at else utc_now(),
        )


def validate_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a partial update payload

    Args:
        changes: Any subset of text, completed, deadline

    Returns:
        Cleaned copy holding only known fields (text trimmed)

    Raises:
        InvalidInputError: If no known field is present or a value is invalid
    """
    if not isinstance(changes, dict):
        raise InvalidInputError("Update payload must be an object")

    cleaned = {key: changes[key] for key in UPDATABLE_FIELDS if key in changes}
    if not cleaned:
        raise InvalidInputError("No valid fields to update")

    if 'text' in cleaned:
        text = cleaned['text']
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Task text is required")
        cleaned['text'] = text.strip()

    if 'completed' in cleaned and not isinstance(cleaned['completed'], bool):
        raise InvalidInputError("completed must be a boolean")

    if 'deadline' in cleaned:
        deadline = cleaned['deadline']
        if deadline is not None and not isinstance(deadline, datetime):
            raise InvalidInputError("deadline must be a datetime or None")

    return cleaned
