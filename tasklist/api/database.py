"""
SQLite table behind the task REST API.
"""

import os
import sqlite3
import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from tasklist.core.models import Task, format_timestamp, parse_timestamp, utc_now

SCHEMA = '''
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        text TEXT NOT NULL,
        completed BOOLEAN DEFAULT 0,
        deadline TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
'''

ORDER = 'ORDER BY created_at DESC, rowid DESC'


class TaskDatabase:
    """Manages the tasks table"""

    def __init__(self, db_path: str = "data/tasks.db"):
        """
        Open the database

        Args:
            db_path: Path to SQLite file, or ':memory:'
        """
        self.logger = logging.getLogger(__name__)
        self.db_path = db_path
        self.lock = threading.Lock()

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.logger.info(f"Connected to SQLite database {db_path}")

    def initialize(self):
        """Create the tasks table if needed"""
        with self.lock:
            self.conn.execute(SCHEMA)
            self.conn.commit()
        self.logger.info("Tasks table ready")

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row['id'],
            text=row['text'],
            completed=bool(row['completed']),
            deadline=parse_timestamp(row['deadline']) if row['deadline'] else None,
            created_at=parse_timestamp(row['created_at']),
        )

    def list_tasks(self, task_filter: str = 'all') -> List[Task]:
        """
        Get tasks, newest first

        Args:
            task_filter: 'all', 'pending' or 'completed'
        """
        query = f'SELECT * FROM tasks {ORDER}'
        if task_filter == 'pending':
            query = f'SELECT * FROM tasks WHERE completed = 0 {ORDER}'
        elif task_filter == 'completed':
            query = f'SELECT * FROM tasks WHERE completed = 1 {ORDER}'

        with self.lock:
            rows = self.conn.execute(query).fetchall()
        return [self._row_to_task(row) for row in rows]

    def get_task(self, task_id: str) -> Optional[Task]:
        with self.lock:
            row = self.conn.execute('SELECT * FROM tasks WHERE id = ?', (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def create_task(self, text: str, deadline: Optional[datetime] = None) -> Task:
        """Insert a new pending task and return it"""
        task_id = str(uuid.uuid4())
        now = format_timestamp(utc_now())
        with self.lock:
            self.conn.execute(
                'INSERT INTO tasks (id, text, deadline, created_at, updated_at) VALUES (?, ?, ?, ?, ?)',
                (task_id, text, format_timestamp(deadline) if deadline else None, now, now)
            )
            self.conn.commit()
        self.logger.info(f"Created task {task_id}")
        return self.get_task(task_id)

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Optional[Task]:
        """
        Update the given columns

        Args:
            task_id: Target task
            changes: Validated subset of text, completed, deadline

        Returns:
            Updated task, or None if the id is unknown
        """
        updates = []
        params: List[Any] = []

        if 'text' in changes:
            updates.append('text = ?')
            params.append(changes['text'])
        if 'completed' in changes:
            updates.append('completed = ?')
            params.append(1 if changes['completed'] else 0)
        if 'deadline' in changes:
            updates.append('deadline = ?')
            deadline = changes['deadline']
            params.append(format_timestamp(deadline) if deadline else None)

        updates.append('updated_at = ?')
        params.append(format_timestamp(utc_now()))
        params.append(task_id)

        with self.lock:
            cursor = self.conn.execute(f"UPDATE tasks SET {', '.join(updates)} WHERE id = ?", params)
            self.conn.commit()
            changed = cursor.rowcount

        if changed == 0:
            return None
        self.logger.info(f"Updated task {task_id}: {sorted(changes)}")
        return self.get_task(task_id)

    def delete_task(self, task_id: str) -> bool:
        """Delete a task; False if the id is unknown"""
        with self.lock:
            cursor = self.conn.execute('DELETE FROM tasks WHERE id = ?', (task_id,))
            self.conn.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            self.logger.info(f"Deleted task {task_id}")
        return deleted

    def stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Aggregate counts via filtered row counts"""
        now_text = format_timestamp(now or utc_now())
        queries = {
            'total': ('SELECT COUNT(*) FROM tasks', ()),
            'completed': ('SELECT COUNT(*) FROM tasks WHERE completed = 1', ()),
            'pending': ('SELECT COUNT(*) FROM tasks WHERE completed = 0', ()),
            'overdue': ('SELECT COUNT(*) FROM tasks WHERE deadline IS NOT NULL '
                        'AND deadline < ? AND completed = 0', (now_text,)),
        }
        with self.lock:
            return {
                name: self.conn.execute(query, params).fetchone()[0]
                for name, (query, params) in queries.items()
            }

    def close(self):
        with self.lock:
            self.conn.close()
        self.logger.info("Database connection closed")
