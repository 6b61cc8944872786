"""
Render engine: pure projection of the task collection into labels and markup.
Holds no state; every function takes the current time explicitly.
"""

import math
from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional, Sequence, Tuple

from jinja2 import Environment
from markupsafe import Markup

from tasklist.core.models import Task, utc_now
from tasklist.core.store import filter_tasks

DAY_SECONDS = 24 * 60 * 60
DUE_SOON_WINDOW = timedelta(hours=24)

EMPTY_STATES = {
    'all': ('No tasks yet', 'Add your first task to get started!'),
    'pending': ('No pending tasks', 'All tasks are completed!'),
    'completed': ('No completed tasks', 'Complete some tasks to see them here!'),
}


class TaskView(NamedTuple):
    """Everything the page needs to draw one task"""
    id: str
    text: str
    completed: bool
    editing: bool
    deadline_state: str
    created_label: str
    deadline_label: Optional[str]


def _plural(count: int) -> str:
    return '' if count == 1 else 's'


def _short_date(value: datetime) -> str:
    """Month/day/year in the server's local timezone"""
    local = value.astimezone()
    return f"{local.month}/{local.day}/{local.year}"


def deadline_state(task: Task, now: Optional[datetime] = None) -> str:
    """
    Classify a task's deadline

    Returns:
        'overdue' if the deadline is strictly past and the task is open,
        'due-soon' if it falls within DUE_SOON_WINDOW, else 'normal'
    """
    if task.deadline is None or task.completed:
        return 'normal'
    now = now or utc_now()
    if now > task.deadline:
        return 'overdue'
    if task.deadline - now <= DUE_SOON_WINDOW:
        return 'due-soon'
    return 'normal'


def format_deadline(deadline: datetime, now: Optional[datetime] = None) -> str:
    """Relative deadline label; whole days rounded up"""
    now = now or utc_now()
    days = math.ceil((deadline - now).total_seconds() / DAY_SECONDS)

    if days < 0:
        overdue = abs(days)
        return f"Overdue by {overdue} day{_plural(overdue)}"
    if days == 0:
        return 'Due today'
    if days == 1:
        return 'Due tomorrow'
    if days <= 7:
        return f"Due in {days} days"
    return f"Due {_short_date(deadline)}"


def format_date(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Relative creation label; whole days rounded down"""
    now = now or utc_now()
    days = math.floor((now - created_at).total_seconds() / DAY_SECONDS)

    if days <= 0:
        return 'Today'
    if days == 1:
        return 'Yesterday'
    if days <= 7:
        return f"{days} days ago"
    return _short_date(created_at)


def count_label(tasks: Sequence[Task], task_filter: str = 'all') -> str:
    total = len(tasks)
    completed = sum(1 for task in tasks if task.completed)
    pending = total - completed

    if task_filter == 'pending':
        return f"{pending} pending task{_plural(pending)}"
    if task_filter == 'completed':
        return f"{completed} completed task{_plural(completed)}"
    return f"{total} task{_plural(total)} ({pending} pending, {completed} completed)"


def empty_state(task_filter: str = 'all') -> Tuple[str, str]:
    """(title, message) shown when nothing is visible"""
    return EMPTY_STATES.get(task_filter, EMPTY_STATES['all'])


def build_task_views(
    tasks: Sequence[Task],
    task_filter: str = 'all',
    editing_task_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[TaskView]:
    now = now or utc_now()
    return [
        TaskView(
            id=task.id,
            text=task.text,
            completed=task.completed,
            editing=task.id == editing_task_id,
            deadline_state=deadline_state(task, now),
            created_label=format_date(task.created_at, now),
            deadline_label=format_deadline(task.deadline, now) if task.deadline else None,
        )
        for task in filter_tasks(tasks, task_filter)
    ]


_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

TASK_LIST_TEMPLATE = _env.from_string('''
{% if views %}
<div id="tasksList" class="tasks-list">
{% for task in views %}
    <div class="task-item{% if task.completed %} completed{% endif %}{% if task.deadline_state != 'normal' %} {{ task.deadline_state }}{% endif %}" data-task-id="{{ task.id }}">
        <form method="post" action="/tasks/{{ task.id }}/toggle" class="inline">
            <input type="checkbox" class="task-checkbox" onchange="this.form.submit()"{% if task.completed %} checked{% endif %}>
        </form>
        <div class="task-content">
        {% if task.editing %}
            <form method="post" action="/tasks/{{ task.id }}/edit" class="edit-form">
                <input type="text" name="text" class="edit-input" value="{{ task.text }}" autofocus>
            </form>
        {% else %}
            <div class="task-text{% if task.completed %} completed{% endif %}">{{ task.text }}</div>
        {% endif %}
            <div class="task-meta">
                <span class="task-created">{{ task.created_label }}</span>
            {% if task.deadline_label %}
                <span class="task-deadline {{ task.deadline_state }}">{{ task.deadline_label }}</span>
            {% endif %}
            </div>
        </div>
        <div class="task-actions">
            <a class="task-btn edit-btn" href="/tasks/{{ task.id }}/edit" title="Edit task">Edit</a>
            <form method="post" action="/tasks/{{ task.id }}/delete" class="inline delete-form">
                <input type="hidden" name="confirmed" value="0">
                <button type="submit" class="task-btn delete-btn" title="Delete task">Delete</button>
            </form>
        </div>
    </div>
{% endfor %}
</div>
{% else %}
<div id="emptyState" class="empty-state">
    <h3>{{ empty[0] }}</h3>
    <p>{{ empty[1] }}</p>
</div>
{% endif %}
''')


def render_task_list(
    tasks: Sequence[Task],
    task_filter: str = 'all',
    editing_task_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> Markup:
    """
    Produce the task list markup (or the empty state) for the active filter

    Task text is always escaped.
    """
    views = build_task_views(tasks, task_filter, editing_task_id, now)
    return Markup(TASK_LIST_TEMPLATE.render(views=views, empty=empty_state(task_filter)))
