"""
Unit tests for the render engine labels, deadline states and markup
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tasklist.core.models import Task
from tasklist.ui.render import (
    build_task_views, count_label, deadline_state, empty_state, format_date,
    format_deadline, render_task_list
)

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def local_date(value):
    local = value.astimezone()
    return f"{local.month}/{local.day}/{local.year}"


def test_deadline_exactly_now():
    """A deadline exactly at 'now' is due today and not yet overdue"""
    task = Task(id='1', text='now', deadline=NOW, created_at=NOW)

    assert format_deadline(NOW, NOW) == "Due today"
    assert deadline_state(task, NOW) == 'due-soon'


def test_deadline_one_millisecond_past_is_overdue():
    deadline = NOW - timedelta(milliseconds=1)
    task = Task(id='1', text='late', deadline=deadline, created_at=NOW)

    assert deadline_state(task, NOW) == 'overdue'
    assert format_deadline(deadline, NOW) == "Due today"


def test_completed_task_is_never_overdue():
    task = Task(id='1', text='done', completed=True,
                deadline=NOW - timedelta(days=3), created_at=NOW)
    assert deadline_state(task, NOW) == 'normal'


def test_deadline_states():
    def state(delta):
        return deadline_state(Task(id='1', text='x', deadline=NOW + delta, created_at=NOW), NOW)

    assert state(timedelta(hours=2)) == 'due-soon'
    assert state(timedelta(hours=24)) == 'due-soon'
    assert state(timedelta(hours=25)) == 'normal'
    assert state(timedelta(seconds=-1)) == 'overdue'
    assert deadline_state(Task(id='1', text='x', created_at=NOW), NOW) == 'normal'


def test_future_deadline_labels_round_up():
    assert format_deadline(NOW + timedelta(hours=1), NOW) == "Due tomorrow"
    assert format_deadline(NOW + timedelta(days=1), NOW) == "Due tomorrow"
    assert format_deadline(NOW + timedelta(days=1, seconds=1), NOW) == "Due in 2 days"
    assert format_deadline(NOW + timedelta(days=7), NOW) == "Due in 7 days"

    far = NOW + timedelta(days=8)
    assert format_deadline(far, NOW) == f"Due {local_date(far)}"


def test_past_deadline_labels():
    assert format_deadline(NOW - timedelta(days=1, hours=1), NOW) == "Overdue by 1 day"
    assert format_deadline(NOW - timedelta(days=2), NOW) == "Overdue by 2 days"


def test_created_labels_round_down():
    assert format_date(NOW, NOW) == "Today"
    assert format_date(NOW - timedelta(hours=23), NOW) == "Today"
    assert format_date(NOW - timedelta(days=1), NOW) == "Yesterday"
    assert format_date(NOW - timedelta(days=3, hours=5), NOW) == "3 days ago"
    assert format_date(NOW - timedelta(days=7), NOW) == "7 days ago"

    old = NOW - timedelta(days=10)
    assert format_date(old, NOW) == local_date(old)

    # clock skew never produces negative ages
    assert format_date(NOW + timedelta(days=2), NOW) == "Today"


def test_count_labels():
    tasks = [
        Task(id='1', text='a', created_at=NOW),
        Task(id='2', text='b', completed=True, created_at=NOW),
        Task(id='3', text='c', created_at=NOW),
    ]
    assert count_label(tasks, 'all') == "3 tasks (2 pending, 1 completed)"
    assert count_label(tasks, 'pending') == "2 pending tasks"
    assert count_label(tasks, 'completed') == "1 completed task"
    assert count_label(tasks[:1], 'all') == "1 task (1 pending, 0 completed)"
    assert count_label([], 'all') == "0 tasks (0 pending, 0 completed)"


def test_empty_state_copy_per_filter():
    titles = {empty_state(name)[0] for name in ('all', 'pending', 'completed')}
    assert titles == {"No tasks yet", "No pending tasks", "No completed tasks"}
    assert empty_state('pending')[1] == "All tasks are completed!"


def test_views_follow_filter_and_order():
    tasks = [
        Task(id='1', text='a', created_at=NOW),
        Task(id='2', text='b', completed=True, created_at=NOW),
        Task(id='3', text='c', created_at=NOW),
    ]
    views = build_task_views(tasks, 'pending', editing_task_id='3', now=NOW)

    assert [v.id for v in views] == ['1', '3']
    assert [v.editing for v in views] == [False, True]
    assert views[0].deadline_label is None
    assert views[0].created_label == "Today"


def test_markup_escapes_task_text():
    tasks = [Task(id='1', text='<script>alert("x")</script> & co', created_at=NOW)]

    html = str(render_task_list(tasks, 'all', now=NOW))

    assert '<script>' not in html
    assert '&lt;script&gt;' in html
    assert '&amp; co' in html


def test_markup_edit_field_prefilled():
    tasks = [Task(id='1', text='Fix "bug"', created_at=NOW)]

    html = str(render_task_list(tasks, 'all', editing_task_id='1', now=NOW))

    assert 'class="edit-input"' in html
    assert 'value="Fix &#34;bug&#34;"' in html
    assert 'class="task-text' not in html


def test_markup_overdue_class_and_empty_state():
    tasks = [Task(id='1', text='late', deadline=NOW - timedelta(days=2), created_at=NOW)]

    html = str(render_task_list(tasks, 'all', now=NOW))
    assert 'overdue' in html
    assert 'Overdue by 2 days' in html

    empty = str(render_task_list(tasks, 'completed', now=NOW))
    assert 'No completed tasks' in empty
    assert 'data-task-id' not in empty


if __name__ == '__main__':
    test_deadline_exactly_now()
    test_deadline_one_millisecond_past_is_overdue()
    test_future_deadline_labels_round_up()
    test_past_deadline_labels()
    test_created_labels_round_down()
    test_count_labels()
    test_markup_escapes_task_text()
    print("✓ Render tests passed")
