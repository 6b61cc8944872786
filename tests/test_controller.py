"""
Tests for the controller: intents, edit state machine and failure handling
"""

import json
from datetime import timedelta

from tasklist.core.errors import StorageError
from tasklist.core.models import Task
from tasklist.core.store import TaskStore
from tasklist.storage.adapters import DEFAULT_STORAGE_KEY, LocalAdapter, StorageBackend, StorageMode
from tasklist.ui.controller import TaskController


def test_add_scenario(local_controller, local_adapter):
    """Empty store, add 'Buy milk' -> one pending task, persisted"""
    task = local_controller.add_task("Buy milk", None)

    tasks = local_controller.store.list()
    assert [(t.text, t.completed, t.deadline) for t in tasks] == [("Buy milk", False, None)]
    assert local_controller.count_label() == "1 task (1 pending, 0 completed)"
    assert local_adapter.load() == [task]


def test_add_empty_text_is_silent_noop(local_controller, messages):
    assert local_controller.add_task("   ") is None
    assert len(local_controller.store) == 0
    assert messages == []


def test_remote_create_failure_leaves_store(remote_controller, fake_remote, messages):
    """HTTP 500 on create: store unchanged and the user is told"""
    fake_remote.fail.add('create')

    assert remote_controller.add_task("Buy milk") is None

    assert len(remote_controller.store) == 0
    assert messages == ['Failed to save task. Please try again.']


def test_remote_create_uses_server_record(remote_controller, fake_remote):
    task = remote_controller.add_task("From server")

    assert task.id == fake_remote.tasks[0].id
    assert remote_controller.store.list() == [task]


def test_toggle_is_persisted(local_controller, local_adapter):
    task = local_controller.add_task("Toggle")

    local_controller.toggle_task(task.id)
    assert local_adapter.load()[0].completed is True

    local_controller.toggle_task(task.id)
    assert local_adapter.load()[0].completed is False


def test_toggle_unknown_id_is_ignored(local_controller):
    assert local_controller.toggle_task("missing") is None


def test_remote_toggle_failure_rolls_back(remote_controller, fake_remote, messages):
    task = remote_controller.add_task("Remote")
    fake_remote.offline = True

    assert remote_controller.toggle_task(task.id) is None

    assert remote_controller.store.find_by_id(task.id).completed is False
    assert messages == ['Failed to update task. Please try again.']


def test_edit_commit_changes_text(local_controller, local_adapter):
    task = local_controller.add_task("Old text")

    assert local_controller.begin_edit(task.id) is True
    assert local_controller.editing_task_id == task.id

    updated = local_controller.commit_edit("  New text  ")

    assert updated.text == "New text"
    assert local_controller.editing_task_id is None
    assert local_adapter.load()[0].text == "New text"


def test_edit_commit_unchanged_or_empty_does_not_persist(remote_controller, fake_remote):
    task = remote_controller.add_task("Same")
    calls_before = len(fake_remote.calls)

    remote_controller.begin_edit(task.id)
    assert remote_controller.commit_edit("Same") is None
    remote_controller.begin_edit(task.id)
    assert remote_controller.commit_edit("   ") is None

    assert len(fake_remote.calls) == calls_before
    assert remote_controller.editing_task_id is None
    assert remote_controller.store.find_by_id(task.id).text == "Same"


def test_edit_cancel_discards(local_controller):
    task = local_controller.add_task("Keep")
    local_controller.begin_edit(task.id)

    local_controller.cancel_edit()

    assert local_controller.editing_task_id is None
    assert local_controller.commit_edit("Changed") is None
    assert local_controller.store.find_by_id(task.id).text == "Keep"


def test_begin_edit_unknown_id(local_controller):
    assert local_controller.begin_edit("missing") is False
    assert local_controller.editing_task_id is None


def test_remote_edit_failure_clears_editing(remote_controller, fake_remote, messages):
    task = remote_controller.add_task("Before")
    fake_remote.fail.add('update')

    remote_controller.begin_edit(task.id)
    assert remote_controller.commit_edit("After") is None

    assert remote_controller.editing_task_id is None
    assert remote_controller.store.find_by_id(task.id).text == "Before"
    assert messages == ['Failed to update task. Please try again.']


def test_delete_requires_confirmation(local_controller, local_adapter):
    task = local_controller.add_task("Delete me")

    assert local_controller.delete_task(task.id) is False
    assert len(local_controller.store) == 1

    assert local_controller.delete_task(task.id, confirmed=True) is True
    assert local_controller.store.find_by_id(task.id) is None
    assert local_adapter.load() == []


def test_delete_unknown_id_notifies(local_controller, messages):
    local_controller.add_task("Stay")

    assert local_controller.delete_task("missing", confirmed=True) is False

    assert len(local_controller.store) == 1
    assert messages == ['Task not found: missing']


def test_remote_delete_failure_keeps_task(remote_controller, fake_remote, messages):
    task = remote_controller.add_task("Sticky")
    fake_remote.fail.add('delete')

    assert remote_controller.delete_task(task.id, confirmed=True) is False

    assert remote_controller.store.find_by_id(task.id) is not None
    assert messages == ['Failed to delete task. Please try again.']


def test_local_filter_is_in_memory(local_controller):
    done = local_controller.add_task("Done")
    local_controller.add_task("Open")
    local_controller.toggle_task(done.id)

    assert local_controller.set_filter('completed') is True
    assert [t.text for t in local_controller.visible_tasks()] == ["Done"]
    assert local_controller.count_label() == "1 completed task"
    assert len(local_controller.store) == 2

    assert local_controller.set_filter('bogus') is False
    assert local_controller.current_filter == 'completed'


def test_empty_state_follows_filter(local_controller):
    assert local_controller.empty_state() == ('No tasks yet', 'Add your first task to get started!')

    local_controller.set_filter('pending')
    assert local_controller.empty_state() == ('No pending tasks', 'All tasks are completed!')


def test_remote_filter_refetches(remote_controller, fake_remote):
    fake_remote.tasks = [
        Task(id='a', text='open'),
        Task(id='b', text='done', completed=True),
    ]

    remote_controller.set_filter('pending')

    assert ('load', 'pending') in fake_remote.calls
    assert [t.id for t in remote_controller.store.list()] == ['a']
    assert remote_controller.count_label() == "1 pending task"


def test_load_corrupt_blob_notifies(kv_storage, messages):
    kv_storage.set_item(DEFAULT_STORAGE_KEY, "{broken")
    controller = TaskController(
        TaskStore(), StorageBackend(StorageMode.LOCAL, LocalAdapter(kv_storage)), notify=messages.append
    )

    assert controller.load() is False
    assert len(controller.store) == 0
    assert messages == ['Failed to load tasks.']


def test_import_rejects_non_array(local_controller, messages):
    """{"not": "an array"} is refused and nothing changes"""
    local_controller.add_task("Existing")

    assert local_controller.import_tasks('{"not": "an array"}') is False

    assert [t.text for t in local_controller.store.list()] == ["Existing"]
    assert messages == ['Invalid file format. Please select a valid tasks file.']


def test_import_rejects_invalid_json(local_controller, messages):
    local_controller.add_task("Existing")

    assert local_controller.import_tasks(b'not json at all') is False
    assert local_controller.import_tasks('[{"id": "1"}]') is False

    assert len(local_controller.store) == 1
    assert messages == ['Error importing tasks. Please check the file format.'] * 2


def test_import_rejects_duplicate_ids(local_controller, local_adapter, messages):
    local_controller.add_task("Existing")

    assert local_controller.import_tasks('[{"id": "a", "text": "x"}, {"id": "a", "text": "y"}]') is False

    assert [t.text for t in local_controller.store.list()] == ["Existing"]
    assert [t.text for t in local_adapter.load()] == ["Existing"]
    assert messages == ['Error importing tasks. Please check the file format.']


def test_export_then_import(local_controller, local_adapter, messages, now):
    first = local_controller.add_task("First", now + timedelta(days=2))
    second = local_controller.add_task("Second")
    local_controller.toggle_task(first.id)

    filename, body = local_controller.export_tasks()
    assert filename == "tasks_2026-10-19.json"
    assert [row['text'] for row in json.loads(body)] == ["Second", "First"]

    local_controller.clear_all(confirmed=True)
    assert local_adapter.load() == []

    assert local_controller.import_tasks(body.encode('utf-8')) is True
    assert [t.id for t in local_controller.store.list()] == [second.id, first.id]
    assert local_adapter.load() == local_controller.store.list()
    assert local_controller.store.find_by_id(first.id).completed is True
    assert messages == ['Tasks imported successfully!']


def test_remote_import_recreates_tasks(remote_controller, fake_remote, now):
    payload = json.dumps([
        Task(id='x', text='newest', created_at=now).to_dict(),
        Task(id='y', text='oldest', completed=True, created_at=now).to_dict(),
    ])

    assert remote_controller.import_tasks(payload) is True

    assert [t.text for t in remote_controller.store.list()] == ['newest', 'oldest']
    assert [t.completed for t in fake_remote.tasks] == [False, True]


def test_clear_all_requires_confirmation(local_controller):
    local_controller.add_task("One")
    assert local_controller.clear_all() is False
    assert len(local_controller.store) == 1


def test_remote_clear_all(remote_controller, fake_remote):
    remote_controller.add_task("One")
    remote_controller.add_task("Two")

    assert remote_controller.clear_all(confirmed=True) is True

    assert fake_remote.tasks == []
    assert len(remote_controller.store) == 0


def test_stats_fall_back_to_memory(remote_controller, fake_remote):
    remote_controller.add_task("Counted")
    fake_remote.offline = True

    assert remote_controller.stats() == {'total': 1, 'completed': 0, 'pending': 1, 'overdue': 0}


def test_local_save_failure_is_reported(local_controller, local_adapter, messages, monkeypatch):
    def broken(tasks):
        raise StorageError("disk full")

    monkeypatch.setattr(local_adapter, 'save_all', broken)

    assert local_controller.add_task("Unsaved") is None
    assert len(local_controller.store) == 0
    assert messages == ['Failed to save task. Please try again.']


def break_local_writes(local_adapter, monkeypatch):
    def broken(tasks):
        raise StorageError("disk full")

    monkeypatch.setattr(local_adapter, 'save_all', broken)


def test_local_toggle_failure_keeps_state(local_controller, local_adapter, messages, monkeypatch):
    task = local_controller.add_task("Stays open")
    break_local_writes(local_adapter, monkeypatch)

    assert local_controller.toggle_task(task.id) is None

    assert local_controller.store.find_by_id(task.id).completed is False
    assert messages == ['Failed to update task. Please try again.']


def test_local_edit_failure_keeps_text(local_controller, local_adapter, messages, monkeypatch):
    task = local_controller.add_task("Original")
    break_local_writes(local_adapter, monkeypatch)

    local_controller.begin_edit(task.id)
    assert local_controller.commit_edit("Changed") is None

    assert local_controller.store.find_by_id(task.id).text == "Original"
    assert local_controller.editing_task_id is None
    assert messages == ['Failed to update task. Please try again.']


def test_local_delete_failure_keeps_task(local_controller, local_adapter, messages, monkeypatch):
    task = local_controller.add_task("Survivor")
    break_local_writes(local_adapter, monkeypatch)

    assert local_controller.delete_task(task.id, confirmed=True) is False

    assert [t.id for t in local_controller.store.list()] == [task.id]
    assert messages == ['Failed to delete task. Please try again.']


def test_local_store_matches_blob_after_each_intent(local_controller, local_adapter):
    first = local_controller.add_task("First")
    second = local_controller.add_task("Second")
    local_controller.toggle_task(first.id)
    local_controller.begin_edit(second.id)
    local_controller.commit_edit("Second, edited")
    assert local_adapter.load() == local_controller.store.list()

    local_controller.delete_task(first.id, confirmed=True)
    assert local_adapter.load() == local_controller.store.list()
