"""
Tests for BoardStore: audited mutations, no-op semantics, persistence,
boot sequence and import.
"""
import json

import pytest

from taskboard.mutations import CreateTaskInput, UpdateTaskInput
from taskboard.persistence import MemoryBackend
from taskboard.schema import ACTOR_LABEL, AuditAction, BoardState, Priority, TaskState
from taskboard.store import INVALID_JSON_MESSAGE, BoardStore
from taskboard.validator import validate_board


def new_task_input(**kwargs) -> CreateTaskInput:
    kwargs.setdefault("title", "Write release notes")
    kwargs.setdefault("priority", Priority.MEDIUM)
    kwargs.setdefault("tags", ["docs"])
    kwargs.setdefault("estimate_minutes", 30)
    return CreateTaskInput(**kwargs)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Create / update / delete / move
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestCreate:

    def test_create_appends_task_and_audit(self, store, backend):
        task = store.create_task(new_task_input(description="  draft  "))
        assert store.tasks == [task]
        assert task.state == TaskState.TODO
        assert task.description == "draft"
        assert task.created_at

        entry = store.audit[0]
        assert entry.action == AuditAction.CREATE
        assert entry.task_id == task.id
        assert entry.actor_label == ACTOR_LABEL
        assert entry.diff == {"task": {"before": None, "after": task.to_dict()}}
        assert backend.saves == 1

    def test_create_honours_requested_state(self, store):
        task = store.create_task(new_task_input(state=TaskState.DOING))
        assert task.state == TaskState.DOING

    def test_create_generates_unique_ids(self, store):
        first = store.create_task(new_task_input())
        second = store.create_task(new_task_input())
        assert first.id != second.id

    def test_blank_description_and_due_become_absent(self, store):
        task = store.create_task(new_task_input(description="   ", due_at=""))
        assert task.description is None
        assert task.due_at is None
        assert "description" not in task.to_dict()


class TestUpdate:

    def test_update_records_diff(self, store):
        task = store.create_task(new_task_input())
        edit = UpdateTaskInput.from_task(task)
        edit.title = "Write final release notes"
        edit.score = 8
        entry = store.update_task(task.id, edit)

        assert entry.action == AuditAction.UPDATE
        assert entry.diff == {
            "title": {"before": "Write release notes", "after": "Write final release notes"},
            "score": {"before": None, "after": 8},
        }
        assert store.get(task.id).title == "Write final release notes"
        assert store.audit[0] == entry

    def test_identical_update_is_noop(self, store, backend):
        task = store.create_task(new_task_input())
        before = len(store.audit)
        saves = backend.saves
        assert store.update_task(task.id, UpdateTaskInput.from_task(task)) is None
        assert len(store.audit) == before
        assert backend.saves == saves

    def test_whitespace_only_change_is_noop(self, store):
        task = store.create_task(new_task_input(description="draft"))
        edit = UpdateTaskInput.from_task(task)
        edit.description = "  draft "
        assert store.update_task(task.id, edit) is None

    def test_update_missing_task_is_silent(self, store, backend):
        assert store.update_task("missing", UpdateTaskInput(title="Nothing")) is None
        assert store.audit == []
        assert backend.saves == 0

    def test_update_keeps_state_and_created_at(self, store):
        task = store.create_task(new_task_input(state=TaskState.DOING))
        edit = UpdateTaskInput.from_task(task)
        edit.priority = Priority.HIGH
        store.update_task(task.id, edit)
        updated = store.get(task.id)
        assert updated.state == TaskState.DOING
        assert updated.created_at == task.created_at
        assert updated.id == task.id

    def test_update_replaces_in_place(self, store):
        first = store.create_task(new_task_input(title="First"))
        second = store.create_task(new_task_input(title="Second"))
        edit = UpdateTaskInput.from_task(first)
        edit.title = "First edited"
        store.update_task(first.id, edit)
        assert [t.id for t in store.tasks] == [first.id, second.id]


class TestDelete:

    def test_delete_records_removed_task(self, store):
        task = store.create_task(new_task_input())
        entry = store.delete_task(task.id)
        assert store.tasks == []
        assert entry.action == AuditAction.DELETE
        assert entry.diff == {"task": {"before": task.to_dict(), "after": None}}

    def test_delete_missing_is_silent(self, store, backend):
        assert store.delete_task("missing") is None
        assert backend.saves == 0


class TestMove:

    def test_move_records_state_only(self, store):
        task = store.create_task(new_task_input())
        entry = store.move_task(task.id, TaskState.DONE)
        assert entry.action == AuditAction.MOVE
        assert entry.diff == {"state": {"before": "todo", "after": "done"}}
        assert store.get(task.id).state == TaskState.DONE

    def test_move_accepts_string_state(self, store):
        task = store.create_task(new_task_input())
        store.move_task(task.id, "doing")
        assert store.get(task.id).state == TaskState.DOING

    def test_move_to_same_column_is_noop(self, store):
        task = store.create_task(new_task_input())
        assert store.move_task(task.id, TaskState.TODO) is None
        assert len(store.audit) == 1

    def test_move_missing_is_silent(self, store):
        assert store.move_task("missing", TaskState.DONE) is None

    def test_move_invalid_state_raises(self, store):
        task = store.create_task(new_task_input())
        with pytest.raises(ValueError):
            store.move_task(task.id, "archived")


class TestRejectsInvalidTasks:

    @pytest.mark.parametrize("overrides", [
        {"title": "ab"},
        {"estimate_minutes": -5},
        {"due_at": "not a date"},
        {"tags": ["ok", 3]},
    ])
    def test_create_rejected_without_side_effects(self, store, backend, overrides):
        with pytest.raises(ValueError):
            store.create_task(new_task_input(**overrides))
        assert store.tasks == []
        assert store.audit == []
        assert backend.saves == 0

    @pytest.mark.parametrize("field_name,value", [
        ("title", "ab"),
        ("estimate_minutes", -1),
        ("score", 50),
        ("score", -1),
        ("score", float("nan")),
        ("due_at", "not a date"),
        ("tags", [None]),
    ])
    def test_update_rejected_leaves_task_untouched(self, store, backend, field_name, value):
        task = store.create_task(new_task_input())
        saves = backend.saves
        edit = UpdateTaskInput.from_task(task)
        setattr(edit, field_name, value)
        with pytest.raises(ValueError):
            store.update_task(task.id, edit)
        assert store.get(task.id) == task
        assert len(store.audit) == 1
        assert backend.saves == saves

    def test_rejected_writes_do_not_wipe_board_on_reopen(self, store, backend):
        kept = store.create_task(new_task_input(title="Important work"))
        with pytest.raises(ValueError):
            store.create_task(new_task_input(title="ab", estimate_minutes=-5))
        edit = UpdateTaskInput.from_task(kept)
        edit.score = 50
        edit.due_at = "not a date"
        with pytest.raises(ValueError):
            store.update_task(kept.id, edit)

        reopened = BoardStore.open(backend)
        assert [t.title for t in reopened.tasks] == ["Important work"]
        assert [e.action for e in reopened.audit] == [AuditAction.CREATE]

    @pytest.mark.parametrize("value", [12.7, "30", True])
    def test_input_estimate_must_be_whole_number(self, value):
        with pytest.raises(ValueError):
            CreateTaskInput.from_dict({"title": "Valid title", "estimateMinutes": value})
        with pytest.raises(ValueError):
            UpdateTaskInput.from_dict({"title": "Valid title", "estimateMinutes": value})

    def test_input_estimate_accepts_integral_float(self):
        assert CreateTaskInput.from_dict({"title": "Valid title", "estimateMinutes": 45.0}).estimate_minutes == 45

    def test_input_tags_must_be_list(self):
        with pytest.raises(ValueError):
            CreateTaskInput.from_dict({"title": "Valid title", "tags": "ops"})


def test_audit_is_newest_first(store):
    task = store.create_task(new_task_input())
    edit = UpdateTaskInput.from_task(task)
    edit.title = "Changed title"
    store.update_task(task.id, edit)
    store.delete_task(task.id)

    actions = [entry.action for entry in store.audit]
    assert actions == [AuditAction.DELETE, AuditAction.UPDATE, AuditAction.CREATE]


def test_review_mode_not_audited(store, backend):
    store.set_review_mode(True)
    assert store.review_mode is True
    assert store.audit == []
    assert backend.saves == 1

    store.set_review_mode(True)
    assert backend.saves == 1


def test_persisted_snapshot_is_valid_board(store, backend):
    task = store.create_task(new_task_input())
    store.move_task(task.id, TaskState.DOING)
    snapshot = json.loads(backend.raw)
    result = validate_board(snapshot)
    assert result.ok
    assert result.state == store.state


def test_export_json_round_trips(store):
    store.create_task(new_task_input())
    assert json.loads(store.export_json()) == store.export_state()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Boot sequence
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestOpen:

    def test_absent_snapshot_seeds_and_saves(self):
        backend = MemoryBackend()
        store = BoardStore.open(backend)
        assert len(store.tasks) == 5
        assert store.audit == []
        assert store.review_mode is False
        assert backend.saves == 1
        assert validate_board(json.loads(backend.raw)).ok

    def test_malformed_bytes_fall_back_to_seed(self):
        backend = MemoryBackend(b"{not json")
        store = BoardStore.open(backend)
        assert len(store.tasks) == 5
        assert backend.saves == 1
        assert validate_board(json.loads(backend.raw)).state == store.state

    def test_invalid_utf8_falls_back_to_seed(self):
        backend = MemoryBackend(b"\xff\xfe\x00")
        assert len(BoardStore.open(backend).tasks) == 5

    def test_invalid_snapshot_falls_back_to_seed(self):
        backend = MemoryBackend(json.dumps({"tasks": [], "audit": []}).encode())
        store = BoardStore.open(backend)
        assert len(store.tasks) == 5
        assert backend.saves == 1

    def test_valid_snapshot_loaded_without_save(self, task_dict, audit_dict):
        snapshot = {"tasks": [task_dict()], "audit": [audit_dict()], "reviewMode": True}
        backend = MemoryBackend(json.dumps(snapshot).encode())
        store = BoardStore.open(backend)
        assert store.export_state() == snapshot
        assert backend.saves == 0

    def test_normalization_re_saves_when_text_changes(self, task_dict):
        snapshot = {"tasks": [task_dict(title="Auditoria de operacion")], "audit": [], "reviewMode": False}
        backend = MemoryBackend(json.dumps(snapshot).encode())
        store = BoardStore.open(backend, normalize_text=True)
        assert store.tasks[0].title == "Auditoría de operación"
        assert backend.saves == 1
        assert json.loads(backend.raw)["tasks"][0]["title"] == "Auditoría de operación"

    def test_normalization_without_changes_does_not_save(self, task_dict):
        snapshot = {"tasks": [task_dict()], "audit": [], "reviewMode": False}
        backend = MemoryBackend(json.dumps(snapshot).encode())
        BoardStore.open(backend, normalize_text=True)
        assert backend.saves == 0

    def test_normalization_off_by_default(self, task_dict):
        snapshot = {"tasks": [task_dict(title="Auditoria")], "audit": [], "reviewMode": False}
        store = BoardStore.open(MemoryBackend(json.dumps(snapshot).encode()))
        assert store.tasks[0].title == "Auditoria"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Import
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestImport:

    def test_import_replaces_state(self, store, backend, task_dict, audit_dict):
        store.create_task(new_task_input())
        snapshot = {"tasks": [task_dict()], "audit": [audit_dict()], "reviewMode": True}
        result = store.import_state(snapshot)
        assert result.ok
        assert store.export_state() == snapshot
        assert json.loads(backend.raw) == snapshot

    def test_import_duplicate_ids_adds_compensating_updates(self, store, task_dict, audit_dict):
        dup = "33333333-3333-4333-8333-333333333333"
        snapshot = {
            "tasks": [task_dict(id=dup, title="First"), task_dict(id=dup, title="Second")],
            "audit": [audit_dict()],
            "reviewMode": False,
        }
        result = store.import_state(snapshot)
        assert result.ok
        assert len(result.id_replacements) == 1
        replacement = result.id_replacements[0]
        assert replacement.old_id == dup

        ids = [t.id for t in store.tasks]
        assert ids[0] == dup
        assert ids[1] == replacement.new_id != dup

        first = store.audit[0]
        assert first.action == AuditAction.UPDATE
        assert first.task_id == replacement.new_id
        assert first.diff == {"id": {"before": dup, "after": replacement.new_id}}
        assert store.audit[1].id == audit_dict()["id"]

    def test_rejected_import_leaves_state_untouched(self, store, backend, task_dict):
        store.create_task(new_task_input())
        before = store.state
        saves = backend.saves
        result = store.import_state({"tasks": [task_dict(title="x", priority="nope")], "audit": [], "reviewMode": False})
        assert not result.ok
        assert len(result.errors) == 2
        assert store.state is before
        assert backend.saves == saves

    def test_import_json_malformed(self, store):
        result = store.import_json(b"not json at all")
        assert not result.ok
        assert result.messages() == [INVALID_JSON_MESSAGE]

    def test_import_json_valid(self, store, task_dict):
        raw = json.dumps({"tasks": [task_dict()], "audit": [], "reviewMode": False})
        assert store.import_json(raw).ok
        assert len(store.tasks) == 1


def test_store_state_is_not_mutated_by_commands(store):
    task = store.create_task(new_task_input())
    snapshot = store.state
    store.move_task(task.id, TaskState.DONE)
    assert snapshot.get(task.id).state == TaskState.TODO
    assert isinstance(store.state, BoardState)
