"""
Audited board store.

Owns the single BoardState, applies the pure commands from mutations.py
under a lock, and writes a full snapshot to the backend after every
operation that changed something. No-op operations skip the write.
"""
import json
import logging
import threading
from typing import Any, Callable, Iterable, List, Optional, Union

from . import mutations
from .mutations import CreateTaskInput, UpdateTaskInput
from .normalize import normalize_board
from .persistence import Backend
from .reconcile import ImportResult, reconcile_import
from .schema import AuditEntry, BoardState, Task, TaskState
from .seed import seed_state
from .validator import ValidationIssue, validate_board

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "file is not valid JSON"


def _decode(raw: Union[bytes, str]) -> Any:
    """Decode raw JSON bytes/text. Raises ValueError on malformed input."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return json.loads(raw)


class BoardStore:
    """Single-writer store for one board, with audit trail and snapshots."""

    def __init__(self, backend: Backend, state: BoardState):
        self.backend = backend
        self._state = state
        self._lock = threading.RLock()

    # ── boot ─────────────────────────────────────────────────────

    @classmethod
    def open(cls, backend: Backend, normalize_text: bool = False) -> "BoardStore":
        """
        Load the board from ``backend``.

        Missing, undecodable or invalid snapshots are replaced by the seed
        board, which is persisted immediately. With ``normalize_text`` the
        loaded board goes through accent normalization and is re-saved if
        anything changed.
        """
        raw = backend.load()
        if raw is None:
            logger.info("No saved board found, starting from seed data")
            return cls._from_seed(backend)

        try:
            decoded = _decode(raw)
        except ValueError as e:
            logger.warning(f"Saved board is not valid JSON ({e}), resetting to seed data")
            return cls._from_seed(backend)

        result = validate_board(decoded)
        if not result.ok:
            logger.warning(
                f"Saved board failed validation ({len(result.errors)} error(s)), "
                f"resetting to seed data"
            )
            for issue in result.errors[:10]:
                logger.debug(f"  {issue}")
            return cls._from_seed(backend)

        store = cls(backend, result.state)
        if normalize_text:
            normalized, changed = normalize_board(result.state)
            if changed:
                logger.info("Normalized accents in saved board, re-saving")
                store._state = normalized
                store._persist()
        logger.info(f"Loaded board: {len(store._state.tasks)} tasks, {len(store._state.audit)} audit entries")
        return store

    @classmethod
    def _from_seed(cls, backend: Backend) -> "BoardStore":
        store = cls(backend, seed_state())
        store._persist()
        return store

    # ── reads ────────────────────────────────────────────────────

    @property
    def state(self) -> BoardState:
        with self._lock:
            return self._state

    @property
    def tasks(self) -> List[Task]:
        return list(self.state.tasks)

    @property
    def audit(self) -> List[AuditEntry]:
        return list(self.state.audit)

    @property
    def review_mode(self) -> bool:
        return self.state.review_mode

    def get(self, task_id: str) -> Optional[Task]:
        return self.state.get(task_id)

    def export_state(self) -> dict:
        return self.state.to_dict()

    def export_json(self) -> str:
        return self.state.to_json(indent=2)

    # ── mutations ────────────────────────────────────────────────

    def _apply(self, command: Callable[..., mutations.MutationResult], *args) -> Optional[AuditEntry]:
        """Run one pure command atomically; persist only when state changed."""
        with self._lock:
            new_state, entry = command(self._state, *args)
            if new_state is self._state:
                logger.debug(f"{command.__name__}{args[:1]}: no change")
                return None
            self._state = new_state
            self._persist()
            return entry

    def create_task(self, data: CreateTaskInput) -> Task:
        """Create a task and return it. Invalid input raises ValueError."""
        entry = self._apply(mutations.create_task, data)
        return self.get(entry.task_id)

    def update_task(self, task_id: str, data: UpdateTaskInput) -> Optional[AuditEntry]:
        return self._apply(mutations.update_task, task_id, data)

    def delete_task(self, task_id: str) -> Optional[AuditEntry]:
        return self._apply(mutations.delete_task, task_id)

    def move_task(self, task_id: str, new_state: Union[TaskState, str]) -> Optional[AuditEntry]:
        return self._apply(mutations.move_task, task_id, new_state)

    def set_review_mode(self, value: bool) -> None:
        with self._lock:
            if self._state.review_mode == bool(value):
                return
            self._state, _ = mutations.set_review_mode(self._state, value)
            self._persist()

    # ── import ───────────────────────────────────────────────────

    def import_state(self, raw: Any, existing_ids: Optional[Iterable[str]] = None) -> ImportResult:
        """
        Validate and install an external snapshot.

        One UPDATE entry per reassigned id is prepended to the imported
        audit log. A rejected import leaves the current board untouched.
        """
        with self._lock:
            if existing_ids is None:
                existing_ids = self._state.task_ids()
            result = reconcile_import(raw, existing_ids)
            if not result.ok:
                return result

            audit = list(result.state.audit)
            for replacement in result.id_replacements:
                audit.insert(0, mutations.id_replacement_entry(replacement.old_id, replacement.new_id))

            result.state.audit = audit
            self._state = result.state
            self._persist()
            logger.info(
                f"Imported board: {len(self._state.tasks)} tasks, "
                f"{len(result.id_replacements)} id(s) reassigned"
            )
            return result

    def import_json(self, raw: Union[bytes, str]) -> ImportResult:
        """Decode raw JSON then import it; malformed input is a single error."""
        try:
            decoded = _decode(raw)
        except ValueError:
            return ImportResult(ok=False, errors=[ValidationIssue("", INVALID_JSON_MESSAGE)])
        return self.import_state(decoded)

    # ── persistence ──────────────────────────────────────────────

    def _persist(self) -> None:
        self.backend.save(self._state.to_json().encode("utf-8"))
