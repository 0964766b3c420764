"""
Board mutations as pure functions.

Each command takes the current BoardState and returns (new_state, entry).
When the command is a no-op (unknown task, empty diff, same column) the
original state object is returned unchanged together with entry=None.
The input state is never modified in place.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from .diff import diff_tasks
from .schema import (
    AuditAction,
    AuditEntry,
    BoardState,
    Priority,
    Task,
    TaskState,
    new_id,
    utc_now,
)
from .validator import is_integral, validate_task


MutationResult = Tuple[BoardState, Optional[AuditEntry]]


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim free text; blank becomes absent."""
    if not isinstance(value, str):
        return value
    value = value.strip()
    return value or None


def _coerce_priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    try:
        return Priority(value)
    except ValueError:
        raise ValueError(f"Invalid priority: {value!r}")


def _coerce_state(value: Any) -> TaskState:
    if isinstance(value, TaskState):
        return value
    try:
        return TaskState(value)
    except ValueError:
        raise ValueError(f"Invalid state: {value!r}")


def _coerce_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"tags must be a list: {value!r}")
    return list(value)


def _coerce_estimate(value: Any) -> int:
    if value is None:
        return 0
    if not is_integral(value):
        raise ValueError(f"estimateMinutes must be a whole number: {value!r}")
    return int(value)


def _check_task(task: Task) -> Task:
    """Refuse tasks that would fail validation when the board is reloaded."""
    issues = validate_task(task.to_dict())
    if issues:
        raise ValueError("; ".join(str(issue) for issue in issues))
    return task


@dataclass
class CreateTaskInput:
    """Payload for a new task (as supplied by a form or API client)."""
    title: str
    priority: Priority = Priority.MEDIUM
    tags: List[str] = field(default_factory=list)
    estimate_minutes: int = 0
    description: Optional[str] = None
    due_at: Optional[str] = None
    state: Optional[TaskState] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateTaskInput":
        state = data.get("state")
        return cls(
            title=data.get("title", ""),
            priority=_coerce_priority(data.get("priority", Priority.MEDIUM.value)),
            tags=_coerce_tags(data.get("tags")),
            estimate_minutes=_coerce_estimate(data.get("estimateMinutes", 0)),
            description=data.get("description"),
            due_at=data.get("dueAt"),
            state=_coerce_state(state) if state else None,
        )


@dataclass
class UpdateTaskInput:
    """Full replacement of a task's editable fields (state is not editable here)."""
    title: str
    priority: Priority = Priority.MEDIUM
    tags: List[str] = field(default_factory=list)
    estimate_minutes: int = 0
    description: Optional[str] = None
    due_at: Optional[str] = None
    reviewer_note: Optional[str] = None
    score: Optional[float] = None
    score_comment: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "UpdateTaskInput":
        """Start an edit from the current values of ``task``."""
        return cls(
            title=task.title,
            priority=task.priority,
            tags=list(task.tags),
            estimate_minutes=task.estimate_minutes,
            description=task.description,
            due_at=task.due_at,
            reviewer_note=task.reviewer_note,
            score=task.score,
            score_comment=task.score_comment,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateTaskInput":
        return cls(
            title=data.get("title", ""),
            priority=_coerce_priority(data.get("priority", Priority.MEDIUM.value)),
            tags=_coerce_tags(data.get("tags")),
            estimate_minutes=_coerce_estimate(data.get("estimateMinutes", 0)),
            description=data.get("description"),
            due_at=data.get("dueAt"),
            reviewer_note=data.get("reviewerNote"),
            score=data.get("score"),
            score_comment=data.get("scoreComment"),
        )


def create_task(state: BoardState, data: CreateTaskInput) -> MutationResult:
    """Append a new task; always produces a CREATE entry.

    Raises ValueError when the resulting task breaks the board schema.
    """
    task = _check_task(Task(
        id=new_id(),
        title=data.title,
        description=_clean(data.description),
        priority=_coerce_priority(data.priority),
        tags=list(data.tags),
        estimate_minutes=data.estimate_minutes,
        created_at=utc_now(),
        due_at=data.due_at or None,
        state=_coerce_state(data.state) if data.state else TaskState.TODO,
    ))
    entry = AuditEntry.make(
        AuditAction.CREATE,
        task.id,
        {"task": {"before": None, "after": task.to_dict()}},
    )
    new_state = replace(
        state,
        tasks=state.tasks + [task],
        audit=[entry] + state.audit,
    )
    return new_state, entry


def update_task(state: BoardState, task_id: str, data: UpdateTaskInput) -> MutationResult:
    """Replace editable fields of a task; no-op when missing or unchanged.

    Raises ValueError when the edited task breaks the board schema.
    """
    existing = state.get(task_id)
    if existing is None:
        return state, None

    updated = _check_task(replace(
        existing,
        title=data.title,
        description=_clean(data.description),
        priority=_coerce_priority(data.priority),
        tags=list(data.tags),
        estimate_minutes=data.estimate_minutes,
        due_at=data.due_at or None,
        reviewer_note=_clean(data.reviewer_note),
        score=data.score,
        score_comment=_clean(data.score_comment),
    ))

    changes = diff_tasks(existing, updated)
    if not changes:
        return state, None

    entry = AuditEntry.make(AuditAction.UPDATE, task_id, changes)
    new_state = replace(
        state,
        tasks=[updated if task.id == task_id else task for task in state.tasks],
        audit=[entry] + state.audit,
    )
    return new_state, entry


def delete_task(state: BoardState, task_id: str) -> MutationResult:
    """Remove a task; no-op when missing."""
    existing = state.get(task_id)
    if existing is None:
        return state, None

    entry = AuditEntry.make(
        AuditAction.DELETE,
        task_id,
        {"task": {"before": existing.to_dict(), "after": None}},
    )
    new_state = replace(
        state,
        tasks=[task for task in state.tasks if task.id != task_id],
        audit=[entry] + state.audit,
    )
    return new_state, entry


def move_task(state: BoardState, task_id: str, new_state_value: Any) -> MutationResult:
    """Move a task to another column; no-op when missing or already there."""
    target = _coerce_state(new_state_value)
    existing = state.get(task_id)
    if existing is None or existing.state == target:
        return state, None

    moved = replace(existing, state=target)
    entry = AuditEntry.make(
        AuditAction.MOVE,
        task_id,
        {"state": {"before": existing.state.value, "after": target.value}},
    )
    new_state = replace(
        state,
        tasks=[moved if task.id == task_id else task for task in state.tasks],
        audit=[entry] + state.audit,
    )
    return new_state, entry


def set_review_mode(state: BoardState, value: bool) -> MutationResult:
    """Replace the review flag. Never audited."""
    return replace(state, review_mode=bool(value)), None


def id_replacement_entry(old_id: str, new_id_value: str) -> AuditEntry:
    """Compensating UPDATE recorded when an import reassigns a task id."""
    return AuditEntry.make(
        AuditAction.UPDATE,
        new_id_value,
        {"id": {"before": old_id, "after": new_id_value}},
    )
