"""
Task board schema: tasks, audit entries and the board aggregate.

Serialized keys are camelCase (the persisted / exported JSON format);
Python attributes are snake_case.

Audit entries are immutable and the audit log is newest-first.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import json
import uuid


# Fixed label recorded on every audit entry (single-actor board)
ACTOR_LABEL = "Alumno/a"


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return value in cls.values()


class TaskState(Enum):
    """Board columns a task can sit in."""
    TODO = "todo"
    DOING = "doing"
    DONE = "done"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return value in cls.values()


class AuditAction(Enum):
    """Mutations that leave a trace in the audit log."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MOVE = "MOVE"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return value in cls.values()


def to_iso(moment: datetime) -> str:
    """ISO-8601 with millisecond precision, UTC rendered as ``...Z``."""
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now() -> str:
    return to_iso(datetime.now(timezone.utc))


def new_id() -> str:
    return str(uuid.uuid4())


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or date-time string into an aware datetime.

    Naive values are taken as UTC. Returns None for anything unparseable
    (including non-string input).
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Task:
    """A unit of trackable work."""

    # Identity
    id: str
    title: str

    # Classification
    priority: Priority = Priority.MEDIUM
    tags: List[str] = field(default_factory=list)
    estimate_minutes: int = 0

    # Timestamps (ISO strings, kept verbatim as persisted)
    created_at: str = field(default_factory=utc_now)
    due_at: Optional[str] = None

    # State
    state: TaskState = TaskState.TODO
    description: Optional[str] = None

    # Reviewer-only fields (carried regardless of review mode)
    reviewer_note: Optional[str] = None
    score: Optional[float] = None
    score_comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire format, omitting absent optionals."""
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "estimateMinutes": self.estimate_minutes,
            "createdAt": self.created_at,
            "dueAt": self.due_at,
            "state": self.state.value,
            "reviewerNote": self.reviewer_note,
            "score": self.score,
            "scoreComment": self.score_comment,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize from an already-validated dict."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description"),
            priority=Priority(data["priority"]),
            tags=list(data.get("tags", [])),
            estimate_minutes=data["estimateMinutes"],
            created_at=data["createdAt"],
            due_at=data.get("dueAt"),
            state=TaskState(data["state"]),
            reviewer_note=data.get("reviewerNote"),
            score=data.get("score"),
            score_comment=data.get("scoreComment"),
        )


@dataclass(frozen=True)
class AuditEntry:
    """One accepted mutation, with its field-level diff."""
    id: str
    timestamp: str
    action: AuditAction
    task_id: str
    diff: Dict[str, Dict[str, Any]]
    actor_label: str = ACTOR_LABEL

    @classmethod
    def make(cls, action: AuditAction, task_id: str, diff: Dict[str, Dict[str, Any]]) -> "AuditEntry":
        """Factory that stamps a fresh id and the current time."""
        return cls(
            id=new_id(),
            timestamp=utc_now(),
            action=action,
            task_id=task_id,
            diff=diff,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action": self.action.value,
            "taskId": self.task_id,
            "diff": self.diff,
            "actorLabel": self.actor_label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditEntry":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action=AuditAction(data["action"]),
            task_id=data["taskId"],
            diff={name: dict(change) for name, change in data["diff"].items()},
            actor_label=data["actorLabel"],
        )


@dataclass
class BoardState:
    """Aggregate root: tasks, audit log (newest first) and the review flag."""
    tasks: List[Task] = field(default_factory=list)
    audit: List[AuditEntry] = field(default_factory=list)
    review_mode: bool = False

    def get(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def task_ids(self) -> List[str]:
        return [task.id for task in self.tasks]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "audit": [entry.to_dict() for entry in self.audit],
            "reviewMode": self.review_mode,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
