"""
Structural validation of untrusted board data (imports, persisted snapshots).

validate_board() walks the whole value and collects every violation in
field-declaration order; it never raises. On success the result carries a
fully typed BoardState built from the validated data.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .schema import (
    ACTOR_LABEL,
    AuditAction,
    AuditEntry,
    BoardState,
    Priority,
    Task,
    TaskState,
    parse_timestamp,
)


UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
MIN_TITLE_LENGTH = 3
SCORE_RANGE = (0, 10)


@dataclass(frozen=True)
class ValidationIssue:
    """One schema violation: dotted field path plus a readable reason."""
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass
class ValidationResult:
    """Tagged result: ok + state, or not ok + the full list of issues."""
    ok: bool
    state: Optional[BoardState] = None
    errors: List[ValidationIssue] = field(default_factory=list)

    def messages(self) -> List[str]:
        return [str(issue) for issue in self.errors]


def _join(*parts: Any) -> str:
    return ".".join(str(p) for p in parts if p != "")


def is_integral(value: Any) -> bool:
    """Whole number, with ``45.0`` accepted and booleans rejected."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    # json.loads accepts NaN and Infinity
    return not isinstance(value, float) or math.isfinite(value)


class _Collector:
    """Accumulates issues for a single validation pass."""

    def __init__(self):
        self.issues: List[ValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self.issues.append(ValidationIssue(path, message))

    # ── field checks ─────────────────────────────────────────────
    # Each returns True when the value passed, so callers can skip
    # dependent checks without stopping the walk.

    def uuid(self, data: Dict[str, Any], key: str, path: str) -> bool:
        value = data.get(key)
        if key not in data:
            self.add(_join(path, key), "Required")
            return False
        if not isinstance(value, str):
            self.add(_join(path, key), f"Expected string, received {_type_name(value)}")
            return False
        if not UUID_PATTERN.match(value):
            self.add(_join(path, key), "Invalid uuid")
            return False
        return True

    def string(self, data: Dict[str, Any], key: str, path: str, optional: bool = False) -> bool:
        if key not in data or data[key] is None:
            if optional:
                return True
            self.add(_join(path, key), "Required")
            return False
        value = data[key]
        if not isinstance(value, str):
            self.add(_join(path, key), f"Expected string, received {_type_name(value)}")
            return False
        return True

    def timestamp(self, data: Dict[str, Any], key: str, path: str, optional: bool = False) -> bool:
        if not self.string(data, key, path, optional):
            return False
        value = data.get(key)
        if value is None:
            return True
        if parse_timestamp(value) is None:
            self.add(_join(path, key), f"{key} must be an ISO date-time")
            return False
        return True

    def choice(self, data: Dict[str, Any], key: str, path: str, allowed: List[str]) -> bool:
        if key not in data:
            self.add(_join(path, key), "Required")
            return False
        value = data[key]
        if not isinstance(value, str) or value not in allowed:
            self.add(
                _join(path, key),
                f"Invalid enum value. Expected {' | '.join(repr(a) for a in allowed)}, received {value!r}",
            )
            return False
        return True


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _validate_task(raw: Any, path: str, out: _Collector) -> Optional[Task]:
    if not isinstance(raw, dict):
        out.add(path, f"Expected object, received {_type_name(raw)}")
        return None

    before = len(out.issues)

    out.uuid(raw, "id", path)

    if out.string(raw, "title", path) and len(raw["title"]) < MIN_TITLE_LENGTH:
        out.add(_join(path, "title"), f"String must contain at least {MIN_TITLE_LENGTH} character(s)")

    out.string(raw, "description", path, optional=True)
    out.choice(raw, "priority", path, Priority.values())

    tags = raw.get("tags")
    if "tags" not in raw:
        out.add(_join(path, "tags"), "Required")
    elif not isinstance(tags, list):
        out.add(_join(path, "tags"), f"Expected array, received {_type_name(tags)}")
    else:
        for i, tag in enumerate(tags):
            if not isinstance(tag, str):
                out.add(_join(path, "tags", i), f"Expected string, received {_type_name(tag)}")

    estimate = raw.get("estimateMinutes")
    if "estimateMinutes" not in raw:
        out.add(_join(path, "estimateMinutes"), "Required")
    elif not _is_number(estimate):
        out.add(_join(path, "estimateMinutes"), f"Expected number, received {_type_name(estimate)}")
    elif not _is_finite(estimate):
        out.add(_join(path, "estimateMinutes"), "Number must be finite")
    elif not is_integral(estimate):
        out.add(_join(path, "estimateMinutes"), "Expected integer, received float")
    elif estimate < 0:
        out.add(_join(path, "estimateMinutes"), "Number must be greater than or equal to 0")

    out.timestamp(raw, "createdAt", path)
    out.timestamp(raw, "dueAt", path, optional=True)
    out.choice(raw, "state", path, TaskState.values())
    out.string(raw, "reviewerNote", path, optional=True)

    score = raw.get("score")
    if score is not None:
        low, high = SCORE_RANGE
        if not _is_number(score):
            out.add(_join(path, "score"), f"Expected number, received {_type_name(score)}")
        elif not _is_finite(score):
            out.add(_join(path, "score"), "Number must be finite")
        elif score < low:
            out.add(_join(path, "score"), f"Number must be greater than or equal to {low}")
        elif score > high:
            out.add(_join(path, "score"), f"Number must be less than or equal to {high}")

    out.string(raw, "scoreComment", path, optional=True)

    if len(out.issues) > before:
        return None

    data = dict(raw)
    data["estimateMinutes"] = int(estimate)
    return Task.from_dict(data)


def _validate_audit_entry(raw: Any, path: str, out: _Collector) -> Optional[AuditEntry]:
    if not isinstance(raw, dict):
        out.add(path, f"Expected object, received {_type_name(raw)}")
        return None

    before = len(out.issues)

    out.uuid(raw, "id", path)
    out.timestamp(raw, "timestamp", path)
    out.choice(raw, "action", path, AuditAction.values())
    out.string(raw, "taskId", path)

    diff = raw.get("diff")
    if "diff" not in raw:
        out.add(_join(path, "diff"), "Required")
    elif not isinstance(diff, dict):
        out.add(_join(path, "diff"), f"Expected object, received {_type_name(diff)}")
    else:
        for name, change in diff.items():
            if not isinstance(change, dict):
                out.add(_join(path, "diff", name), f"Expected object, received {_type_name(change)}")

    label = raw.get("actorLabel")
    if label != ACTOR_LABEL:
        out.add(_join(path, "actorLabel"), f"Invalid literal value, expected {ACTOR_LABEL!r}")

    if len(out.issues) > before:
        return None

    entry = dict(raw)
    entry["diff"] = {
        name: {"before": change.get("before"), "after": change.get("after")}
        for name, change in diff.items()
    }
    return AuditEntry.from_dict(entry)


def validate_task(value: Any) -> List[ValidationIssue]:
    """Issues for a single serialized task, with paths relative to the task."""
    out = _Collector()
    _validate_task(value, "", out)
    return out.issues


def validate_board(value: Any) -> ValidationResult:
    """Validate an arbitrary decoded value as a full board snapshot."""
    out = _Collector()

    if not isinstance(value, dict):
        out.add("", f"Expected object, received {_type_name(value)}")
        return ValidationResult(ok=False, errors=out.issues)

    tasks: List[Task] = []
    raw_tasks = value.get("tasks")
    if "tasks" not in value:
        out.add("tasks", "Required")
    elif not isinstance(raw_tasks, list):
        out.add("tasks", f"Expected array, received {_type_name(raw_tasks)}")
    else:
        for i, raw in enumerate(raw_tasks):
            task = _validate_task(raw, _join("tasks", i), out)
            if task is not None:
                tasks.append(task)

    audit: List[AuditEntry] = []
    raw_audit = value.get("audit")
    if "audit" not in value:
        out.add("audit", "Required")
    elif not isinstance(raw_audit, list):
        out.add("audit", f"Expected array, received {_type_name(raw_audit)}")
    else:
        for i, raw in enumerate(raw_audit):
            entry = _validate_audit_entry(raw, _join("audit", i), out)
            if entry is not None:
                audit.append(entry)

    review_mode = value.get("reviewMode")
    if "reviewMode" not in value:
        out.add("reviewMode", "Required")
    elif not isinstance(review_mode, bool):
        out.add("reviewMode", f"Expected boolean, received {_type_name(review_mode)}")

    if out.issues:
        return ValidationResult(ok=False, errors=out.issues)

    return ValidationResult(
        ok=True,
        state=BoardState(tasks=tasks, audit=audit, review_mode=review_mode),
    )
