"""
Field-level diff between two versions of a task.

Only mutable fields are compared; id and createdAt never change after
creation. Values are compared in their serialized form, so lists and
nested values compare structurally.
"""
from typing import Any, Dict, Tuple

from .schema import Task


# Serialized field names, in the order they appear in a diff
DIFF_FIELDS: Tuple[str, ...] = (
    "title",
    "description",
    "priority",
    "tags",
    "estimateMinutes",
    "dueAt",
    "state",
    "reviewerNote",
    "score",
    "scoreComment",
)


def diff_tasks(before: Task, after: Task) -> Dict[str, Dict[str, Any]]:
    """Return {field: {"before": old, "after": new}} for every changed field."""
    old = before.to_dict()
    new = after.to_dict()
    changes: Dict[str, Dict[str, Any]] = {}
    for name in DIFF_FIELDS:
        old_value = old.get(name)
        new_value = new.get(name)
        if old_value != new_value:
            changes[name] = {"before": old_value, "after": new_value}
    return changes
