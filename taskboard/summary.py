"""
Read-only views over a board: audit filtering, plain-text audit summary,
review statistics and per-column counts.
"""
from typing import Any, Dict, List, Optional, Sequence

from .schema import AuditAction, AuditEntry, Task, TaskState


UNTITLED = "Sin título"


def filter_audit(
    entries: Sequence[AuditEntry],
    action: Optional[str] = None,
    task_id: Optional[str] = None,
) -> List[AuditEntry]:
    """Filter by exact action (None/"all" = any) and task-id substring."""
    needle = (task_id or "").strip()
    matched = []
    for entry in entries:
        if action and action != "all" and entry.action.value != action:
            continue
        if needle and needle not in entry.task_id:
            continue
        matched.append(entry)
    return matched


def audit_summary(entries: Sequence[AuditEntry], tasks: Sequence[Task], recent: int = 5) -> str:
    """Format a copy-pasteable summary of (already filtered) audit entries."""
    titles = {task.id: task.title for task in tasks}
    counts = {action.value: 0 for action in AuditAction}
    for entry in entries:
        counts[entry.action.value] += 1

    lines = [
        "Resumen de auditoría",
        f"Total eventos: {len(entries)}",
        " | ".join(f"{action}: {count}" for action, count in counts.items()),
        "Últimos eventos:",
    ]
    for entry in list(entries)[:recent]:
        title = titles.get(entry.task_id, UNTITLED)
        lines.append(f"{entry.timestamp} - {entry.action.value} - {entry.task_id} - {title}")
    return "\n".join(lines)


def review_stats(tasks: Sequence[Task]) -> Dict[str, Any]:
    """Average score of reviewed tasks and how many are still unscored."""
    scored = [task.score for task in tasks if task.score is not None]
    average = sum(scored) / len(scored) if scored else 0.0
    return {
        "average": round(average, 1),
        "scored": len(scored),
        "pending": len(tasks) - len(scored),
    }


def board_stats(tasks: Sequence[Task]) -> Dict[str, Any]:
    """Task counts grouped by state and priority."""
    by_state = {state.value: 0 for state in TaskState}
    by_priority: Dict[str, int] = {}
    for task in tasks:
        by_state[task.state.value] += 1
        by_priority[task.priority.value] = by_priority.get(task.priority.value, 0) + 1
    return {
        "total": len(tasks),
        "by_state": by_state,
        "by_priority": by_priority,
    }
