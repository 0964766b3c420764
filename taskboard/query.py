"""
Search query language for the task board.

Syntax (whitespace-separated tokens, case-insensitive prefixes):
  tag:<name>          task must carry the tag (repeatable, all must match)
  p:low|medium|high   exact priority
  due:overdue|week    due date before now / within the next 7 days
  est:[op]<minutes>   estimate comparison, op in < <= > >= = (default =)
  anything else       free text, matched against title + description

Parsing never fails: a token with a known prefix but an invalid value
(e.g. "p:urgent") is kept as free text.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Sequence

from .schema import Priority, Task, parse_timestamp


DUE_FILTERS = ("overdue", "week")
ESTIMATE_PATTERN = re.compile(r"^(<=|>=|<|>|=)?(\d+)$")
WEEK = timedelta(days=7)


@dataclass(frozen=True)
class EstimateFilter:
    comparator: str   # "<" | "<=" | ">" | ">=" | "="
    threshold: int

    def matches(self, minutes: int) -> bool:
        if self.comparator == "<":
            return minutes < self.threshold
        if self.comparator == "<=":
            return minutes <= self.threshold
        if self.comparator == ">":
            return minutes > self.threshold
        if self.comparator == ">=":
            return minutes >= self.threshold
        return minutes == self.threshold


@dataclass
class QueryFilter:
    """Structured form of a search string."""
    text: str = ""                            # free-text terms, original casing
    tags: List[str] = field(default_factory=list)
    priority: Optional[Priority] = None
    due: Optional[str] = None                 # "overdue" | "week"
    estimate: Optional[EstimateFilter] = None

    @property
    def text_tokens(self) -> List[str]:
        return self.text.strip().lower().split()

    def is_empty(self) -> bool:
        return (
            not self.text_tokens
            and not self.tags
            and self.priority is None
            and self.due is None
            and self.estimate is None
        )


def parse_query(text: str) -> QueryFilter:
    """Turn a free-text search string into a QueryFilter."""
    query = QueryFilter()
    free_text: List[str] = []

    for token in (text or "").split():
        lower = token.lower()

        if lower.startswith("tag:"):
            tag = lower[len("tag:"):]
            if tag:
                query.tags.append(tag)
            continue

        if lower.startswith("p:"):
            value = lower[len("p:"):]
            if Priority.is_valid(value):
                query.priority = Priority(value)
                continue

        if lower.startswith("due:"):
            value = lower[len("due:"):]
            if value in DUE_FILTERS:
                query.due = value
                continue

        if lower.startswith("est:"):
            match = ESTIMATE_PATTERN.match(lower[len("est:"):])
            if match:
                query.estimate = EstimateFilter(
                    comparator=match.group(1) or "=",
                    threshold=int(match.group(2)),
                )
                continue

        free_text.append(token)

    query.text = " ".join(free_text)
    return query


def _matches_due(task: Task, due: str, now: datetime) -> bool:
    due_at = parse_timestamp(task.due_at)
    if due_at is None:
        return False
    if due == "overdue":
        return due_at < now
    return now <= due_at <= now + WEEK


def filter_tasks(
    tasks: Sequence[Task],
    query: QueryFilter,
    now: Optional[datetime] = None,
) -> List[Task]:
    """
    Return the tasks matching every active clause of ``query``, in input order.

    ``now`` is only consulted by the due clause; defaults to the current UTC time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    text_tokens = query.text_tokens
    wanted_tags = [tag.lower() for tag in query.tags]
    matched: List[Task] = []

    for task in tasks:
        if text_tokens:
            haystack = f"{task.title} {task.description or ''}".lower()
            if not all(token in haystack for token in text_tokens):
                continue

        if wanted_tags:
            task_tags = {tag.strip().lower() for tag in task.tags}
            if not all(tag in task_tags for tag in wanted_tags):
                continue

        if query.priority is not None and task.priority != query.priority:
            continue

        if query.due and not _matches_due(task, query.due, now):
            continue

        if query.estimate and not query.estimate.matches(task.estimate_minutes):
            continue

        matched.append(task)

    return matched


def search(tasks: Sequence[Task], text: str, now: Optional[datetime] = None) -> List[Task]:
    """Convenience: parse ``text`` and filter ``tasks`` in one call."""
    return filter_tasks(tasks, parse_query(text), now=now)
