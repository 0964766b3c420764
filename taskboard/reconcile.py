"""
Import reconciliation: validate an external snapshot and de-duplicate task ids.

Collisions are only checked within the imported batch; the first task with
a given id keeps it and every repeat gets a fresh uuid.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Optional, Set

from .schema import BoardState, new_id
from .validator import ValidationIssue, validate_board

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdReplacement:
    old_id: str
    new_id: str

    def to_dict(self):
        return {"oldId": self.old_id, "newId": self.new_id}


@dataclass
class ImportResult:
    """Tagged result of an import attempt."""
    ok: bool
    state: Optional[BoardState] = None
    id_replacements: List[IdReplacement] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)

    def messages(self) -> List[str]:
        return [str(issue) for issue in self.errors]

    def to_dict(self):
        if not self.ok:
            return {"ok": False, "errors": self.messages()}
        return {
            "ok": True,
            "state": self.state.to_dict(),
            "idReplacements": [r.to_dict() for r in self.id_replacements],
        }


def reconcile_import(raw: Any, existing_ids: Optional[Iterable[str]] = None) -> ImportResult:
    """
    Validate ``raw`` and reassign duplicate task ids within the batch.

    ``existing_ids`` (ids already on the current board) is accepted for
    callers that have it but is not consulted.
    """
    result = validate_board(raw)
    if not result.ok:
        logger.warning(f"Import rejected with {len(result.errors)} validation error(s)")
        return ImportResult(ok=False, errors=result.errors)

    seen: Set[str] = set()
    replacements: List[IdReplacement] = []
    tasks = []
    for task in result.state.tasks:
        if task.id not in seen:
            seen.add(task.id)
            tasks.append(task)
            continue
        fresh = new_id()
        replacements.append(IdReplacement(old_id=task.id, new_id=fresh))
        tasks.append(replace(task, id=fresh))
        logger.info(f"Import: duplicate task id {task.id} reassigned to {fresh}")

    return ImportResult(
        ok=True,
        state=replace(result.state, tasks=tasks),
        id_replacements=replacements,
    )
