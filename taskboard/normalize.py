"""
Optional accent normalization for Spanish task text.

Rewrites known unaccented word forms (e.g. "auditoria" -> "auditoría")
as whole words. A capitalized match yields a capitalized replacement;
the rest of the word takes the table's casing.
"""
import re
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from .schema import BoardState, Task


ACCENT_TABLE: Dict[str, str] = {
    "analisis": "análisis",
    "auditoria": "auditoría",
    "comision": "comisión",
    "correlacion": "correlación",
    "cotizacion": "cotización",
    "critico": "crítico",
    "dia": "día",
    "ejecucion": "ejecución",
    "gestion": "gestión",
    "informacion": "información",
    "metrica": "métrica",
    "numero": "número",
    "operacion": "operación",
    "posicion": "posición",
    "proxima": "próxima",
    "rapido": "rápido",
    "revision": "revisión",
    "senal": "señal",
    "senales": "señales",
    "tambien": "también",
    "validacion": "validación",
}

_WORD_RE = re.compile(
    r"\b(" + "|".join(sorted(ACCENT_TABLE, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)


def _substitute(match: "re.Match[str]") -> str:
    word = match.group(0)
    replacement = ACCENT_TABLE[word.lower()]
    if word[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


def normalize_text(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return _WORD_RE.sub(_substitute, value)


def normalize_task(task: Task) -> Task:
    return replace(
        task,
        title=normalize_text(task.title),
        description=normalize_text(task.description),
        tags=[normalize_text(tag) for tag in task.tags],
        reviewer_note=normalize_text(task.reviewer_note),
        score_comment=normalize_text(task.score_comment),
    )


def normalize_board(state: BoardState) -> Tuple[BoardState, bool]:
    """Normalize every task; returns (state, changed)."""
    tasks: List[Task] = []
    changed = False
    for task in state.tasks:
        normalized = normalize_task(task)
        if normalized != task:
            changed = True
        tasks.append(normalized)
    if not changed:
        return state, False
    return replace(state, tasks=tasks), True
