"""
Seed dataset used when no valid snapshot exists yet.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .schema import BoardState, Priority, Task, TaskState, new_id, to_iso


def seed_tasks(now: Optional[datetime] = None) -> List[Task]:
    """Five sample trading-desk tasks, due dates relative to ``now``."""
    now = now or datetime.now(timezone.utc)
    created = to_iso(now)

    def days(n: int) -> str:
        return to_iso(now + timedelta(days=n))

    return [
        Task(
            id=new_id(),
            title="Rebalanceo diario de portafolio LATAM",
            description="Ajustar posiciones en ADRs con volatilidad > 2.5 y revisar stop-loss.",
            priority=Priority.HIGH,
            tags=["broker", "riesgo", "latam"],
            estimate_minutes=90,
            created_at=created,
            due_at=days(1),
            state=TaskState.TODO,
        ),
        Task(
            id=new_id(),
            title="Validar señales de arbitraje cripto",
            description="Cruzar spreads entre exchanges y registrar gaps > 1.2%",
            priority=Priority.MEDIUM,
            tags=["cripto", "arbitraje"],
            estimate_minutes=45,
            created_at=created,
            due_at=days(3),
            state=TaskState.DOING,
        ),
        Task(
            id=new_id(),
            title="Reporte semanal de liquidez",
            description="Comparar cash vs. colateral y preparar resumen ejecutivo.",
            priority=Priority.LOW,
            tags=["reporting", "liquidez"],
            estimate_minutes=120,
            created_at=created,
            due_at=days(5),
            state=TaskState.TODO,
        ),
        Task(
            id=new_id(),
            title="Auditar operaciones fuera de ventana",
            description="Verificar ejecuciones fuera del horario aprobado.",
            priority=Priority.HIGH,
            tags=["compliance", "auditoria"],
            estimate_minutes=60,
            created_at=created,
            due_at=days(-1),
            state=TaskState.DOING,
        ),
        Task(
            id=new_id(),
            title="Cerrar posiciones de riesgo residual",
            description="Vender posiciones con correlación inversa baja.",
            priority=Priority.MEDIUM,
            tags=["riesgo", "cierre"],
            estimate_minutes=75,
            created_at=created,
            due_at=days(2),
            state=TaskState.DONE,
        ),
    ]


def seed_state(now: Optional[datetime] = None) -> BoardState:
    return BoardState(tasks=seed_tasks(now), audit=[], review_mode=False)
