"""Shared test fixtures for the task board tests."""

import sys
from pathlib import Path

import pytest

# Ensure the project root (taskboard package, board_server) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.persistence import MemoryBackend
from taskboard.schema import BoardState
from taskboard.store import BoardStore


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    """Store over an empty board (no seed data)."""
    return BoardStore(backend, BoardState())


TASK_ID = "11111111-1111-4111-8111-111111111111"
AUDIT_ID = "22222222-2222-4222-8222-222222222222"


@pytest.fixture
def task_dict():
    """Factory for valid serialized tasks; keyword overrides replace fields."""
    def make(**overrides):
        data = {
            "id": TASK_ID,
            "title": "Review quarterly report",
            "description": "Check the numbers",
            "priority": "medium",
            "tags": ["finance", "report"],
            "estimateMinutes": 30,
            "createdAt": "2025-01-10T09:00:00.000Z",
            "state": "todo",
        }
        data.update(overrides)
        return {k: v for k, v in data.items() if v is not ...}
    return make


@pytest.fixture
def audit_dict():
    """Factory for valid serialized audit entries."""
    def make(**overrides):
        data = {
            "id": AUDIT_ID,
            "timestamp": "2025-01-10T09:05:00.000Z",
            "action": "MOVE",
            "taskId": TASK_ID,
            "diff": {"state": {"before": "todo", "after": "doing"}},
            "actorLabel": "Alumno/a",
        }
        data.update(overrides)
        return {k: v for k, v in data.items() if v is not ...}
    return make
