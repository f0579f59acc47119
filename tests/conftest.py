"""Shared fixtures for memory graph tests."""

from datetime import datetime, timedelta, timezone

import pytest

from memory_graph.manager import KnowledgeGraphManager
from memory_graph.persistence import GraphPersistence


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current += timedelta(seconds=1)
        return now


@pytest.fixture
def memory_path(tmp_path):
    return tmp_path / "memory.jsonl"


@pytest.fixture
def persistence(memory_path):
    return GraphPersistence(memory_path, retries=0)


@pytest.fixture
def manager(persistence):
    return KnowledgeGraphManager(persistence, clock=TickingClock())


def entity(name, entity_type="thing", observations=None, **extra):
    data = {"name": name, "entityType": entity_type, "observations": list(observations or [])}
    data.update(extra)
    return data


def relation(source, target, relation_type="knows"):
    return {"from": source, "to": target, "relationType": relation_type}
