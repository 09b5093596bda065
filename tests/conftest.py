from __future__ import annotations
from datetime import datetime, timedelta, timezone
import pytest
import sqlalchemy as db
from todosvc.adapters.memory.task_repo import InMemoryTaskRepository
from todosvc.adapters.sql.schema import create_schema
from todosvc.adapters.sql.task_repo import SqlTaskRepository
from todosvc.services.task_service import TaskService


class FakeIdProvider:
    def __init__(self):
        self.counter = 0
    def new_id(self) -> str:
        self.counter += 1
        return f"id-{self.counter}"


class FakeClock:
    """Zegar testowy: każde `now()` przesuwa czas o `step` (domyślnie 1 s)."""
    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self.step = step
    def now(self) -> datetime:
        self.current = self.current + self.step
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ids() -> FakeIdProvider:
    return FakeIdProvider()


@pytest.fixture
def engine(tmp_path):
    """Silnik SQLite na świeżym pliku tymczasowym, ze schematem."""
    eng = db.create_engine(f"sqlite:///{tmp_path / 'tasks.db'}")
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def sql_repo(engine, clock, ids) -> SqlTaskRepository:
    return SqlTaskRepository(engine, clock=clock, ids=ids)


@pytest.fixture
def mem_repo(clock, ids) -> InMemoryTaskRepository:
    return InMemoryTaskRepository(clock=clock, ids=ids)


@pytest.fixture(params=["memory", "sql"])
def repo(request):
    """Ten sam kontrakt sprawdzany na obu implementacjach repozytorium."""
    return request.getfixturevalue(f"{'mem' if request.param == 'memory' else 'sql'}_repo")


@pytest.fixture
def service(repo) -> TaskService:
    return TaskService(repo)
