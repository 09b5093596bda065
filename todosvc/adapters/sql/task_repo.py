from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator
import sqlalchemy as db
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from todosvc.ports.task_repository import TaskRepository
from todosvc.ports.clock import Clock
from todosvc.ports.context import Context, BACKGROUND
from todosvc.ports.id_provider import IdProvider
from todosvc.domain.task import Task, TaskId, as_utc
from todosvc.domain.pagination import normalize_page, page_offset
from todosvc.domain.errors import StorageError, TaskNotFoundError
from todosvc.adapters.sql.schema import tasks
from todosvc.adapters.system.clock_system import SystemClock
from todosvc.adapters.system.id_provider_uuid import UuidIdProvider


class SqlTaskRepository(TaskRepository):
    def __init__(self, engine: Engine, clock: Clock | None = None, ids: IdProvider | None = None) -> None:
        """
        engine: silnik SQLAlchemy (pula połączeń konfigurowana w adapters/sql/engine.py)
        """
        self.engine = engine
        self.tasks = tasks
        self.clock = clock or SystemClock()
        self.ids = ids or UuidIdProvider()

    def _live(self):
        # jedyny predykat soft delete - używany przez każdą ścieżkę odczytu i zapisu
        return self.tasks.c.deleted_at.is_(None)

    @contextmanager
    def _begin(self, ctx: Context, operation: str) -> Iterator[Connection]:
        remaining = ctx.time_remaining()
        if not ctx.is_active() or (remaining is not None and remaining <= 0):
            raise StorageError(operation, TimeoutError("request cancelled or deadline exceeded"))
        try:
            with self.engine.begin() as conn:
                if remaining is not None and conn.dialect.name == "postgresql":
                    conn.exec_driver_sql(f"SET LOCAL statement_timeout = {max(1, int(remaining * 1000))}")
                yield conn
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(operation, e) from e

    def _to_row(self, task: Task) -> dict:
        return {
            'task_id': str(task.task_id),
            'title': task.title,
            'description': task.description,
            'completed': task.completed,
            'created_at': task.created_at,
            'updated_at': task.updated_at,
            'deleted_at': task.deleted_at,
        }

    def _from_row(self, row) -> Task:
        return Task(
            task_id=TaskId(row["task_id"]),
            title=row["title"],
            description=row["description"] or "",
            completed=bool(row["completed"]),
            created_at=as_utc(row["created_at"]),
            updated_at=as_utc(row["updated_at"]),
            deleted_at=as_utc(row["deleted_at"]),
        )

    def create(self, task: Task, *, ctx: Context = BACKGROUND) -> Task:
        now = self.clock.now()
        stored = replace(
            task,
            task_id=task.task_id or TaskId(self.ids.new_id()),
            created_at=now,
            updated_at=now,
            deleted_at=None,
        )
        with self._begin(ctx, "create task") as conn:
            conn.execute(db.insert(self.tasks).values(**self._to_row(stored)))
        return stored

    def get_by_id(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> Task:
        stmt = db.select(self.tasks).where(self.tasks.c.task_id == str(task_id), self._live())
        with self._begin(ctx, "get by id") as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            raise TaskNotFoundError(task_id)
        return self._from_row(row)

    def list(self, page: int, page_size: int, *, ctx: Context = BACKGROUND) -> tuple[list[Task], int]:
        page, page_size = normalize_page(page, page_size)

        count_stmt = db.select(db.func.count()).select_from(self.tasks).where(self._live())
        stmt = (
            db.select(self.tasks)
            .where(self._live())
            .order_by(self.tasks.c.created_at.desc(), self.tasks.c.task_id.desc())
            .limit(page_size)
            .offset(page_offset(page, page_size))
        )
        with self._begin(ctx, "list tasks") as conn:
            total = int(conn.execute(count_stmt).scalar_one())
            rows = conn.execute(stmt).mappings().all()
        return [self._from_row(r) for r in rows], total

    def update(self, task: Task, *, ctx: Context = BACKGROUND) -> Task:
        now = self.clock.now()
        match = (self.tasks.c.task_id == str(task.task_id), self._live())
        with self._begin(ctx, "update task") as conn:
            # updated_at liczone od zapisanego wiersza (blokada do końca transakcji)
            current = conn.execute(
                db.select(self.tasks).where(*match).with_for_update()
            ).mappings().first()
            if current is None:
                raise TaskNotFoundError(task.task_id)
            touched = self._from_row(current).touched(now)
            stmt = (
                db.update(self.tasks)
                .where(*match)
                .values(
                    title=task.title,
                    description=task.description,
                    completed=task.completed,
                    updated_at=touched.updated_at,
                )
            )
            result = conn.execute(stmt)
            if result.rowcount == 0:
                raise TaskNotFoundError(task.task_id)
            row = conn.execute(db.select(self.tasks).where(*match)).mappings().one()
        return self._from_row(row)

    def delete(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> None:
        stmt = (
            db.update(self.tasks)
            .where(self.tasks.c.task_id == str(task_id), self._live())
            .values(deleted_at=self.clock.now())
        )
        with self._begin(ctx, "delete task") as conn:
            conn.execute(stmt)
