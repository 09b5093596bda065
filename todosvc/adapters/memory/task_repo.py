from __future__ import annotations
from dataclasses import replace
from threading import Lock
from typing import Iterable
from todosvc.domain.task import Task, TaskId
from todosvc.domain.pagination import normalize_page, page_offset
from todosvc.domain.errors import StorageError, TaskNotFoundError
from todosvc.ports.clock import Clock
from todosvc.ports.context import Context, BACKGROUND
from todosvc.ports.id_provider import IdProvider
from todosvc.adapters.system.clock_system import SystemClock
from todosvc.adapters.system.id_provider_uuid import UuidIdProvider

### COMMENTS
# ==========================================================
# Adapter pamięciowy dla repozytorium zadań (adapters/memory/task_repo.py).
# ==========================================================
# Ten moduł zawiera implementację portu `TaskRepository` w pamięci.
#
# - Służy do testów serwisu/adapterów oraz komendy `demo` (bez trwałego zapisu).
# - Dane przechowywane są w słowniku `_data: dict[TaskId, Task]`, chronionym lockiem
#   (serwery HTTP/RPC obsługują żądania w wielu wątkach).
# - Semantyka identyczna jak w SqlTaskRepository:
#     * `create` -> nadaje id i czasy; kolizja id -> StorageError,
#     * `get_by_id`/`update` -> TaskNotFoundError dla brakującego lub usuniętego,
#     * `list` -> created_at DESC + tiebreaker task_id DESC, potem paginacja,
#     * `delete` -> soft delete, idempotentny.


class InMemoryTaskRepository:
    """
        Inicjalizuje repozytorium z opcjonalną kolekcją startowych zadań.
        :param initial: Iterable z obiektami Task do wstępnego załadowania (ostatni wygrywa).
        :param clock: Źródło czasu (domyślnie SystemClock).
        :param ids: Generator identyfikatorów (domyślnie UuidIdProvider).
    """
    def __init__(
        self,
        initial: Iterable[Task] | None = None,
        clock: Clock | None = None,
        ids: IdProvider | None = None,
    ) -> None:
        self._data: dict[TaskId, Task] = {}
        for t in (initial or []):
            self._data[t.task_id] = t
        self._lock = Lock()
        self.clock = clock or SystemClock()
        self.ids = ids or UuidIdProvider()

    def _check(self, ctx: Context, operation: str) -> None:
        remaining = ctx.time_remaining()
        if not ctx.is_active() or (remaining is not None and remaining <= 0):
            raise StorageError(operation, TimeoutError("request cancelled or deadline exceeded"))

    def _get_live(self, task_id: TaskId) -> Task:
        task = self._data.get(task_id)
        if task is None or not task.is_live:
            raise TaskNotFoundError(task_id)
        return task

    def create(self, task: Task, *, ctx: Context = BACKGROUND) -> Task:
        """
            Dodaje nowe zadanie do repozytorium.

            - Pusty `task_id` -> nadawany z `IdProvider`.
            - `created_at == updated_at == clock.now()`.
            - Kolizja identyfikatora to naruszenie ograniczenia -> `StorageError`.

            :return: Zapisany obiekt `Task`.
        """
        self._check(ctx, "create task")
        now = self.clock.now()
        stored = replace(
            task,
            task_id=task.task_id or TaskId(self.ids.new_id()),
            created_at=now,
            updated_at=now,
            deleted_at=None,
        )
        with self._lock:
            if stored.task_id in self._data:
                raise StorageError("create task", KeyError(f"duplicate task_id {stored.task_id}"))
            self._data[stored.task_id] = stored
        return stored

    def get_by_id(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> Task:
        self._check(ctx, "get by id")
        with self._lock:
            return self._get_live(task_id)

    def list(self, page: int, page_size: int, *, ctx: Context = BACKGROUND) -> tuple[list[Task], int]:
        """
        Zwraca stronę żywych zadań oraz ich łączną liczbę.

        - Normalizacja paginacji jak w każdym innym repozytorium (`normalize_page`).
        - Strona poza zakresem -> pusta lista, bez błędu.
        """
        self._check(ctx, "list tasks")
        page, page_size = normalize_page(page, page_size)
        with self._lock:
            live = [t for t in self._data.values() if t.is_live]

        live.sort(key=lambda t: (t.created_at, t.task_id), reverse=True)
        offset = page_offset(page, page_size)
        return live[offset : offset + page_size], len(live)

    def update(self, task: Task, *, ctx: Context = BACKGROUND) -> Task:
        """
            Nadpisuje title/description/completed żywego rekordu i odświeża `updated_at`.

            :raises TaskNotFoundError: Gdy rekord nie istnieje lub jest usunięty.
            :return: Zapisany stan rekordu.
        """
        self._check(ctx, "update task")
        now = self.clock.now()
        with self._lock:
            current = self._get_live(task.task_id)
            stored = replace(
                current,
                title=task.title,
                description=task.description,
                completed=task.completed,
            ).touched(now)  # od zapisanego updated_at, nie od kopii wywołującego
            self._data[stored.task_id] = stored
        return stored

    def delete(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> None:
        self._check(ctx, "delete task")
        now = self.clock.now()
        with self._lock:
            task = self._data.get(task_id)
            if task is not None and task.is_live:
                self._data[task_id] = replace(task, deleted_at=now)
