from __future__ import annotations
import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator
from todosvc.ports.task_repository import TaskRepository
from todosvc.ports.context import Context, BACKGROUND
from todosvc.domain.task import Task, TaskId, new_task
from todosvc.domain.errors import DomainError, StorageError

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Warstwa serwisowa (services/task_service.py) - przypadki użycia.
# ==========================================================
# Rola:
# - Orkiestracja logiki aplikacyjnej nad portem `TaskRepository`.
# - Sprawdzanie istnienia przed modyfikacją/usunięciem, wartości domyślne.
# - Jedyny wywołujący repozytorium; adaptery widzą tylko port `TaskUseCases`.
#
# Zasady:
# - Serwis NIE waliduje pól wymaganych (pusty title) - robią to adaptery wejściowe.
# - Błędy domenowe:
#     * TaskNotFoundError, StorageError -> przepuszczane bez zmian,
#     * każdy inny wyjątek -> StorageError z nazwą operacji.
# - update/mark_complete/delete to "pobierz, potem zapisz" bez transakcji:
#   równoległe usunięcie między krokami kończy się TaskNotFoundError z kroku zapisu.


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DomainError:
        raise
    except Exception as e:
        logger.error("%s failed: %s", operation, e)
        raise StorageError(operation, e) from e


class TaskService:
    """
    Serwis przypadków użycia dla zadań (todo).

    :param repo: Implementacja portu TaskRepository.
    """
    def __init__(self, repo: TaskRepository) -> None:
        self.repo = repo

    def create_task(self, title: str, description: str = "", *, ctx: Context = BACKGROUND) -> Task:
        """
            Tworzy nowe zadanie (`completed=False`) i zapisuje je w repozytorium.

            - `task_id`, `created_at`, `updated_at` nadaje repozytorium.
            - Brak walidacji `title` - odpowiada za nią adapter.

            :return: Utworzony obiekt `Task`.
            :raises StorageError: Błąd zapisu.
        """
        with _storage_errors("create task"):
            task = self.repo.create(new_task(title, description or ""), ctx=ctx)
        logger.info("task created id=%s", task.task_id)
        return task

    def get_task(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> Task:
        """
            Zwraca pojedyncze zadanie o wskazanym identyfikatorze.

            :raises TaskNotFoundError: Gdy nie znaleziono zadania (lub jest usunięte).
        """
        with _storage_errors("get task"):
            return self.repo.get_by_id(task_id, ctx=ctx)

    def list_tasks(self, page: int = 1, page_size: int = 10, *, ctx: Context = BACKGROUND) -> tuple[list[Task], int]:
        """Zwraca stronę zadań oraz łączną liczbę rekordów (normalizacja paginacji w repozytorium)."""
        with _storage_errors("list tasks"):
            return self.repo.list(page, page_size, ctx=ctx)

    def update_task(self, task_id: TaskId, title: str, description: str, *, ctx: Context = BACKGROUND) -> Task:
        """
            Nadpisuje tytuł i opis istniejącego zadania.

            - Pobiera zadanie (`TaskNotFoundError`, jeśli brak).
            - Tworzy nową instancję z nowym `title`/`description`.
            - Utrwala zmianę przez `repo.update` (odświeża `updated_at`).

            :return: Zaktualizowany `Task`.
        """
        with _storage_errors("update task"):
            task = self.repo.get_by_id(task_id, ctx=ctx)
            updated = self.repo.update(replace(task, title=title, description=description or ""), ctx=ctx)
        logger.info("task updated id=%s", task_id)
        return updated

    def mark_complete(self, task_id: TaskId, completed: bool, *, ctx: Context = BACKGROUND) -> Task:
        """
            Marks an existing task as completed (or not completed).

            - Fetches the task using `repo.get_by_id(task_id)`; raises `TaskNotFoundError` if absent.
            - Creates a new `Task` with the same data but the given `completed` flag.
            - Persists the change via `repo.update(new_task)`.

            :return: The updated `Task` instance.
        """
        with _storage_errors("mark complete"):
            task = self.repo.get_by_id(task_id, ctx=ctx)
            updated = self.repo.update(replace(task, completed=completed), ctx=ctx)
        logger.info("task id=%s completed=%s", task_id, completed)
        return updated

    def delete_task(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> None:
        """
            Usuwa zadanie (soft delete).

            - Najpierw sprawdza istnienie - repozytorium usuwa idempotentnie,
              serwis zgłasza `TaskNotFoundError` dla brakującego/usuniętego zadania.

            :raises TaskNotFoundError: Gdy nie znaleziono zadania.
        """
        with _storage_errors("delete task"):
            self.repo.get_by_id(task_id, ctx=ctx)
            self.repo.delete(task_id, ctx=ctx)
        logger.info("task deleted id=%s", task_id)
