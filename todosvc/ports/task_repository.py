from __future__ import annotations
from typing import Protocol
from todosvc.domain.task import Task, TaskId
from todosvc.ports.context import Context, BACKGROUND


### COMMENTS
# ==========================================================
# Kontrakt repozytorium zadań (ports/task_repository.py).
# ==========================================================
# Ten moduł definiuje interfejs (Protocol) dla warstwy trwałości Tasków.
# - Jest niezależny od technologii (pamięć, baza SQL).
# - Repozytorium jest jedynym miejscem, które buduje zapytania do magazynu.
# - Adaptery mapują błędy technologiczne na StorageError, brak rekordu na TaskNotFoundError.
# - Soft delete: rekord z `deleted_at` jest niewidoczny dla get/list/update.
# - Każda operacja przyjmuje `ctx` (anulowanie/deadline) i musi go respektować.


class TaskRepository(Protocol):
    """Interfejs repozytorium do zapisu i odczytu obiektów `Task`.

    Adaptery (implementacje) muszą:
    - nadawać `task_id` oraz `created_at`/`updated_at` przy `create`,
    - filtrować rekordy usunięte jednym, wspólnym predykatem,
    - mapować błędy technologiczne na `StorageError`,
    - nie wykonywać walidacji biznesowych.
    """

    def create(self, task: Task, *, ctx: Context = BACKGROUND) -> Task:
        """Zapisuje nowy rekord.

        Zwraca:
            Task: Zapisany obiekt z nadanym `task_id` (jeśli był pusty)
                  oraz `created_at == updated_at`.

        Wyjątki domenowe:
            StorageError: Naruszenie ograniczenia lub błąd połączenia.
        """

    def get_by_id(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> Task:
        """Zwraca żywe (nieusunięte) zadanie o podanym `task_id`.

        Wyjątki domenowe:
            TaskNotFoundError: Brak rekordu albo rekord usunięty.
            StorageError: Błąd I/O.
        """

    def list(self, page: int, page_size: int, *, ctx: Context = BACKGROUND) -> tuple[list[Task], int]:
        """Zwraca stronę żywych zadań oraz łączną liczbę żywych zadań.

        Sortowanie:
            `created_at` malejąco (najnowsze pierwsze), tiebreaker po `task_id` malejąco.

        Paginacja:
            `normalize_page` (page < 1 -> 1, page_size <= 0 -> 10),
            offset = (page - 1) * page_size. Strona poza zakresem -> pusta lista.

        Zwraca:
            tuple[list[Task], int]: (items, total) - total ignoruje paginację.
        """

    def update(self, task: Task, *, ctx: Context = BACKGROUND) -> Task:
        """Nadpisuje `title`, `description`, `completed` żywego rekordu i odświeża `updated_at`.

        Zwraca:
            Task: Zapisany stan rekordu.

        Wyjątki domenowe:
            TaskNotFoundError: Brak żywego rekordu o tym `task_id`.
            StorageError: Błąd I/O.
        """

    def delete(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> None:
        """Soft delete (ustawia `deleted_at`).

        Uwagi:
            Operacja idempotentna - brak rekordu lub rekord już usunięty to NIE błąd.
            Ścisłą semantykę istnienia zapewnia serwis.
        """
