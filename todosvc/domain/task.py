from __future__ import annotations
from typing import NewType
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass, replace

TaskId = NewType("TaskId", str)

@dataclass(frozen=True)
class Task():
    """
    Model domenowy pojedynczego zadania; niemutowalny; czas w UTC (aware).
    `task_id` pusty oznacza "jeszcze nie zapisany" - id nadaje repozytorium.
    """
    task_id: TaskId
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    completed: bool = False
    deleted_at: datetime | None = None

    @property
    def is_live(self) -> bool:
        """Soft delete: rekord z ustawionym `deleted_at` nie istnieje dla odczytów."""
        return self.deleted_at is None

    def touched(self, now: datetime) -> Task:
        """Nowa instancja z odświeżonym `updated_at` (zawsze ściśle większym niż poprzedni)."""
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        return replace(self, updated_at=now)


def new_task(title: str, description: str = "") -> Task:
    """Szkic zadania przed zapisem: bez id, completed=False, czasy nadaje repozytorium."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return Task(
        task_id=TaskId(""),
        title=title,
        description=description,
        created_at=epoch,
        updated_at=epoch,
    )


def as_utc(dt: datetime | None) -> datetime | None:
    # SQLite zwraca naive datetime - traktujemy go jako UTC
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


### COMMENTS
# ======================================
# Cykl życia Task
# ======================================
# - create  -> repozytorium nadaje task_id (uuid4) oraz created_at == updated_at
# - update / mark_complete -> nowa instancja (replace) + touched(now)
# - delete  -> ustawione deleted_at; od tej chwili każdy odczyt po id = "nie znaleziono"
#
# Inwarianty:
# - task_id stały przez cały czas życia rekordu
# - title nigdy nie jest zapisywany pusty (pilnują tego adaptery wejściowe)
# - updated_at >= created_at
