from __future__ import annotations
from typing import Protocol
from todosvc.domain.task import Task, TaskId
from todosvc.ports.context import Context, BACKGROUND


class TaskUseCases(Protocol):
    """Interfejs serwisu widziany przez adaptery (HTTP, RPC, CLI).
    Adaptery zależą wyłącznie od tego portu, nigdy od repozytorium."""

    def create_task(self, title: str, description: str = "", *, ctx: Context = BACKGROUND) -> Task: ...

    def get_task(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> Task: ...

    def list_tasks(self, page: int, page_size: int, *, ctx: Context = BACKGROUND) -> tuple[list[Task], int]: ...

    def update_task(self, task_id: TaskId, title: str, description: str, *, ctx: Context = BACKGROUND) -> Task: ...

    def mark_complete(self, task_id: TaskId, completed: bool, *, ctx: Context = BACKGROUND) -> Task: ...

    def delete_task(self, task_id: TaskId, *, ctx: Context = BACKGROUND) -> None: ...
