"""Wire schemas shared by the HTTP and RPC adapters."""

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, ValidationError
from todosvc.domain.task import Task
from todosvc.domain.errors import TaskValidationError


class TaskOut(BaseModel):
    """Task as seen by clients; timestamps serialize as RFC 3339 strings."""
    id: str
    title: str
    description: str
    completed: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> TaskOut:
        return cls(
            id=str(task.task_id),
            title=task.title,
            description=task.description,
            completed=task.completed,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class CreateTaskRequest(BaseModel):
    title: str = ""
    description: str | None = None


class GetTaskRequest(BaseModel):
    id: str = ""


class ListTasksRequest(BaseModel):
    page: int = 0
    page_size: int = 0


class UpdateTaskRequest(BaseModel):
    id: str = ""
    title: str = ""
    description: str | None = None


class MarkCompleteRequest(BaseModel):
    id: str = ""
    completed: bool = False


class DeleteTaskRequest(BaseModel):
    id: str = ""


class TaskReply(BaseModel):
    task: TaskOut


class ListTasksReply(BaseModel):
    tasks: list[TaskOut]
    page: int
    page_size: int
    total: int


class DeleteTaskReply(BaseModel):
    success: bool


def require_text(value: str | None, field: str) -> str:
    """Pola wymagane (title, id) - jedyne miejsce walidacji na ścieżce żądania."""
    if not value or not value.strip():
        raise TaskValidationError(field, "is required")
    return value


def parse_model(model: type[BaseModel], data) -> BaseModel:
    """Waliduje dane wejściowe; błąd pydantic -> TaskValidationError (bez szczegółów wewnętrznych)."""
    try:
        if isinstance(data, (bytes, str)):
            return model.model_validate_json(data or b"{}")
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())) or "body"
        raise TaskValidationError(field, first.get("msg", "invalid value")) from e
