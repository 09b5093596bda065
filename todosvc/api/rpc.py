from __future__ import annotations
import functools
import logging
import grpc
from pydantic import BaseModel
from todosvc.api.schemas import (
    CreateTaskRequest,
    DeleteTaskReply,
    DeleteTaskRequest,
    GetTaskRequest,
    ListTasksReply,
    ListTasksRequest,
    MarkCompleteRequest,
    TaskOut,
    TaskReply,
    UpdateTaskRequest,
    parse_model,
    require_text,
)
from todosvc.domain.errors import DomainError, ErrorKind
from todosvc.domain.pagination import normalize_page
from todosvc.domain.task import TaskId
from todosvc.ports.task_service import TaskUseCases

logger = logging.getLogger(__name__)

SERVICE_NAME = "todo.v1.TodoService"


### COMMENTS
# ==========================================================
# Adapter RPC (gRPC) - te same sześć operacji co HTTP.
# ==========================================================
# - Wiadomości to modele pydantic z api/schemas.py, kodowane jako JSON w ramkach gRPC
#   (handlery rejestrowane przez generic handler, bez generowanych stubów).
# - `grpc.ServicerContext` ma is_active()/time_remaining(), więc trafia do serwisu
#   jako `ctx` bez opakowywania.
# - Mapowanie błędów: VALIDATION -> INVALID_ARGUMENT, NOT_FOUND -> NOT_FOUND,
#   reszta -> INTERNAL "internal error" (szczegóły tylko w logach).


def _encode(message: BaseModel) -> bytes:
    return message.model_dump_json().encode("utf-8")


def _translate_errors(method):
    """Kończy łańcuch błędów: rodzaj błędu domenowego -> kod statusu gRPC."""
    @functools.wraps(method)
    def wrapper(self, raw: bytes, context: grpc.ServicerContext):
        try:
            return method(self, raw, context)
        except DomainError as e:
            match e.kind:
                case ErrorKind.VALIDATION:
                    code, message = grpc.StatusCode.INVALID_ARGUMENT, str(e)
                case ErrorKind.NOT_FOUND:
                    code, message = grpc.StatusCode.NOT_FOUND, "task not found"
                case _:
                    logger.error("rpc %s failed: %s", method.__name__, e, exc_info=e)
                    code, message = grpc.StatusCode.INTERNAL, "internal error"
        except Exception:
            logger.exception("rpc %s failed", method.__name__)
            code, message = grpc.StatusCode.INTERNAL, "internal error"
        context.abort(code, message)
    return wrapper


class TodoServicer:
    def __init__(self, service: TaskUseCases) -> None:
        self.service = service

    @_translate_errors
    def CreateTask(self, raw: bytes, context) -> TaskReply:
        req = parse_model(CreateTaskRequest, raw)
        title = require_text(req.title, "title")
        task = self.service.create_task(title, req.description or "", ctx=context)
        return TaskReply(task=TaskOut.from_task(task))

    @_translate_errors
    def GetTask(self, raw: bytes, context) -> TaskReply:
        req = parse_model(GetTaskRequest, raw)
        task_id = require_text(req.id, "id")
        return TaskReply(task=TaskOut.from_task(self.service.get_task(TaskId(task_id), ctx=context)))

    @_translate_errors
    def ListTasks(self, raw: bytes, context) -> ListTasksReply:
        req = parse_model(ListTasksRequest, raw)
        page, page_size = normalize_page(req.page, req.page_size)
        items, total = self.service.list_tasks(page, page_size, ctx=context)
        return ListTasksReply(
            tasks=[TaskOut.from_task(t) for t in items],
            page=page,
            page_size=page_size,
            total=total,
        )

    @_translate_errors
    def UpdateTask(self, raw: bytes, context) -> TaskReply:
        req = parse_model(UpdateTaskRequest, raw)
        task_id = require_text(req.id, "id")
        title = require_text(req.title, "title")
        task = self.service.update_task(TaskId(task_id), title, req.description or "", ctx=context)
        return TaskReply(task=TaskOut.from_task(task))

    @_translate_errors
    def MarkComplete(self, raw: bytes, context) -> TaskReply:
        req = parse_model(MarkCompleteRequest, raw)
        task_id = require_text(req.id, "id")
        task = self.service.mark_complete(TaskId(task_id), req.completed, ctx=context)
        return TaskReply(task=TaskOut.from_task(task))

    @_translate_errors
    def DeleteTask(self, raw: bytes, context) -> DeleteTaskReply:
        req = parse_model(DeleteTaskRequest, raw)
        task_id = require_text(req.id, "id")
        self.service.delete_task(TaskId(task_id), ctx=context)
        return DeleteTaskReply(success=True)


# metoda -> typ odpowiedzi (klient dekoduje JSON do tego modelu)
METHODS: dict[str, type[BaseModel]] = {
    "CreateTask": TaskReply,
    "GetTask": TaskReply,
    "ListTasks": ListTasksReply,
    "UpdateTask": TaskReply,
    "MarkComplete": TaskReply,
    "DeleteTask": DeleteTaskReply,
}


def add_servicer(server: grpc.Server, service: TaskUseCases) -> TodoServicer:
    """Rejestruje TodoServicer na serwerze gRPC."""
    servicer = TodoServicer(service)
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=None,  # handler dostaje surowe bajty i sam waliduje
            response_serializer=_encode,
        )
        for name in METHODS
    }
    server.add_generic_rpc_handlers((grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),))
    return servicer


class TodoRpcClient:
    """
    Klient gRPC dla TodoService.

    :param channel: Kanał gRPC (np. `grpc.insecure_channel("localhost:50051")`).
    :param timeout: Deadline pojedynczego wywołania w sekundach (None = bez limitu).
    """
    def __init__(self, channel: grpc.Channel, timeout: float | None = None) -> None:
        self.timeout = timeout
        self._calls = {
            name: channel.unary_unary(
                f"/{SERVICE_NAME}/{name}",
                request_serializer=_encode,
                response_deserializer=reply.model_validate_json,
            )
            for name, reply in METHODS.items()
        }

    def _call(self, name: str, request: BaseModel):
        return self._calls[name](request, timeout=self.timeout)

    def create_task(self, title: str, description: str = "") -> TaskOut:
        return self._call("CreateTask", CreateTaskRequest(title=title, description=description)).task

    def get_task(self, task_id: str) -> TaskOut:
        return self._call("GetTask", GetTaskRequest(id=task_id)).task

    def list_tasks(self, page: int = 0, page_size: int = 0) -> ListTasksReply:
        return self._call("ListTasks", ListTasksRequest(page=page, page_size=page_size))

    def update_task(self, task_id: str, title: str, description: str = "") -> TaskOut:
        return self._call("UpdateTask", UpdateTaskRequest(id=task_id, title=title, description=description)).task

    def mark_complete(self, task_id: str, completed: bool) -> TaskOut:
        return self._call("MarkComplete", MarkCompleteRequest(id=task_id, completed=completed)).task

    def delete_task(self, task_id: str) -> bool:
        return self._call("DeleteTask", DeleteTaskRequest(id=task_id)).success
