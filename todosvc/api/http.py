from __future__ import annotations
import logging
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from todosvc.adapters.system.deadline import Deadline
from todosvc.api.schemas import (
    CreateTaskRequest,
    ListTasksReply,
    MarkCompleteRequest,
    TaskOut,
    UpdateTaskRequest,
    parse_model,
    require_text,
)
from todosvc.domain.errors import DomainError, ErrorKind, TaskValidationError
from todosvc.domain.pagination import normalize_page
from todosvc.domain.task import TaskId
from todosvc.ports.task_service import TaskUseCases

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Adapter HTTP/JSON (Flask) - cienka warstwa tłumacząca.
# ==========================================================
# - Zero logiki domenowej - deleguj do TaskUseCases.
# - Walidacja pól wymaganych (title, id) przed wywołaniem serwisu.
# - Mapowanie błędów: VALIDATION -> 400, NOT_FOUND -> 404, reszta -> 500 "internal error".
# - Paginacja: `normalize_page`, więc odpowiedź zwraca faktycznie użyte page/page_size.


def _error(message: str, status: int):
    return jsonify(error=message), status


def path_id(task_id: str) -> TaskId:
    # id ze ścieżki przechodzi tę samą walidację co pole `id` w RPC
    return TaskId(require_text(task_id, "id"))


def create_app(service: TaskUseCases, request_timeout: float | None = None) -> Flask:
    """Buduje aplikację Flask nad serwisem. `request_timeout` -> Deadline dla każdego żądania."""
    app = Flask(__name__)

    def ctx() -> Deadline:
        return Deadline(request_timeout)

    def task_json(task, status: int = 200):
        return jsonify(TaskOut.from_task(task).model_dump(mode="json")), status

    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        match err.kind:
            case ErrorKind.VALIDATION:
                return _error(str(err), 400)
            case ErrorKind.NOT_FOUND:
                return _error("not found", 404)
            case _:
                logger.error("%s %s failed: %s", request.method, request.path, err, exc_info=err)
                return _error("internal error", 500)

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return _error(err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("%s %s failed", request.method, request.path)
        return _error("internal error", 500)

    @app.get("/healthz")
    def health():
        return jsonify(status="ok"), 200

    @app.post("/tasks")
    def create_task():
        req = parse_model(CreateTaskRequest, request.get_json(silent=True))
        title = require_text(req.title, "title")
        task = service.create_task(title, req.description or "", ctx=ctx())
        return task_json(task, 201)

    @app.get("/tasks")
    def list_tasks():
        # brak / nieliczbowa wartość -> domyślna (permisywnie, jak w repozytorium)
        page, page_size = normalize_page(
            request.args.get("page", type=int),
            request.args.get("page_size", type=int),
        )
        items, total = service.list_tasks(page, page_size, ctx=ctx())
        reply = ListTasksReply(
            tasks=[TaskOut.from_task(t) for t in items],
            page=page,
            page_size=page_size,
            total=total,
        )
        return jsonify(reply.model_dump(mode="json")), 200

    @app.route("/tasks/", methods=["GET", "PUT", "PATCH", "DELETE"])
    def task_without_id():
        raise TaskValidationError("id", "is required")

    @app.get("/tasks/<task_id>")
    def get_task(task_id: str):
        return task_json(service.get_task(path_id(task_id), ctx=ctx()))

    @app.put("/tasks/<task_id>")
    def update_task(task_id: str):
        req = parse_model(UpdateTaskRequest, request.get_json(silent=True))
        title = require_text(req.title, "title")
        task = service.update_task(path_id(task_id), title, req.description or "", ctx=ctx())
        return task_json(task)

    @app.patch("/tasks/<task_id>")
    def mark_complete(task_id: str):
        req = parse_model(MarkCompleteRequest, request.get_json(silent=True))
        return task_json(service.mark_complete(path_id(task_id), req.completed, ctx=ctx()))

    @app.delete("/tasks/<task_id>")
    def delete_task(task_id: str):
        service.delete_task(path_id(task_id), ctx=ctx())
        return "", 204

    return app
