"""Process bootstrap: schema setup, both listeners, graceful shutdown."""

from __future__ import annotations

import logging
import signal
import threading
import time
from concurrent import futures

import grpc
from sqlalchemy.engine import Engine
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wsgi import ClosingIterator

from todosvc.adapters.sql.engine import build_engine, ping
from todosvc.adapters.sql.schema import create_schema
from todosvc.adapters.sql.task_repo import SqlTaskRepository
from todosvc.api.http import create_app
from todosvc.api.rpc import add_servicer
from todosvc.config import Settings
from todosvc.logging_setup import setup_logging
from todosvc.ports.task_service import TaskUseCases
from todosvc.services.task_service import TaskService

logger = logging.getLogger(__name__)


def migrate(engine: Engine) -> None:
    ping(engine)
    create_schema(engine)
    logger.info("migrations applied (create_all)")


def build_grpc_server(service: TaskUseCases, port: int, max_workers: int = 16) -> tuple[grpc.Server, int]:
    """Serwer gRPC na puli wątków; zwraca (serwer, faktycznie zbindowany port)."""
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers))
    add_servicer(server, service)
    bound = server.add_insecure_port(f"[::]:{port}")
    return server, bound


class InFlightRequests:
    """
    Middleware WSGI liczące żądania w toku.

    Żądanie kończy się dopiero po `close()` iteratora odpowiedzi, czyli po
    wysłaniu ciała. `wait_idle` czeka, aż licznik spadnie do zera.
    """

    def __init__(self, app) -> None:
        self.app = app
        self._active = 0
        self._idle = threading.Condition()

    def __call__(self, environ, start_response):
        with self._idle:
            self._active += 1
        try:
            response = self.app(environ, start_response)
        except BaseException:
            self._finished()
            raise
        return ClosingIterator(response, self._finished)

    def _finished(self) -> None:
        with self._idle:
            self._active -= 1
            if self._active == 0:
                self._idle.notify_all()

    @property
    def active(self) -> int:
        with self._idle:
            return self._active

    def wait_idle(self, timeout: float | None = None) -> bool:
        with self._idle:
            return self._idle.wait_for(lambda: self._active == 0, timeout)


def build_http_server(
    service: TaskUseCases, port: int, request_timeout: float | None = None,
) -> tuple[BaseWSGIServer, InFlightRequests]:
    """Wielowątkowy serwer werkzeug; zwraca (serwer, licznik żądań w toku)."""
    requests = InFlightRequests(create_app(service, request_timeout=request_timeout))
    return make_server("0.0.0.0", port, requests, threaded=True), requests


class Server:
    """
    Oba listenery (HTTP + gRPC) nad jednym serwisem.

    `start()` uruchamia serwery, `stop()` zamyka je z okresem karencji
    dla żądań w toku.
    """

    def __init__(self, service: TaskUseCases, settings: Settings) -> None:
        self.settings = settings
        self.grpc_server, self.grpc_port = build_grpc_server(service, settings.grpc_port)
        self.http_server, self.http_requests = build_http_server(
            service, settings.http_port, settings.request_timeout,
        )
        self._http_thread = threading.Thread(
            target=self._serve_http, name="http-server", daemon=True,
        )
        self.failed = threading.Event()

    def _serve_http(self) -> None:
        try:
            self.http_server.serve_forever()
        except Exception:
            logger.exception("http server error")
            self.failed.set()

    def start(self) -> None:
        self.grpc_server.start()
        logger.info("gRPC listening on :%d", self.grpc_port)
        self._http_thread.start()
        logger.info("HTTP server listening on :%d", self.http_server.server_port)

    def stop(self) -> None:
        """Przestaje przyjmować połączenia i czeka na żądania w toku, łącznie najwyżej `shutdown_grace`."""
        grace = self.settings.shutdown_grace
        deadline = time.monotonic() + grace

        def remaining() -> float:
            return max(0.0, deadline - time.monotonic())

        stopped = self.grpc_server.stop(grace)
        self.http_server.shutdown()
        self._http_thread.join(timeout=remaining())
        if not self.http_requests.wait_idle(timeout=remaining()):
            logger.warning("grace period over with %d HTTP request(s) in flight", self.http_requests.active)
        stopped.wait(timeout=remaining())
        self.http_server.server_close()


def serve(settings: Settings, *, migrate_only: bool = False) -> None:
    setup_logging(settings.log_level)

    engine = build_engine(settings)
    try:
        migrate(engine)
        if migrate_only:
            logger.info("migrate-only flag set; exiting")
            return

        service = TaskService(SqlTaskRepository(engine))
        server = Server(service, settings)

        stop = threading.Event()

        def _on_signal(signum, frame):
            logger.info("shutdown signal received (%s)", signal.Signals(signum).name)
            stop.set()

        signal.signal(signal.SIGINT, _on_signal)
        signal.signal(signal.SIGTERM, _on_signal)

        server.start()
        while not stop.wait(timeout=0.5):
            if server.failed.is_set():
                break
        server.stop()
        logger.info("server stopped")
    finally:
        engine.dispose()
