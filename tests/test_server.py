import threading
import time
import urllib.request
import sqlalchemy as db
from todosvc.config import Settings
from todosvc.server import Server, build_http_server, migrate
from todosvc.services.task_service import TaskService
from todosvc.adapters.memory.task_repo import InMemoryTaskRepository


class SlowListService(TaskService):
    """list_tasks trwa `delay` sekund; `started` sygnalizuje wejście do handlera."""
    def __init__(self, delay: float):
        super().__init__(InMemoryTaskRepository())
        self.delay = delay
        self.started = threading.Event()
        self.finished = threading.Event()

    def list_tasks(self, page=1, page_size=10, *, ctx=None):
        self.started.set()
        time.sleep(self.delay)
        self.finished.set()
        return [], 0


def test_migrate_creates_tasks_table(tmp_path):
    engine = db.create_engine(f"sqlite:///{tmp_path / 'm.db'}")

    migrate(engine)
    migrate(engine)  # ponowne uruchomienie nic nie psuje

    assert "tasks" in db.inspect(engine).get_table_names()
    engine.dispose()


def test_http_server_binds_and_closes():
    server, requests = build_http_server(TaskService(InMemoryTaskRepository()), port=0)

    assert server.server_port > 0
    assert requests.active == 0
    server.server_close()


def test_stop_waits_for_http_request_in_flight():
    service = SlowListService(delay=1.0)
    server = Server(service, Settings(grpc_port=0, http_port=0, shutdown_grace=5.0))
    server.start()
    statuses = []

    def call():
        url = f"http://127.0.0.1:{server.http_server.server_port}/tasks"
        with urllib.request.urlopen(url, timeout=10) as resp:
            statuses.append(resp.status)

    client = threading.Thread(target=call)
    client.start()
    assert service.started.wait(timeout=5)

    server.stop()

    assert service.finished.is_set()
    assert server.http_requests.active == 0
    client.join(timeout=5)
    assert statuses == [200]


def test_stop_gives_up_after_grace_period():
    service = SlowListService(delay=2.0)
    server = Server(service, Settings(grpc_port=0, http_port=0, shutdown_grace=0.2))
    server.start()

    def call():
        url = f"http://127.0.0.1:{server.http_server.server_port}/tasks"
        try:
            urllib.request.urlopen(url, timeout=10).close()
        except OSError:
            pass

    client = threading.Thread(target=call, daemon=True)
    client.start()
    assert service.started.wait(timeout=5)

    began = time.monotonic()
    server.stop()

    assert time.monotonic() - began < 1.5
    assert not service.finished.is_set()
    client.join(timeout=5)
