from concurrent import futures
import grpc
import pytest
from todosvc.api.rpc import SERVICE_NAME, TodoRpcClient, add_servicer
from todosvc.domain.errors import StorageError
from todosvc.services.task_service import TaskService


def start_server(service):
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=4))
    add_servicer(server, service)
    port = server.add_insecure_port("127.0.0.1:0")
    server.start()
    return server, port


@pytest.fixture
def rpc(mem_repo):
    server, port = start_server(TaskService(mem_repo))
    channel = grpc.insecure_channel(f"127.0.0.1:{port}")
    yield TodoRpcClient(channel, timeout=5), channel
    channel.close()
    server.stop(None)


@pytest.fixture
def client(rpc):
    return rpc[0]


def test_create_and_get(client):
    created = client.create_task("buy milk", "2%")

    got = client.get_task(created.id)

    assert created.id
    assert created.completed is False
    assert created.created_at == created.updated_at
    assert got == created


def test_get_nonexistent_is_not_found(client):
    with pytest.raises(grpc.RpcError) as exc:
        client.get_task("nonexistent-id")

    assert exc.value.code() == grpc.StatusCode.NOT_FOUND
    assert exc.value.details() == "task not found"


def test_create_requires_title(client):
    with pytest.raises(grpc.RpcError) as exc:
        client.create_task("")

    assert exc.value.code() == grpc.StatusCode.INVALID_ARGUMENT


@pytest.mark.parametrize("call", [
    lambda c: c.get_task(""),
    lambda c: c.update_task("", "title"),
    lambda c: c.mark_complete("", True),
    lambda c: c.delete_task(""),
])
def test_per_id_operations_require_id(client, call):
    with pytest.raises(grpc.RpcError) as exc:
        call(client)

    assert exc.value.code() == grpc.StatusCode.INVALID_ARGUMENT


def test_malformed_request_is_invalid_argument(rpc):
    _, channel = rpc
    raw_call = channel.unary_unary(f"/{SERVICE_NAME}/GetTask")

    with pytest.raises(grpc.RpcError) as exc:
        raw_call(b"{not json", timeout=5)

    assert exc.value.code() == grpc.StatusCode.INVALID_ARGUMENT


def test_list_pages_and_defaults(client):
    for title in ("A", "B", "C"):
        client.create_task(title)

    first = client.list_tasks(1, 2)
    second = client.list_tasks(2, 2)
    defaults = client.list_tasks()

    assert [t.title for t in first.tasks] == ["C", "B"]
    assert first.total == 3
    assert [t.title for t in second.tasks] == ["A"]
    assert (defaults.page, defaults.page_size, len(defaults.tasks)) == (1, 10, 3)


def test_update_mark_complete_delete(client):
    task = client.create_task("buy milk")

    updated = client.update_task(task.id, "buy oat milk", "")
    done = client.mark_complete(task.id, True)
    assert client.delete_task(task.id) is True

    assert updated.title == "buy oat milk"
    assert updated.created_at == task.created_at
    assert done.completed is True
    assert done.updated_at > task.updated_at
    with pytest.raises(grpc.RpcError) as exc:
        client.delete_task(task.id)
    assert exc.value.code() == grpc.StatusCode.NOT_FOUND


class BrokenService:
    def get_task(self, task_id, *, ctx=None):
        raise StorageError("get by id", RuntimeError("password authentication failed"))


def test_storage_error_is_internal_without_details():
    server, port = start_server(BrokenService())
    try:
        with grpc.insecure_channel(f"127.0.0.1:{port}") as channel:
            with pytest.raises(grpc.RpcError) as exc:
                TodoRpcClient(channel, timeout=5).get_task("abc")
    finally:
        server.stop(None)

    assert exc.value.code() == grpc.StatusCode.INTERNAL
    assert exc.value.details() == "internal error"
