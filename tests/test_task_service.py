import uuid
import pytest
from todosvc.adapters.memory.task_repo import InMemoryTaskRepository
from todosvc.adapters.system.id_provider_uuid import UuidIdProvider
from todosvc.domain.errors import ErrorKind, StorageError, TaskNotFoundError
from todosvc.services.task_service import TaskService


def test_create_task(service):
    # Act
    task = service.create_task("Kup mleko", "2%")

    # Assert
    assert task.task_id
    assert task.title == "Kup mleko"
    assert task.description == "2%"
    assert task.completed is False
    assert task.created_at == task.updated_at
    assert task.deleted_at is None


def test_get_returns_task_equal_to_created(service):
    created = service.create_task("A", "desc")

    got = service.get_task(created.task_id)

    assert got == created


def test_get_raises_on_missing(service):
    with pytest.raises(TaskNotFoundError) as exc:
        service.get_task("nonexistent-id")
    assert exc.value.kind is ErrorKind.NOT_FOUND


def test_delete_then_get_and_second_delete_raise_not_found(service):
    task = service.create_task("A")

    service.delete_task(task.task_id)

    with pytest.raises(TaskNotFoundError):
        service.get_task(task.task_id)
    with pytest.raises(TaskNotFoundError):
        service.delete_task(task.task_id)


def test_delete_missing_raises_not_found(service):
    with pytest.raises(TaskNotFoundError):
        service.delete_task("nope")


def test_update_changes_text_and_keeps_identity(service):
    task = service.create_task("Old", "old desc")

    updated = service.update_task(task.task_id, "New", "new desc")

    assert updated.task_id == task.task_id
    assert updated.created_at == task.created_at
    assert updated.title == "New"
    assert updated.description == "new desc"
    assert updated.updated_at > task.updated_at
    assert service.get_task(task.task_id) == updated


def test_update_deleted_task_raises_not_found(service):
    task = service.create_task("A")
    service.delete_task(task.task_id)

    with pytest.raises(TaskNotFoundError):
        service.update_task(task.task_id, "B", "")
    with pytest.raises(TaskNotFoundError):
        service.mark_complete(task.task_id, True)


def test_mark_complete_buy_milk(service):
    task = service.create_task("buy milk")

    service.mark_complete(task.task_id, True)
    got = service.get_task(task.task_id)

    assert got.completed is True
    assert got.updated_at > task.updated_at
    assert got.title == "buy milk"


def test_mark_complete_can_reopen(service):
    task = service.create_task("A")
    service.mark_complete(task.task_id, True)

    reopened = service.mark_complete(task.task_id, False)

    assert reopened.completed is False


def test_list_pages_most_recent_first(service):
    a = service.create_task("A")
    b = service.create_task("B")
    c = service.create_task("C")

    first, total = service.list_tasks(1, 2)
    second, total2 = service.list_tasks(2, 2)

    assert [t.title for t in first] == ["C", "B"]
    assert [t.task_id for t in first] == [c.task_id, b.task_id]
    assert total == 3
    assert [t.task_id for t in second] == [a.task_id]
    assert total2 == 3


def test_list_skips_deleted_and_total_ignores_paging(service):
    a = service.create_task("A")
    service.create_task("B")
    service.create_task("C")
    service.delete_task(a.task_id)

    items, total = service.list_tasks(1, 1)

    assert total == 2
    assert len(items) == 1
    all_items, _ = service.list_tasks(1, 10)
    assert a.task_id not in {t.task_id for t in all_items}
    assert all_items == sorted(all_items, key=lambda t: t.created_at, reverse=True)


def test_list_out_of_range_page_is_empty(service):
    service.create_task("A")

    items, total = service.list_tasks(5, 10)

    assert items == []
    assert total == 1


def test_create_does_not_validate_title(service):
    # walidacja należy do adapterów; serwis przyjmuje to, co dostanie
    task = service.create_task("")
    assert task.title == ""


def test_create_sets_valid_uuid_v4_and_is_unique():
    service = TaskService(InMemoryTaskRepository(ids=UuidIdProvider()))

    t1 = service.create_task("A")
    t2 = service.create_task("B")

    assert uuid.UUID(str(t1.task_id)).version == 4
    assert uuid.UUID(str(t2.task_id)).version == 4
    assert t1.task_id != t2.task_id


class ExplodingRepo:
    def create(self, task, *, ctx=None):
        raise RuntimeError("connection reset by peer")

    def get_by_id(self, task_id, *, ctx=None):
        raise RuntimeError("connection reset by peer")


def test_unexpected_errors_are_wrapped_as_storage_error():
    service = TaskService(ExplodingRepo())

    with pytest.raises(StorageError) as exc:
        service.create_task("A")

    assert exc.value.kind is ErrorKind.STORAGE
    assert exc.value.operation == "create task"
    assert isinstance(exc.value.__cause__, RuntimeError)


class DeleteBeforeUpdateRepo:
    """Symuluje równoległe usunięcie między pobraniem a zapisem."""
    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def update(self, task, *, ctx=None):
        self.inner.delete(task.task_id)
        return self.inner.update(task)


def test_interleaved_delete_during_update_settles_as_not_found(mem_repo):
    service = TaskService(DeleteBeforeUpdateRepo(mem_repo))
    task = service.create_task("A")

    with pytest.raises(TaskNotFoundError):
        service.update_task(task.task_id, "B", "")

    with pytest.raises(TaskNotFoundError):
        service.get_task(task.task_id)
    assert service.list_tasks(1, 10) == ([], 0)
