from __future__ import annotations
from contextlib import contextmanager
from math import ceil
from typing import Iterator
from sqlalchemy.engine import Engine
from typer import Context, Exit, Option, Typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from todosvc.adapters.memory.task_repo import InMemoryTaskRepository
from todosvc.adapters.sql.engine import build_engine
from todosvc.adapters.sql.schema import create_schema
from todosvc.adapters.sql.task_repo import SqlTaskRepository
from todosvc.adapters.system.deadline import Deadline
from todosvc.api.colors import TaskColor
from todosvc.api.schemas import require_text
from todosvc.config import Settings
from todosvc.domain.errors import DomainError, ErrorKind
from todosvc.domain.pagination import normalize_page
from todosvc.domain.task import Task, TaskId
from todosvc.ports.task_service import TaskUseCases
from todosvc.services.task_service import TaskService
from todosvc import server


### COMMENTS
# ==========================================================
# CLI (Typer + Rich) - trzeci adapter nad TaskUseCases + komendy procesu.
# ==========================================================
# Rola:
# - `serve` / `migrate` - start serwera (HTTP + gRPC) albo samo założenie schematu.
# - add/list/show/edit/done/undone/rm - operacje operatora bezpośrednio na bazie.
# - Wyświetla wyniki w czytelnej formie (tabele, panele, kolory).
#
# Zasady:
# - Zero logiki biznesowej - deleguj do TaskUseCases.
# - Walidacja pól wymaganych jak w HTTP/RPC (`require_text`).
# - Błąd domenowy -> czerwony Panel i kod wyjścia 1.


app = Typer(help="todosvc - task service (HTTP + gRPC) and operator CLI")
console = Console()

settings: Settings | None = None  # ustawimy w callbacku
_engine: Engine | None = None
_service: TaskUseCases | None = None


@app.callback()
def main(context: Context) -> None:
    """Wczytuje konfigurację (env + .env) na starcie procesu CLI."""
    global settings
    settings = Settings.from_env()
    context.call_on_close(close_service)


def close_service() -> None:
    """Zamyka pulę połączeń zbudowaną przez `get_service` (po każdej komendzie)."""
    global _engine, _service
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _service = None


def get_service() -> TaskUseCases:
    """Serwis nad bazą z konfiguracji; budowany leniwie (serve/migrate go nie potrzebują)."""
    global _engine, _service
    if _service is None:
        _engine = build_engine(settings)
        _service = TaskService(SqlTaskRepository(_engine))
    return _service


def ctx() -> Deadline:
    return Deadline(settings.request_timeout if settings else None)


@contextmanager
def domain_errors(task_id: str | None = None) -> Iterator[None]:
    """Błąd domenowy -> Panel + exit 1."""
    try:
        yield
    except DomainError as e:
        match e.kind:
            case ErrorKind.VALIDATION:
                body, title = f"❌ {e}", "Błąd walidacji"
            case ErrorKind.NOT_FOUND:
                body = (
                    f"❌ Nie znaleziono zadania o ID: {task_id}\n"
                    f"[dim]Użyj 'todosvc list', żeby znaleźć poprawne ID[/]"
                )
                title = "Nie znaleziono"
            case _:
                body, title = f"❌ {e}", "Błąd bazy danych"
        console.print(Panel.fit(body, title=title, border_style="red"))
        raise Exit(code=1)


def color_completed(completed: bool) -> str:
    if completed:
        return f"{TaskColor.GREEN}done{TaskColor.RESET}"
    return f"{TaskColor.RED}open{TaskColor.RESET}"


def render_list(items: list[Task], total: int, page: int, page_size: int) -> None:
    """Renderuje tabelę Rich z kolumnami: ID, Title, Created, Completed + stopką paginacji."""

    table = Table(show_lines=True, header_style="bold")
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Title")
    table.add_column("Created At", no_wrap=True, style="dim")
    table.add_column("Completed", no_wrap=True)

    for t in items:
        table.add_row(
            str(t.task_id),
            t.title,
            t.created_at.strftime("%Y-%m-%d %H:%M"),
            color_completed(t.completed),
        )

    pages = max(1, ceil(total / page_size))

    console.print(table)
    console.print(f"[dim]Page {page}/{pages} • Total: {total} • Page size: {page_size}[/dim]")


def render_task(task: Task, title: str = "Task", border_style: str = "cyan") -> None:
    lines = [
        f"[cyan]ID:[/cyan] {task.task_id}",
        f"[dim]Title:[/dim] {task.title}",
        f"[dim]Description:[/dim] {task.description or '[dim]-[/]'}",
        f"[dim]Created:[/dim] {task.created_at.isoformat()}",
        f"[dim]Updated:[/dim] {task.updated_at.isoformat()}",
        f"Completed: {color_completed(task.completed)}",
    ]
    console.print(Panel.fit("\n".join(lines), title=title, border_style=border_style))


@app.command("serve")
def serve_cmd(
    migrate_only: bool = Option(False, "--migrate-only", help="Run schema setup and exit"),
) -> None:
    """Uruchamia serwer HTTP + gRPC (po założeniu schematu)."""
    with domain_errors():
        server.serve(settings, migrate_only=migrate_only)


@app.command("migrate")
def migrate_cmd() -> None:
    """Zakłada schemat bazy i kończy działanie."""
    with domain_errors():
        engine = build_engine(settings)
        try:
            server.migrate(engine)
        finally:
            engine.dispose()
    console.print(Panel.fit("✅ Schemat gotowy", border_style="green"))


@app.command("add")
def add(title: str, desc: str = Option("", "--desc", "-d")) -> None:
    """Dodaje nowe zadanie."""
    with domain_errors():
        task = get_service().create_task(require_text(title, "title"), desc, ctx=ctx())
    render_task(task, title="Dodano zadanie", border_style="green")


@app.command("list")
def list_cmd(
    page: int = Option(1, "--page", "-p"),
    page_size: int = Option(10, "--page-size", "-s"),
) -> None:
    """Listuje zadania (najnowsze pierwsze) z paginacją."""
    page, page_size = normalize_page(page, page_size)
    with domain_errors():
        items, total = get_service().list_tasks(page, page_size, ctx=ctx())
    render_list(items, total, page, page_size)


@app.command("show")
def show(task_id: str) -> None:
    """Pokazuje szczegóły pojedynczego zadania."""
    with domain_errors(task_id):
        task = get_service().get_task(TaskId(require_text(task_id, "id")), ctx=ctx())
    render_task(task, title="Szczegóły zadania")


@app.command("edit")
def edit(task_id: str, title: str, desc: str = Option("", "--desc", "-d")) -> None:
    """Zmienia tytuł i opis zadania."""
    with domain_errors(task_id):
        task = get_service().update_task(
            TaskId(require_text(task_id, "id")), require_text(title, "title"), desc, ctx=ctx(),
        )
    render_task(task, title="Zaktualizowano", border_style="green")


@app.command("done")
def done(task_id: str) -> None:
    """Oznacza zadanie jako zakończone (completed=True)."""
    with domain_errors(task_id):
        task = get_service().mark_complete(TaskId(require_text(task_id, "id")), True, ctx=ctx())
    render_task(task, title="Sukces", border_style="green")


@app.command("undone")
def undone(task_id: str) -> None:
    """Cofa oznaczenie zakończenia (completed=False)."""
    with domain_errors(task_id):
        task = get_service().mark_complete(TaskId(require_text(task_id, "id")), False, ctx=ctx())
    render_task(task, title="Sukces", border_style="yellow")


@app.command("rm")
def rm(task_id: str) -> None:
    """Usuwa zadanie (soft delete)."""
    with domain_errors(task_id):
        get_service().delete_task(TaskId(require_text(task_id, "id")), ctx=ctx())
    console.print(Panel.fit(f"🟡 Zadanie usunięte\nID: {task_id}", title="Usunięto", border_style="yellow"))


@app.command("demo")
def demo() -> None:
    """
    Pokazowy przebieg działania w jednym procesie (InMemory, bez bazy).

    - Tworzy 3 zadania, pokazuje listę.
    - Oznacza jedno jako zakończone, usuwa inne.
    - Pokazuje listę po zmianach.
    """
    service = TaskService(InMemoryTaskRepository())
    console.print(Panel.fit("🚀 Start demonstracji", border_style="cyan"))

    service.create_task("Buy milk", "2% lactose-free")
    t2 = service.create_task("Call mom", "Sunday afternoon")
    t3 = service.create_task("Read a book", "DDD chapter 3")

    items, total = service.list_tasks(1, 10)
    console.print("\n📋 Lista po utworzeniu:")
    render_list(items, total, page=1, page_size=10)

    service.mark_complete(t2.task_id, True)
    console.print(Panel.fit(f"✔️ Zamknięto zadanie: {t2.title}", border_style="yellow"))

    service.delete_task(t3.task_id)
    console.print(Panel.fit(f"🗑️ Usunięto zadanie: {t3.title}", border_style="red"))

    items, total = service.list_tasks(1, 10)
    console.print("\n📋 Lista po zmianach:")
    render_list(items, total, page=1, page_size=10)

    console.print(Panel.fit("🏁 Demo zakończone", border_style="cyan"))


if __name__ == "__main__":
    app()
