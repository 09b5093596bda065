from enum import Enum


### COMMENTS
# ============================================
# Konwencja użycia błędów domenowych w projekcie
# ============================================
# - Repozytoria (adaptery SQL / pamięć):
#     * brak żywego rekordu -> TaskNotFoundError
#     * błędy techniczne (SQLAlchemyError, OSError, przekroczony deadline) -> StorageError
#
# - Serwis:
#     * TaskNotFoundError i StorageError przepuszcza bez zmian
#     * każdy inny wyjątek opakowuje w StorageError (z nazwą operacji)
#
# - Adaptery wejściowe (HTTP, RPC, CLI):
#     * walidują pola wymagane i rzucają TaskValidationError
#     * mapują `kind` na kod protokołu; szczegóły StorageError trafiają tylko do logów


class ErrorKind(str, Enum):
    """Zamknięty zestaw rodzajów błędów domenowych."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"

    def __str__(self):
        return self.value


class DomainError(Exception):
    """Bazowa klasa dla błędów domenowych.
    Każda klasa pochodna ustawia `kind`, więc warstwy wyżej mogą robić
    `match err.kind` zamiast porównywać obiekty po tożsamości.
    Nie powinna być rzucana bezpośrednio - używaj klas pochodnych.
    """
    kind: ErrorKind


class TaskValidationError(DomainError):
    """Rzucany, gdy dane wejściowe nie spełniają reguł dla zadania.
    Przykłady:
    - tytuł jest pusty,
    - brak identyfikatora w operacji na pojedynczym zadaniu,
    - ciało żądania nie daje się sparsować.
    Zgłaszany wyłącznie przez adaptery wejściowe, zanim wywołają serwis.
    """
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(self.__str__())
    def __str__(self):
        return f"{self.field}: {self.message}"


class TaskNotFoundError(DomainError):
    """Rzucany, gdy żądane zadanie nie istnieje albo zostało usunięte (soft delete).
    Zgłaszany przez repozytoria (`get_by_id`, `update`) i przekazywany przez serwis bez zmian.
    """
    kind = ErrorKind.NOT_FOUND

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"task {self.task_id} not found"


class StorageError(DomainError):
    """Błąd warstwy trwałości: brak połączenia, naruszenie ograniczenia, timeout.
    `operation` opisuje kontekst (np. "create task"), `cause` to oryginalny wyjątek.
    """
    kind = ErrorKind.STORAGE

    def __init__(self, operation: str, cause: BaseException | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(self.__str__())
    def __str__(self):
        if self.cause is None:
            return self.operation
        return f"{self.operation}: {self.cause}"
