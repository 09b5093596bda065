from typing import Protocol


class Context(Protocol):
    """Sygnał anulowania / deadline przekazywany przez każdą operację.

    Kształt celowo zgodny z `grpc.ServicerContext`, dzięki czemu adapter RPC
    przekazuje kontekst gRPC bez opakowywania.
    """

    def is_active(self) -> bool:
        """False, gdy wywołujący anulował żądanie."""

    def time_remaining(self) -> float | None:
        """Sekundy do deadline'u; None gdy deadline nie jest ustawiony."""


class Background:
    """Kontekst bez deadline'u, nigdy nieanulowany (domyślny dla wywołań wewnętrznych)."""

    def is_active(self) -> bool:
        return True

    def time_remaining(self) -> float | None:
        return None


BACKGROUND = Background()
