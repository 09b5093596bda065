from __future__ import annotations
import time
from typing import Callable


class Deadline:
    """
    Kontekst żądania z deadline'em liczonym zegarem monotonicznym.

    :param timeout: Sekundy od teraz; `None` lub <= 0 oznacza brak deadline'u
                    (pozostaje tylko ręczne `cancel()`).
    """

    def __init__(self, timeout: float | None = None, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        self._expires_at = monotonic() + timeout if timeout and timeout > 0 else None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def is_active(self) -> bool:
        if self._cancelled:
            return False
        remaining = self.time_remaining()
        return remaining is None or remaining > 0

    def time_remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._monotonic())
