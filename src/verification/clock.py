"""Clock и CancellationToken — инъецируемые примитивы времени и отмены.

Контроллер verification session не планирует работу сам: он спит и
проверяет время только через переданный Clock, а отмену — только через
CancellationToken. Это делает polling детерминированным в тестах.
"""

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Источник монотонного времени и блокирующего ожидания."""

    def monotonic(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Реальные часы процесса."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class ManualClock:
    """Детерминированные часы: sleep() мгновенно сдвигает время."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self._now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += max(seconds, 0.0)

    def advance(self, seconds: float) -> None:
        self._now += seconds


class CancellationToken:
    """Кооперативная отмена; безопасна для вызова из другого потока."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        """Снятие отмены; тот же токен пригоден для следующей сессии."""
        self._event.clear()
