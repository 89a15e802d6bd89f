"""Cooperative interrupt flag shared with the SIGINT handler.

The handler only stores ``True`` on the flag. Long-running work polls the
flag at safe points and stops early, and the interactive loop clears it
before each command so an old Ctrl-C cannot cancel the next one.
"""

from __future__ import annotations

import signal
import threading
import time
from collections.abc import Iterable, Iterator
from types import FrameType
from typing import TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

POLL_INTERVAL = 0.1


class InterruptSignal:
    """A boolean that an asynchronous signal sets and application code polls.

    Setting and reading are plain attribute operations, so the signal
    handler never blocks or takes a lock.
    """

    __slots__ = ("_requested",)

    def __init__(self) -> None:
        self._requested = False

    def set(self) -> None:
        self._requested = True

    def clear(self) -> None:
        self._requested = False

    def is_set(self) -> bool:
        return self._requested

    def __bool__(self) -> bool:
        return self._requested

    def sleep(self, seconds: float, interval: float = POLL_INTERVAL) -> bool:
        """Sleep for ``seconds`` unless interrupted.

        Returns:
            True if the full duration elapsed, False if the flag was set.
        """
        deadline = time.monotonic() + seconds
        while not self._requested:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            time.sleep(min(interval, remaining))
        return False

    def iterate(self, items: Iterable[T]) -> Iterator[T]:
        """Yield from ``items`` until the flag is set."""
        for item in items:
            if self._requested:
                return
            yield item


_process_signal: InterruptSignal | None = None
_process_signal_lock = threading.Lock()
_handler_installed = False


def get_interrupt_signal() -> InterruptSignal:
    """Return the process-wide flag, creating it on first use."""
    global _process_signal
    if _process_signal is None:
        with _process_signal_lock:
            if _process_signal is None:
                _process_signal = InterruptSignal()
    return _process_signal


def install_signal_handler(signum: int = signal.SIGINT) -> InterruptSignal:
    """Route ``signum`` to the process-wide flag.

    Only the first call installs a handler; later calls return the same flag.
    Must be called from the main thread.
    """
    global _handler_installed
    flag = get_interrupt_signal()
    with _process_signal_lock:
        if _handler_installed:
            return flag

        def _handle(received: int, frame: FrameType | None) -> None:
            flag.set()

        signal.signal(signum, _handle)
        _handler_installed = True
    logger.debug("interrupt_handler_installed", signal=signal.Signals(signum).name)
    return flag
