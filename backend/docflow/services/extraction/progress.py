"""
Progress reporting shared by all extraction strategies.

Each strategy execution owns one tracker. Values reaching the caller are
integers in 0..100 and never decrease within that execution.
"""

import threading
import time

from docflow.services.extraction.base import ProgressCallback


class ProgressTracker:
    def __init__(self, callback: ProgressCallback | None = None):
        self._callback = callback
        self._current = 0
        self._lock = threading.Lock()
        self._started = time.monotonic()

    @property
    def current(self) -> int:
        return self._current

    def report(self, percent: float) -> None:
        value = max(0, min(100, round(percent)))
        with self._lock:
            if value < self._current:
                return
            self._current = value
        if self._callback is not None:
            self._callback(value)

    def scaled(self, start: float, end: float):
        """Return a callback mapping a 0..1 fraction into the start..end window."""

        def _report(fraction: float) -> None:
            self.report(start + max(0.0, min(1.0, fraction)) * (end - start))

        return _report

    def complete(self) -> None:
        self.report(100)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._started) * 1000)
