"""Wall-clock stopwatch reporting milliseconds."""

import time


class Timer:
    """Stopwatch that starts on construction."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    def start(self) -> None:
        """Restart the stopwatch."""
        self._start = time.perf_counter()

    def end(self) -> float:
        """Milliseconds elapsed since the last start."""
        return (time.perf_counter() - self._start) * 1000.0