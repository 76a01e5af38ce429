"""Fixed-window rate limiting for outbound AI calls."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: Optional[float] = None


class RateLimiter:
    """Counts calls per key in fixed windows.

    The limiter owns its state; nothing is shared at module level. Expired
    windows are dropped lazily on each check, and optionally by a cleanup
    thread the owner starts and stops explicitly (or via ``with``).

    Args:
        max_calls: Calls allowed per window
        window_seconds: Window length
        clock: Monotonic time source, injectable for tests
        cleanup_interval: Seconds between cleanup passes of the thread
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: float = 300.0,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def check(self, key: str = "default") -> RateLimitDecision:
        """Count one call for ``key`` if the window still has room."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or window.reset_at <= now:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return RateLimitDecision(allowed=True)
            if window.count >= self.max_calls:
                return RateLimitDecision(allowed=False, retry_after=window.reset_at - now)
            window.count += 1
            return RateLimitDecision(allowed=True)

    def try_acquire(self, key: str = "default") -> bool:
        return self.check(key).allowed

    def cleanup(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, window in self._windows.items() if window.reset_at <= now]
            for key in expired:
                del self._windows[key]
        return len(expired)

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background cleanup thread. Starting twice is a no-op."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_cleanup, name="rate-limit-cleanup", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the cleanup thread and wait for it to exit."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None

    def _run_cleanup(self) -> None:
        while not self._stop_event.wait(self.cleanup_interval):
            removed = self.cleanup()
            if removed:
                logger.debug("Dropped %d expired rate-limit windows", removed)

    def __enter__(self) -> "RateLimiter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
