# grammar_detector/infrastructure/adapters/recognition/functionality/watchdog_timer.py

"""Stall watchdog - forces an engine restart when results stop arriving"""

import asyncio
import threading
from typing import Any, Callable, Optional
import structlog

logger = structlog.get_logger()

# (delay_seconds, callback) -> handle with cancel()
Scheduler = Callable[[float, Callable[[], None]], Any]

DEFAULT_WATCHDOG_INTERVAL = 2.0


def _loop_scheduler(delay: float, callback: Callable[[], None]):
    """
    Schedule on the running asyncio loop.

    Without a running loop (plain synchronous host) a daemon threading.Timer
    is used instead; both handles expose cancel().
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay, callback)


class WatchdogTimer:
    """
    One-shot timer rearmed on every result.

    If the interval elapses without a rearm, on_timeout is called once.
    cancel() guarantees the pending timeout never runs.
    """

    def __init__(
            self,
            interval: float,
            on_timeout: Callable[[], None],
            scheduler: Optional[Scheduler] = None
    ):
        """
        Args:
            interval: Seconds without results before firing
            on_timeout: Called when the interval elapses
            scheduler: Custom scheduler (default: running asyncio loop)
        """
        if interval <= 0:
            raise ValueError("interval must be > 0")

        self.interval = interval
        self.on_timeout = on_timeout
        self._schedule = scheduler or _loop_scheduler
        self._handle = None
        self._generation = 0
        self.fire_count = 0

        logger.debug("watchdog_initialized", interval=interval)

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    def rearm(self) -> None:
        """Cancel pending timeout and arm a fresh one."""
        self.cancel()
        self._generation += 1
        generation = self._generation
        self._handle = self._schedule(self.interval, lambda: self._fire(generation))

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int) -> None:
        # Stale handle (cancelled or rearmed in the meantime)
        if generation != self._generation or self._handle is None:
            return

        self._handle = None
        self.fire_count += 1
        logger.warning("watchdog_fired", interval=self.interval, fire_count=self.fire_count)
        self.on_timeout()
