"""
Timer scheduling

Mission states never touch wall-clock timers directly. They receive a
Scheduler and ask it for delayed callbacks, which lets tests drive time
explicitly with ManualScheduler.
"""

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle to a scheduled callback"""

    def __init__(self, callback: Callable[[], None], when: float):
        self.callback = callback
        self.when = when
        self._cancelled = False
        self._fired = False
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        """True until the callback has run or the handle was cancelled"""
        return not (self._cancelled or self._fired)

    def cancel(self):
        """Cancel the callback (no-op if it already ran)"""
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def _run(self):
        if not self.pending:
            return
        self._fired = True
        self.callback()


class Scheduler(ABC):
    """Source of time and delayed callbacks"""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds"""

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        """
        Run callback after delay_s seconds

        A zero delay still defers the callback; it never runs inside
        call_later itself.
        """


class ThreadingScheduler(Scheduler):
    """
    Scheduler backed by threading.Timer

    Callbacks are serialized through a single lock so mission state logic
    always runs on one logical control flow, even though timers fire on
    their own threads.
    """

    def __init__(self, callback_lock: Optional[threading.RLock] = None):
        self._lock = callback_lock or threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock held while callbacks run; share it with message handlers"""
        return self._lock

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self.now() + max(delay_s, 0.0))

        def fire():
            with self._lock:
                try:
                    handle._run()
                except Exception as e:
                    logger.error(f"Error in scheduled callback: {e}")
                    raise

        timer = threading.Timer(max(delay_s, 0.0), fire)
        timer.daemon = True
        handle._timer = timer
        timer.start()
        return handle


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler with a virtual clock

    Nothing runs until advance() or run_pending() is called. Callbacks
    due at the same instant run in the order they were scheduled.
    """

    def __init__(self, start_time: float = 0.0):
        self._time = start_time
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._time

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self._time + max(delay_s, 0.0))
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    @property
    def pending_count(self) -> int:
        """Number of callbacks still waiting to run"""
        return sum(1 for _, _, h in self._queue if h.pending)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every callback that falls due

        Args:
            seconds: Time to advance

        Returns:
            Number of callbacks run
        """
        target = self._time + seconds
        ran = 0

        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            self._time = max(self._time, when)
            if handle.pending:
                handle._run()
                ran += 1

        self._time = target
        return ran

    def run_pending(self) -> int:
        """Run callbacks that are already due (zero-delay deliveries)"""
        return self.advance(0.0)
