"""Deferred callbacks for the workspace sessions.

Every callback runs while holding the scheduler's ``lock`` so session state is
only ever mutated by one logical thread. ``VirtualScheduler`` moves time only
when told to and is what the tests drive; ``TimerScheduler`` runs callbacks on
a single background thread against the real clock.
"""
import heapq
import itertools
import logging
import threading
import time
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


class ScheduledCall:
    def __init__(self, due, seq, callback):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def __lt__(self, other):
        return (self.due, self.seq) < (other.due, other.seq)


class VirtualScheduler:
    """Scheduler backed by a virtual clock, advanced explicitly"""

    def __init__(self, start=None):
        self.lock = threading.RLock()
        self._start = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self._queue = []
        self._seq = itertools.count()

    def now(self):
        return self._start + timedelta(seconds=self._elapsed)

    @property
    def pending(self):
        with self.lock:
            return sum(1 for call in self._queue if not call.cancelled)

    def schedule(self, delay, callback):
        if delay < 0:
            raise ValueError("delay must be >= 0")
        with self.lock:
            call = ScheduledCall(self._elapsed + delay, next(self._seq), callback)
            heapq.heappush(self._queue, call)
            return call

    def advance(self, seconds=0.0):
        """Move the clock forward, firing every callback that falls due on the way"""
        with self.lock:
            target = self._elapsed + seconds
            fired = 0
            while self._queue and self._queue[0].due <= target:
                call = heapq.heappop(self._queue)
                if call.cancelled:
                    continue
                self._elapsed = max(self._elapsed, call.due)
                call.callback()
                fired += 1
            self._elapsed = target
            return fired

    def run_all(self):
        """Fire everything queued, including callbacks scheduled by callbacks"""
        with self.lock:
            fired = 0
            while self._queue:
                fired += self.advance(max(0.0, self._queue[0].due - self._elapsed))
            return fired

    def shutdown(self):
        with self.lock:
            self._queue.clear()


class TimerScheduler:
    """Scheduler that fires callbacks from one daemon thread on the real clock"""

    def __init__(self):
        self.lock = threading.RLock()
        self._queue = []
        self._seq = itertools.count()
        self._wakeup = threading.Condition()
        self._thread = None
        self._running = False
        self._origin_wall = datetime.now(timezone.utc)
        self._origin_mono = time.monotonic()

    def now(self):
        # monotonic offset keeps timestamps non-decreasing if the wall clock jumps
        return self._origin_wall + timedelta(seconds=time.monotonic() - self._origin_mono)

    @property
    def pending(self):
        with self._wakeup:
            return sum(1 for call in self._queue if not call.cancelled)

    def start(self):
        with self._wakeup:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(target=self._loop, name="codechat-scheduler", daemon=True)
        self._thread.start()
        logger.info("Scheduler thread started")

    def shutdown(self, timeout=2.0):
        with self._wakeup:
            self._running = False
            self._queue.clear()
            self._wakeup.notify_all()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        logger.info("Scheduler thread stopped")

    def schedule(self, delay, callback):
        if delay < 0:
            raise ValueError("delay must be >= 0")
        with self._wakeup:
            call = ScheduledCall(time.monotonic() + delay, next(self._seq), callback)
            heapq.heappush(self._queue, call)
            self._wakeup.notify()
            return call

    def _next_due(self):
        with self._wakeup:
            while self._running:
                if not self._queue:
                    self._wakeup.wait()
                    continue
                call = self._queue[0]
                if call.cancelled:
                    heapq.heappop(self._queue)
                    continue
                remaining = call.due - time.monotonic()
                if remaining > 0:
                    self._wakeup.wait(remaining)
                    continue
                return heapq.heappop(self._queue)
            return None

    def _loop(self):
        while True:
            call = self._next_due()
            if call is None:
                return
            with self.lock:
                if call.cancelled:
                    continue
                try:
                    call.callback()
                except Exception:
                    logger.exception("Scheduled callback failed")


def build_scheduler(config):
    kind = config.get("SCHEDULER", "timer")
    if kind == "virtual":
        return VirtualScheduler()
    if kind == "timer":
        scheduler = TimerScheduler()
        scheduler.start()
        return scheduler
    raise ValueError(f"Unsupported scheduler: {kind}")
