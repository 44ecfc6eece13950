# Timer management for grace periods and evictions
import heapq
import itertools
import time
from util.logging_utils import debug_log


class Clock:
    """Monotonic wall clock used by the scheduler and the supervisor."""

    def now(self):
        return time.monotonic()


class FakeClock(Clock):
    """
    Manually advanced clock for deterministic timer tests.

    Parameters
    ----------
    start : float, optional
        Initial reading, default 0.0
    """

    def __init__(self, start=0.0):
        self._now = float(start)

    def now(self):
        return self._now

    def advance(self, seconds):
        self._now += seconds
        return self._now

    def set(self, value):
        self._now = float(value)
        return self._now


class TimerHandle:
    """
    Cancellable reference to a scheduled callback.

    Handles are stored on the entity whose state they guard so that any
    transition invalidating the timer can cancel it.
    """

    __slots__ = ('fire_at', 'callback', 'args', 'label', 'cancelled', 'fired', '_seq')

    def __init__(self, fire_at, seq, callback, args, label=None):
        self.fire_at = fire_at
        self.callback = callback
        self.args = args
        self.label = label
        self.cancelled = False
        self.fired = False
        self._seq = seq

    def cancel(self):
        """Prevent the callback from running. Cancelling twice is harmless."""
        self.cancelled = True

    @property
    def active(self):
        return not (self.cancelled or self.fired)

    def __lt__(self, other):
        return (self.fire_at, self._seq) < (other.fire_at, other._seq)

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'fired' if self.fired else 'pending'
        return f"TimerHandle({self.label or self.callback!r}, fire_at={self.fire_at:.3f}, {state})"


class Scheduler:
    """
    Single-threaded delayed-task scheduler ordered by fire time.

    Callbacks only run from ``run_due``, which the owner calls while holding
    its dispatch lock, so a firing timer is handled like any other inbound
    event and never interleaves with one.

    Parameters
    ----------
    clock : Clock, optional
        Time source, defaults to a monotonic ``Clock``
    """

    def __init__(self, clock=None):
        self.clock = clock or Clock()
        self._queue = []
        self._counter = itertools.count()

    def schedule(self, delay, callback, *args, label=None):
        """
        Schedule ``callback(*args)`` to run ``delay`` seconds from now.

        Parameters
        ----------
        delay : float
            Seconds until the callback becomes due
        callback : callable
            Function to execute when the timer expires
        label : str, optional
            Name used in logs and reprs

        Returns
        -------
        TimerHandle
            Handle that can cancel the pending callback
        """
        fire_at = self.clock.now() + max(0.0, float(delay))
        handle = TimerHandle(fire_at, next(self._counter), callback, args, label)
        heapq.heappush(self._queue, handle)
        return handle

    def run_due(self):
        """
        Run every pending callback whose fire time has been reached.

        Callbacks scheduled by a running callback are picked up in the same
        pass when they are already due.

        Returns
        -------
        int
            Number of callbacks executed
        """
        fired = 0
        while self._queue:
            handle = self._queue[0]
            if handle.cancelled:
                heapq.heappop(self._queue)
                continue
            if handle.fire_at > self.clock.now():
                break
            heapq.heappop(self._queue)
            handle.fired = True
            fired += 1
            try:
                handle.callback(*handle.args)
            except Exception as e:
                debug_log("Scheduled callback failed", None, None, {
                    'timer': handle.label, 'error': str(e)
                })
                raise
        return fired

    def pending(self):
        """Number of scheduled callbacks that have neither fired nor been cancelled."""
        return sum(1 for handle in self._queue if not handle.cancelled)

    def next_fire_at(self):
        """Fire time of the earliest pending callback, or None."""
        for handle in sorted(self._queue):
            if not handle.cancelled:
                return handle.fire_at
        return None

    def clear(self):
        """Cancel and drop every pending callback."""
        for handle in self._queue:
            handle.cancel()
        self._queue = []
