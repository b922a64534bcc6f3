"""
Repeating countdown that drives the periodic question cycle.
"""
import asyncio
import logging
import time
from typing import Any, Callable, Optional

from .exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_created(name: str, duration: int) -> None:
        """Log timer creation."""
        logger.debug(
            f"Timer lifecycle: CREATED - {name}, period {duration}s",
            extra={
                'event_type': 'timer_created',
                'timer_name': name,
                'duration': duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_tick(name: str, remaining: int) -> None:
        """Log a single tick."""
        logger.debug(
            f"Timer lifecycle: TICK - {name}, {remaining}s remaining",
            extra={
                'event_type': 'timer_tick',
                'timer_name': name,
                'remaining': remaining,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_fired(name: str, duration: int) -> None:
        """Log a completed period."""
        logger.debug(
            f"Timer lifecycle: FIRED - {name} after {duration}s",
            extra={
                'event_type': 'timer_fired',
                'timer_name': name,
                'duration': duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_lag(name: str, lag: float) -> None:
        """Log ticks dropped after the event loop was blocked."""
        logger.warning(
            f"Timer lifecycle: LAG - {name}, loop blocked for {lag:.1f}s, skipping missed ticks",
            extra={
                'event_type': 'timer_lag',
                'timer_name': name,
                'lag': lag,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(name: str, from_state: str, to_state: str, reason: str = None) -> None:
        """Log timer state transitions."""
        logger.debug(
            f"Timer lifecycle: STATE_TRANSITION - {name}, {from_state} -> {to_state}"
            + (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'timer_state_transition',
                'timer_name': name,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(name: str, error_type: str, error_message: str, operation: str) -> None:
        """Log timer errors."""
        logger.error(
            f"Timer lifecycle: ERROR - {name}, {error_type} in {operation}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'timer_name': name,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class CountdownTimer:
    """
    Counts down one second at a time and fires a callback once per period.

    The counter, not wall-clock deltas, decides when the callback fires. After
    firing, the counter is re-armed with the full period. The callback is
    queued as its own event on the loop instead of being called from inside
    the tick.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        period_seconds: int,
        schedule: Optional[Callable[[Callable[[], Any]], Any]] = None,
        name: str = "question_interval"
    ):
        """
        Initialize the countdown without starting it.

        Args:
            callback: Called once per completed period
            period_seconds: Length of one period in seconds
            schedule: Queues the callback; defaults to the running loop's call_soon
            name: Label used in log records

        Raises:
            InvalidConfiguration: If period_seconds is not a positive integer
        """
        if isinstance(period_seconds, bool) or not isinstance(period_seconds, int) or period_seconds <= 0:
            raise InvalidConfiguration(
                f"Countdown period must be a positive integer, got {period_seconds!r}"
            )

        self._callback = callback
        self._period_seconds = period_seconds
        self._remaining = period_seconds
        self._active = True
        self._schedule = schedule
        self._name = name
        self._task: Optional[asyncio.Task] = None

        TimerLifecycleLogger.log_timer_created(name, period_seconds)

    @classmethod
    def create(cls, callback: Callable[[], Any], period_seconds: int, **kwargs) -> "CountdownTimer":
        """Create a countdown and start its tick loop on the running event loop."""
        timer = cls(callback, period_seconds, **kwargs)
        timer.start()
        return timer

    def start(self) -> None:
        """Start the one-second tick loop."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        TimerLifecycleLogger.log_timer_state_transition(self._name, "created", "running")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        try:
            while self._active:
                next_tick += 1
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
                lag = loop.time() - next_tick
                if lag >= 1:
                    # Missed ticks are dropped, a stalled loop advances the countdown by one
                    TimerLifecycleLogger.log_timer_lag(self._name, lag)
                    next_tick = loop.time()
                self.tick()
        except asyncio.CancelledError:
            TimerLifecycleLogger.log_timer_state_transition(self._name, "running", "cancelled")
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(self._name, type(e).__name__, str(e), "tick_loop")
            raise

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if not self._active:
            return

        self._remaining -= 1
        TimerLifecycleLogger.log_timer_tick(self._name, self._remaining)

        if self._remaining <= 0:
            TimerLifecycleLogger.log_timer_fired(self._name, self._period_seconds)
            self._queue_callback()
            self._remaining = self._period_seconds

    def _queue_callback(self) -> None:
        if self._schedule is not None:
            self._schedule(self._callback)
        else:
            asyncio.get_running_loop().call_soon(self._callback)

    def get_seconds_remaining(self) -> int:
        """
        Get the number of seconds until the next callback.

        The second currently in flight has not elapsed yet, so it is not
        counted.
        """
        if self._remaining <= 0:
            return self._period_seconds - 1
        return self._remaining - 1

    def clear(self) -> None:
        """Stop ticking. Safe to call more than once."""
        if not self._active:
            return

        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        TimerLifecycleLogger.log_timer_state_transition(self._name, "running", "cleared", "clear requested")

    @property
    def period_seconds(self) -> int:
        """Length of one period in seconds."""
        return self._period_seconds

    @property
    def is_active(self) -> bool:
        """Check if the countdown is still ticking."""
        return self._active
