"""
Unit tests for the CountdownTimer class.
"""
import asyncio
import time
import unittest
from unittest.mock import Mock

from trivia_bot.countdown import CountdownTimer
from trivia_bot.exceptions import InvalidConfiguration


def run_immediately(callback):
    callback()


class TestCountdownTimer(unittest.TestCase):
    """Test cases for tick-driven countdown behaviour."""

    def setUp(self):
        """Set up test fixtures."""
        self.callback = Mock()
        self.timer = CountdownTimer(self.callback, 5, schedule=run_immediately)

    def test_initial_seconds_remaining(self):
        """A fresh countdown reports period - 1 seconds remaining."""
        self.assertEqual(self.timer.get_seconds_remaining(), 4)

    def test_seconds_remaining_reaches_zero_before_firing(self):
        """After P-1 ticks the next callback is 0 seconds away and has not fired."""
        for _ in range(4):
            self.timer.tick()

        self.assertEqual(self.timer.get_seconds_remaining(), 0)
        self.callback.assert_not_called()

    def test_callback_fires_once_per_period_and_restarts(self):
        """The P-th tick fires the callback once and restarts the cycle."""
        for _ in range(5):
            self.timer.tick()

        self.callback.assert_called_once()
        self.assertEqual(self.timer.get_seconds_remaining(), 4)

    def test_callback_fires_every_period(self):
        """Callback count matches the number of completed periods."""
        for _ in range(17):
            self.timer.tick()

        self.assertEqual(self.callback.call_count, 3)
        self.assertEqual(self.timer.get_seconds_remaining(), 2)

    def test_seconds_remaining_never_negative(self):
        """Seconds remaining stay within [0, period - 1] over several cycles."""
        for _ in range(23):
            self.timer.tick()
            remaining = self.timer.get_seconds_remaining()
            self.assertGreaterEqual(remaining, 0)
            self.assertLessEqual(remaining, 4)

    def test_seconds_remaining_when_counter_is_zero(self):
        """A counter at zero reports a full period."""
        self.timer._remaining = 0
        self.assertEqual(self.timer.get_seconds_remaining(), 4)

    def test_clear_stops_callbacks(self):
        """Ticks after clear() never fire the callback."""
        for _ in range(3):
            self.timer.tick()
        self.timer.clear()

        for _ in range(20):
            self.timer.tick()

        self.callback.assert_not_called()
        self.assertFalse(self.timer.is_active)

    def test_clear_is_idempotent(self):
        """Calling clear() twice is safe."""
        self.timer.clear()
        self.timer.clear()
        self.assertFalse(self.timer.is_active)

    def test_period_of_one_fires_every_tick(self):
        """A one-second period fires on every tick."""
        timer = CountdownTimer(self.callback, 1, schedule=run_immediately)
        for _ in range(3):
            timer.tick()
            self.assertEqual(timer.get_seconds_remaining(), 0)

        self.assertEqual(self.callback.call_count, 3)

    def test_invalid_periods(self):
        """Non-positive or non-integer periods are rejected."""
        for period in (0, -5, 1.5, "10", None, True):
            with self.subTest(period=period):
                with self.assertRaises(InvalidConfiguration):
                    CountdownTimer(self.callback, period)


class TestCountdownTimerScheduling(unittest.IsolatedAsyncioTestCase):
    """Test cases for the countdown on a running event loop."""

    async def test_callback_is_queued_not_called_inside_tick(self):
        """Without an injected scheduler the callback runs as its own loop event."""
        callback = Mock()
        timer = CountdownTimer(callback, 1)

        timer.tick()
        callback.assert_not_called()

        await asyncio.sleep(0)
        callback.assert_called_once()

    async def test_create_starts_tick_loop(self):
        """create() starts ticking immediately."""
        fired = asyncio.Event()
        timer = CountdownTimer.create(fired.set, 1)
        try:
            await asyncio.wait_for(fired.wait(), timeout=3)
            self.assertTrue(timer.is_active)
        finally:
            timer.clear()

    async def test_blocked_loop_does_not_replay_missed_ticks(self):
        """A blocked loop advances the countdown once instead of replaying missed periods."""
        callback = Mock()
        timer = CountdownTimer.create(callback, 1)
        self.addCleanup(timer.clear)
        await asyncio.sleep(0)

        time.sleep(2.5)
        with self.assertLogs('trivia_bot.countdown', level='WARNING'):
            await asyncio.sleep(0.3)

        self.assertEqual(callback.call_count, 1)
        self.assertEqual(timer.get_seconds_remaining(), 0)

    async def test_clear_cancels_tick_task(self):
        """clear() cancels the background tick task."""
        timer = CountdownTimer.create(Mock(), 60)
        task = timer._task

        timer.clear()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(task.cancelled())


if __name__ == '__main__':
    unittest.main()
