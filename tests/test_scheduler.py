"""
Unit tests for the schedulers and the completion slot
"""

import threading
import unittest

from rover_mission.mission import CompletionSlot, MissionStateError, MissionStatus
from rover_mission.utils.scheduler import ManualScheduler, ThreadingScheduler


class TestManualScheduler(unittest.TestCase):
    """Tests for ManualScheduler"""

    def setUp(self):
        self.scheduler = ManualScheduler()
        self.calls = []

    def test_nothing_runs_without_advance(self):
        self.scheduler.call_later(0.0, lambda: self.calls.append("a"))
        self.assertEqual(self.calls, [])
        self.assertEqual(self.scheduler.pending_count, 1)

    def test_runs_in_time_order(self):
        self.scheduler.call_later(2.0, lambda: self.calls.append("late"))
        self.scheduler.call_later(1.0, lambda: self.calls.append("early"))

        ran = self.scheduler.advance(3.0)

        self.assertEqual(self.calls, ["early", "late"])
        self.assertEqual(ran, 2)
        self.assertEqual(self.scheduler.now(), 3.0)

    def test_same_instant_keeps_scheduling_order(self):
        for name in "abc":
            self.scheduler.call_later(1.0, lambda n=name: self.calls.append(n))

        self.scheduler.advance(1.0)

        self.assertEqual(self.calls, ["a", "b", "c"])

    def test_cancel(self):
        handle = self.scheduler.call_later(1.0, lambda: self.calls.append("x"))
        handle.cancel()

        self.scheduler.advance(2.0)

        self.assertEqual(self.calls, [])
        self.assertTrue(handle.cancelled)
        self.assertFalse(handle.pending)

    def test_callback_scheduled_during_advance(self):
        """Callbacks scheduled while advancing run if they fall due"""
        def first():
            self.calls.append("first")
            self.scheduler.call_later(0.5, lambda: self.calls.append("second"))

        self.scheduler.call_later(1.0, first)
        self.scheduler.advance(2.0)

        self.assertEqual(self.calls, ["first", "second"])

    def test_clock_seen_by_callbacks(self):
        self.scheduler.call_later(1.5, lambda: self.calls.append(self.scheduler.now()))
        self.scheduler.advance(10.0)
        self.assertEqual(self.calls, [1.5])

    def test_run_pending(self):
        self.scheduler.call_later(0.0, lambda: self.calls.append("now"))
        self.scheduler.call_later(0.1, lambda: self.calls.append("later"))

        self.scheduler.run_pending()

        self.assertEqual(self.calls, ["now"])
        self.assertEqual(self.scheduler.now(), 0.0)


class TestThreadingScheduler(unittest.TestCase):
    """Tests for ThreadingScheduler"""

    def test_fires(self):
        scheduler = ThreadingScheduler()
        fired = threading.Event()

        scheduler.call_later(0.01, fired.set)

        self.assertTrue(fired.wait(2.0))

    def test_cancel(self):
        scheduler = ThreadingScheduler()
        fired = threading.Event()

        handle = scheduler.call_later(0.2, fired.set)
        handle.cancel()

        self.assertFalse(fired.wait(0.4))


class TestCompletionSlot(unittest.TestCase):
    """Tests for CompletionSlot"""

    def setUp(self):
        self.calls = []
        self.slot = CompletionSlot("test")

    def test_arm_without_callback(self):
        with self.assertRaises(MissionStateError):
            self.slot.arm()

    def test_fires_once(self):
        self.slot.set(self.calls.append)
        self.slot.arm()

        self.assertTrue(self.slot.fire(MissionStatus.SUCCEEDED))
        self.assertFalse(self.slot.fire(MissionStatus.ABORTED))

        self.assertEqual(self.calls, [MissionStatus.SUCCEEDED])
        self.assertTrue(self.slot.fired)
        self.assertEqual(self.slot.status, MissionStatus.SUCCEEDED)

    def test_fire_before_arm(self):
        self.slot.set(self.calls.append)
        self.assertFalse(self.slot.fire(MissionStatus.SUCCEEDED))
        self.assertEqual(self.calls, [])

    def test_rearm(self):
        self.slot.set(self.calls.append)
        self.slot.arm()
        self.slot.fire(MissionStatus.ABORTED)
        self.slot.arm()
        self.slot.fire(MissionStatus.PREEMPTED)

        self.assertEqual(self.calls, [MissionStatus.ABORTED, MissionStatus.PREEMPTED])

    def test_non_callable(self):
        with self.assertRaises(TypeError):
            self.slot.set("not a function")

    def test_callback_error_propagates(self):
        def broken(status):
            raise RuntimeError("boom")

        self.slot.set(broken)
        self.slot.arm()

        with self.assertRaises(RuntimeError):
            self.slot.fire(MissionStatus.SUCCEEDED)
        self.assertFalse(self.slot.armed)


if __name__ == "__main__":
    unittest.main()
