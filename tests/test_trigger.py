import unittest
from datetime import timedelta

from corepacer.services import TriggerHandle, TriggerState
from corepacer.tasks import TaskDescriptor


def make_handle(period_ms=100, offset_ms=30):
    task = TaskDescriptor(task_id="t", nominal_interval=timedelta(seconds=1), work=lambda: None)
    return TriggerHandle(
        task=task,
        effective_period=timedelta(milliseconds=period_ms),
        phase_offset=timedelta(milliseconds=offset_ms),
    )


class TriggerHandleTests(unittest.TestCase):
    def test_starts_idle_and_arms_with_phase_offset(self):
        handle = make_handle()
        self.assertIs(handle.state, TriggerState.IDLE)
        fire_at = handle.arm(now=10.0)
        self.assertTrue(handle.is_armed)
        self.assertAlmostEqual(fire_at, 10.03)
        self.assertEqual(handle.task_id, "t")

    def test_advance_follows_fixed_grid(self):
        handle = make_handle()
        handle.arm(now=0.0)
        self.assertAlmostEqual(handle.advance(now=0.03), 0.13)
        # A late dispatch does not shift the grid.
        self.assertAlmostEqual(handle.advance(now=0.17), 0.23)
        self.assertEqual(handle.firings, 2)
        self.assertEqual(handle.skipped, 0)

    def test_advance_skips_grid_points_already_past(self):
        handle = make_handle(offset_ms=0)
        handle.arm(now=0.0)
        next_at = handle.advance(now=0.35)
        self.assertAlmostEqual(next_at, 0.4)
        self.assertEqual(handle.skipped, 3)

    def test_dispose_is_idempotent_and_final(self):
        handle = make_handle()
        handle.arm(now=0.0)
        handle.dispose()
        handle.dispose()
        self.assertIs(handle.state, TriggerState.DISPOSED)
        self.assertFalse(handle.is_armed)
        with self.assertRaises(RuntimeError):
            handle.arm(now=1.0)

    def test_only_one_firing_waits_for_admission(self):
        handle = make_handle()
        self.assertTrue(handle.enter_flight(single_flight=False))
        self.assertTrue(handle.queued)
        self.assertFalse(handle.enter_flight(single_flight=False))
        handle.mark_admitted()
        self.assertFalse(handle.queued)
        # An admitted firing may overlap with the next one.
        self.assertTrue(handle.enter_flight(single_flight=False))
        self.assertEqual(handle.in_flight, 2)

    def test_unadmitted_firing_clears_queued_on_leave(self):
        handle = make_handle()
        handle.enter_flight(single_flight=False)
        handle.leave_flight(admitted=False)
        self.assertFalse(handle.queued)
        self.assertEqual(handle.in_flight, 0)
        self.assertTrue(handle.enter_flight(single_flight=False))

    def test_single_flight_refuses_overlap_with_running_firing(self):
        handle = make_handle()
        self.assertTrue(handle.enter_flight(single_flight=True))
        handle.mark_admitted()
        self.assertFalse(handle.enter_flight(single_flight=True))
        handle.leave_flight()
        self.assertTrue(handle.enter_flight(single_flight=True))


class TaskDescriptorTests(unittest.TestCase):
    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            TaskDescriptor(task_id=1, nominal_interval=timedelta(0), work=lambda: None)

    def test_is_immutable(self):
        task = TaskDescriptor(task_id=1, nominal_interval=timedelta(seconds=1), work=lambda: None)
        with self.assertRaises(Exception):
            task.task_id = 2  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
