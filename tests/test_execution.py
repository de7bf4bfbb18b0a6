import threading
import unittest
from datetime import timedelta

from corepacer.metrics import ExecutionStats
from corepacer.services import AdmissionLimiter, ExecutionWrapper, TriggerHandle
from corepacer.tasks import TaskDescriptor


class ZeroRandomness:
    def next_int(self, low, high):
        return low


class RecordingReporter:
    def __init__(self, fail=False):
        self.reports = []
        self.fail = fail

    def report(self, task, exc):
        self.reports.append((task.task_id, exc))
        if self.fail:
            raise RuntimeError("reporter down")


def armed_handle(work, task_id="job"):
    task = TaskDescriptor(task_id=task_id, nominal_interval=timedelta(seconds=1), work=work)
    handle = TriggerHandle(
        task=task,
        effective_period=timedelta(milliseconds=1),
        phase_offset=timedelta(0),
    )
    handle.arm(now=0.0)
    handle.enter_flight(single_flight=False)
    return handle


class ExecutionWrapperTests(unittest.TestCase):
    def setUp(self) -> None:
        self.limiter = AdmissionLimiter(2)
        self.stats = ExecutionStats()
        self.stop_event = threading.Event()
        self.reporter = RecordingReporter()

    def make_wrapper(self, reporter=None):
        return ExecutionWrapper(
            limiter=self.limiter,
            rng=ZeroRandomness(),
            jitter_margin=timedelta(0),
            reporter=reporter or self.reporter,
            stats=self.stats,
            stop_event=self.stop_event,
        )

    def test_runs_work_inside_an_admission_slot(self):
        seen = []

        def work():
            seen.append(self.limiter.in_use)

        handle = armed_handle(work)
        self.make_wrapper()(handle)

        self.assertEqual(seen, [1])
        self.assertEqual(self.limiter.available, 2)
        self.assertEqual(handle.in_flight, 0)
        self.assertFalse(handle.queued)
        snapshot = self.stats.snapshot()
        self.assertEqual(snapshot.completed, 1)
        self.assertEqual(snapshot.running, 0)

    def test_work_error_is_reported_and_capacity_returned(self):
        error = ValueError("bad input")

        def work():
            raise error

        wrapper = self.make_wrapper()
        for _ in range(5):
            wrapper(armed_handle(work))
            self.assertEqual(self.limiter.available, 2)

        self.assertEqual(len(self.reporter.reports), 5)
        self.assertIs(self.reporter.reports[0][1], error)
        self.assertEqual(self.stats.snapshot().failed, 5)

    def test_failing_reporter_does_not_escape(self):
        def work():
            raise RuntimeError("boom")

        reporter = RecordingReporter(fail=True)
        with self.assertLogs("corepacer.services.execution", level="ERROR"):
            self.make_wrapper(reporter)(armed_handle(work))
        self.assertEqual(self.limiter.available, 2)

    def test_firing_after_stop_is_abandoned(self):
        calls = []
        self.stop_event.set()

        self.make_wrapper()(armed_handle(lambda: calls.append(1)))

        self.assertEqual(calls, [])
        self.assertEqual(self.stats.snapshot().abandoned, 1)
        self.assertEqual(self.limiter.available, 2)

    def test_disposed_trigger_does_not_run_work(self):
        calls = []
        handle = armed_handle(lambda: calls.append(1))
        handle.dispose()

        self.make_wrapper()(handle)

        self.assertEqual(calls, [])
        self.assertEqual(self.limiter.available, 2)


if __name__ == "__main__":
    unittest.main()
