import contextlib
import io
import json
import tempfile
import textwrap
import unittest
from pathlib import Path

from corepacer.cli import main


class CliTests(unittest.TestCase):
    def run_cli(self, *argv):
        stdout = io.StringIO()
        stderr = io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_plan_reports_degraded_periods(self):
        code, out, _ = self.run_cli(
            "plan", "--tasks", "16", "--cores", "8", "--seed", "1", "--log-level", "WARNING"
        )
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["oversubscription_factor"], 2)
        self.assertEqual(len(payload["tasks"]), 16)
        for task in payload["tasks"]:
            self.assertAlmostEqual(
                task["effective_period_seconds"], task["nominal_interval_seconds"] / 2
            )

    def test_zero_cores_exits_with_configuration_error(self):
        code, _, err = self.run_cli("plan", "--tasks", "4", "--cores", "0", "--log-level", "ERROR")
        self.assertEqual(code, 2)
        self.assertIn("configuration error", err)

    def test_run_prints_stats(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "quick.yaml"
            path.write_text(
                textwrap.dedent(
                    """
                    scheduler:
                      concurrency_capacity: 2
                      jitter_margin: 0ms
                    workload:
                      task_count: 4
                      interval_min: 1s
                      interval_max: 2s
                      busy_min: 1ms
                      busy_max: 2ms
                      seed: 3
                    """
                ),
                encoding="utf-8",
            )
            code, out, _ = self.run_cli(
                "run", "--config", str(path), "--duration", "0.2", "--log-level", "ERROR"
            )
        self.assertEqual(code, 0)
        stats = json.loads(out)
        self.assertEqual(stats["running"], 0)
        self.assertLessEqual(stats["peak_running"], 2)


if __name__ == "__main__":
    unittest.main()
