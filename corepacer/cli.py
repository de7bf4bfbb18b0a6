"""Command line entry point that runs a synthetic CPU-bound workload."""
from __future__ import annotations

import argparse
import itertools
import json
import logging
import sys
import threading
from pathlib import Path
from typing import List, Sequence

from .config import PacerConfig
from .config_loader import load_config
from .errors import ConfigurationError
from .notifiers import FailureReporter, LoggingReporter, WebhookReporter
from .pacing import SystemRandomness, effective_period, oversubscription_factor
from .services import Scheduler
from .tasks import TaskDescriptor, generate_tasks

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="corepacer workload runner")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Schedule the synthetic workload")
    _add_common_arguments(run)
    run.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to run before stopping (default: until interrupted)",
    )

    plan = sub.add_parser(
        "plan",
        help="Print the effective period of every task without running anything",
    )
    _add_common_arguments(plan)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the YAML configuration file",
    )
    parser.add_argument("--tasks", type=int, default=None, help="Number of tasks")
    parser.add_argument(
        "--cores", type=int, default=None, help="Concurrency capacity (CPU cores)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _resolve_config(args)
        if args.command == "run":
            return _command_run(args, config)
        if args.command == "plan":
            return _command_plan(config)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    parser.error("unknown command")
    return 1


def _resolve_config(args: argparse.Namespace) -> PacerConfig:
    config = load_config(args.config) if args.config else PacerConfig()
    if args.tasks is not None:
        config.workload.task_count = args.tasks
    if args.cores is not None:
        config.scheduler.concurrency_capacity = args.cores
    if args.seed is not None:
        config.workload.seed = args.seed
    return config


def _build_tasks(config: PacerConfig) -> List[TaskDescriptor]:
    rng = SystemRandomness(config.workload.seed)
    tasks = itertools.islice(
        generate_tasks(config.workload, rng), max(0, config.workload.task_count)
    )
    return [task.descriptor() for task in tasks]


def _build_reporter(config: PacerConfig) -> FailureReporter:
    if config.reporter.webhook_url:
        return WebhookReporter(config.reporter)
    return LoggingReporter()


def _command_run(args: argparse.Namespace, config: PacerConfig) -> int:
    tasks = _build_tasks(config)
    reporter = _build_reporter(config)
    scheduler = Scheduler(
        tasks,
        config.scheduler,
        rng=SystemRandomness(config.workload.seed),
        reporter=reporter,
    )
    scheduler.start()

    finished = threading.Event()
    try:
        finished.wait(timeout=args.duration)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        print("Interrupted, stopping scheduler...", file=sys.stderr)
    finally:
        scheduler.stop()
        if isinstance(reporter, WebhookReporter):
            reporter.close()

    print(json.dumps(scheduler.stats().to_dict(), indent=2))
    return 0


def _command_plan(config: PacerConfig) -> int:
    tasks = _build_tasks(config)
    cores = config.scheduler.concurrency_capacity
    if not tasks:
        raise ConfigurationError("at least one task must be specified")
    factor = oversubscription_factor(len(tasks), cores)
    output = {
        "task_count": len(tasks),
        "concurrency_capacity": cores,
        "oversubscription_factor": factor,
        "tasks": [
            {
                "task_id": task.task_id,
                "nominal_interval_seconds": task.nominal_interval.total_seconds(),
                "effective_period_seconds": effective_period(
                    task.nominal_interval, factor
                ).total_seconds(),
            }
            for task in tasks
        ],
    }
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
