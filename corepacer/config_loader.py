"""Utilities to load :mod:`corepacer.config` structures from YAML files."""
from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .config import PacerConfig, ReporterConfig, SchedulerConfig, WorkloadConfig

_DURATION_UNITS = {
    "ms": _dt.timedelta(milliseconds=1),
    "s": _dt.timedelta(seconds=1),
    "m": _dt.timedelta(minutes=1),
    "h": _dt.timedelta(hours=1),
    "d": _dt.timedelta(days=1),
}


def load_config(path: Path) -> PacerConfig:
    """Load a configuration file into :class:`PacerConfig`.

    Durations may be given as human friendly strings such as ``"250ms"`` or
    ``"1.5s"``.  Sections omitted in the YAML file fall back to the defaults
    declared in :mod:`corepacer.config`.
    """

    raw = _load_yaml(path)
    return config_from_mapping(raw)


def config_from_mapping(raw: Mapping[str, Any]) -> PacerConfig:
    defaults = PacerConfig()

    scheduler_section = _section(raw, "scheduler")
    scheduler = SchedulerConfig(
        concurrency_capacity=int(
            scheduler_section.get(
                "concurrency_capacity", defaults.scheduler.concurrency_capacity
            )
        ),
        jitter_margin=_parse_duration(
            scheduler_section.get("jitter_margin", defaults.scheduler.jitter_margin)
        ),
        worker_threads=_optional_int(scheduler_section.get("worker_threads")),
        single_flight=bool(scheduler_section.get("single_flight", False)),
    )

    workload_section = _section(raw, "workload")
    base = defaults.workload
    workload = WorkloadConfig(
        task_count=int(workload_section.get("task_count", base.task_count)),
        interval_min=_parse_duration(workload_section.get("interval_min", base.interval_min)),
        interval_max=_parse_duration(workload_section.get("interval_max", base.interval_max)),
        busy_min=_parse_duration(workload_section.get("busy_min", base.busy_min)),
        busy_max=_parse_duration(workload_section.get("busy_max", base.busy_max)),
        seed=_optional_int(workload_section.get("seed")),
    )

    reporter_section = _section(raw, "reporter")
    webhook_url = reporter_section.get("webhook_url")
    reporter = ReporterConfig(
        webhook_url=str(webhook_url) if webhook_url else None,
        request_timeout=float(reporter_section.get("request_timeout", 5.0)),
    )

    return PacerConfig(scheduler=scheduler, workload=workload, reporter=reporter)


def _load_yaml(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("configuration root must be a mapping")
    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"section {name!r} must be a mapping")
    return section


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _parse_duration(value: Any) -> _dt.timedelta:
    if isinstance(value, _dt.timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"unsupported duration value: {value!r}")
    if isinstance(value, (int, float)):
        return _dt.timedelta(seconds=float(value))
    if not isinstance(value, str):
        raise ValueError(f"unsupported duration value: {value!r}")
    value = value.strip().lower()
    if value.isdigit():
        return _dt.timedelta(seconds=int(value))
    # "ms" must be checked before the single-letter units.
    for unit in sorted(_DURATION_UNITS, key=len, reverse=True):
        if value.endswith(unit):
            amount_text = value[: -len(unit)].strip()
            break
    else:
        raise ValueError(f"unknown duration unit: {value}")
    try:
        amount = float(amount_text)
    except ValueError as exc:
        raise ValueError(f"invalid duration amount: {value}") from exc
    base = _DURATION_UNITS[unit]
    return _dt.timedelta(seconds=base.total_seconds() * amount)
