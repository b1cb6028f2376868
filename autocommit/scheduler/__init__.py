"""Cron scheduling with persisted state and missed-run recovery."""

from autocommit.scheduler.cron import compute_next_run, crossed_day_boundary, validate_cron_expression
from autocommit.scheduler.service import ScheduleEngine
from autocommit.scheduler.types import ScheduleJobInfo, ScheduleState

__all__ = [
    "ScheduleEngine",
    "ScheduleJobInfo",
    "ScheduleState",
    "compute_next_run",
    "crossed_day_boundary",
    "validate_cron_expression",
]
