"""Scheduler types (Pydantic models with camelCase JSON aliases)."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

MAX_MISSED_RUNS = 10


class ScheduleState(BaseModel):
    """Persisted scheduler state, written after every mutation."""

    last_run: datetime | None = Field(None, alias="lastRun")
    next_run: datetime | None = Field(None, alias="nextRun")
    is_active: bool = Field(False, alias="isActive")
    cron_expression: str = Field("", alias="cronExpression")
    missed_runs: list[datetime] = Field(default_factory=list, alias="missedExecutions")

    model_config = {"populate_by_name": True}

    @field_validator("missed_runs")
    @classmethod
    def _keep_latest(cls, value: list[datetime]) -> list[datetime]:
        return value[-MAX_MISSED_RUNS:]

    def record_missed(self, moment: datetime) -> None:
        """Append a recovery timestamp, evicting the oldest beyond the cap."""
        self.missed_runs.append(moment)
        if len(self.missed_runs) > MAX_MISSED_RUNS:
            del self.missed_runs[: len(self.missed_runs) - MAX_MISSED_RUNS]


@dataclass
class ScheduleJobInfo:
    """Snapshot of the installed job."""
    id: str
    cron_expression: str
    next_run: datetime | None
    last_run: datetime | None
    is_active: bool
