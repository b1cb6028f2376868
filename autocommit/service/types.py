"""Service types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ServiceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class ServiceRunStats:
    """Run counters owned by the service."""
    is_running: bool = False
    last_commit: datetime | None = None
    next_scheduled_commit: datetime | None = None
    total_commits: int = 0
    last_error: str | None = None
