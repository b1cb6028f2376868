"""Auto-commit service orchestration."""

from autocommit.service.orchestrator import AutoCommitService
from autocommit.service.types import ServiceRunStats, ServiceState

__all__ = ["AutoCommitService", "ServiceRunStats", "ServiceState"]
