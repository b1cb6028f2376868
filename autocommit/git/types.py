"""Git types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal


class RepositoryState(str, Enum):
    """Classification of a working tree. Recomputed per call, never persisted."""
    CLEAN = "clean"
    DIRTY = "dirty"
    MERGING = "merging"
    REBASING = "rebasing"
    DETACHED = "detached"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"

    @property
    def is_safe_for_auto_commit(self) -> bool:
        return self in (RepositoryState.CLEAN, RepositoryState.DIRTY)

    def __str__(self) -> str:
        return self.value


FileChangeType = Literal["code", "config", "documentation", "test", "asset", "dependency", "mixed"]


@dataclass(frozen=True)
class CommitAttemptResult:
    """Outcome of one execute_commit() run."""
    success: bool
    message: str
    timestamp: datetime
    files_changed: int = 0
    commit_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class FileAnalysis:
    """Changed files grouped for message generation."""
    change_type: FileChangeType
    files: list[str]
    summary: str


@dataclass
class RepositoryInfo:
    """Repository snapshot for status output."""
    is_repository: bool
    state: RepositoryState = RepositoryState.UNKNOWN
    has_changes: bool = False
    current_branch: str | None = None
    last_commit: str | None = None


@dataclass
class CommitInfo:
    """A commit from history."""
    hash: str
    message: str
    author: str
    date: datetime
    files_changed: list[str] = field(default_factory=list)
