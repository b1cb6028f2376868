"""Git access: state classification, commit execution and message generation."""

from autocommit.git.classifier import RepositoryStateClassifier
from autocommit.git.executor import CommitExecutor
from autocommit.git.repository import GitRepository
from autocommit.git.runner import GitRunner
from autocommit.git.types import CommitAttemptResult, CommitInfo, RepositoryInfo, RepositoryState

__all__ = [
    "CommitAttemptResult",
    "CommitExecutor",
    "CommitInfo",
    "GitRepository",
    "GitRunner",
    "RepositoryInfo",
    "RepositoryState",
    "RepositoryStateClassifier",
]
