"""Shared error types for autocommit.

Retry decisions are made on the error class, never on message text:
every ``CommitPreconditionError`` aborts a retry loop immediately, anything
else raised while committing is treated as transient.
"""


class AutoCommitError(Exception):
    """Base error for autocommit."""


class ConfigurationError(AutoCommitError):
    """Configuration is missing, unreadable or invalid."""


class ServiceStateError(AutoCommitError):
    """Service lifecycle method called in the wrong state."""


class ScheduleError(AutoCommitError):
    """Scheduling failed."""


class InvalidScheduleError(ScheduleError):
    """Cron expression is malformed or out of range."""

    def __init__(self, expression: str, reason: str):
        super().__init__(f"Invalid cron expression '{expression}': {reason}")
        self.expression = expression
        self.reason = reason


class NotScheduledError(ScheduleError):
    """start() called before schedule()."""


class RepositoryOperationError(AutoCommitError):
    """A git invocation failed. Generally transient."""

    def __init__(self, message: str, *, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CommitError(AutoCommitError):
    """Base for commit failures."""


class CommitPreconditionError(CommitError):
    """A commit precondition does not hold. Never retried."""


class NoChangesError(CommitPreconditionError):
    """Working tree has nothing to commit."""


class EmptyMessageError(CommitPreconditionError):
    """Commit message is empty after trimming."""


class UnsafeStateError(CommitPreconditionError):
    """Repository is mid-merge, mid-rebase, detached, conflicted or unknown."""

    def __init__(self, state: str):
        super().__init__(f"Repository is not in a clean state for auto-commit ({state})")
        self.state = state


class StageEmptyError(CommitPreconditionError):
    """`git add` left the index with nothing staged."""


class CommitExhaustedError(CommitError):
    """Every retry attempt failed."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Failed to create commit after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
