"""Stage-and-commit with precondition checks and bounded retry."""

import asyncio
import re
from typing import TYPE_CHECKING

from loguru import logger

from autocommit.errors import (
    CommitExhaustedError,
    CommitPreconditionError,
    EmptyMessageError,
    NoChangesError,
    RepositoryOperationError,
    StageEmptyError,
    UnsafeStateError,
)
from autocommit.git.classifier import RepositoryStateClassifier
from autocommit.git.repository import GitRepository

if TYPE_CHECKING:
    from loguru import Logger

# First line of `git commit` output: "[branch (root-commit) abc1234] subject"
_COMMIT_SUMMARY = re.compile(r"^\[.*?([0-9a-f]{7,40})\]", re.MULTILINE)


def sanitize_commit_message(message: str) -> str:
    """Escape quotes, backticks and `$`, and fold newlines into spaces."""
    sanitized = (
        message.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("`", "\\`")
        .replace("$", "\\$")
        .replace("\r\n", " ")
        .replace("\n", " ")
        .replace("\r", " ")
    )
    return sanitized.strip()


class CommitExecutor:
    """Performs the single mutation this project makes: ``git add -A`` then ``git commit``."""

    def __init__(
        self,
        repo: GitRepository,
        classifier: RepositoryStateClassifier,
        exclude_patterns: list[str] | None = None,
        log: "Logger | None" = None,
    ):
        self.repo = repo
        self.classifier = classifier
        self.exclude_patterns = list(exclude_patterns or [])
        self._log = log or logger.bind(component="commit")
        self.last_files_changed: list[str] = []

    async def attempt_commit(self, message: str) -> str:
        """One commit attempt. Returns the new commit id.

        Raises a CommitPreconditionError subclass when a precondition fails
        and RepositoryOperationError when git itself fails.
        """
        state = await self.classifier.classify()
        if not state.is_safe_for_auto_commit:
            raise UnsafeStateError(state.value)

        if not await self.repo.has_changes():
            raise NoChangesError("No changes to commit")

        if not message or not message.strip():
            raise EmptyMessageError("Commit message cannot be empty")

        safe_message = sanitize_commit_message(message)

        self._log.debug("Adding changes to staging area")
        await self.repo.runner.run("add", "-A", "--", *self._pathspecs())

        if not await self.repo.get_staged_files():
            raise StageEmptyError("No files were staged for commit")

        self._log.debug(f"Creating commit: {safe_message}")
        output = await self.repo.runner.run("commit", "-m", safe_message)

        # The commit has landed; nothing below may fail the attempt
        commit_id = await self._resolve_commit_id(output.stdout)
        self.last_files_changed = []
        if commit_id:
            try:
                self.last_files_changed = await self.repo.files_in_commit(commit_id)
            except RepositoryOperationError as e:
                self._log.warning(f"Failed to list files for commit {commit_id}: {e}")

        self._log.info(
            f"Created commit {commit_id[:8]} ({len(self.last_files_changed)} files): {safe_message} "
            f"| {output.stdout.strip()[:200]}"
        )
        return commit_id

    async def attempt_commit_with_retry(self, message: str, max_attempts: int = 3, delay_ms: int = 1000) -> str:
        """Retry transient failures with a fixed delay; precondition failures abort at once."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                self._log.debug(f"Commit attempt {attempt}/{max_attempts}")
                return await self.attempt_commit(message)
            except CommitPreconditionError:
                raise
            except Exception as e:
                last_error = e
                if attempt < max_attempts:
                    self._log.warning(
                        f"Commit attempt {attempt}/{max_attempts} failed, retrying in {delay_ms}ms: {e}"
                    )
                    await asyncio.sleep(delay_ms / 1000)

        self._log.error(f"Commit failed after {max_attempts} attempts: {last_error}")
        raise CommitExhaustedError(max_attempts, last_error) from last_error

    async def _resolve_commit_id(self, commit_output: str) -> str:
        try:
            return await self.repo.head_commit()
        except RepositoryOperationError as e:
            match = _COMMIT_SUMMARY.search(commit_output)
            self._log.warning(f"Failed to read HEAD after commit, using commit output: {e}")
            return match.group(1) if match else ""

    def _pathspecs(self) -> list[str]:
        return ["."] + [f":(exclude){pattern}" for pattern in self.exclude_patterns]
