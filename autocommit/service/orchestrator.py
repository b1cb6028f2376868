"""Auto-commit service: schedule -> classify -> commit -> record."""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from autocommit.config.schema import Config
from autocommit.errors import AutoCommitError, CommitError, ConfigurationError, ServiceStateError
from autocommit.git.classifier import RepositoryStateClassifier
from autocommit.git.executor import CommitExecutor
from autocommit.git.messages import generate_commit_message
from autocommit.git.repository import GitRepository
from autocommit.git.runner import GitRunner
from autocommit.git.types import CommitAttemptResult, CommitInfo, RepositoryInfo
from autocommit.scheduler.service import ScheduleEngine
from autocommit.service.types import ServiceRunStats, ServiceState

if TYPE_CHECKING:
    from loguru import Logger


def _now() -> datetime:
    return datetime.now().astimezone()


class AutoCommitService:
    """
    Composes the schedule engine, state classifier and commit executor.

    ``execute_commit()`` is the single workflow, shared by the scheduler and
    manual triggers. It is serialized by a lock so at most one commit
    workflow touches the repository at a time, and it never raises: every
    outcome is reported through the returned CommitAttemptResult.
    """

    def __init__(
        self,
        config: Config,
        runner: GitRunner | None = None,
        scheduler: ScheduleEngine | None = None,
        log: "Logger | None" = None,
    ):
        self.config = config
        self._log = log or logger.bind(component="service")
        self.runner = runner or GitRunner(config.repository, timeout=config.git.timeout_s)
        self.repo = GitRepository(self.runner)
        self.classifier = RepositoryStateClassifier(self.repo)
        self.executor = CommitExecutor(self.repo, self.classifier, config.commit.exclude_patterns)
        self.scheduler = scheduler or ScheduleEngine(
            config.schedule.state_path, full_cron=config.schedule.full_cron
        )
        self._state = ServiceState.UNINITIALIZED
        self._stats = ServiceRunStats()
        self._commit_lock = asyncio.Lock()

    # ========== Lifecycle ==========

    @property
    def state(self) -> ServiceState:
        return self._state

    def is_initialized(self) -> bool:
        return self._state != ServiceState.UNINITIALIZED

    def is_running(self) -> bool:
        return self._state == ServiceState.RUNNING

    async def initialize(self, recover_missed: bool = True) -> None:
        """Validate git and the repository, install the job and recover a missed run.

        Raises ConfigurationError when git or the repository is unavailable.
        """
        self._log.info(f"Initializing auto-commit service for {self.repo.path}")
        try:
            if not await self.runner.is_available():
                raise ConfigurationError("Git is not available on this system")
            if not await self.repo.is_repository():
                raise ConfigurationError(f"Not a Git repository: {self.repo.path}")

            info = await self.classifier.describe()
            self._log.info(
                f"Repository {self.repo.path}: branch={info.current_branch} state={info.state} "
                f"changes={info.has_changes}"
            )

            self.scheduler.schedule(self.config.schedule.commit_time, self.execute_commit)
            if recover_missed and self.config.enabled:
                if await self.scheduler.initialize():
                    self._log.info("Handled missed execution on startup")

            self._state = ServiceState.INITIALIZED
            self._log.info("Auto-commit service initialized")
        except AutoCommitError as e:
            self._stats.last_error = str(e)
            self._log.error(f"Failed to initialize auto-commit service: {e}")
            raise

    async def start(self) -> None:
        """Start firing scheduled commits. Requires initialize()."""
        if self._state == ServiceState.UNINITIALIZED:
            raise ServiceStateError("Service not initialized. Call initialize() first.")

        if not self.config.enabled:
            self._log.info("Auto-commit service is disabled in configuration")
            return

        if self._state == ServiceState.RUNNING:
            self._log.debug("Service is already running")
            return

        try:
            self.scheduler.schedule(self.config.schedule.commit_time, self.execute_commit)
            await self.scheduler.start()
        except AutoCommitError as e:
            self._stats.last_error = str(e)
            self._log.error(f"Failed to start auto-commit service: {e}")
            raise

        self._state = ServiceState.RUNNING
        job = self.scheduler.get_job_info()
        self._log.info(f"Auto-commit service started: '{job.cron_expression}', next run {job.next_run}")

    async def stop(self) -> None:
        """Stop scheduling. Returns once no commit workflow is in flight."""
        if self._state != ServiceState.RUNNING:
            self._log.debug("Service is not running")
            return

        self.scheduler.stop()
        await self.scheduler.wait_idle()
        async with self._commit_lock:
            pass
        self._state = ServiceState.STOPPED
        self._log.info("Auto-commit service stopped")

    # ========== Commit workflow ==========

    async def execute_commit(self) -> CommitAttemptResult:
        async with self._commit_lock:
            return await self._execute_commit()

    async def trigger_manual_commit(self) -> CommitAttemptResult:
        self._log.info("Manual commit triggered")
        return await self.execute_commit()

    async def _execute_commit(self) -> CommitAttemptResult:
        started = _now()
        self._log.info(f"Starting commit execution at {started.isoformat()}")

        try:
            if not await self.repo.has_changes():
                self._log.info("No changes to commit, skipping")
                return CommitAttemptResult(success=True, message="No changes to commit", timestamp=started)

            state = await self.classifier.classify()
            if not state.is_safe_for_auto_commit:
                skipped = f"Repository is not in a clean state ({state}), skipping auto-commit"
                self._log.warning(skipped)
                self._stats.last_error = skipped
                return CommitAttemptResult(
                    success=False,
                    message=skipped,
                    timestamp=started,
                    error=f"Repository state: {state}",
                )

            files = await self.repo.get_changed_files()
            self._log.info(f"Changed files detected: {len(files)} {files[:10]}")

            commit = self.config.commit
            message = generate_commit_message(
                files, commit.message_template, now=started, max_length=commit.max_message_length
            )
            self._log.info(f"Commit message generated: {message}")

            try:
                commit_id = await self.executor.attempt_commit_with_retry(
                    message, commit.retry_attempts, commit.retry_delay_ms
                )
            except CommitError as e:
                self._log.error(f"Failed to create commit: {e}")
                self._stats.last_error = str(e)
                return CommitAttemptResult(
                    success=False,
                    message=message,
                    timestamp=started,
                    files_changed=len(files),
                    error=str(e),
                )

            files_changed = len(self.executor.last_files_changed) or len(files)
            self._stats.total_commits += 1
            self._stats.last_commit = started
            self._stats.last_error = None

            elapsed_ms = int((_now() - started).total_seconds() * 1000)
            self._log.info(
                f"Commit {commit_id[:8] or '(unknown id)'} created ({files_changed} files, "
                f"total {self._stats.total_commits}, {elapsed_ms}ms)"
            )
            return CommitAttemptResult(
                success=True,
                message=message,
                timestamp=started,
                files_changed=files_changed,
                commit_id=commit_id or None,
            )

        except Exception as e:
            self._log.exception(f"Unexpected error during commit execution: {e}")
            self._stats.last_error = str(e)
            return CommitAttemptResult(
                success=False,
                message="Commit execution failed",
                timestamp=started,
                error=str(e),
            )

    # ========== Status ==========

    def get_status(self) -> ServiceRunStats:
        return replace(
            self._stats,
            is_running=self.is_running(),
            next_scheduled_commit=self.scheduler.get_job_info().next_run,
        )

    def get_missed_executions(self) -> list[datetime]:
        return self.scheduler.get_missed_executions()

    def clear_missed_executions(self) -> None:
        self.scheduler.clear_missed_executions()

    async def get_repository_info(self) -> RepositoryInfo:
        return await self.classifier.describe()

    async def get_recent_commits(self, count: int = 10) -> list[CommitInfo]:
        return await self.repo.recent_commits(count)

    async def get_commit_info(self, commit_id: str) -> CommitInfo | None:
        """Details of one commit, or None when the id does not name a commit."""
        if not await self.repo.validate_commit_hash(commit_id):
            self._log.warning(f"Unknown commit: {commit_id}")
            return None
        return await self.repo.commit_info(commit_id)

    # ========== Reconfiguration ==========

    async def update_config(self, new_config: Config) -> None:
        """Apply a new configuration, rescheduling and restarting as needed."""
        old_config = self.config
        was_running = self.is_running()
        if was_running:
            await self.stop()

        self.config = new_config
        self.executor.exclude_patterns = list(new_config.commit.exclude_patterns)
        self.scheduler.full_cron = new_config.schedule.full_cron
        if (
            new_config.repository != old_config.repository
            or new_config.git.timeout_s != old_config.git.timeout_s
        ):
            self.runner.repository_path = new_config.repository
            self.runner.timeout = new_config.git.timeout_s

        if new_config.schedule.commit_time != old_config.schedule.commit_time and self.is_initialized():
            await self.scheduler.update_schedule(new_config.schedule.commit_time)

        if was_running and new_config.enabled:
            await self.start()

        self._log.info("Configuration updated")
