"""Cron-driven schedule engine with persisted state and missed-run recovery."""

import asyncio
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from loguru import logger

from autocommit.errors import NotScheduledError
from autocommit.scheduler.cron import compute_next_run, crossed_day_boundary, parse_cron_expression
from autocommit.scheduler.types import ScheduleJobInfo, ScheduleState

if TYPE_CHECKING:
    from loguru import Logger

JobCallback = Callable[[], Awaitable[Any]]

JOB_ID = "auto-commit-daily"


def _now() -> datetime:
    return datetime.now().astimezone()


class ScheduleEngine:
    """Fires a single async callback at cron boundaries.

    State (last run, next run, missed-run history) is written to ``state_path``
    after every mutation and reloaded by ``initialize()`` so a restart can
    detect and replay a run that was missed while the process was down.
    """

    def __init__(
        self,
        state_path: Path,
        full_cron: bool = False,
        log: "Logger | None" = None,
    ):
        self.state_path = Path(state_path).expanduser()
        self.full_cron = full_cron
        self._log = log or logger.bind(component="scheduler")
        self._state = ScheduleState()
        self._callback: JobCallback | None = None
        self._cron_expression = ""
        self._timer_task: asyncio.Task | None = None
        self._fire_task: asyncio.Task | None = None
        self._running = False
        self._loaded = False
        self._save_lock = threading.Lock()

    # ========== Lifecycle ==========

    def schedule(self, cron_expression: str, callback: JobCallback) -> None:
        """Install a job. Validates the expression and computes the next run; does not start firing."""
        parse_cron_expression(cron_expression)
        self._ensure_loaded()

        if self._running:
            self.stop()
        self._cancel_timer()

        self._callback = callback
        self._cron_expression = cron_expression
        self._state.cron_expression = cron_expression
        self._state.is_active = False
        self._state.next_run = self._compute_next_run(_now())
        self._save_state()

        self._log.info(f"Scheduler configured: '{cron_expression}', next run {self._fmt(self._state.next_run)}")

    async def start(self) -> None:
        """Begin firing at cron boundaries."""
        if self._callback is None:
            raise NotScheduledError("No task scheduled. Call schedule() first.")

        if self._running:
            self._log.debug("Scheduler is already running")
            return

        self._running = True
        self._state.is_active = True
        self._state.next_run = self._compute_next_run(_now())
        self._save_state()
        self._arm_timer()

        self._log.info(f"Scheduler started: '{self._cron_expression}', next run {self._fmt(self._state.next_run)}")

    def stop(self) -> None:
        """Cancel the pending timer and clear the active flag. Never raises.

        A run that has already fired is left to finish; await ``wait_idle()``
        to block until it has.
        """
        try:
            self._ensure_loaded()
            was_running = self._running
            self._running = False
            self._cancel_timer()
            self._state.is_active = False
            self._save_state()
            if was_running:
                self._log.info("Scheduler stopped")
        except Exception as e:
            self._log.error(f"Error stopping scheduler: {e}")

    def is_running(self) -> bool:
        return self._running

    async def wait_idle(self) -> None:
        """Wait for an in-flight scheduled run, if any, to complete."""
        task = self._fire_task
        if task and not task.done():
            await asyncio.shield(task)

    async def update_schedule(self, cron_expression: str) -> None:
        """Switch to a new expression, restarting if the scheduler was running."""
        if cron_expression == self._cron_expression:
            self._log.debug("Cron expression unchanged, skipping update")
            return
        if self._callback is None:
            raise NotScheduledError("No task scheduled. Call schedule() first.")

        old_expression = self._cron_expression
        was_running = self._running
        self.schedule(cron_expression, self._callback)
        if was_running:
            await self.start()

        self._log.info(f"Scheduler updated: '{old_expression}' -> '{cron_expression}'")

    async def initialize(self) -> bool:
        """Load persisted state and recover a missed run if one is due."""
        recovered = await self.handle_missed_executions()
        self._log.info(
            f"Scheduler initialized (last run: {self._fmt(self._state.last_run)}, recovered: {recovered})"
        )
        return recovered

    # ========== Missed executions ==========

    async def handle_missed_executions(self) -> bool:
        """Run the callback once if a calendar day has passed since the last run.

        Returns True when a recovery run happened. A failing callback is
        logged and re-raised; its bookkeeping is not persisted.
        """
        self._merge_loaded_state(self._load_state())
        self._loaded = True

        if self._state.last_run is None or self._callback is None:
            return False

        now = _now()
        if not crossed_day_boundary(self._state.last_run, now):
            return False

        self._log.info(
            f"Detected missed execution (last run {self._fmt(self._state.last_run)}), executing now"
        )

        previous_missed = list(self._state.missed_runs)
        self._state.record_missed(now)
        try:
            await self._callback()
        except Exception as e:
            self._state.missed_runs = previous_missed
            self._log.error(f"Failed to execute missed callback: {e}")
            raise

        self._state.last_run = now
        self._state.next_run = self._compute_next_run(now)
        self._save_state()
        return True

    def get_missed_executions(self) -> list[datetime]:
        return list(self._state.missed_runs)

    def clear_missed_executions(self) -> None:
        self._ensure_loaded()
        self._state.missed_runs = []
        self._save_state()

    # ========== Introspection ==========

    @property
    def state(self) -> ScheduleState:
        return self._state.model_copy(deep=True)

    def load(self) -> ScheduleState:
        """Current state, including history persisted by earlier processes."""
        self._ensure_loaded()
        return self.state

    @property
    def cron_expression(self) -> str:
        return self._cron_expression

    def get_job_info(self) -> ScheduleJobInfo:
        return ScheduleJobInfo(
            id=JOB_ID,
            cron_expression=self._cron_expression,
            next_run=self._state.next_run,
            last_run=self._state.last_run,
            is_active=self._state.is_active,
        )

    # ========== Timer ==========

    def _compute_next_run(self, now: datetime) -> datetime | None:
        if not self._cron_expression:
            return None
        return compute_next_run(self._cron_expression, now, full_cron=self.full_cron)

    def _cancel_timer(self) -> None:
        if self._timer_task:
            self._timer_task.cancel()
            self._timer_task = None

    def _arm_timer(self) -> None:
        """Schedule the next timer tick."""
        self._cancel_timer()

        next_run = self._state.next_run
        if not next_run or not self._running:
            return

        delay_s = max(0.0, (next_run - _now()).total_seconds())

        async def tick():
            await asyncio.sleep(delay_s)
            if self._running:
                # stop() cancels the sleep only, never a run in progress
                self._fire_task = asyncio.create_task(self._on_timer(next_run))

        self._timer_task = asyncio.create_task(tick())

    async def _on_timer(self, due: datetime) -> None:
        """Handle a timer tick: record the run, invoke the callback, re-arm."""
        now = _now()
        self._log.info(f"Executing scheduled task '{self._cron_expression}'")

        self._state.last_run = now
        # sleep() may wake marginally early; never re-fire the same boundary
        self._state.next_run = self._compute_next_run(max(now, due))
        self._save_state()

        try:
            if self._callback:
                await self._callback()
            self._log.info("Scheduled task completed")
        except Exception as e:
            self._log.exception(f"Scheduled task execution failed: {e}")

        if self._running:
            self._arm_timer()

    # ========== Persistence ==========

    def _ensure_loaded(self) -> None:
        """Pull persisted history in once before the first write overwrites it."""
        if not self._loaded:
            self._merge_loaded_state(self._load_state())
            self._loaded = True

    def _merge_loaded_state(self, loaded: ScheduleState) -> None:
        """Adopt persisted history; the installed job and active flag stay in-memory."""
        self._state.last_run = loaded.last_run
        self._state.missed_runs = list(loaded.missed_runs)
        if not self._cron_expression:
            self._state.cron_expression = loaded.cron_expression
            self._state.next_run = loaded.next_run

    def _load_state(self) -> ScheduleState:
        """Load state from disk. A missing or corrupt file yields defaults."""
        if not self.state_path.exists():
            self._log.debug("No scheduler state file found, using defaults")
            return ScheduleState()

        try:
            return ScheduleState.model_validate_json(self.state_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._log.error(f"Failed to load scheduler state from {self.state_path}: {e}")
            return ScheduleState()

    def _save_state(self) -> bool:
        """Write state atomically (temp file + rename). Failures are logged, not raised."""
        payload = self._state.model_dump_json(by_alias=True, indent=2)
        with self._save_lock:
            tmp_name = None
            try:
                self.state_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.state_path.parent, prefix=f".{self.state_path.name}.", suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.state_path)
                return True
            except OSError as e:
                self._log.error(f"Failed to save scheduler state to {self.state_path}: {e}")
                if tmp_name and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                return False

    @staticmethod
    def _fmt(moment: datetime | None) -> str:
        return moment.isoformat() if moment else "--"
