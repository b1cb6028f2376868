"""Async git process runner."""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from autocommit.errors import RepositoryOperationError

if TYPE_CHECKING:
    from loguru import Logger

_LOG_PREVIEW = 200


@dataclass(frozen=True)
class GitOutput:
    """Captured result of one git invocation."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitRunner:
    """Runs git with an argument vector (never through a shell) inside one repository."""

    def __init__(
        self,
        repository_path: str | Path | None = None,
        timeout: float = 30.0,
        log: "Logger | None" = None,
    ):
        self.repository_path = Path(repository_path or os.getcwd()).expanduser()
        self.timeout = timeout
        self._log = log or logger.bind(component="git")
        self._env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "GIT_OPTIONAL_LOCKS": "0"}

    async def run(self, *args: str, check: bool = True) -> GitOutput:
        """Run ``git <args>`` in the repository.

        Raises RepositoryOperationError when git cannot be launched, times
        out, or (with ``check``) exits non-zero.
        """
        command = "git " + " ".join(args)
        cwd = self.repository_path
        if not cwd.is_dir():
            raise RepositoryOperationError(f"Repository path does not exist: {cwd}")

        self._log.debug(f"Executing: {command} (cwd={cwd})")
        output = await self._exec(list(args), cwd)
        self._log.debug(
            f"Completed: {command} -> {output.returncode} "
            f"stdout={output.stdout[:_LOG_PREVIEW]!r} stderr={output.stderr[:_LOG_PREVIEW]!r}"
        )

        if check and not output.ok:
            raise RepositoryOperationError(
                f"Git command failed: {command} (exit {output.returncode}): {output.stderr.strip()}",
                returncode=output.returncode,
                stderr=output.stderr,
            )
        return output

    async def is_available(self) -> bool:
        """Check that a git executable can be launched."""
        try:
            output = await self._exec(["--version"], None)
        except RepositoryOperationError:
            return False
        return output.ok

    async def _exec(self, args: list[str], cwd: Path | None) -> GitOutput:
        try:
            process = await asyncio.create_subprocess_exec(
                "git",
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=self._env,
            )
        except FileNotFoundError as e:
            raise RepositoryOperationError("git executable not found") from e
        except OSError as e:
            raise RepositoryOperationError(f"Failed to launch git: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise RepositoryOperationError(f"git {' '.join(args)} timed out after {self.timeout} seconds")

        return GitOutput(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
