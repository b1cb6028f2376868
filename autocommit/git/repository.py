"""Read-only queries against a git working tree."""

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from autocommit.errors import RepositoryOperationError
from autocommit.git.runner import GitRunner
from autocommit.git.types import CommitInfo

if TYPE_CHECKING:
    from loguru import Logger

_FIELD_SEP = "\x1f"


def parse_porcelain_z(output: str) -> list[str]:
    """Extract paths from ``git status --porcelain -z`` output.

    Rename and copy entries carry their source path as an extra NUL-separated
    token; only the destination path is kept.
    """
    paths: list[str] = []
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        entry = tokens[i]
        i += 1
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        paths.append(path)
        if status[0] in "RC":
            i += 1
    return paths


class GitRepository:
    """Working-tree, index and history queries used by the classifier and executor."""

    def __init__(self, runner: GitRunner, log: "Logger | None" = None):
        self.runner = runner
        self._log = log or logger.bind(component="git")

    @property
    def path(self) -> Path:
        return self.runner.repository_path

    async def is_repository(self) -> bool:
        try:
            output = await self.runner.run("rev-parse", "--git-dir", check=False)
        except RepositoryOperationError:
            return False
        return output.ok

    async def git_dir(self) -> Path:
        """Absolute path of the git metadata directory (worktree-aware)."""
        output = await self.runner.run("rev-parse", "--git-dir")
        git_dir = Path(output.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = (self.path / git_dir).resolve()
        return git_dir

    async def has_changes(self) -> bool:
        output = await self.runner.run("status", "--porcelain")
        return bool(output.stdout.strip())

    async def get_changed_files(self) -> list[str]:
        output = await self.runner.run("status", "--porcelain", "-z")
        return parse_porcelain_z(output.stdout)

    async def get_staged_files(self) -> list[str]:
        output = await self.runner.run("diff", "--cached", "--name-only", "-z")
        return [p for p in output.stdout.split("\0") if p]

    async def has_unmerged_paths(self) -> bool:
        output = await self.runner.run("ls-files", "--unmerged", check=False)
        return output.ok and bool(output.stdout.strip())

    async def has_conflict_markers(self) -> bool:
        """`git diff --check` exits non-zero and names leftover conflict markers."""
        output = await self.runner.run("diff", "--check", check=False)
        return not output.ok and "conflict" in output.stdout.lower()

    async def is_on_branch(self) -> bool:
        """Whether HEAD is a symbolic ref (false when detached)."""
        output = await self.runner.run("symbolic-ref", "-q", "HEAD", check=False)
        return output.ok and bool(output.stdout.strip())

    async def head_commit(self) -> str:
        output = await self.runner.run("rev-parse", "HEAD")
        return output.stdout.strip()

    async def current_branch(self) -> str | None:
        output = await self.runner.run("branch", "--show-current", check=False)
        if output.ok and output.stdout.strip():
            return output.stdout.strip()
        output = await self.runner.run("rev-parse", "--abbrev-ref", "HEAD", check=False)
        return output.stdout.strip() if output.ok and output.stdout.strip() else None

    async def files_in_commit(self, commit_id: str) -> list[str]:
        output = await self.runner.run(
            "diff-tree", "--root", "--no-commit-id", "--name-only", "-r", "-z", commit_id
        )
        return [p for p in output.stdout.split("\0") if p]

    async def validate_commit_hash(self, commit_id: str) -> bool:
        output = await self.runner.run("cat-file", "-e", f"{commit_id}^{{commit}}", check=False)
        return output.ok

    async def recent_commits(self, count: int = 10) -> list[CommitInfo]:
        """Most recent commits on HEAD, newest first. Errors yield an empty list."""
        fmt = _FIELD_SEP.join(["%H", "%s", "%an <%ae>", "%cI"])
        try:
            output = await self.runner.run("log", f"--format={fmt}", "-n", str(count))
        except RepositoryOperationError as e:
            self._log.error(f"Failed to get recent commits: {e}")
            return []

        commits = []
        for line in output.stdout.splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 4:
                continue
            commit_hash, subject, author, date = parts
            commits.append(CommitInfo(
                hash=commit_hash,
                message=subject,
                author=author,
                date=datetime.fromisoformat(date),
            ))
        return commits

    async def commit_info(self, commit_id: str) -> CommitInfo | None:
        fmt = _FIELD_SEP.join(["%H", "%s", "%an <%ae>", "%cI"])
        try:
            output = await self.runner.run("show", "--no-patch", f"--format={fmt}", commit_id)
            files = await self.files_in_commit(commit_id)
        except RepositoryOperationError as e:
            self._log.error(f"Failed to get commit info for {commit_id}: {e}")
            return None

        parts = output.stdout.strip().split(_FIELD_SEP)
        if len(parts) != 4:
            return None
        commit_hash, subject, author, date = parts
        return CommitInfo(
            hash=commit_hash,
            message=subject,
            author=author,
            date=datetime.fromisoformat(date),
            files_changed=files,
        )
