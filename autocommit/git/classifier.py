"""Decides whether a working tree may be committed to automatically."""

from typing import TYPE_CHECKING

from loguru import logger

from autocommit.git.repository import GitRepository
from autocommit.git.types import RepositoryInfo, RepositoryState

if TYPE_CHECKING:
    from loguru import Logger

MERGE_MARKER = "MERGE_HEAD"
REBASE_MARKERS = ("rebase-merge", "rebase-apply")


class RepositoryStateClassifier:
    """
    Classify a repository into one RepositoryState.

    Checks run in order and stop at the first match: not a repository,
    conflicts, merge in progress, rebase in progress, detached HEAD, then
    dirty/clean. Any failure along the way yields UNKNOWN.
    """

    def __init__(self, repo: GitRepository, log: "Logger | None" = None):
        self.repo = repo
        self._log = log or logger.bind(component="classifier")

    async def classify(self) -> RepositoryState:
        try:
            if not await self.repo.is_repository():
                return RepositoryState.UNKNOWN

            if await self.repo.has_unmerged_paths() or await self.repo.has_conflict_markers():
                return RepositoryState.CONFLICT

            git_dir = await self.repo.git_dir()
            if (git_dir / MERGE_MARKER).exists():
                return RepositoryState.MERGING

            if any((git_dir / marker).exists() for marker in REBASE_MARKERS):
                return RepositoryState.REBASING

            if not await self.repo.is_on_branch():
                return RepositoryState.DETACHED

            if await self.repo.has_changes():
                return RepositoryState.DIRTY
            return RepositoryState.CLEAN

        except Exception as e:
            self._log.error(f"Failed to determine repository state for {self.repo.path}: {e}")
            return RepositoryState.UNKNOWN

    async def is_safe_for_auto_commit(self) -> bool:
        return (await self.classify()).is_safe_for_auto_commit

    async def describe(self) -> RepositoryInfo:
        """Repository snapshot for status reporting. Never raises."""
        if not await self.repo.is_repository():
            return RepositoryInfo(is_repository=False)

        state = await self.classify()
        info = RepositoryInfo(is_repository=True, state=state)
        try:
            info.current_branch = await self.repo.current_branch()
            info.has_changes = await self.repo.has_changes()
            info.last_commit = await self.repo.head_commit()
        except Exception as e:
            self._log.debug(f"Partial repository info for {self.repo.path}: {e}")
        return info
