"""Reconcile the commits between a build's baseline and the branch head."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from diversion_sync.config import SYNC_CONFIG, SyncConfig
from diversion_sync.entities import ChangelogRecord, Commit, RevisionStateLike, extract_revision_state
from diversion_sync.gateway import head_commit

if TYPE_CHECKING:
    from diversion_sync.gateway import RemoteSourceGateway

logger = logging.getLogger(__name__)


class ChangelogEngine:
    """Compute newest-first changelogs from the remote commit feed.

    The feed is read through a bounded window (``commit_window`` commits).
    When the baseline commit falls outside that window, every commit from
    the head down to the window bound is reported; this is an accepted
    approximation rather than an error.
    """

    def __init__(self, gateway: RemoteSourceGateway, config: SyncConfig | None = None) -> None:
        self._gateway = gateway
        self._config = config or SYNC_CONFIG

    def current_commit(self, repo_id: str, ref: str) -> Commit:
        return head_commit(self._gateway, repo_id, ref)

    def reconcile(self, repo_id: str, ref: str, previous: RevisionStateLike) -> ChangelogRecord:
        """Changelog for ``ref`` since ``previous``.

        Gateway failures propagate: a wrong or partial changelog is worse
        than a failed build step.
        """
        current = self.current_commit(repo_id, ref)
        return ChangelogRecord.from_commits(self.commits_since(repo_id, current, previous))

    def commits_since(self, repo_id: str, current: Commit, previous: RevisionStateLike) -> list[Commit]:
        """Commits newer than ``previous`` up to and including ``current``."""
        baseline = extract_revision_state(previous)

        if baseline is None:
            logger.info("First build - showing latest commit %s", current.commit_id)
            return [current]

        if baseline.commit_id == current.commit_id:
            logger.info("No new commits since last build (%s)", current.commit_id)
            return []

        logger.info("Finding commits between %s and %s", baseline.commit_id, current.commit_id)
        window = self._gateway.list_commits(repo_id, self._config.commit_window)

        commits: list[Commit] = []
        found_current = False
        found_baseline = False
        for commit in window:
            if commit.commit_id == current.commit_id:
                found_current = True
            if not found_current:
                continue
            if commit.commit_id == baseline.commit_id:
                found_baseline = True
                break
            commits.append(commit)

        if not found_baseline:
            logger.warning(
                "Baseline %s not within the newest %d commits of %s; changelog truncated to %d commits",
                baseline.commit_id,
                self._config.commit_window,
                repo_id,
                len(commits),
            )
        logger.info("Found %d new commits", len(commits))
        return commits
