"""In-memory stand-ins for the remote gateway used across the test suite."""

from __future__ import annotations

from collections import Counter

from diversion_sync.entities import Author, Branch, Commit, PathEntry
from diversion_sync.errors import NotFoundError, SyncError


def make_commit(commit_id: str, created_ts: int = 1_700_000_000, files: tuple[str, ...] = ()) -> Commit:
    """Helper to create a Commit for testing."""
    return Commit(
        commit_id=commit_id,
        created_ts=created_ts,
        message=f"message for {commit_id}",
        branch_id="dv.branch.1",
        author=Author(id="u1", name="alice", email="alice@example.com"),
        changed_paths=files,
    )


class FakeGateway:
    """In-memory gateway that records how often each operation is called."""

    def __init__(
        self,
        paths: list[PathEntry] | None = None,
        commits: list[Commit] | None = None,
        head: str | None = None,
        blobs: dict[str, bytes] | None = None,
    ) -> None:
        self.paths = paths or []
        self.commits = commits or []
        self.head = head if head is not None else (self.commits[0].commit_id if self.commits else None)
        self.blobs = blobs or {}
        self.calls: Counter[str] = Counter()
        self.fail_with: SyncError | None = None
        self.fail_listing: SyncError | None = None
        self.commit_limits: list[int] = []

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def list_paths(self, repo_id: str, ref: str) -> list[PathEntry]:
        self.calls["list_paths"] += 1
        self._check()
        if self.fail_listing is not None:
            raise self.fail_listing
        return list(self.paths)

    def read_blob(self, repo_id: str, ref: str, path: str) -> bytes:
        self.calls["read_blob"] += 1
        self._check()
        if path not in self.blobs:
            raise NotFoundError(f"Failed to get file content: 404 - {path}")
        return self.blobs[path]

    def get_branch(self, repo_id: str, ref: str) -> Branch:
        self.calls["get_branch"] += 1
        self._check()
        return Branch(branch_id="dv.branch.1", name=ref, head_commit_id=self.head)

    def list_commits(self, repo_id: str, limit: int) -> list[Commit]:
        self.calls["list_commits"] += 1
        self.commit_limits.append(limit)
        self._check()
        return self.commits[:limit]

    def get_commit(self, repo_id: str, commit_id: str) -> Commit:
        self.calls["get_commit"] += 1
        self._check()
        for commit in self.commits:
            if commit.commit_id == commit_id:
                return commit
        raise NotFoundError(f"Commit not found: {commit_id}")
