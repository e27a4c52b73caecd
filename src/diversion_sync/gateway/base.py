"""Remote source gateway contract consumed by the sync core."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from diversion_sync.entities import Branch, Commit, PathEntry
from diversion_sync.errors import NotFoundError


@runtime_checkable
class RemoteSourceGateway(Protocol):
    """Operations the core needs from the remote repository service.

    Implementations own authentication, transport and retry policy. Every
    failure must surface as a ``diversion_sync.errors.SyncError`` subclass.
    """

    def list_paths(self, repo_id: str, ref: str) -> list[PathEntry]:
        """Flat listing of every path at ``ref``."""
        ...

    def read_blob(self, repo_id: str, ref: str, path: str) -> bytes:
        """Content of the file at ``path``."""
        ...

    def get_branch(self, repo_id: str, ref: str) -> Branch:
        """Branch snapshot by id or name."""
        ...

    def list_commits(self, repo_id: str, limit: int) -> list[Commit]:
        """Up to ``limit`` commits, newest first."""
        ...

    def get_commit(self, repo_id: str, commit_id: str) -> Commit:
        """Full commit details, including changed paths when available."""
        ...


def head_commit(gateway: RemoteSourceGateway, repo_id: str, ref: str) -> Commit:
    """Resolve the commit ``ref`` currently points to.

    Falls back to the newest commit of the repository feed when the branch
    carries no head pointer.
    """
    branch = gateway.get_branch(repo_id, ref)
    if branch.head_commit_id:
        return gateway.get_commit(repo_id, branch.head_commit_id)

    commits = gateway.list_commits(repo_id, 1)
    if not commits:
        msg = f"No commits found for repository: {repo_id}"
        raise NotFoundError(msg)
    return commits[0]
