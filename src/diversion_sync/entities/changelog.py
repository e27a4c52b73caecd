"""Changelog records produced by reconciliation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from diversion_sync.entities.repository import Commit


class ChangelogEntry(BaseModel):
    """One commit as shown in a build's change list."""

    model_config = ConfigDict(frozen=True)

    commit_id: str
    message: str = ""
    author_name: str = ""
    timestamp: int = 0
    changed_paths: tuple[str, ...] = ()

    @classmethod
    def from_commit(cls, commit: Commit) -> ChangelogEntry:
        return cls(
            commit_id=commit.commit_id,
            message=commit.message,
            author_name=commit.author.name,
            timestamp=commit.created_ts,
            changed_paths=commit.changed_paths,
        )


class ChangelogRecord(BaseModel):
    """Ordered, newest-first list of changelog entries.

    A record with zero entries is a valid, explicit "nothing changed"
    result and is distinct from a missing record.
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[ChangelogEntry, ...] = ()

    @classmethod
    def empty(cls) -> ChangelogRecord:
        return cls()

    @classmethod
    def from_commits(cls, commits: list[Commit]) -> ChangelogRecord:
        return cls(entries=tuple(ChangelogEntry.from_commit(c) for c in commits))

    @property
    def commit_ids(self) -> list[str]:
        return [e.commit_id for e in self.entries]
