"""Entity models for the diversion-sync domain layer."""

from diversion_sync.entities.changelog import ChangelogEntry, ChangelogRecord
from diversion_sync.entities.repository import (
    Author,
    Branch,
    Commit,
    PathEntry,
    Repository,
    Tag,
)
from diversion_sync.entities.revision import (
    MultiSourceRevisionState,
    RevisionState,
    RevisionStateLike,
    extract_revision_state,
)

__all__ = [
    "Author",
    "Branch",
    "ChangelogEntry",
    "ChangelogRecord",
    "Commit",
    "MultiSourceRevisionState",
    "PathEntry",
    "Repository",
    "RevisionState",
    "RevisionStateLike",
    "Tag",
    "extract_revision_state",
]
