"""Changelog reconciliation, per-build deduplication and persistence."""

from diversion_sync.changelog.engine import ChangelogEngine
from diversion_sync.changelog.persistence import read_changelog, write_changelog
from diversion_sync.changelog.session import (
    BuildSyncSession,
    ChangelogDecision,
    ChangelogMarker,
    CheckoutKind,
    SessionRegistry,
)

__all__ = [
    "BuildSyncSession",
    "ChangelogDecision",
    "ChangelogEngine",
    "ChangelogMarker",
    "CheckoutKind",
    "SessionRegistry",
    "read_changelog",
    "write_changelog",
]
