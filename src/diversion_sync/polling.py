"""Change detection for build triggering."""

from __future__ import annotations

import logging
import sys
from enum import StrEnum
from typing import TYPE_CHECKING

from diversion_sync.entities import RevisionState, extract_revision_state
from diversion_sync.gateway import head_commit

if TYPE_CHECKING:
    from diversion_sync.gateway import RemoteSourceGateway

logger = logging.getLogger(__name__)

# Configure logging to stderr
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class PollResult(StrEnum):
    """Outcome of one poll."""

    NO_CHANGES = "no_changes"
    CHANGED = "changed"
    # No usable baseline; the host should build anyway
    UNKNOWN = "unknown"


class ChangeDetector:
    """Compares the remote branch head with the last built revision.

    Each ``poll`` is independent; the only state is the baseline passed
    in by the host. Lookup failures bias toward inaction and report
    NO_CHANGES so transient errors never cause repeated triggering.
    """

    def __init__(self, gateway: RemoteSourceGateway) -> None:
        self._gateway = gateway

    def poll(self, repo_id: str, ref: str, baseline: object) -> PollResult:
        logger.info("Polling Diversion repository: %s (branch: %s)", repo_id, ref)

        try:
            remote_commit_id = head_commit(self._gateway, repo_id, ref).commit_id
        except Exception:
            logger.exception("Error during polling of %s/%s", repo_id, ref)
            return PollResult.NO_CHANGES

        logger.info("Latest remote commit: %s", remote_commit_id)

        state = extract_revision_state(baseline)
        if state is None:
            logger.info("No valid baseline found - treating as changed")
            return PollResult.UNKNOWN

        logger.info("Last built commit: %s", state.commit_id)
        if state.commit_id == remote_commit_id:
            logger.info("No changes detected")
            return PollResult.NO_CHANGES

        logger.info("Changes detected for %s (old: %s, new: %s)", repo_id, state.commit_id, remote_commit_id)
        return PollResult.CHANGED

    def calc_revision_state(self, repo_id: str, ref: str) -> RevisionState | None:
        """Baseline the host should persist for the build just run."""
        try:
            commit = head_commit(self._gateway, repo_id, ref)
        except Exception as exc:
            logger.warning("Could not calculate revision state for %s/%s: %s", repo_id, ref, exc)
            return None
        return RevisionState(commit_id=commit.commit_id, timestamp=commit.created_ts)
