"""Locate a job's pipeline script inside a repository listing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from diversion_sync.config import SYNC_CONFIG, SyncConfig

if TYPE_CHECKING:
    from diversion_sync.tree import VirtualTree

logger = logging.getLogger(__name__)


def _matches(path: str, file_name: str) -> bool:
    return path == file_name or path.endswith("/" + file_name)


class ScriptPathResolver:
    """Resolve the script path for a job against one revision's listing.

    Priority (first match wins):

    1. An explicitly configured path, returned as-is without checking it exists.
    2. When the host asks for the default script name, auto-detection over
       the listing for ``{job}.{ext}``, then ``{job}``, then the default
       name, at any directory depth. The first match in listing order wins.
    3. The constructed ``{job}.{ext}``, unverified. A later blob fetch for
       it fails with ``NotFoundError`` when the script does not exist.

    Holds no mutable state; safe to share between concurrent jobs.
    """

    def __init__(self, tree: VirtualTree, config: SyncConfig | None = None) -> None:
        self._tree = tree
        self._config = config or SYNC_CONFIG

    def candidate_names(self, job_name: str) -> list[str]:
        return [
            f"{job_name}.{self._config.script_extension}",
            job_name,
            self._config.default_script_name,
        ]

    def is_default_request(self, requested_name: str) -> bool:
        return requested_name.lower() == self._config.default_script_name.lower()

    def fallback_path(self, job_name: str) -> str:
        return f"{job_name}.{self._config.script_extension}"

    def find(self, job_name: str) -> str | None:
        """Search the listing for the job's script; None when nothing matches."""
        paths = [entry.path for entry in self._tree.entries]
        for file_name in self.candidate_names(job_name):
            for path in paths:
                if _matches(path, file_name):
                    logger.debug("Auto-detected script %s for job %s", path, job_name)
                    return path
        return None

    def resolve_path(
        self,
        configured_path: str | None,
        job_name: str,
        requested_name: str | None = None,
    ) -> str:
        """Return the repository path of the script to load.

        Args:
            configured_path: Script path set explicitly on the job, if any.
            job_name: Name of the job being built.
            requested_name: Name the host asked for; defaults to the
                conventional script name.
        """
        if configured_path:
            return configured_path

        requested = requested_name or self._config.default_script_name
        if not self.is_default_request(requested):
            return requested
        if not job_name:
            return requested

        found = self.find(job_name)
        if found is not None:
            return found

        fallback = self.fallback_path(job_name)
        logger.debug("No script found for job %s, falling back to %s", job_name, fallback)
        return fallback
