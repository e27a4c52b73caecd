"""Read-only file system over one Diversion revision."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from diversion_sync.config import SYNC_CONFIG, SyncConfig
from diversion_sync.errors import SyncError
from diversion_sync.gateway import head_commit
from diversion_sync.tree.builder import NodeKind, TreeNode, VirtualTree, join_path, normalize_path

if TYPE_CHECKING:
    from diversion_sync.gateway import RemoteSourceGateway

logger = logging.getLogger(__name__)


class RevisionFileSystem:
    """Navigate and read the files of a branch, rooted at an optional base path.

    Library loaders point ``base_path`` at the directory holding ``vars/``,
    ``src/`` and ``resources/``; an empty base path is the repository root.
    """

    def __init__(
        self,
        gateway: RemoteSourceGateway,
        repo_id: str,
        ref: str,
        base_path: str = "",
        config: SyncConfig | None = None,
    ) -> None:
        self._gateway = gateway
        self._config = config or SYNC_CONFIG
        self.repo_id = repo_id
        self.ref = ref
        self.base_path = normalize_path(base_path)
        self.tree = VirtualTree.for_revision(gateway, repo_id, ref, self._config.conventional_root_dirs)
        self._last_modified_ms: int | None = None

    def root(self) -> TreeNode:
        if not self.base_path:
            return self.tree.root
        return self.tree.node(self.base_path)

    def child(self, relative_path: str) -> TreeNode:
        return self.root().child(relative_path)

    def exists(self, relative_path: str) -> bool:
        return self.child(relative_path).kind is not NodeKind.NONEXISTENT

    def read(self, relative_path: str) -> bytes:
        """Fetch file content; gateway errors propagate to the caller."""
        path = join_path(self.base_path, normalize_path(relative_path))
        return self._gateway.read_blob(self.repo_id, self.ref, path)

    def last_modified(self) -> int:
        """Head commit time in milliseconds, cached until ``invalidate``.

        Falls back to the current time when the head cannot be looked up,
        so consumers treat the content as fresh and reload it.
        """
        if self._last_modified_ms is None:
            try:
                commit = head_commit(self._gateway, self.repo_id, self.ref)
                self._last_modified_ms = commit.created_ts * 1000
            except SyncError as exc:
                logger.warning("Could not read head commit for %s@%s: %s", self.repo_id, self.ref, exc)
                self._last_modified_ms = int(time.time() * 1000)
        return self._last_modified_ms

    def invalidate(self) -> None:
        self._last_modified_ms = None
