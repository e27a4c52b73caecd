"""Build-step checkout: fetch files, then write the build's changelog."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, Field

from diversion_sync.changelog import (
    BuildSyncSession,
    ChangelogDecision,
    ChangelogEngine,
    CheckoutKind,
    write_changelog,
)
from diversion_sync.config import SYNC_CONFIG, SyncConfig
from diversion_sync.entities import ChangelogRecord, RevisionState, RevisionStateLike
from diversion_sync.errors import ConfigurationInvalidError, SyncError
from diversion_sync.resolver import ScriptPathResolver
from diversion_sync.tree import VirtualTree, normalize_path

if TYPE_CHECKING:
    from diversion_sync.gateway import RemoteSourceGateway

logger = logging.getLogger(__name__)

# Configure logging to stderr
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class HostEnvironment(Protocol):
    """Capabilities the host build system exposes to checkouts."""

    def primary_repository_id(self) -> str | None:
        """Repository id of the build's primary (script) source, if it is a Diversion source."""
        ...


class CheckoutRequest(BaseModel):
    """What one build step asks to check out."""

    repository_id: str = Field(description="Diversion repository id")
    branch: str = Field(default="main", description="Branch name or dv.branch. id")
    kind: CheckoutKind = Field(default=CheckoutKind.PRIMARY, description="Role of this checkout in the build")
    job_name: str = Field(default="", description="Job name used for script auto-detection")
    script_path: str | None = Field(default=None, description="Explicit script path; skips auto-detection")
    library_path: str | None = Field(default=None, description="Repository directory holding the shared library")


@dataclass
class CheckoutResult:
    """Outcome of one checkout."""

    revision_state: RevisionState
    script_path: str | None = None
    files_written: int = 0
    files_failed: int = 0
    decision: ChangelogDecision | None = None
    changelog: ChangelogRecord | None = None


class Checkout:
    """Runs checkouts for a build against one gateway.

    Content fetch and changelog reconciliation failures propagate and abort
    the step. Individual library files that fail to download are logged and
    counted instead.
    """

    def __init__(
        self,
        gateway: RemoteSourceGateway,
        host: HostEnvironment | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        self._gateway = gateway
        self._host = host
        self._config = config or SYNC_CONFIG
        self._engine = ChangelogEngine(gateway, self._config)

    def run(
        self,
        request: CheckoutRequest,
        session: BuildSyncSession,
        workspace: Path,
        changelog_path: Path | None = None,
        baseline: RevisionStateLike = None,
    ) -> CheckoutResult:
        if not request.repository_id or not request.repository_id.strip():
            msg = "Repository id is not configured"
            raise ConfigurationInvalidError(msg)

        logger.info("Checking out from Diversion repository: %s (branch: %s)", request.repository_id, request.branch)
        tree = VirtualTree.for_revision(
            self._gateway, request.repository_id, request.branch, self._config.conventional_root_dirs
        )

        if request.kind is CheckoutKind.AUXILIARY:
            written, failed = self._fetch_library(request, tree, workspace)
            script_path = None
        else:
            script_path = self._fetch_script(request, tree, workspace)
            written, failed = 1, 0

        current = self._engine.current_commit(request.repository_id, request.branch)
        result = CheckoutResult(
            revision_state=RevisionState(commit_id=current.commit_id, timestamp=current.created_ts),
            script_path=script_path,
            files_written=written,
            files_failed=failed,
        )

        if changelog_path is not None:
            with session.claiming(request.kind, self._same_repository(request)) as decision:
                result.decision = decision
                if decision is ChangelogDecision.WRITE:
                    commits = self._engine.commits_since(request.repository_id, current, baseline)
                    result.changelog = ChangelogRecord.from_commits(commits)
                    write_changelog(changelog_path, result.changelog)
                    logger.info("Changelog file created with %d commits", len(result.changelog.entries))
                elif decision is ChangelogDecision.WRITE_EMPTY:
                    result.changelog = ChangelogRecord.empty()
                    write_changelog(changelog_path, result.changelog)
                    logger.info(
                        "Library and pipeline use same repository (%s) - wrote empty changelog",
                        request.repository_id,
                    )
                else:
                    logger.info("Skipping changelog (already written for build %s)", session.build_id)

        logger.info("Checkout completed successfully")
        return result

    def _same_repository(self, request: CheckoutRequest) -> bool | None:
        if request.kind is not CheckoutKind.AUXILIARY or self._host is None:
            return None
        primary = self._host.primary_repository_id()
        if primary is None:
            return None
        return primary == request.repository_id

    def _fetch_script(self, request: CheckoutRequest, tree: VirtualTree, workspace: Path) -> str:
        resolver = ScriptPathResolver(tree, self._config)
        script_path = resolver.resolve_path(request.script_path, request.job_name)
        logger.info("Script path: %s", script_path)

        content = self._gateway.read_blob(request.repository_id, request.branch, script_path)
        target = _workspace_target(workspace, script_path)
        if target is None:
            msg = f"Script path escapes the workspace: {script_path}"
            raise ConfigurationInvalidError(msg)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info("Downloaded: %s", script_path)
        return script_path

    def _fetch_library(self, request: CheckoutRequest, tree: VirtualTree, workspace: Path) -> tuple[int, int]:
        library_path = normalize_path(request.library_path or self._config.default_library_path)
        logger.info("Library checkout - using library path: %s", library_path)

        entries = tree.entries
        if tree.error is not None:
            raise tree.error

        prefix = library_path + "/" if library_path else ""
        written = 0
        failed = 0
        for entry in entries:
            path = normalize_path(entry.path)
            if not entry.has_blob or not path.startswith(prefix):
                continue
            target = _workspace_target(workspace, path[len(prefix):])
            if target is None:
                logger.warning("Skipping %s: path escapes the workspace", path)
                failed += 1
                continue
            try:
                content = self._gateway.read_blob(request.repository_id, request.branch, path)
            except SyncError as exc:
                logger.warning("Could not download %s: %s", path, exc)
                failed += 1
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
            written += 1

        logger.info("Downloaded %d library files", written)
        return written, failed


def _workspace_target(workspace: Path, relative_path: str) -> Path | None:
    """Workspace location for ``relative_path``; None if it would leave the workspace."""
    root = workspace.resolve()
    target = (root / normalize_path(relative_path)).resolve()
    if target == root or root not in target.parents:
        return None
    return target
