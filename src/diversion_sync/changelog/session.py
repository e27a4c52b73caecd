"""Per-build deduplication of changelog writes.

A build can check the same or different repositories out more than once
(a shared library and the pipeline script). Only one changelog is kept per
build and the primary (script) checkout always wins over an auxiliary
(library) one.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator
from enum import StrEnum

logger = logging.getLogger(__name__)


class CheckoutKind(StrEnum):
    """Role a checkout plays inside a build."""

    PRIMARY = "primary"
    AUXILIARY = "auxiliary"


class ChangelogMarker(StrEnum):
    """Which checkout has already produced this build's changelog."""

    UNSET = "unset"
    WRITTEN_BY_PRIMARY = "written_by_primary"
    WRITTEN_BY_AUXILIARY = "written_by_auxiliary"


class ChangelogDecision(StrEnum):
    """What a checkout should do with its changelog file."""

    WRITE = "write"
    WRITE_EMPTY = "write_empty"
    SKIP = "skip"


class BuildSyncSession:
    """Changelog bookkeeping for one logical build.

    ``claim`` and ``claiming`` check and set the marker in one step under a
    lock owned by this session, so concurrent checkouts of unrelated builds
    never contend. ``claiming`` also undoes its claim when the write fails.
    """

    def __init__(self, build_id: str) -> None:
        self.build_id = build_id
        self._marker = ChangelogMarker.UNSET
        self._lock = threading.Lock()

    @property
    def marker(self) -> ChangelogMarker:
        return self._marker

    def claim(self, kind: CheckoutKind, same_repository: bool | None = None) -> ChangelogDecision:
        """Decide how this checkout handles its changelog and record it.

        Args:
            kind: Role of the checkout asking.
            same_repository: For auxiliary checkouts, whether the primary
                source uses the same repository. None when it is unknown.
        """
        decision, _, _ = self._claim(kind, same_repository)
        return decision

    @contextlib.contextmanager
    def claiming(
        self, kind: CheckoutKind, same_repository: bool | None = None
    ) -> Iterator[ChangelogDecision]:
        """Claim for the duration of a changelog write.

        If the block raises, the marker returns to its previous value unless
        another checkout has moved it in the meantime.
        """
        decision, previous, claimed = self._claim(kind, same_repository)
        try:
            yield decision
        except BaseException:
            with self._lock:
                if self._marker is claimed:
                    self._marker = previous
                restored = self._marker
            logger.warning("Build %s: changelog write failed, marker back to %s", self.build_id, restored.value)
            raise

    def _claim(
        self, kind: CheckoutKind, same_repository: bool | None
    ) -> tuple[ChangelogDecision, ChangelogMarker, ChangelogMarker]:
        with self._lock:
            previous = self._marker
            decision, marker = self._transition(kind, bool(same_repository))
            self._marker = marker

        logger.info(
            "Build %s: %s checkout -> %s (marker now %s)",
            self.build_id,
            kind.value,
            decision.value,
            marker.value,
        )
        return decision, previous, marker

    def _transition(
        self, kind: CheckoutKind, same_repository: bool
    ) -> tuple[ChangelogDecision, ChangelogMarker]:
        current = self._marker

        if kind is CheckoutKind.PRIMARY:
            if current is ChangelogMarker.WRITTEN_BY_PRIMARY:
                return ChangelogDecision.SKIP, current
            # First write, or overwrite of a provisional auxiliary changelog
            return ChangelogDecision.WRITE, ChangelogMarker.WRITTEN_BY_PRIMARY

        # Auxiliary checkout: identical commits would be listed twice
        if same_repository:
            if current is ChangelogMarker.UNSET:
                return ChangelogDecision.WRITE_EMPTY, ChangelogMarker.WRITTEN_BY_AUXILIARY
            if current is ChangelogMarker.WRITTEN_BY_PRIMARY:
                return ChangelogDecision.WRITE_EMPTY, current
            return ChangelogDecision.SKIP, current

        if current is ChangelogMarker.UNSET:
            return ChangelogDecision.WRITE, ChangelogMarker.WRITTEN_BY_AUXILIARY
        return ChangelogDecision.SKIP, current


class SessionRegistry:
    """Hands out one ``BuildSyncSession`` per build id."""

    def __init__(self) -> None:
        self._sessions: dict[str, BuildSyncSession] = {}
        self._lock = threading.Lock()

    def get(self, build_id: str) -> BuildSyncSession:
        with self._lock:
            session = self._sessions.get(build_id)
            if session is None:
                session = BuildSyncSession(build_id)
                self._sessions[build_id] = session
            return session

    def close(self, build_id: str) -> None:
        """Discard the session once its build has finished."""
        with self._lock:
            self._sessions.pop(build_id, None)

    def __contains__(self, build_id: object) -> bool:
        with self._lock:
            return build_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
