"""Virtual file tree reconstructed from a flat remote listing.

The remote only returns ``(path, has_blob)`` rows per revision. A single
pass over those rows groups them by parent directory; every later query
against the same revision is answered from that index.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from diversion_sync.entities import PathEntry
from diversion_sync.errors import SyncError

if TYPE_CHECKING:
    from diversion_sync.gateway import RemoteSourceGateway

logger = logging.getLogger(__name__)

SEPARATOR = "/"


class NodeKind(StrEnum):
    """Resolved type of a tree path."""

    FILE = "file"
    DIRECTORY = "directory"
    UNKNOWN = "unknown"
    NONEXISTENT = "nonexistent"


def normalize_path(path: str) -> str:
    """Drop empty segments so ``/a//b/`` and ``a/b`` address the same node."""
    return SEPARATOR.join(part for part in path.split(SEPARATOR) if part)


def join_path(parent: str, name: str) -> str:
    return f"{parent}{SEPARATOR}{name}" if parent else name


@dataclass
class TreeIndex:
    """Parent-directory grouping of one listing.

    ``children`` maps a directory path to its direct child names in
    first-seen order; the value is True once anything was seen beneath
    that child.
    """

    children: dict[str, dict[str, bool]] = field(default_factory=dict)
    blobs: set[str] = field(default_factory=set)
    listed: set[str] = field(default_factory=set)
    directories: set[str] = field(default_factory=set)

    @classmethod
    def build(cls, entries: Iterable[PathEntry]) -> TreeIndex:
        index = cls()
        for entry in entries:
            path = normalize_path(entry.path)
            if not path:
                continue
            index.listed.add(path)
            if entry.has_blob:
                index.blobs.add(path)

            segments = path.split(SEPARATOR)
            parent = ""
            for depth, name in enumerate(segments):
                siblings = index.children.setdefault(parent, {})
                if depth < len(segments) - 1:
                    # Something lives below this segment: always a directory
                    siblings[name] = True
                    parent = join_path(parent, name)
                    index.directories.add(parent)
                else:
                    siblings.setdefault(name, False)
        return index

    def kind_of_child(self, path: str, has_nested: bool) -> NodeKind:
        if has_nested or path not in self.blobs:
            return NodeKind.DIRECTORY
        return NodeKind.FILE

    def kind_of(self, path: str) -> NodeKind:
        if path in self.directories:
            return NodeKind.DIRECTORY
        if path in self.listed:
            return self.kind_of_child(path, has_nested=False)
        return NodeKind.NONEXISTENT


class TreeNode:
    """A lazily navigable node of a ``VirtualTree``.

    Kind is resolved on first access and then fixed for the lifetime of
    the tree.
    """

    def __init__(self, tree: VirtualTree, full_path: str, kind: NodeKind = NodeKind.UNKNOWN) -> None:
        self._tree = tree
        self.full_path = normalize_path(full_path)
        self.name = self.full_path.rsplit(SEPARATOR, 1)[-1]
        self._kind = kind

    @property
    def kind(self) -> NodeKind:
        if self._kind is NodeKind.UNKNOWN:
            self._kind = self._tree.resolve(self.full_path)
        return self._kind

    @property
    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    @property
    def exists(self) -> bool:
        return self.kind is not NodeKind.NONEXISTENT

    def child(self, relative_path: str) -> TreeNode:
        return TreeNode(self._tree, join_path(self.full_path, normalize_path(relative_path)))

    def children(self) -> list[TreeNode]:
        if self.kind is not NodeKind.DIRECTORY:
            return []
        return self._tree.children(self.full_path)

    def __repr__(self) -> str:
        return f"TreeNode({self.full_path!r}, {self._kind.value})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeNode):
            return NotImplemented
        return self._tree is other._tree and self.full_path == other.full_path

    def __hash__(self) -> int:
        return hash((id(self._tree), self.full_path))


class VirtualTree:
    """Tree view over the flat listing of one ``(repo, ref)`` revision.

    The listing is loaded once, on first query, and reused for every
    lookup. When loading fails the whole tree reads as absent: ``resolve``
    answers NONEXISTENT, ``children`` is empty, and the failure is kept on
    ``error`` for the caller to report.
    """

    def __init__(
        self,
        loader: Callable[[], list[PathEntry]],
        conventional_dirs: Iterable[str] = (),
    ) -> None:
        self._loader = loader
        self._conventional_dirs = frozenset(conventional_dirs)
        self._lock = threading.Lock()
        self._loaded = False
        self._entries: list[PathEntry] = []
        self._index: TreeIndex | None = None
        self._kinds: dict[str, NodeKind] = {}
        self.error: SyncError | None = None

    @classmethod
    def for_revision(
        cls,
        gateway: RemoteSourceGateway,
        repo_id: str,
        ref: str,
        conventional_dirs: Iterable[str] = (),
    ) -> VirtualTree:
        return cls(lambda: gateway.list_paths(repo_id, ref), conventional_dirs)

    def _load(self) -> TreeIndex | None:
        with self._lock:
            if not self._loaded:
                try:
                    self._entries = list(self._loader())
                    self._index = TreeIndex.build(self._entries)
                    logger.debug("Indexed %d listing entries", len(self._entries))
                except SyncError as exc:
                    logger.warning("Failed to load file tree: %s", exc)
                    self.error = exc
                    self._entries = []
                    self._index = None
                self._loaded = True
            return self._index

    @property
    def entries(self) -> list[PathEntry]:
        """The raw listing in gateway order (empty if loading failed)."""
        self._load()
        return list(self._entries)

    @property
    def root(self) -> TreeNode:
        return TreeNode(self, "", NodeKind.DIRECTORY)

    def node(self, path: str) -> TreeNode:
        return TreeNode(self, path)

    def resolve(self, path: str) -> NodeKind:
        path = normalize_path(path)
        if not path:
            return NodeKind.DIRECTORY

        cached = self._kinds.get(path)
        if cached is not None:
            return cached

        if path in self._conventional_dirs:
            with self._lock:
                return self._kinds.setdefault(path, NodeKind.DIRECTORY)

        index = self._load()
        kind = index.kind_of(path) if index is not None else NodeKind.NONEXISTENT
        with self._lock:
            return self._kinds.setdefault(path, kind)

    def children(self, parent_path: str) -> list[TreeNode]:
        """Direct children of ``parent_path``, deduplicated, in listing order."""
        index = self._load()
        if index is None:
            return []

        parent = normalize_path(parent_path)
        nodes: list[TreeNode] = []
        for name, has_nested in index.children.get(parent, {}).items():
            path = join_path(parent, name)
            kind = index.kind_of_child(path, has_nested)
            with self._lock:
                kind = self._kinds.setdefault(path, kind)
            nodes.append(TreeNode(self, path, kind))
        return nodes
