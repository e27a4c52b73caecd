"""Virtual tree reconstruction from flat listings."""

from diversion_sync.tree.builder import NodeKind, TreeIndex, TreeNode, VirtualTree, normalize_path
from diversion_sync.tree.filesystem import RevisionFileSystem

__all__ = [
    "NodeKind",
    "RevisionFileSystem",
    "TreeIndex",
    "TreeNode",
    "VirtualTree",
    "normalize_path",
]
