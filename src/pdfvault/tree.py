# ───────────────────────── src/pdfvault/tree.py ─────────────────────────
"""
Authoritative in-memory mirror of the vault directory.

VaultTree owns the root node, answers path lookups and carries the
expansion snapshot/restore pair that makes a full rebuild invisible to the
user. Presentation code subscribes through the TreeListener protocol; the tree
never references presentation types.
"""

import os
from abc import abstractmethod
from typing import Iterator, List, Optional, Protocol, Set

from .model import VaultNode


class TreeListener(Protocol):
    """Protocol for consumers of structural change notifications."""

    @abstractmethod
    def node_added(self, parent: VaultNode, node: VaultNode) -> None:
        """A node was appended to ``parent``."""
        pass

    @abstractmethod
    def node_removed(self, parent: VaultNode, node: VaultNode) -> None:
        """A node was detached from ``parent``."""
        pass

    @abstractmethod
    def node_changed(self, node: VaultNode) -> None:
        """A node's path or name changed in place."""
        pass

    @abstractmethod
    def tree_replaced(self, root: VaultNode) -> None:
        """The whole tree was rebuilt from disk."""
        pass

    @abstractmethod
    def expansion_restored(self, paths: Set[str]) -> None:
        """Expansion flags were re-applied after a rebuild."""
        pass


def _key(path: str) -> str:
    return os.path.normcase(os.path.normpath(path))


class VaultTree:
    """Single-owner holder of the vault's root node."""

    def __init__(self, root: VaultNode):
        self._root = root
        self._listeners: List[TreeListener] = []

    @property
    def root(self) -> VaultNode:
        return self._root

    def add_listener(self, listener: TreeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TreeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def walk(self) -> Iterator[VaultNode]:
        return self._root.walk()

    def find_node(self, path: str) -> Optional[VaultNode]:
        """Return the node at ``path`` or None.

        The search descends only into the branch whose path prefixes the
        requested one.
        """
        target = _key(path)
        node = self._root
        while True:
            current = _key(node.path)
            if current == target:
                return node
            prefix = current if current.endswith(os.sep) else current + os.sep
            if not target.startswith(prefix):
                return None
            for child in node.children:
                child_key = _key(child.path)
                if target == child_key or target.startswith(child_key + os.sep):
                    node = child
                    break
            else:
                return None

    def snapshot_expanded(self) -> Set[str]:
        """Collect the paths of every expanded node."""
        return {node.path for node in self._root.walk() if node.expanded}

    def restore_expanded(self, paths: Set[str]) -> None:
        """Re-apply expansion flags after a rebuild.

        Afterwards exactly the directory nodes whose path is in ``paths`` are
        expanded. Paths missing from the new tree are dropped silently.
        """
        for node in self._root.walk():
            node.expanded = node.is_directory and node.path in paths

        for listener in list(self._listeners):
            listener.expansion_restored(set(paths))

    def replace_root(self, new_root: VaultNode) -> None:
        """Swap in a freshly scanned root."""
        new_root.parent = None
        self._root = new_root

        for listener in list(self._listeners):
            listener.tree_replaced(new_root)

    def insert_node(self, parent: VaultNode, node: VaultNode) -> None:
        """Append ``node`` under ``parent`` and notify listeners."""
        parent.add_child(node)

        for listener in list(self._listeners):
            listener.node_added(parent, node)

    def detach_node(self, node: VaultNode) -> None:
        """Remove ``node`` from its parent and notify listeners.

        Raises:
            ValueError: If the node is the root or already detached
        """
        parent = node.parent
        if parent is None:
            raise ValueError(f"{node.path} has no parent to detach from")
        parent.remove_child(node)

        for listener in list(self._listeners):
            listener.node_removed(parent, node)

    def notify_changed(self, node: VaultNode) -> None:
        for listener in list(self._listeners):
            listener.node_changed(node)
