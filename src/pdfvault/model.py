# ───────────────────────── src/pdfvault/model.py ─────────────────────────
"""
In-memory node of the vault tree.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class NodeKind(Enum):
    """What a vault node stands for on disk."""

    ROOT = "root"
    FOLDER = "folder"
    FILE = "file"


@dataclass(eq=False)
class VaultNode:
    """A file or folder of the vault, or the vault root itself.

    Nodes compare by identity. ``path`` is unique within a tree, so lookups go
    through the path and never through equality.

    Attributes:
        path: Absolute filesystem path.
        name: Display name; the last path component, or the full vault path
            for the root.
        kind: Root, folder or PDF file.
        children: Owned child nodes, files first then folders, in the order
            they were enumerated or inserted.
        expanded: Whether the presentation shows this node's children.
        parent: Owning node, None for the root and for detached nodes.
    """

    path: str
    name: str
    kind: NodeKind
    children: List["VaultNode"] = field(default_factory=list, repr=False)
    expanded: bool = False
    parent: Optional["VaultNode"] = field(default=None, repr=False)

    @classmethod
    def root(cls, path: str) -> "VaultNode":
        return cls(path=path, name=path, kind=NodeKind.ROOT, expanded=True)

    @classmethod
    def folder(cls, path: str) -> "VaultNode":
        return cls(path=path, name=os.path.basename(path), kind=NodeKind.FOLDER)

    @classmethod
    def file(cls, path: str) -> "VaultNode":
        return cls(path=path, name=os.path.basename(path), kind=NodeKind.FILE)

    @property
    def is_root(self) -> bool:
        return self.kind is NodeKind.ROOT

    @property
    def is_directory(self) -> bool:
        return self.kind is not NodeKind.FILE

    @property
    def parent_folder(self) -> Optional["VaultNode"]:
        """Directory node that contains this node (None for the root)."""
        return self.parent

    def add_child(self, child: "VaultNode") -> None:
        """Append a child node, taking ownership of it.

        Raises:
            ValueError: If this node is a file
        """
        if not self.is_directory:
            raise ValueError(f"Cannot add children to file node {self.path}")
        child.parent = self
        self.children.append(child)

    def remove_child(self, child: "VaultNode") -> None:
        """Detach a child node.

        Raises:
            ValueError: If ``child`` is not a child of this node
        """
        for index, existing in enumerate(self.children):
            if existing is child:
                del self.children[index]
                child.parent = None
                return
        raise ValueError(f"{child.path} is not a child of {self.path}")

    def walk(self) -> Iterator["VaultNode"]:
        """Yield this node and all descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def rebase(self, old_prefix: str, new_prefix: str) -> None:
        """Rewrite the paths of this subtree after its top was renamed on disk.

        The node's own name is re-derived from its new path.
        """
        for node in self.walk():
            relative = os.path.relpath(node.path, old_prefix)
            node.path = (
                new_prefix if relative == "." else os.path.join(new_prefix, relative)
            )
            if not node.is_root:
                node.name = os.path.basename(node.path)
