# ───────────────────────── src/pdfvault/sync.py ─────────────────────────
"""
Vault tree synchronization engine.

Every structural operation runs as a pair: the filesystem action first, then
the matching in-memory update of the VaultTree. When the filesystem action
fails nothing in memory has changed yet, so the tree stays as it was and the
failure is raised to the caller. Moves are the exception: once the disk has
been touched the tree is rebuilt from a fresh scan, with the expansion state
carried across the rebuild.

Key Components:
    - VaultTreeSync: Orchestrator for create/import/delete/rename/move
    - ImportReport: Outcome of an import batch
    - open_vault(): Build the initial tree for a configured vault

Examples:
    >>> sync = open_vault(Config(vault_path="/tmp/vault"))
    >>> folder = sync.create_folder()
    >>> folder.name
    'New Folder'
    >>> report = sync.import_files(folder, ["/home/me/paper.pdf"])
    >>> [node.name for node in report.inserted]
    ['paper.pdf']
"""

import os
import shutil
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Type

from .config import Config, ensure_vault
from .errors import (
    ConflictError,
    CreationError,
    DeletionError,
    FileImportError,
    InvalidNameError,
    MoveError,
    RenameError,
    ScanWarning,
    VaultError,
)
from .logging_utils import log_error, log_info
from .model import VaultNode
from .naming import PathConflictResolver
from .scanner import DirectoryScanner
from .tree import VaultTree


@dataclass
class ImportReport:
    """Outcome of an import batch.

    Attributes:
        destination: Directory node the files were copied into.
        inserted: New file nodes, in source order.
        failures: One error per source that could not be imported.
    """

    destination: VaultNode
    inserted: List[VaultNode] = field(default_factory=list)
    failures: List[FileImportError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _is_within(path: str, ancestor: str) -> bool:
    path = os.path.normcase(os.path.abspath(path))
    ancestor = os.path.normcase(os.path.abspath(ancestor))
    return path == ancestor or path.startswith(ancestor.rstrip(os.sep) + os.sep)


class VaultTreeSync:
    """Apply structural operations to disk and keep the VaultTree in step."""

    def __init__(
        self,
        tree: VaultTree,
        scanner: Optional[DirectoryScanner] = None,
        resolver: Optional[PathConflictResolver] = None,
        config: Optional[Config] = None,
    ):
        """Initialize the engine.

        Args:
            tree: Tree to keep synchronized, owned for the whole session
            scanner: Scanner used for full rebuilds
            resolver: Naming strategy for new entries
            config: Configuration object, uses defaults if None
        """
        self.config = config or Config()
        self.tree = tree
        self.scanner = scanner or DirectoryScanner(self.config)
        self.resolver = resolver or PathConflictResolver()
        self.last_scan_warnings: List[ScanWarning] = []

    @property
    def vault_root(self) -> str:
        return self.tree.root.path

    def destination_for(self, selected: Optional[VaultNode]) -> VaultNode:
        """Resolve the directory node that new entries go into.

        No selection means the vault root, a selected folder is used as is,
        and a selected file stands for the folder that contains it.
        """
        if selected is None:
            return self.tree.root

        # Accept nodes from a replaced tree by looking them up again.
        node = self.tree.find_node(selected.path) or selected
        if node.is_directory:
            return node
        return node.parent_folder or self.tree.root

    def reload(self) -> VaultNode:
        """Rebuild the tree from disk, keeping the expansion state.

        Returns:
            The new root node

        Raises:
            VaultAccessError: If the vault root cannot be read
        """
        expanded = self.tree.snapshot_expanded()
        self._rebuild(expanded)
        return self.tree.root

    def _rebuild(self, expanded: Set[str]) -> None:
        result = self.scanner.scan(self.vault_root)
        self.last_scan_warnings = result.warnings

        self.tree.replace_root(result.root)
        self.tree.restore_expanded(expanded)

    def _live(self, node: VaultNode, error: Type[VaultError]) -> VaultNode:
        """Map a caller's node handle onto the current tree.

        Handles taken before a rebuild belong to a discarded tree, so every
        operation works on the node found at the same path instead.
        """
        live = self.tree.find_node(node.path)
        if live is None:
            raise error(f"'{node.name}' is no longer in the vault", node.path)
        return live

    def _expand(self, node: VaultNode) -> None:
        if not node.expanded:
            node.expanded = True
            self.tree.notify_changed(node)

    def create_folder(self, selected: Optional[VaultNode] = None) -> VaultNode:
        """Create a new, conflict-free folder next to the selection.

        Args:
            selected: Currently selected node, if any

        Returns:
            The new folder node, appended to its parent

        Raises:
            CreationError: If the directory cannot be created
        """
        parent = self.destination_for(selected)
        name = self.resolver.resolve_folder_name(
            parent.path, self.config.new_folder_name
        )
        new_path = os.path.join(parent.path, name)

        try:
            os.mkdir(new_path)
        except OSError as e:
            log_error(f"Failed to create folder {new_path}", e, self.config)
            raise CreationError(
                f"Could not create folder '{name}': {e}", new_path
            ) from e

        node = VaultNode.folder(new_path)
        self.tree.insert_node(parent, node)
        self._expand(parent)

        log_info(f"Created folder {new_path}", self.config)
        return node

    def import_files(
        self, selected: Optional[VaultNode], sources: Iterable[str]
    ) -> ImportReport:
        """Copy PDF files into the vault.

        Each source is handled on its own: a failure is recorded in the
        report and the remaining sources are still attempted. Originals are
        never moved or modified.

        Args:
            selected: Currently selected node, if any
            sources: Absolute paths of the files to import, in order

        Returns:
            ImportReport with the inserted nodes and the per-file failures
        """
        parent = self.destination_for(selected)
        report = ImportReport(destination=parent)

        for source in sources:
            try:
                node = self._import_one(parent, source)
            except FileImportError as e:
                log_error(f"Failed to import {source}", e, self.config)
                report.failures.append(e)
                continue
            report.inserted.append(node)

        self._expand(parent)

        log_info(
            f"Imported {len(report.inserted)} file(s) into {parent.path}, "
            f"{len(report.failures)} failed",
            self.config,
        )
        return report

    def _import_one(self, parent: VaultNode, source: str) -> VaultNode:
        if not self.config.is_pdf(source):
            raise FileImportError(f"Not a PDF file: {source}", source)
        if not os.path.isfile(source):
            raise FileImportError(f"File not found: {source}", source)

        name = self.resolver.resolve_file_name(parent.path, os.path.basename(source))
        dest_path = os.path.join(parent.path, name)

        try:
            shutil.copy2(source, dest_path)
        except (OSError, shutil.Error) as e:
            raise FileImportError(
                f"Could not copy '{os.path.basename(source)}': {e}", source, dest_path
            ) from e

        node = VaultNode.file(dest_path)
        self.tree.insert_node(parent, node)
        return node

    def delete(self, node: VaultNode) -> bool:
        """Delete a file or folder (recursively) from disk and from the tree.

        Confirmation is the caller's responsibility.

        Returns:
            False if ``node`` is the vault root (nothing happens), True otherwise

        Raises:
            DeletionError: If the entry is gone from the tree or cannot be
                removed from disk
        """
        node = self._live(node, DeletionError)
        if node.is_root:
            return False

        try:
            if node.is_directory:
                shutil.rmtree(node.path)
            else:
                os.remove(node.path)
        except OSError as e:
            log_error(f"Failed to delete {node.path}", e, self.config)
            raise DeletionError(
                f"Could not delete '{node.name}': {e}", node.path
            ) from e

        if node.parent is not None:
            self.tree.detach_node(node)

        log_info(f"Deleted {node.path}", self.config)
        return True

    def rename(self, node: VaultNode, new_name: str) -> bool:
        """Rename a file or folder in place.

        An empty or unchanged name is a silent cancel. On every failure the
        node keeps its previous path and name.

        Returns:
            True if the entry was renamed, False on root or silent cancel

        Raises:
            InvalidNameError: If the new name is not a valid path component
            NameConflictError: If another entry already uses the new name
            RenameError: If the entry is gone from the tree or the filesystem
                rename fails
        """
        node = self._live(node, RenameError)
        if node.is_root:
            return False

        new_name = new_name.strip()
        if not new_name or new_name == node.name:
            return False

        directory = os.path.dirname(node.path)
        self.resolver.check_rename(directory, new_name, current_name=node.name)

        if not node.is_directory and not self.config.is_pdf(new_name):
            raise InvalidNameError(
                f"A PDF must keep one of the extensions "
                f"{', '.join(self.config.pdf_extensions)}",
                node.path,
            )

        old_path = node.path
        new_path = os.path.join(directory, new_name)

        try:
            os.rename(old_path, new_path)
        except OSError as e:
            log_error(f"Failed to rename {old_path}", e, self.config)
            raise RenameError(f"Could not rename '{node.name}': {e}", old_path) from e

        node.rebase(old_path, new_path)
        self.tree.notify_changed(node)

        log_info(f"Renamed {old_path} to {new_path}", self.config)
        return True

    def move(self, source: VaultNode, target: VaultNode) -> bool:
        """Move ``source`` into ``target`` (or into target's folder for a file).

        The move never overwrites: an existing entry of the same name at the
        destination refuses the operation before any disk write. After the
        disk has been touched, successfully or not, the tree is rebuilt from
        disk and the expansion state restored.

        Returns:
            True if the entry was moved, False for a refused no-op drop

        Raises:
            ConflictError: If the destination already holds the same name
            MoveError: If either node is gone from the tree, or the move is
                impossible or fails on disk
        """
        source = self._live(source, MoveError)
        target = self._live(target, MoveError)
        if source.is_root or source is target or source.path == target.path:
            return False

        destination = target if target.is_directory else target.parent_folder
        if destination is None:
            return False

        dest_path = os.path.join(destination.path, os.path.basename(source.path))
        if os.path.normcase(dest_path) == os.path.normcase(source.path):
            # Dropped onto the folder it already lives in.
            return False

        if source.is_directory and _is_within(destination.path, source.path):
            raise MoveError(
                f"Cannot move '{source.name}' into itself", source.path
            )

        if os.path.lexists(dest_path):
            raise ConflictError(
                f"A file or folder named '{source.name}' already exists "
                f"in this destination",
                dest_path,
            )

        expanded = self.tree.snapshot_expanded()

        try:
            shutil.move(source.path, dest_path)
        except (OSError, shutil.Error) as e:
            log_error(f"Failed to move {source.path}", e, self.config)
            # A failed move may still have been partly applied on disk.
            self._rebuild(expanded)
            raise MoveError(f"Could not move '{source.name}': {e}", source.path) from e

        # Expanded folders inside the moved subtree follow it to its new path.
        expanded = {
            dest_path + p[len(source.path):] if _is_within(p, source.path) else p
            for p in expanded
        }

        self._rebuild(expanded)

        log_info(f"Moved {source.path} to {dest_path}", self.config)
        return True


def open_vault(config: Optional[Config] = None) -> VaultTreeSync:
    """Create the vault if needed, scan it and return a ready engine.

    Raises:
        OSError: If the vault directory cannot be created
        VaultAccessError: If the vault root cannot be read
    """
    if config is None:
        config = Config()

    root_path = str(ensure_vault(config))
    scanner = DirectoryScanner(config)
    result = scanner.scan(root_path)

    sync = VaultTreeSync(VaultTree(result.root), scanner=scanner, config=config)
    sync.last_scan_warnings = result.warnings
    return sync
