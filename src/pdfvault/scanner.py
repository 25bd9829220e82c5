# ───────────────────────── src/pdfvault/scanner.py ─────────────────────────
"""
Recursive depth-first scan of the vault directory.

The scanner lists the PDF files of a directory, then its subdirectories, in
the order the operating system enumerates them, and recurses into each
subdirectory. A scan never aborts below the vault root:

- a subdirectory that cannot be opened for lack of permission is left out
  of the result without any report;
- any other I/O failure below the root is recorded as a ScanWarning and the
  partial tree built so far is kept.

Only a failure to read the vault root itself is fatal (VaultAccessError).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Config
from .errors import ScanWarning, VaultAccessError
from .logging_utils import LOGGER_NAME, log_warning
from .model import NodeKind, VaultNode

logger = logging.getLogger(LOGGER_NAME)


@dataclass
class ScanResult:
    """Root of a freshly scanned subtree plus the warnings raised on the way."""

    root: VaultNode
    warnings: List[ScanWarning] = field(default_factory=list)


class DirectoryScanner:
    """Build VaultNode subtrees from the directory structure on disk."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize the scanner.

        Args:
            config: Configuration object, uses defaults if None
        """
        self.config = config or Config()

    def scan(self, path: str) -> ScanResult:
        """Scan the vault rooted at ``path``.

        Args:
            path: Absolute path of the vault root

        Returns:
            ScanResult whose root node has kind ROOT and is expanded

        Raises:
            VaultAccessError: If the vault root itself cannot be listed
        """
        return self.scan_subtree(path, NodeKind.ROOT)

    def scan_subtree(self, path: str, kind: NodeKind = NodeKind.FOLDER) -> ScanResult:
        """Scan an arbitrary directory into a subtree of the given kind.

        Raises:
            VaultAccessError: If ``path`` itself cannot be listed
        """
        path = os.path.abspath(path)
        node = VaultNode.root(path) if kind is NodeKind.ROOT else VaultNode.folder(path)
        result = ScanResult(root=node)

        try:
            entries = self._list(path)
        except OSError as e:
            raise VaultAccessError(f"Cannot read vault directory: {e}", path) from e

        self._populate(node, entries, result)
        return result

    def _list(self, path: str) -> List[os.DirEntry]:
        with os.scandir(path) as it:
            return list(it)

    def _populate(
        self, node: VaultNode, entries: List[os.DirEntry], result: ScanResult
    ) -> None:
        # Files first, then directories, each in enumeration order.
        for entry in entries:
            try:
                is_file = entry.is_file()
            except OSError as e:
                self._warn(result, entry.path, e)
                continue
            if is_file and self.config.is_pdf(entry.name):
                node.add_child(VaultNode.file(entry.path))

        for entry in entries:
            try:
                # Symlinked directories are not followed to rule out cycles.
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                self._warn(result, entry.path, e)
                continue
            if not is_dir:
                continue

            child = VaultNode.folder(entry.path)
            try:
                child_entries = self._list(entry.path)
            except PermissionError:
                logger.debug(f"Skipping unreadable directory {entry.path}")
                continue
            except OSError as e:
                self._warn(result, entry.path, e)
                continue

            node.add_child(child)
            self._populate(child, child_entries, result)

    def _warn(self, result: ScanResult, path: str, exc: OSError) -> None:
        warning = ScanWarning(path, str(exc))
        result.warnings.append(warning)
        log_warning(f"Scan warning: {warning}", self.config)
