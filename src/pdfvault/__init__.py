# ───────────────────────── src/pdfvault/__init__.py ─────────────────────────
"""
PDFVault: a lightweight desktop organizer for PDF files kept in a single vault
folder.

The vault's directory tree is mirrored in memory and kept in step with the
disk across folder creation, imports, renames, drag-and-drop moves and
deletions, without collapsing the folders the user has open.
"""

__version__ = "1.0.0"
__author__ = "PDFVault Team"

from .config import Config, ensure_vault
from .errors import (
    ConflictError,
    CreationError,
    DeletionError,
    FileImportError,
    InvalidNameError,
    MoveError,
    NameConflictError,
    RenameError,
    ScanWarning,
    VaultAccessError,
    VaultError,
)
from .model import NodeKind, VaultNode
from .naming import PathConflictResolver
from .scanner import DirectoryScanner, ScanResult

# Public API exports
from .sync import ImportReport, VaultTreeSync, open_vault
from .tree import TreeListener, VaultTree

__all__ = [
    "Config",
    "ensure_vault",
    "VaultNode",
    "NodeKind",
    "VaultTree",
    "TreeListener",
    "DirectoryScanner",
    "ScanResult",
    "PathConflictResolver",
    "VaultTreeSync",
    "ImportReport",
    "open_vault",
    "VaultError",
    "VaultAccessError",
    "CreationError",
    "FileImportError",
    "DeletionError",
    "RenameError",
    "InvalidNameError",
    "NameConflictError",
    "MoveError",
    "ConflictError",
    "ScanWarning",
    "__version__",
]
