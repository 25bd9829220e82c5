# ───────────────────────── src/pdfvault/errors.py ─────────────────────────
"""
Error taxonomy for vault operations.

Every failure raised by the sync engine derives from VaultError and carries the
path it concerns. Scan warnings are plain records: they are collected and
reported, never raised.
"""

from dataclasses import dataclass
from typing import Optional


class VaultError(Exception):
    """Base class for all vault operation failures."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class VaultAccessError(VaultError):
    """The vault root itself cannot be read."""


class CreationError(VaultError):
    """A folder could not be created."""


class FileImportError(VaultError):
    """A single file of an import batch could not be copied into the vault."""

    def __init__(self, message: str, source: str, path: Optional[str] = None):
        super().__init__(message, path)
        self.source = source


class DeletionError(VaultError):
    """A file or folder could not be deleted."""


class RenameError(VaultError):
    """A rename failed on disk."""


class InvalidNameError(RenameError):
    """The requested name is not a valid path component."""


class NameConflictError(RenameError):
    """An entry with the requested name already exists."""


class MoveError(VaultError):
    """A drag-and-drop move failed."""


class ConflictError(MoveError):
    """The move destination already holds an entry with the same name."""


@dataclass(frozen=True)
class ScanWarning:
    """Non-fatal problem found while scanning a directory."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"
