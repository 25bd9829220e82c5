# ───────────────────────── src/pdfvault/naming.py ─────────────────────────
"""
Deterministic conflict-free naming for new vault entries.

Creation never fails because of a name clash: new folders get an increasing
numeric suffix and imported files get a " (n)" marker before the extension.
Renames are deliberate user actions, so a clash there is rejected instead of
silently resolved.
"""

import os
from pathlib import Path
from typing import Optional, Union

from .config import INVALID_NAME_CHARS
from .errors import InvalidNameError, NameConflictError

PathLike = Union[str, Path]


def entry_exists(directory: PathLike, name: str) -> bool:
    """Check whether any directory entry (file, folder or link) has this name."""
    return os.path.lexists(os.path.join(directory, name))


def validate_name(name: str) -> None:
    """Validate a single path component.

    Args:
        name: Candidate file or folder name, already trimmed

    Raises:
        InvalidNameError: If the name is empty, a relative marker, or
            contains characters that are illegal in a path component
    """
    if not name or name in (".", ".."):
        raise InvalidNameError(f"'{name}' is not a valid name")

    bad = sorted({ch for ch in name if ch in INVALID_NAME_CHARS})
    if bad:
        shown = " ".join(repr(ch) for ch in bad)
        raise InvalidNameError(f"The name contains invalid characters: {shown}")


class PathConflictResolver:
    """Produce names that do not collide with existing directory entries."""

    def resolve_folder_name(self, directory: PathLike, template: str) -> str:
        """Return ``template`` or the first free ``"template N"`` (N from 0)."""
        candidate = template
        counter = 0
        while entry_exists(directory, candidate):
            candidate = f"{template} {counter}"
            counter += 1
        return candidate

    def resolve_file_name(self, directory: PathLike, desired: str) -> str:
        """Return ``desired`` or the first free ``"base (n).ext"`` (n from 1).

        Examples:
            With ``doc.pdf`` already present the result is ``doc (1).pdf``;
            with ``doc (1).pdf`` present as well it is ``doc (2).pdf``.
        """
        if not entry_exists(directory, desired):
            return desired

        base, extension = os.path.splitext(desired)
        counter = 1
        while True:
            candidate = f"{base} ({counter}){extension}"
            if not entry_exists(directory, candidate):
                return candidate
            counter += 1

    def check_rename(
        self, directory: PathLike, new_name: str, current_name: Optional[str] = None
    ) -> None:
        """Reject a rename target that is invalid or already taken.

        Args:
            directory: Directory holding the entry being renamed
            new_name: Requested name, already trimmed
            current_name: Present name of the entry, which never counts as
                a collision with itself

        Raises:
            InvalidNameError: If ``new_name`` is not a valid path component
            NameConflictError: If another entry already uses ``new_name``
        """
        validate_name(new_name)

        if new_name == current_name:
            return

        target = os.path.join(directory, new_name)
        if not os.path.lexists(target):
            return

        # Case-only renames on case-insensitive filesystems resolve to the
        # entry itself.
        if current_name is not None:
            current = os.path.join(directory, current_name)
            try:
                if os.path.samefile(target, current):
                    return
            except OSError:
                pass

        raise NameConflictError(
            f"A file or folder named '{new_name}' already exists", path=target
        )
