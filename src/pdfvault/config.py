# ───────────────────────── src/pdfvault/config.py ─────────────────────────
"""
Configuration management for PDFVault.

This module centralizes the settings shared by the vault engine, the
presentation layer and the logging helpers.

Key Components:
    - Config: Main configuration class with vault, naming and logging settings
    - ensure_vault(): Create the vault directory on first run

Examples:
    Use the default vault under the user's documents folder:
    >>> config = Config()
    >>> config.new_folder_name
    'New Folder'

    Point the application at a different vault:
    >>> config = Config(vault_path="/tmp/my-vault", log_level="INFO")
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Tuple, Union

# Characters that are rejected in a single path component on any platform.
INVALID_NAME_CHARS = frozenset('<>:"/\\|?*' + "".join(chr(i) for i in range(32)))

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def default_vault_path() -> str:
    """Return the well-known vault location under the user's documents."""
    return str(Path.home() / "Documents" / "My CASTLE")


@dataclass
class Config:
    """Configuration settings for PDFVault.

    Attributes:
        vault_path: Root directory managed by the application
            (default: "~/Documents/My CASTLE").
        new_folder_name: Base name used for newly created folders
            (default: "New Folder").
        pdf_extensions: File extensions shown in the vault, matched
            case-insensitively (default: (".pdf",)).
        drag_threshold: Pointer travel in pixels before a press becomes a
            drag (default: 5).
        preview_chars: Length of the text excerpt in the info pane
            (default: 600).
        log_file: Path to the error log file (default: "pdfvault_error.log").
        max_log_size: Maximum log file size in bytes (default: 10MB).
        log_backup_count: Number of backup log files to keep (default: 3).
        log_level: Logging level name (default: "ERROR").

    Examples:
        >>> config = Config(drag_threshold=8)
        >>> config.drag_threshold
        8

        >>> Config(drag_threshold=-1)
        Traceback (most recent call last):
        ...
        ValueError: drag_threshold cannot be negative
    """

    # Vault configuration
    vault_path: str = default_vault_path()
    new_folder_name: str = "New Folder"
    pdf_extensions: Tuple[str, ...] = (".pdf",)

    # Presentation configuration
    drag_threshold: int = 5
    preview_chars: int = 600

    # Logging configuration
    log_file: str = "pdfvault_error.log"
    max_log_size: int = 10 * 1024 * 1024  # 10MB
    log_backup_count: int = 3
    log_level: str = "ERROR"

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ValueError: If any configuration values are invalid.
        """
        self.vault_path = str(self.vault_path)

        if not self.vault_path.strip():
            raise ValueError("vault_path cannot be empty")

        # Validate naming settings
        if not self.new_folder_name.strip():
            raise ValueError("new_folder_name cannot be empty")
        if any(ch in INVALID_NAME_CHARS for ch in self.new_folder_name):
            raise ValueError(
                f"new_folder_name contains invalid characters: "
                f"'{self.new_folder_name}'"
            )

        self.pdf_extensions = tuple(ext.lower() for ext in self.pdf_extensions)
        if not self.pdf_extensions:
            raise ValueError("pdf_extensions cannot be empty")
        for ext in self.pdf_extensions:
            if not ext.startswith("."):
                raise ValueError(f"extension must start with '.', got '{ext}'")

        if self.drag_threshold < 0:
            raise ValueError("drag_threshold cannot be negative")
        if self.preview_chars < 0:
            raise ValueError("preview_chars cannot be negative")

        # Validate logging settings
        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {VALID_LOG_LEVELS}, "
                f"got '{self.log_level}'"
            )
        if self.max_log_size <= 0:
            raise ValueError("max_log_size must be positive")
        if self.log_backup_count < 0:
            raise ValueError("log_backup_count cannot be negative")

    @property
    def vault_root(self) -> Path:
        """Vault path with the user directory expanded."""
        return Path(self.vault_path).expanduser()

    def is_pdf(self, path: Union[str, Path]) -> bool:
        """Check whether a path carries one of the configured PDF extensions."""
        return Path(path).suffix.lower() in self.pdf_extensions

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "Config":
        """Load configuration overrides from a JSON file.

        Args:
            config_path: Path to a JSON object whose keys are Config fields

        Returns:
            Configuration object

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a JSON object or names unknown fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, "r", encoding="utf-8") as f:
            config_data = json.load(f)

        if not isinstance(config_data, dict):
            raise ValueError("Config file must contain a JSON object")

        known = {f.name for f in fields(cls)}
        unknown = set(config_data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        if "pdf_extensions" in config_data:
            config_data["pdf_extensions"] = tuple(config_data["pdf_extensions"])

        return cls(**config_data)


def ensure_vault(config: Config) -> Path:
    """Create the vault directory if it does not exist yet.

    Args:
        config: Configuration object

    Returns:
        Resolved vault root path

    Raises:
        OSError: If the directory cannot be created
    """
    root = config.vault_root
    root.mkdir(parents=True, exist_ok=True)
    return root.resolve()
