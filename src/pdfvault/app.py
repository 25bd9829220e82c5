# ───────────────────────── src/pdfvault/app.py ─────────────────────────
"""
CLI entrypoint and main application logic.

Build with: pyinstaller --onefile --windowed app.py
"""

import argparse
import sys
from typing import List, Optional, TextIO

from .config import Config
from .errors import VaultAccessError
from .logging_utils import log_error, setup_logger
from .model import NodeKind, VaultNode


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="PDFVault - Organize PDF files in a dedicated vault folder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                        # Launch GUI
  %(prog)s --vault ~/Papers       # Use another vault folder
  %(prog)s --print-tree           # Print the vault hierarchy and exit
  %(prog)s --config custom.json   # Use custom config

Build Instructions:
  pyinstaller --onefile --windowed app.py
        """,
    )

    parser.add_argument(
        "--config", type=str, help="Path to configuration file (JSON format)"
    )

    parser.add_argument("--vault", type=str, help="Vault folder to manage")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: ERROR)",
    )

    parser.add_argument(
        "--print-tree",
        action="store_true",
        help="Print the vault hierarchy without opening the GUI",
    )

    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration from file or defaults, then apply CLI overrides.

    Raises:
        RuntimeError: If config file cannot be loaded
    """
    config = Config()
    if args.config:
        try:
            config = Config.from_file(args.config)
        except (OSError, ValueError, TypeError) as e:
            raise RuntimeError(f"Failed to load config from {args.config}: {e}") from e

    if args.vault:
        config.vault_path = args.vault
    if args.log_level:
        config.log_level = args.log_level

    return config


def print_tree(node: VaultNode, out: Optional[TextIO] = None, depth: int = 0) -> None:
    """Write an indented rendering of a subtree."""
    if out is None:
        out = sys.stdout
    suffix = "/" if node.kind is NodeKind.FOLDER else ""
    out.write(f"{'  ' * depth}{node.name}{suffix}\n")
    for child in node.children:
        print_tree(child, out, depth + 1)


def run_print_tree(config: Config) -> int:
    """Scan the vault and print it.

    Returns:
        Exit code (0 for success, 1 if the vault cannot be read)
    """
    from .sync import open_vault

    try:
        sync = open_vault(config)
    except (OSError, VaultAccessError) as e:
        log_error("Failed to scan vault", e, config)
        print(f"Cannot read vault: {e}", file=sys.stderr)
        return 1

    print_tree(sync.tree.root)
    for warning in sync.last_scan_warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args)
        logger = setup_logger(config)

        logger.info("PDFVault application starting")
        if args.config:
            logger.info(f"Using config file: {args.config}")

        if args.print_tree:
            return run_print_tree(config)

        # The GUI toolkit is only imported when a window is needed.
        from .gui import create_gui

        gui = create_gui(config)
        gui.run()

        logger.info("PDFVault application exiting normally")
        return 0

    except KeyboardInterrupt:
        print("\nApplication interrupted by user", file=sys.stderr)
        return 1

    except Exception as e:
        print(f"Application error: {str(e)}", file=sys.stderr)

        try:
            log_error("Application startup failed", e)
        except OSError:
            pass  # Ignore logging errors during shutdown

        return 1


if __name__ == "__main__":
    sys.exit(main())
