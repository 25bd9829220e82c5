# ───────────────────────── src/pdfvault/preview.py ─────────────────────────
"""
PDF information for the viewer pane, with a pluggable loader system.

The info pane shows the selected file's name, size, page count and a short
text excerpt of its first page. Loading goes through a registry keyed by file
extension so additional loaders can be plugged in without touching callers.

Key Functions:
    - register_loader(): Add a loader class for a file extension
    - load_document(): Load a file using the registered loader
    - get_file_info(): Summary dictionary for display (never raises)

Example:
    >>> info = get_file_info("/vault/report.pdf")
    >>> print(f"{info['filename']}: {info['pages']} pages")
    report.pdf: 12 pages
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from langchain_core.documents import Document
from langchain_community.document_loaders import PyPDFLoader

from .config import Config
from .logging_utils import log_error

# Registry for file loaders - extensible for new file types
_LOADER_REGISTRY: Dict[str, Callable[[str], Any]] = {".pdf": PyPDFLoader}


def register_loader(extension: str, loader_class: Callable[[str], Any]) -> None:
    """Register a new file loader for a specific extension.

    Args:
        extension: File extension (e.g., '.pdf')
        loader_class: Loader class that accepts a file path and has ``load()``
    """
    _LOADER_REGISTRY[extension.lower()] = loader_class


def get_supported_extensions() -> List[str]:
    """Get list of supported file extensions."""
    return list(_LOADER_REGISTRY.keys())


def load_document(file_path: str) -> List[Document]:
    """Load a document using the appropriate loader.

    Args:
        file_path: Path to the document file

    Returns:
        List of Document objects, one per page for PDFs, each with
        ``page_content`` and ``metadata`` (``source``, ``page``)

    Raises:
        ValueError: If file extension is not supported
        RuntimeError: If document loading fails due to corruption,
            permissions, or loader errors
    """
    file_path = Path(file_path)
    extension = file_path.suffix.lower()

    if extension not in _LOADER_REGISTRY:
        raise ValueError(
            f"Unsupported file type: {extension}. "
            f"Supported types: {', '.join(_LOADER_REGISTRY.keys())}"
        )

    try:
        loader_class = _LOADER_REGISTRY[extension]
        loader = loader_class(str(file_path))
        return loader.load()
    except Exception as e:
        log_error(f"Failed to load document {file_path}", e)
        raise RuntimeError(f"Document loading failed: {e}") from e


def _excerpt(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def get_file_info(file_path: str, config: Optional[Config] = None) -> Dict[str, Any]:
    """Get information about a file for display purposes.

    Args:
        file_path: Path to the file
        config: Configuration object, uses defaults if None

    Returns:
        Dictionary with ``filename``, ``size``, ``pages``, ``excerpt`` and
        ``error`` (None when the file could be read)
    """
    if config is None:
        config = Config()

    path = Path(file_path)
    info = {
        "filename": path.name,
        "size": 0,
        "pages": 0,
        "excerpt": "",
        "error": None,
    }

    try:
        if not path.is_file():
            info["error"] = "File not found"
            return info
        info["size"] = path.stat().st_size
    except OSError as e:
        info["error"] = str(e)
        return info

    try:
        documents = load_document(str(path))
    except (ValueError, RuntimeError) as e:
        info["error"] = f"Could not read PDF: {e}"
        return info

    # Count unique pages
    pages = {doc.metadata["page"] for doc in documents if "page" in doc.metadata}
    info["pages"] = len(pages) if pages else len(documents)

    if documents and config.preview_chars:
        info["excerpt"] = _excerpt(documents[0].page_content, config.preview_chars)

    return info


def format_size(size: int) -> str:
    """Human-readable byte count."""
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
