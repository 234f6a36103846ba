"""
Markdown & Text File Ingester

Reads local markdown (.md) and plain text (.txt) files into the workspace
file registry. The file name is the registry key, so loading a file again
replaces its content but keeps reading progress and open counts.
"""

import logging
from pathlib import Path

from shared.constants import DOCUMENT_EXTENSIONS

logger = logging.getLogger(__name__)


def read_document(file_path: str | Path) -> tuple[str, str] | None:
    """
    Read one document from disk.

    Args:
        file_path: Path to the .md/.txt file.

    Returns:
        (file name, content) tuple, or None if the file is unreadable.
    """
    file_path = Path(file_path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read %s: %s", file_path.name, e)
        return None

    if not content.strip():
        logger.warning("%s: empty file", file_path.name)
    return file_path.name, content


def ingest_paths(workspace, paths, extensions: tuple[str, ...] = DOCUMENT_EXTENSIONS) -> list[str]:
    """
    Load several files into the workspace.

    Args:
        workspace: The live Workspace.
        paths: Iterable of file paths (e.g. from an upload widget).
        extensions: Accepted suffixes; other files are skipped.

    Returns:
        Names of the files that were registered, in input order.
    """
    paths = list(paths or [])
    names = []
    for path in paths:
        path = Path(path)
        if path.suffix.lower() not in extensions:
            logger.info("Skipping %s: unsupported extension", path.name)
            continue
        document = read_document(path)
        if document is None:
            continue
        name, content = document
        if workspace.upload(name, content):
            names.append(name)

    logger.info("Ingested %d/%d files", len(names), len(paths))
    return names


def ingest_directory(
    workspace,
    directory: str | Path,
    extensions: tuple[str, ...] = DOCUMENT_EXTENSIONS,
) -> list[str]:
    """
    Load every matching file in a directory (not recursive), sorted by name.

    Returns:
        Names of the registered files.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return []

    files = sorted(f for f in directory.iterdir() if f.is_file() and f.suffix.lower() in extensions)
    logger.info("Processing %d files from %s/", len(files), directory.name)
    return ingest_paths(workspace, files, extensions)
