"""
Project tree operations.

Functions here work on a single project structure (a list of FileNode /
FolderNode). Every mutation resolves and validates its targets before
touching the list, and raises instead of partially applying:

    NotFoundError            path or node missing / wrong node type
    ValidationFailedError    empty name after trimming
    DuplicateMembershipError file already somewhere in the target tree
"""

import logging
from typing import Optional

from shared.constants import DEFAULT_FOLDER_NAME, NODE_FILE, NODE_FOLDER
from shared.exceptions import (
    DuplicateMembershipError, NotFoundError, ValidationFailedError,
)
from workspace.models import FileNode, FolderNode, TreePath
from workspace.paths import (
    resolve_folder_children, resolve_node, resolve_parent_container,
)

logger = logging.getLogger(__name__)


# =============================================================================
# QUERIES
# =============================================================================

def count_files(structure: list) -> int:
    """Count FileNode leaves across all nested folders."""
    total = 0
    for node in structure:
        if isinstance(node, FileNode):
            total += 1
        elif isinstance(node, FolderNode):
            total += count_files(node.children)
    return total


def contains_file(structure: list, file_name: str) -> bool:
    """True if `file_name` appears anywhere in the structure."""
    for node in structure:
        if isinstance(node, FileNode):
            if node.name == file_name:
                return True
        elif isinstance(node, FolderNode):
            if contains_file(node.children, file_name):
                return True
    return False


def list_files(structure: list) -> list[str]:
    """Depth-first list of every file name in the structure."""
    names = []
    for node in structure:
        if isinstance(node, FileNode):
            names.append(node.name)
        elif isinstance(node, FolderNode):
            names.extend(list_files(node.children))
    return names


def find_file(structure: list, file_name: str, _prefix=()) -> Optional[TreePath]:
    """Return the path of `file_name` in the structure, or None."""
    for index, node in enumerate(structure):
        if isinstance(node, FileNode):
            if node.name == file_name:
                return TreePath((*_prefix, index))
        elif isinstance(node, FolderNode):
            found = find_file(node.children, file_name, (*_prefix, index))
            if found is not None:
                return found
    return None


def clone_structure(structure: list) -> list:
    """Deep copy of a structure, so callers never alias a live tree."""
    cloned = []
    for node in structure:
        if isinstance(node, FolderNode):
            cloned.append(FolderNode(
                name=node.name,
                expanded=node.expanded,
                children=clone_structure(node.children),
            ))
        elif isinstance(node, FileNode):
            cloned.append(FileNode(name=node.name))
    return cloned


def structure_from_raw(raw) -> list:
    """Build a validated structure from its serialized (dict) form.

    Nodes whose `type` is neither 'file' nor 'folder', or files without a
    usable name, are dropped. Folders default to expanded unless the raw
    value is explicitly False.
    """
    if not isinstance(raw, list):
        return []

    nodes = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        node_type = item.get("type")
        name = item.get("name")
        if node_type == NODE_FOLDER:
            nodes.append(FolderNode(
                name=name if isinstance(name, str) and name else DEFAULT_FOLDER_NAME,
                expanded=item.get("expanded") is not False,
                children=structure_from_raw(item.get("children") or []),
            ))
        elif node_type == NODE_FILE:
            if isinstance(name, str) and name:
                nodes.append(FileNode(name=name))
    return nodes


def structure_from_names(files) -> list:
    """Flat file-only structure from a legacy list of names or {name} dicts."""
    if not isinstance(files, list):
        return []
    nodes = []
    for entry in files:
        name = entry if isinstance(entry, str) else (
            entry.get("name") if isinstance(entry, dict) else None
        )
        if isinstance(name, str) and name:
            nodes.append(FileNode(name=name))
    return nodes


# =============================================================================
# HELPERS
# =============================================================================

def _clean_name(name) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise ValidationFailedError("Name must not be empty")
    return cleaned


def _require_folder(structure: list, path) -> FolderNode:
    node = resolve_node(structure, path)
    if not isinstance(node, FolderNode):
        raise NotFoundError(f"No folder at path {list(path)}")
    return node


def _require_children(structure: list, parent_path) -> list:
    children = resolve_folder_children(structure, parent_path)
    if children is None:
        raise NotFoundError(f"No folder at path {list(parent_path)}")
    return children


def _insertion_index(container: list, index) -> int:
    """`index` if it is a valid sibling position, otherwise append."""
    if isinstance(index, int) and not isinstance(index, bool) and 0 <= index <= len(container):
        return index
    return len(container)


# =============================================================================
# FOLDERS
# =============================================================================

def add_folder(structure: list, parent_path, name: str) -> TreePath:
    """Append a new, empty, expanded folder under `parent_path`.

    Returns:
        Path of the new folder.
    """
    clean = _clean_name(name)
    children = _require_children(structure, parent_path)
    children.append(FolderNode(name=clean, expanded=True, children=[]))
    return TreePath(parent_path).child(len(children) - 1)


def rename_folder(structure: list, path, new_name: str) -> bool:
    """Rename the folder at `path`.

    Returns:
        False when the trimmed name equals the current one (nothing changed).
    """
    clean = _clean_name(new_name)
    folder = _require_folder(structure, path)
    if clean == folder.name:
        return False
    folder.name = clean
    return True


def toggle_folder(structure: list, path) -> bool:
    """Flip a folder's expanded flag; returns the new value."""
    folder = _require_folder(structure, path)
    folder.expanded = not folder.expanded
    return folder.expanded


def delete_folder(structure: list, path) -> tuple[list[str], list[str]]:
    """Remove a folder, keeping its direct file children in its place.

    Only the folder's immediate FileNode children move up into the parent,
    at the folder's former position and in their original order. Nested
    sub-folders are dropped together with everything inside them.

    Returns:
        Tuple of (rescued file names, discarded file names).
    """
    folder = _require_folder(structure, path)
    container = resolve_parent_container(structure, path)
    index = path[-1]

    rescued = [child for child in folder.children if isinstance(child, FileNode)]
    discarded = []
    for child in folder.children:
        if isinstance(child, FolderNode):
            discarded.extend(list_files(child.children))

    container[index:index + 1] = rescued
    return [node.name for node in rescued], discarded


# =============================================================================
# FILES
# =============================================================================

def insert_file(structure: list, parent_path, index, file_name: str) -> TreePath:
    """Insert a reference to `file_name` at (parent_path, index).

    An index outside 0..len(children) appends instead.

    Raises:
        DuplicateMembershipError: The file is already somewhere in the tree.
        NotFoundError: `parent_path` does not name a folder.
    """
    if contains_file(structure, file_name):
        raise DuplicateMembershipError(f"'{file_name}' is already in this project")
    children = _require_children(structure, parent_path)
    position = _insertion_index(children, index)
    children.insert(position, FileNode(name=file_name))
    return TreePath(parent_path).child(position)


def remove_file(structure: list, path) -> str:
    """Remove the file reference at `path`; returns its name."""
    node = resolve_node(structure, path)
    if not isinstance(node, FileNode):
        raise NotFoundError(f"No file at path {list(path)}")
    container = resolve_parent_container(structure, path)
    del container[path[-1]]
    return node.name


def move_file(
    source: list,
    from_path,
    target: list,
    to_parent_path,
    to_index,
) -> Optional[TreePath]:
    """Move the file at `from_path` to (to_parent_path, to_index).

    `source` and `target` are the same list object for a move inside one
    project. Within one container, dropping a node just before or just
    after itself changes nothing and returns None; dropping it further
    down accounts for the index shift caused by removing it first.

    Returns:
        New path of the moved node, or None for a no-op.

    Raises:
        NotFoundError: Source is not a file or the destination folder is missing.
        DuplicateMembershipError: Target project already holds the file.
    """
    node = resolve_node(source, from_path)
    if not isinstance(node, FileNode):
        raise NotFoundError(f"No file at path {list(from_path)}")
    source_container = resolve_parent_container(source, from_path)
    target_container = _require_children(target, to_parent_path)

    same_project = source is target
    if not same_project and contains_file(target, node.name):
        raise DuplicateMembershipError(f"'{node.name}' is already in the target project")

    source_index = from_path[-1]
    same_container = same_project and tuple(from_path[:-1]) == tuple(to_parent_path)
    if same_container and to_index in (source_index, source_index + 1):
        return None

    del source_container[source_index]
    if same_container and isinstance(to_index, int) and source_index < to_index:
        to_index -= 1
    position = _insertion_index(target_container, to_index)
    target_container.insert(position, node)

    # Removal may have shifted an ancestor of the target; report the real path
    return find_file(target, node.name)
