"""Tree path addressing.

Pure lookups that turn a TreePath into the list holding a node, the node
itself, or a folder's children. Nothing here mutates the structure; every
tree mutation resolves its targets through these functions first.
"""

from typing import Optional

from workspace.models import FolderNode, TreeNode


def _descend(structure: list, indices) -> Optional[list]:
    """Follow `indices` through folders, returning the last children list."""
    current = structure
    for index in indices:
        if not 0 <= index < len(current):
            return None
        node = current[index]
        if not isinstance(node, FolderNode):
            return None
        current = node.children
    return current


def resolve_parent_container(structure: list, path) -> Optional[list]:
    """Return the list that directly contains the node at `path`.

    Args:
        structure: A project's root node list.
        path: TreePath (or any int sequence). Empty means the root itself.

    Returns:
        The containing list, or None if an intermediate step is missing
        or is a file.
    """
    if not path:
        return structure
    return _descend(structure, path[:-1])


def resolve_node(structure: list, path) -> Optional[TreeNode]:
    """Return the node at `path`, or None when the path does not exist."""
    if not path:
        return None
    container = resolve_parent_container(structure, path)
    if container is None:
        return None
    index = path[-1]
    if not 0 <= index < len(container):
        return None
    return container[index]


def resolve_folder_children(structure: list, parent_path) -> Optional[list]:
    """Return the children list of the folder at `parent_path`.

    An empty path names the project root. Used to find insertion targets.
    """
    return _descend(structure, parent_path or ())
