"""Workspace — the reading workspace core.

Documents live in a flat file registry; projects arrange references to
them in folder trees. This package provides:
- Models (FileRecord, FileNode/FolderNode, Project, TreePath, AppState)
- Path addressing and tree operations
- File registry and statistics ledger
- Workspace controller (state owner, write-through persistence)
"""
