"""
Data models for the reading workspace.

FileRecord is the canonical, project-independent record of a document.
Projects hold a tree of FileNode/FolderNode references to those records
by name. AppState aggregates everything the Workspace controller owns.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from shared.constants import NODE_FILE, NODE_FOLDER, PROJECT_ID_PREFIX
from workspace.ledger import StatisticsLedger
from workspace.registry import FileRegistry


class TreePath(tuple):
    """Ordered index sequence locating a node within a project structure.

    TreePath([]) is the root container; TreePath([2, 0]) is the first child
    of the folder at root index 2.
    """

    def __new__(cls, indices=()):
        return super().__new__(cls, (int(i) for i in indices))

    @property
    def parent(self) -> "TreePath":
        return TreePath(self[:-1])

    @property
    def index(self) -> Optional[int]:
        return self[-1] if self else None

    def child(self, index: int) -> "TreePath":
        return TreePath((*self, index))

    def __repr__(self):
        return f"TreePath({list(self)})"


@dataclass
class FileNode:
    name: str

    def to_dict(self) -> dict:
        return {"type": NODE_FILE, "name": self.name}


@dataclass
class FolderNode:
    name: str
    expanded: bool = True
    children: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": NODE_FOLDER,
            "name": self.name,
            "expanded": self.expanded,
            "children": [child.to_dict() for child in self.children],
        }


TreeNode = Union[FileNode, FolderNode]


@dataclass
class Project:
    id: str
    name: str
    description: str = ""
    expanded: bool = True
    structure: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "expanded": self.expanded,
            "structure": [node.to_dict() for node in self.structure],
        }


@dataclass
class Change:
    """Result of a mutating Workspace operation.

    The UI layer inspects this to decide what to redraw; `applied` is False
    when validation rejected the operation and the state is untouched.
    """
    action: str
    applied: bool = True
    project_id: str = ""
    files: list = field(default_factory=list)
    reason: str = ""

    def __bool__(self):
        return self.applied


def _today() -> date:
    return date.today()


@dataclass
class AppState:
    files: FileRegistry = field(default_factory=FileRegistry)
    projects: dict = field(default_factory=dict)
    statistics: StatisticsLedger = field(default_factory=StatisticsLedger)
    current_file: Optional[str] = None
    project_id_counter: int = 1
    selected_date: Optional[str] = None
    current_month: int = field(default_factory=lambda: _today().month - 1)
    current_year: int = field(default_factory=lambda: _today().year)
    last_file_view: Optional[str] = None
    is_showing_url: bool = False
    current_url: str = ""

    def next_project_id(self) -> str:
        """Allocate a fresh project id and advance the persisted counter."""
        project_id = f"{PROJECT_ID_PREFIX}{self.project_id_counter}"
        self.project_id_counter += 1
        # Hand-edited or imported snapshots may already use the next id
        while project_id in self.projects:
            project_id = f"{PROJECT_ID_PREFIX}{self.project_id_counter}"
            self.project_id_counter += 1
        return project_id
