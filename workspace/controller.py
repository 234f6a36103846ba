"""
Workspace controller — the single owner of AppState.

Every mutating method validates first, applies, then writes the full
snapshot through to the persistence gateway, and returns a Change that
tells the UI what happened. Rejected operations return
Change(applied=False) and leave the state exactly as it was.
"""

import logging
from datetime import date
from typing import Callable, Optional

from db.operations import clear_snapshot, load_snapshot, save_snapshot
from services.transfer import migrate_project_record
from shared.constants import (
    DATE_FORMAT, KEY_CURRENT_FILE, KEY_FILES, KEY_PROJECT_ID_COUNTER,
    KEY_PROJECTS, KEY_STATISTICS,
)
from shared.exceptions import (
    DuplicateMembershipError, NotFoundError, PersistenceError,
    ValidationFailedError,
)
from workspace import tree
from workspace.ledger import StatisticsLedger
from workspace.models import AppState, Change, Project, TreePath
from workspace.paths import resolve_node
from workspace.registry import FileRegistry

logger = logging.getLogger(__name__)


class Workspace:
    """Reading workspace: file registry, projects and statistics.

    Args:
        state: Initial state; a fresh AppState when omitted.
        persist: Write every applied change to the key-value store.
        today: Clock used for open statistics and the calendar.
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        persist: bool = True,
        today: Callable[[], date] = date.today,
    ):
        self.state = state or AppState()
        self.persist = persist
        self._today = today

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load(self) -> "Workspace":
        """Hydrate state from the key-value store (defaults for missing keys)."""
        try:
            snapshot = load_snapshot()
        except PersistenceError as e:
            logger.error("Could not load workspace, starting empty: %s", e)
            return self

        state = AppState()
        files = snapshot.get(KEY_FILES)
        if isinstance(files, dict):
            state.files = FileRegistry(files)

        statistics = snapshot.get(KEY_STATISTICS)
        if isinstance(statistics, dict):
            state.statistics = StatisticsLedger(statistics)

        projects = snapshot.get(KEY_PROJECTS)
        if isinstance(projects, dict):
            projects = list(projects.values())
        for raw in projects or []:
            project = migrate_project_record(raw)
            if project is not None:
                state.projects[project.id] = project

        counter = snapshot.get(KEY_PROJECT_ID_COUNTER)
        if isinstance(counter, int) and counter > 0:
            state.project_id_counter = counter

        current = snapshot.get(KEY_CURRENT_FILE)
        if current and current in state.files:
            state.current_file = current
            state.last_file_view = current

        self.state = state
        logger.info(
            "Workspace loaded: %d files, %d projects, %d active days",
            len(state.files), len(state.projects), state.statistics.activity_dates(),
        )
        return self

    def snapshot(self) -> dict:
        """Serialize the persisted AppState fields, one entry per store key."""
        s = self.state
        return {
            KEY_FILES: s.files.to_dict(),
            KEY_CURRENT_FILE: s.current_file or "",
            KEY_STATISTICS: s.statistics.to_dict(),
            KEY_PROJECTS: {pid: p.to_dict() for pid, p in s.projects.items()},
            KEY_PROJECT_ID_COUNTER: s.project_id_counter,
        }

    def save(self) -> bool:
        """Write the full snapshot. Failures are logged; memory stays correct."""
        if not self.persist:
            return False
        try:
            save_snapshot(self.snapshot())
            return True
        except PersistenceError as e:
            logger.error("Workspace change kept in memory only: %s", e)
            return False

    def clear_all(self) -> Change:
        """Drop every file, project and statistic, in memory and in the store."""
        self.state = AppState()
        if self.persist:
            try:
                clear_snapshot()
            except PersistenceError as e:
                logger.error("Failed to clear stored workspace: %s", e)
        logger.warning("All workspace data cleared")
        return Change("clear_all")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def today(self) -> date:
        return self._today()

    def today_string(self) -> str:
        return self.today().strftime(DATE_FORMAT)

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.state.projects.get(project_id)

    def _require_project(self, project_id: str) -> Project:
        project = self.state.projects.get(project_id)
        if project is None:
            raise NotFoundError(f"Project '{project_id}' does not exist")
        return project

    def _run(self, action: str, project_id: str, operation) -> Change:
        """Apply `operation` and persist, turning domain errors into no-ops.

        `operation` returns the list of affected file names, or None when
        the call was valid but changed nothing.
        """
        metadata = {"action": action, "project_id": project_id}
        try:
            files = operation()
        except DuplicateMembershipError as e:
            logger.warning("%s rejected: %s", action, e, extra={"log_metadata": metadata})
            return Change(action, applied=False, project_id=project_id, reason=str(e))
        except (NotFoundError, ValidationFailedError) as e:
            logger.debug("%s ignored: %s", action, e, extra={"log_metadata": metadata})
            return Change(action, applied=False, project_id=project_id, reason=str(e))

        if files is None:
            return Change(action, applied=False, project_id=project_id, reason="unchanged")
        self.save()
        logger.info(
            "%s applied (project=%s, files=%s)", action, project_id or "-", files,
            extra={"log_metadata": {**metadata, "files": list(files)}},
        )
        return Change(action, applied=True, project_id=project_id, files=list(files))

    def is_file_in_any_project(self, file_name: str) -> bool:
        return any(
            tree.contains_file(project.structure, file_name)
            for project in self.state.projects.values()
        )

    def _unhide_orphans(self, file_names) -> list[str]:
        """Return files to the sources list once no project references them."""
        restored = []
        for name in file_names:
            record = self.state.files.get(name)
            if record and record.hidden_from_sources and not self.is_file_in_any_project(name):
                record.hidden_from_sources = False
                restored.append(name)
        if restored:
            logger.info("Restored to sources: %s", restored)
        return restored

    # =========================================================================
    # PROJECTS
    # =========================================================================

    def create_project(self, name: str, description: str = "") -> Change:
        """Create an empty, expanded project. Empty names are ignored."""
        clean = name.strip() if isinstance(name, str) else ""
        if not clean:
            return Change("create_project", applied=False, reason="Name must not be empty")

        project_id = self.state.next_project_id()
        self.state.projects[project_id] = Project(
            id=project_id,
            name=clean,
            description=(description or "").strip(),
        )
        self.save()
        logger.info("Created project %s '%s'", project_id, clean)
        return Change("create_project", project_id=project_id)

    def rename_project(self, project_id: str, new_name: str) -> Change:
        def _rename():
            project = self._require_project(project_id)
            clean = new_name.strip() if isinstance(new_name, str) else ""
            if not clean:
                raise ValidationFailedError("Name must not be empty")
            if clean == project.name:
                return None
            project.name = clean
            return []
        return self._run("rename_project", project_id, _rename)

    def set_project_description(self, project_id: str, description: str) -> Change:
        def _describe():
            project = self._require_project(project_id)
            clean = (description or "").strip()
            if clean == project.description:
                return None
            project.description = clean
            return []
        return self._run("set_project_description", project_id, _describe)

    def toggle_project_expanded(self, project_id: str) -> Change:
        def _toggle():
            project = self._require_project(project_id)
            project.expanded = not project.expanded
            return []
        return self._run("toggle_project_expanded", project_id, _toggle)

    def delete_project(self, project_id: str) -> Change:
        """Delete a project; its files return to sources if no longer referenced."""
        def _delete():
            project = self._require_project(project_id)
            names = tree.list_files(project.structure)
            del self.state.projects[project_id]
            self._unhide_orphans(names)
            return names
        return self._run("delete_project", project_id, _delete)

    # =========================================================================
    # FOLDERS
    # =========================================================================

    def add_folder(self, project_id: str, parent_path, name: str) -> Change:
        def _add():
            project = self._require_project(project_id)
            tree.add_folder(project.structure, TreePath(parent_path), name)
            return []
        return self._run("add_folder", project_id, _add)

    def rename_folder(self, project_id: str, path, new_name: str) -> Change:
        def _rename():
            project = self._require_project(project_id)
            return [] if tree.rename_folder(project.structure, TreePath(path), new_name) else None
        return self._run("rename_folder", project_id, _rename)

    def toggle_folder_expanded(self, project_id: str, path) -> Change:
        def _toggle():
            project = self._require_project(project_id)
            tree.toggle_folder(project.structure, TreePath(path))
            return []
        return self._run("toggle_folder_expanded", project_id, _toggle)

    def delete_folder(self, project_id: str, path) -> Change:
        """Delete a folder, lifting its direct files into the parent.

        Files inside nested sub-folders are dropped from the project; any of
        them no longer referenced by a project reappear in sources.
        """
        def _delete():
            project = self._require_project(project_id)
            rescued, discarded = tree.delete_folder(project.structure, TreePath(path))
            if discarded:
                logger.warning(
                    "Folder delete in %s dropped nested files: %s", project_id, discarded,
                )
                self._unhide_orphans(discarded)
            return rescued + discarded
        return self._run("delete_folder", project_id, _delete)

    # =========================================================================
    # FILE MEMBERSHIP
    # =========================================================================

    def insert_file(self, project_id: str, parent_path, index, file_name: str) -> Change:
        """Add a registered file to a project at (parent_path, index)."""
        def _insert():
            project = self._require_project(project_id)
            if file_name not in self.state.files:
                raise NotFoundError(f"File '{file_name}' is not registered")
            tree.insert_file(project.structure, TreePath(parent_path), index, file_name)
            return [file_name]
        return self._run("insert_file", project_id, _insert)

    def remove_file(self, project_id: str, path) -> Change:
        """Remove a file reference; un-hide it if no project holds it anymore."""
        def _remove():
            project = self._require_project(project_id)
            name = tree.remove_file(project.structure, TreePath(path))
            self._unhide_orphans([name])
            return [name]
        return self._run("remove_file", project_id, _remove)

    def move_file(
        self,
        from_project_id: str,
        from_path,
        to_project_id: str,
        to_parent_path,
        to_index,
    ) -> Change:
        """Drag a file within a project or into another project."""
        def _move():
            source = self._require_project(from_project_id)
            target = self._require_project(to_project_id)
            from_path_ = TreePath(from_path)
            node = resolve_node(source.structure, from_path_)
            moved = tree.move_file(
                source.structure, from_path_,
                target.structure, TreePath(to_parent_path), to_index,
            )
            return None if moved is None else [node.name]
        return self._run("move_file", to_project_id, _move)

    # =========================================================================
    # FILES & READING
    # =========================================================================

    def upload(self, name: str, content: str) -> Change:
        """Register a loaded document (re-upload keeps reading history)."""
        clean = name.strip() if isinstance(name, str) else ""
        if not clean:
            return Change("upload", applied=False, reason="Name must not be empty")
        self.state.files.ingest(clean, content if isinstance(content, str) else "")
        self.save()
        return Change("upload", files=[clean])

    def open_file(self, name: str) -> Optional[str]:
        """Make `name` the current document and count the open.

        Returns:
            The raw content for the external markdown renderer, or None if
            the file is unknown.
        """
        if name not in self.state.files:
            logger.debug("open_file ignored: unknown file '%s'", name)
            return None
        s = self.state
        s.current_file = name
        s.last_file_view = name
        s.is_showing_url = False
        s.current_url = ""
        s.files.record_open(name, s.statistics, self.today_string())
        self.save()
        return s.files.get(name).content

    def update_read_progress(self, name: str, percent) -> Change:
        def _progress():
            before = self.state.files.require(name).read_progress
            after = self.state.files.set_read_progress(name, percent)
            return None if before == after else [name]
        return self._run("update_read_progress", "", _progress)

    def hide_file(self, name: str) -> Change:
        """Remove a file from the sources list; project references stay."""
        def _hide():
            self.state.files.hide(name)
            return [name]
        return self._run("hide_file", "", _hide)

    def unhide_file(self, name: str) -> Change:
        def _unhide():
            self.state.files.unhide(name)
            return [name]
        return self._run("unhide_file", "", _unhide)

    # =========================================================================
    # VIEW STATE
    # =========================================================================

    def show_url(self, url: str) -> Optional[str]:
        """Switch the reader to a web page; returns the normalized URL."""
        clean = (url or "").strip()
        if not clean:
            return None
        if not clean.startswith(("http://", "https://")):
            clean = "https://" + clean
        self.state.is_showing_url = True
        self.state.current_url = clean
        return clean

    def back_to_file(self) -> Optional[str]:
        """Leave URL mode by reopening the last file (or the first one).

        Returns:
            Name of the reopened file, or None if there are no files.
        """
        name = self.state.last_file_view
        if name not in self.state.files:
            names = self.state.files.names()
            name = names[0] if names else None
        if name is None:
            self.state.is_showing_url = False
            self.state.current_url = ""
            return None
        self.open_file(name)
        return name

    def select_date(self, date_string: Optional[str]):
        self.state.selected_date = date_string or None

    def clear_selected_date(self):
        self.state.selected_date = None

    def previous_month(self) -> tuple[int, int]:
        s = self.state
        s.current_month -= 1
        if s.current_month < 0:
            s.current_month = 11
            s.current_year -= 1
        return s.current_year, s.current_month

    def next_month(self) -> tuple[int, int]:
        s = self.state
        s.current_month += 1
        if s.current_month > 11:
            s.current_month = 0
            s.current_year += 1
        return s.current_year, s.current_month
