"""
ReadSpace API layer — workspace operations exposed through gr.api().

register_api() must be called inside a gr.Blocks context; every function
becomes an API/MCP endpoint named after the function. Results are plain
dicts so they serialize cleanly for remote callers.
"""

import gradio as gr

from db.operations import get_schema_info, get_store_stats
from services.stats import overall_stats
from services.transfer import build_export, merge_import, preview_import
from shared.exceptions import MalformedImportError


def _change_dict(change) -> dict:
    return {
        "action": change.action,
        "applied": change.applied,
        "project_id": change.project_id,
        "files": change.files,
        "reason": change.reason,
    }


def register_api(workspace):
    """Expose the workspace operations as API endpoints."""

    def list_files() -> list:
        """List every registered file with its reading progress.

        Returns:
            List of file records (name, readProgress, openCount, lastOpened, hiddenFromSources)
        """
        return [
            {k: v for k, v in record.to_dict().items() if k != "content"}
            for record in workspace.state.files
        ]

    def get_file(name: str) -> dict:
        """Get one file, including its content.

        Args:
            name: File name

        Returns:
            File record dict, or empty dict if unknown
        """
        record = workspace.state.files.get(name)
        return record.to_dict() if record else {}

    def upload_file(name: str, content: str) -> dict:
        """Register a document (re-uploading keeps reading history).

        Args:
            name: File name, e.g. 'notes.md'
            content: Raw markdown or text

        Returns:
            Change result dict
        """
        return _change_dict(workspace.upload(name, content))

    def open_file(name: str) -> dict:
        """Open a file: counts the open and makes it the current document.

        Args:
            name: File name

        Returns:
            Dict with 'opened' and 'content'
        """
        content = workspace.open_file(name)
        return {"opened": content is not None, "content": content or ""}

    def set_read_progress(name: str, percent: int) -> dict:
        """Set reading progress for a file.

        Args:
            name: File name
            percent: 0-100, clamped

        Returns:
            Change result dict
        """
        return _change_dict(workspace.update_read_progress(name, percent))

    def list_projects() -> list:
        """List projects with their file trees.

        Returns:
            List of project dicts (id, name, description, expanded, structure)
        """
        return [project.to_dict() for project in workspace.state.projects.values()]

    def create_project(name: str, description: str = "") -> dict:
        """Create an empty project.

        Args:
            name: Project name (required)
            description: Optional description

        Returns:
            Change result dict with the new project_id
        """
        return _change_dict(workspace.create_project(name, description))

    def delete_project(project_id: str) -> dict:
        """Delete a project. Files stay registered.

        Args:
            project_id: e.g. 'project_3'

        Returns:
            Change result dict
        """
        return _change_dict(workspace.delete_project(project_id))

    def add_folder(project_id: str, parent_path: list[int], name: str) -> dict:
        """Add a folder to a project tree.

        Args:
            project_id: Target project
            parent_path: Index path of the parent folder, [] for the root
            name: Folder name

        Returns:
            Change result dict
        """
        return _change_dict(workspace.add_folder(project_id, parent_path, name))

    def delete_folder(project_id: str, path: list[int]) -> dict:
        """Delete a folder; its direct files move up into the parent.

        Args:
            project_id: Target project
            path: Index path of the folder

        Returns:
            Change result dict
        """
        return _change_dict(workspace.delete_folder(project_id, path))

    def add_file_to_project(
        project_id: str, parent_path: list[int], file_name: str, index: int = -1,
    ) -> dict:
        """Add a registered file to a project.

        Args:
            project_id: Target project
            parent_path: Index path of the folder, [] for the root
            file_name: Registered file name
            index: Position among siblings; -1 appends

        Returns:
            Change result dict
        """
        return _change_dict(workspace.insert_file(project_id, parent_path, index, file_name))

    def move_file(
        from_project_id: str,
        from_path: list[int],
        to_project_id: str,
        to_parent_path: list[int],
        to_index: int = -1,
    ) -> dict:
        """Move a file within or between projects.

        Args:
            from_project_id: Source project
            from_path: Index path of the file
            to_project_id: Destination project (may equal the source)
            to_parent_path: Index path of the destination folder
            to_index: Position among siblings; -1 appends

        Returns:
            Change result dict
        """
        return _change_dict(workspace.move_file(
            from_project_id, from_path, to_project_id, to_parent_path, to_index,
        ))

    def get_statistics() -> dict:
        """Overall reading statistics.

        Returns:
            Dict with file_count, average_progress, total_opens, active_days
        """
        return overall_stats(workspace.state)

    def export_workspace() -> dict:
        """Export the whole workspace in the 2.0 document format.

        Returns:
            Export document dict
        """
        return build_export(workspace.state)

    def import_workspace(document: str, dry_run: bool = False) -> dict:
        """Merge an export document into the workspace.

        Args:
            document: Export JSON text (2.0 or legacy)
            dry_run: Only report what would be imported

        Returns:
            Counts dict, or {'error': message} for an invalid document
        """
        try:
            if dry_run:
                return preview_import(document, workspace.state.files)
            return merge_import(workspace, document)
        except MalformedImportError as e:
            return {"error": str(e)}

    for fn in (
        list_files, get_file, upload_file, open_file, set_read_progress,
        list_projects, create_project, delete_project,
        add_folder, delete_folder, add_file_to_project, move_file,
        get_statistics, export_workspace, import_workspace,
        get_schema_info, get_store_stats,
    ):
        gr.api(fn)
