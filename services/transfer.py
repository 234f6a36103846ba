"""Workspace import/export — schema normalization, migration and merge.

Two document generations are accepted:

- current (version 2.0): `files` is a mapping keyed by file name and every
  project carries a `structure` tree;
- legacy: projects list their members as a flat `files` array of names or
  {name, progress} objects, and unassigned files live in
  `filesWithoutProjects`.

Imports merge into the live workspace and never lower reading progress or
open counts. Imported projects are always added as new projects.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from shared.constants import (
    DEFAULT_PROJECT_NAME, EXPORT_FILENAME_PREFIX, EXPORT_VERSION,
)
from shared.exceptions import MalformedImportError
from workspace.models import Project
from workspace.ledger import normalize_statistics
from workspace.registry import FileRecord, clamp_progress, is_finite_number
from workspace.tree import (
    clone_structure, count_files, structure_from_names, structure_from_raw,
)

logger = logging.getLogger(__name__)

# Import-side name for the shared recursive counter
count_files_in_structure = count_files


def _text_or_none(value) -> str | None:
    """Non-empty strings pass through; anything else reads as missing."""
    return value if isinstance(value, str) and value else None


def _entry_name(entry) -> str:
    """File name from a legacy entry (plain string or {name, progress})."""
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict) and isinstance(entry.get("name"), str):
        return entry["name"]
    return ""


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_imported_files(raw: dict, existing=None) -> dict:
    """Extract file records from an import document.

    Args:
        raw: Parsed import document.
        existing: The live FileRegistry, consulted by the legacy path for
            content and history the old format did not carry.

    Returns:
        Dict of name -> {name, content, readProgress, openCount, lastOpened,
        hiddenFromSources}. hiddenFromSources is None unless the document
        carries a real boolean, so the merge can keep the existing flag.
    """
    files = raw.get("files")
    if isinstance(files, dict):
        normalized = {}
        for key, value in files.items():
            value = value if isinstance(value, dict) else {}
            name = value.get("name") or key
            if not isinstance(name, str) or not name:
                continue
            content = value.get("content")
            progress = value.get("readProgress")
            opens = value.get("openCount")
            hidden = value.get("hiddenFromSources")
            normalized[name] = {
                "name": name,
                "content": content if isinstance(content, str) else "",
                "readProgress": clamp_progress(progress) if is_finite_number(progress) else 0,
                "openCount": max(int(opens), 0) if is_finite_number(opens) else 0,
                "lastOpened": _text_or_none(value.get("lastOpened")),
                "hiddenFromSources": hidden if isinstance(hidden, bool) else None,
            }
        return normalized

    return _collect_legacy_files(raw, existing)


def _collect_legacy_files(raw: dict, existing=None) -> dict:
    entries = []
    for project in raw.get("projects") or []:
        if isinstance(project, dict) and isinstance(project.get("files"), list):
            entries.extend(project["files"])
    if isinstance(raw.get("filesWithoutProjects"), list):
        entries.extend(raw["filesWithoutProjects"])

    collected = {}
    for entry in entries:
        name = _entry_name(entry)
        if not name:
            continue
        current = existing.get(name) if existing is not None else None
        progress = entry.get("progress") if isinstance(entry, dict) else None
        imported_progress = clamp_progress(progress) if is_finite_number(progress) else 0
        collected[name] = {
            "name": name,
            "content": current.content if current else "",
            "readProgress": max(current.read_progress if current else 0, imported_progress),
            "openCount": current.open_count if current else 0,
            "lastOpened": current.last_opened if current else None,
            "hiddenFromSources": current.hidden_from_sources if current else False,
        }
    return collected


def normalize_imported_projects(raw: dict) -> list[dict]:
    """Extract projects from an import document, migrating legacy file lists.

    Returns:
        List of {name, expanded, description, structure} dicts, where
        structure is a validated list of tree nodes.
    """
    projects = raw.get("projects")
    if not isinstance(projects, list):
        return []

    normalized = []
    for project in projects:
        project = project if isinstance(project, dict) else {}
        if isinstance(project.get("structure"), list):
            structure = structure_from_raw(project["structure"])
        else:
            structure = structure_from_names(project.get("files") or [])
        normalized.append({
            "name": _text_or_none(project.get("name")) or DEFAULT_PROJECT_NAME,
            "expanded": project.get("expanded") is not False,
            "description": _text_or_none(project.get("description")) or "",
            "structure": structure,
        })
    return normalized


def migrate_project_record(raw) -> Project | None:
    """Turn a persisted project entry into a Project, upgrading legacy ones.

    Persisted projects from before folder support only have a `files`
    list; they become a flat structure here, once, at load time.
    """
    if not isinstance(raw, dict) or not raw.get("id"):
        logger.warning("Dropping stored project without id: %r", raw)
        return None

    if isinstance(raw.get("structure"), list):
        structure = structure_from_raw(raw["structure"])
    else:
        structure = structure_from_names(raw.get("files") or [])
        logger.info("Migrated legacy project %s to tree structure", raw["id"])

    return Project(
        id=str(raw["id"]),
        name=_text_or_none(raw.get("name")) or DEFAULT_PROJECT_NAME,
        description=_text_or_none(raw.get("description")) or "",
        expanded=raw.get("expanded") is not False,
        structure=structure,
    )


# =============================================================================
# IMPORT
# =============================================================================

def parse_document(document) -> dict:
    """Accept a JSON string/bytes or an already-parsed dict.

    Raises:
        MalformedImportError: Not JSON, or not a JSON object.
    """
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedImportError(f"Import file is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedImportError("Import file must contain a JSON object")
    return document


def preview_import(document, existing=None) -> dict:
    """Counts shown in the import confirmation prompt. Does not mutate.

    Raises:
        MalformedImportError: Nothing importable in the document.
    """
    raw = parse_document(document)
    projects = normalize_imported_projects(raw)
    files = normalize_imported_files(raw, existing)
    if not projects and not files:
        raise MalformedImportError("Import file holds no files and no projects")
    return {
        "projects": len(projects),
        "files": len(files),
        "files_in_projects": sum(count_files_in_structure(p["structure"]) for p in projects),
    }


def _merge_record(existing: FileRecord | None, imported: dict) -> FileRecord:
    existing = existing or FileRecord(name=imported["name"])
    content = imported["content"]
    hidden = imported["hiddenFromSources"]
    return FileRecord(
        name=imported["name"],
        content=content if isinstance(content, str) and content else existing.content,
        read_progress=max(existing.read_progress, imported["readProgress"]),
        open_count=max(existing.open_count, imported["openCount"]),
        last_opened=imported["lastOpened"] or existing.last_opened,
        hidden_from_sources=existing.hidden_from_sources if hidden is None else hidden,
    )


def merge_import(workspace, document) -> dict:
    """Merge an import document into the workspace and persist it.

    All normalization happens before the first change, so a rejected
    document leaves the workspace untouched.

    Args:
        workspace: The live Workspace.
        document: JSON text or parsed dict (current or legacy schema).

    Returns:
        Dict with keys: projects, files, files_in_projects, project_ids.

    Raises:
        MalformedImportError: Unparseable or empty document.
    """
    raw = parse_document(document)
    state = workspace.state
    projects = normalize_imported_projects(raw)
    files = normalize_imported_files(raw, state.files)
    statistics = normalize_statistics(raw.get("statistics"))
    if not projects and not files:
        raise MalformedImportError("Import file holds no files and no projects")
    records = [_merge_record(state.files.get(name), imported) for name, imported in files.items()]

    for record in records:
        state.files.put(record)

    project_ids = []
    for data in projects:
        project_id = state.next_project_id()
        state.projects[project_id] = Project(
            id=project_id,
            name=data["name"],
            description=data["description"],
            expanded=data["expanded"],
            structure=clone_structure(data["structure"]),
        )
        project_ids.append(project_id)

    added_opens = state.statistics.merge_from(statistics)

    current = raw.get("currentFile")
    if isinstance(current, str) and current in state.files:
        state.current_file = current

    workspace.save()
    summary = {
        "projects": len(projects),
        "files": len(files),
        "files_in_projects": sum(count_files_in_structure(p["structure"]) for p in projects),
        "project_ids": project_ids,
    }
    logger.info(
        "Workspace import: %d files, %d projects (%s), %d opens merged",
        summary["files"], summary["projects"], ", ".join(project_ids) or "-", added_opens,
    )
    return summary


def import_from_file(workspace, file_path: str | Path) -> dict:
    """Read an export file from disk and merge it.

    Raises:
        MalformedImportError: Missing, unreadable or invalid file.
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedImportError(f"Cannot read {path.name}: {e}") from e
    return merge_import(workspace, text)


# =============================================================================
# EXPORT
# =============================================================================

def build_export(state, now: datetime | None = None) -> dict:
    """Serialize live state into the current (2.0) export schema.

    Project structures are cloned so the document never aliases the tree.
    """
    now = now or datetime.now(timezone.utc)
    return {
        "version": EXPORT_VERSION,
        "exportDate": now.isoformat(),
        "projects": [
            {
                "id": project.id,
                "name": project.name,
                "expanded": project.expanded,
                "description": project.description,
                "structure": [node.to_dict() for node in clone_structure(project.structure)],
            }
            for project in state.projects.values()
        ],
        "files": state.files.to_dict(),
        "statistics": state.statistics.to_dict(),
        "currentFile": state.current_file,
        "selectedDate": state.selected_date,
        "currentMonth": state.current_month,
        "currentYear": state.current_year,
    }


def export_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{EXPORT_FILENAME_PREFIX}{now.date().isoformat()}.json"


def export_to_file(workspace, directory: str | Path | None = None) -> Path:
    """Write the export document as pretty-printed JSON.

    Args:
        workspace: The live Workspace.
        directory: Target folder; defaults to the `export_dir` setting.

    Returns:
        Path of the written file.
    """
    if directory is None:
        from services.settings import require_setting
        directory = require_setting("export_dir")
    target_dir = Path(directory).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now(timezone.utc)
    path = target_dir / export_filename(now)
    data = build_export(workspace.state, now)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(
        "Exported %d files and %d projects to %s",
        len(data["files"]), len(data["projects"]), path,
    )
    return path
