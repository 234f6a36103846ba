"""Shared formatting utilities for ReadSpace."""

import pandas as pd

from workspace.models import FileNode, FolderNode
from workspace.tree import count_files


def fmt_progress(value) -> str:
    """Render a read progress value as 'NN%'."""
    return f"{int(value or 0)}%"


def entity_list_to_df(
    entities: list[dict],
    columns: list[tuple[str, str]],
    empty_columns: list[str] | None = None,
) -> pd.DataFrame:
    """Build a display DataFrame from a list of dicts.

    Args:
        entities: List of dicts (e.g. FileRecord.to_dict() output).
        columns: List of (display_name, spec) tuples. Spec prefixes:
                'pct:' — formats with fmt_progress (e.g. 'pct:readProgress')
                'date:' — truncates to 10 chars, '' for None (e.g. 'date:lastOpened')
            Plain string — raw dict lookup (e.g. 'name')
        empty_columns: Column names for the empty DataFrame fallback.
            If None, derived from columns tuples.

    Returns:
        pd.DataFrame with display-ready data.
    """
    col_names = empty_columns or [c[0] for c in columns]
    if not entities:
        return pd.DataFrame(columns=col_names)

    rows = []
    for entity in entities:
        row = {}
        for display_name, spec in columns:
            if spec.startswith("pct:"):
                row[display_name] = fmt_progress(entity.get(spec[4:], 0))
            elif spec.startswith("date:"):
                val = entity.get(spec[5:]) or ""
                row[display_name] = val[:10]
            else:
                row[display_name] = entity.get(spec, "")
        rows.append(row)

    return pd.DataFrame(rows)


def sources_df(state) -> pd.DataFrame:
    """Visible (not hidden) files for the sources list."""
    return entity_list_to_df(
        [record.to_dict() for record in state.files.visible()],
        [("File", "name"), ("Read", "pct:readProgress"),
         ("Opens", "openCount"), ("Last opened", "date:lastOpened")],
    )


def render_outline(structure: list, files=None, _path=()) -> list[str]:
    """Markdown bullet lines for a project tree, each tagged with its path.

    Collapsed folders are shown without their children. When `files` (a
    FileRegistry) is given, file lines carry their read progress.
    """
    lines = []
    depth = "  " * len(_path)
    for index, node in enumerate(structure):
        path = [*_path, index]
        if isinstance(node, FolderNode):
            marker = "▼" if node.expanded else "▶"
            lines.append(f"{depth}- {marker} **{node.name}/** `{path}`")
            if node.expanded:
                lines.extend(render_outline(node.children, files, tuple(path)))
        elif isinstance(node, FileNode):
            record = files.get(node.name) if files is not None else None
            suffix = f" ({fmt_progress(record.read_progress)})" if record else ""
            lines.append(f"{depth}- {node.name}{suffix} `{path}`")
    return lines


def project_outline_markdown(state) -> str:
    """All projects as one markdown document for the Projects tab."""
    if not state.projects:
        return "_No projects yet._"

    parts = []
    for project in state.projects.values():
        marker = "▼" if project.expanded else "▶"
        header = f"### {marker} {project.name} · `{project.id}` · {count_files(project.structure)} files"
        parts.append(header)
        if project.description:
            parts.append(f"_{project.description}_")
        if project.expanded:
            outline = render_outline(project.structure, state.files)
            parts.append("\n".join(outline) if outline else "_Empty project_")
    return "\n\n".join(parts)
