"""Projects tab -- Project trees: folders, file membership, drag-style moves."""
import json

import gradio as gr

from shared.formatting import project_outline_markdown


def _parse_path(text) -> list[int] | None:
    """Parse a path typed as '[0, 2]' or '0,2' ('' is the project root)."""
    text = (text or "").strip()
    if not text:
        return []
    if not text.startswith("["):
        text = f"[{text}]"
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(value, list) or not all(isinstance(i, int) and i >= 0 for i in value):
        return None
    return value


def _parse_index(value) -> int | None:
    """Dropdown/number input to an insert index; blank appends."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _project_choices(workspace) -> list[tuple[str, str]]:
    return [(f"{p.name} ({pid})", pid) for pid, p in workspace.state.projects.items()]


def _describe(change) -> str:
    if change:
        return f"✓ {change.action.replace('_', ' ')}"
    return f"✗ {change.action.replace('_', ' ')}: {change.reason}"


def _run_path_action(workspace, action: str, project_id, path_text, name=""):
    """Dispatch the folder/file actions that take (project, path[, name])."""
    path = _parse_path(path_text)
    if path is None:
        return f"✗ invalid path '{path_text}'"
    if action == "add_folder":
        change = workspace.add_folder(project_id, path, name)
    elif action == "rename_folder":
        change = workspace.rename_folder(project_id, path, name)
    elif action == "delete_folder":
        change = workspace.delete_folder(project_id, path)
    elif action == "toggle_folder":
        change = workspace.toggle_folder_expanded(project_id, path)
    elif action == "remove_file":
        change = workspace.remove_file(project_id, path)
    else:
        raise ValueError(f"Unknown action '{action}'")
    return _describe(change)


def _handle_insert(workspace, project_id, parent_text, index, file_name):
    parent = _parse_path(parent_text)
    if parent is None:
        return f"✗ invalid path '{parent_text}'"
    return _describe(workspace.insert_file(project_id, parent, _parse_index(index), file_name))


def _handle_move(workspace, from_project, from_text, to_project, to_parent_text, index):
    from_path = _parse_path(from_text)
    to_parent = _parse_path(to_parent_text)
    if not from_path or to_parent is None:
        return "✗ invalid path"
    return _describe(workspace.move_file(
        from_project, from_path, to_project or from_project, to_parent, _parse_index(index),
    ))


def build_projects_tab(workspace):
    """Build the Projects tab. Returns dict of components."""
    with gr.Tab("Projects") as projects_tab:
        with gr.Row():
            with gr.Column(scale=2):
                outline = gr.Markdown(project_outline_markdown(workspace.state), elem_id="project-outline")
                status = gr.Markdown("")

            with gr.Column(scale=1):
                with gr.Accordion("Project", open=True):
                    project_pick = gr.Dropdown(
                        label="Project", choices=_project_choices(workspace), interactive=True,
                    )
                    project_name = gr.Textbox(label="Name")
                    project_desc = gr.Textbox(label="Description", lines=2)
                    with gr.Row():
                        create_btn = gr.Button("Create", variant="primary")
                        rename_btn = gr.Button("Rename / describe")
                    with gr.Row():
                        toggle_project_btn = gr.Button("Expand / collapse")
                        delete_project_btn = gr.Button("Delete project", variant="stop")

                with gr.Accordion("Folders & files", open=True):
                    path_box = gr.Textbox(label="Path", placeholder="[0, 1]  (empty = root)")
                    folder_name = gr.Textbox(label="Folder name")
                    with gr.Row():
                        add_folder_btn = gr.Button("Add folder")
                        rename_folder_btn = gr.Button("Rename folder")
                    with gr.Row():
                        toggle_folder_btn = gr.Button("Expand / collapse folder")
                        delete_folder_btn = gr.Button("Delete folder", variant="stop")
                    file_pick = gr.Dropdown(
                        label="File", choices=workspace.state.files.names(), interactive=True,
                    )
                    insert_index = gr.Number(label="Insert at index (blank = end)", precision=0)
                    with gr.Row():
                        insert_btn = gr.Button("Add file at path", variant="primary")
                        remove_btn = gr.Button("Remove file at path")

                with gr.Accordion("Move file", open=False):
                    move_to_project = gr.Dropdown(
                        label="Target project (blank = same)",
                        choices=_project_choices(workspace), interactive=True,
                    )
                    move_to_parent = gr.Textbox(label="Target folder path", placeholder="[]")
                    move_index = gr.Number(label="Target index", precision=0)
                    move_btn = gr.Button("Move file at path")

        def _refresh(message):
            choices = _project_choices(workspace)
            return (
                project_outline_markdown(workspace.state),
                message,
                gr.update(choices=choices),
                gr.update(choices=choices),
                gr.update(choices=workspace.state.files.names()),
            )

        refresh_outputs = [outline, status, project_pick, move_to_project, file_pick]

        def _create(name, description):
            change = workspace.create_project(name, description)
            return _refresh(_describe(change))

        def _rename(project_id, name, description):
            messages = []
            if name:
                messages.append(_describe(workspace.rename_project(project_id, name)))
            if description:
                messages.append(_describe(workspace.set_project_description(project_id, description)))
            return _refresh("  \n".join(messages) or "Nothing to change")

        create_btn.click(_create, inputs=[project_name, project_desc], outputs=refresh_outputs,
                         api_visibility="private")
        rename_btn.click(_rename, inputs=[project_pick, project_name, project_desc],
                         outputs=refresh_outputs, api_visibility="private")
        toggle_project_btn.click(
            lambda pid: _refresh(_describe(workspace.toggle_project_expanded(pid))),
            inputs=[project_pick], outputs=refresh_outputs, api_visibility="private",
        )
        delete_project_btn.click(
            lambda pid: _refresh(_describe(workspace.delete_project(pid))),
            inputs=[project_pick], outputs=refresh_outputs, api_visibility="private",
        )

        for button, action in (
            (add_folder_btn, "add_folder"),
            (rename_folder_btn, "rename_folder"),
            (toggle_folder_btn, "toggle_folder"),
            (delete_folder_btn, "delete_folder"),
            (remove_btn, "remove_file"),
        ):
            button.click(
                lambda pid, path, name, _action=action: _refresh(
                    _run_path_action(workspace, _action, pid, path, name)
                ),
                inputs=[project_pick, path_box, folder_name],
                outputs=refresh_outputs,
                api_visibility="private",
            )

        insert_btn.click(
            lambda pid, path, idx, name: _refresh(_handle_insert(workspace, pid, path, idx, name)),
            inputs=[project_pick, path_box, insert_index, file_pick],
            outputs=refresh_outputs, api_visibility="private",
        )
        move_btn.click(
            lambda pid, path, to_pid, to_path, idx: _refresh(
                _handle_move(workspace, pid, path, to_pid, to_path, idx)
            ),
            inputs=[project_pick, path_box, move_to_project, move_to_parent, move_index],
            outputs=refresh_outputs, api_visibility="private",
        )

    return {
        'tab': projects_tab,
        'outline': outline,
        'file_pick': file_pick,
        'refresh': lambda: project_outline_markdown(workspace.state),
    }
