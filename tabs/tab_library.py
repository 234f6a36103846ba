"""Library tab -- Upload documents, browse sources, read with progress tracking."""
import html
from pathlib import Path

import gradio as gr

from services.ingestion import ingest_directory, ingest_paths
from services.settings import get_ingest_extensions
from shared.constants import WELCOME_MESSAGE
from shared.formatting import sources_df


def _file_choices(workspace) -> list[str]:
    return [record.name for record in workspace.state.files.visible()]


def _reader_view(workspace) -> tuple[str, int, str]:
    """Markdown body, current progress and title for the reader panel."""
    s = workspace.state
    if s.is_showing_url:
        src = html.escape(s.current_url, quote=True)
        return (
            f'<iframe src="{src}" style="width:100%;height:70vh;border:none;"></iframe>',
            0,
            s.current_url,
        )
    record = s.files.get(s.current_file) if s.current_file else None
    if record is None:
        return WELCOME_MESSAGE, 0, ""
    return record.content, record.read_progress, record.name


def _after_ingest(workspace, names):
    """Open the first loaded file when nothing is open yet."""
    if names and not workspace.state.current_file:
        workspace.open_file(names[0])
    status = f"Loaded {len(names)} file(s)" if names else "No supported files"
    return status, sources_df(workspace.state), gr.update(choices=_file_choices(workspace))


def _handle_upload(workspace, paths):
    return _after_ingest(workspace, ingest_paths(workspace, paths or [], get_ingest_extensions()))


def _handle_folder(workspace, directory):
    if not directory or not directory.strip():
        return "Enter a folder path", sources_df(workspace.state), gr.update()
    names = ingest_directory(workspace, Path(directory.strip()).expanduser(), get_ingest_extensions())
    return _after_ingest(workspace, names)


def _handle_open(workspace, name):
    if name:
        workspace.open_file(name)
    body, progress, title = _reader_view(workspace)
    return body, progress, title, sources_df(workspace.state)


def _handle_hide(workspace, name):
    """'Delete' from sources: the file stays in any project that uses it."""
    if not name:
        return "Select a file first", sources_df(workspace.state), gr.update()
    change = workspace.hide_file(name)
    status = f"Removed '{name}' from sources" if change else change.reason
    return status, sources_df(workspace.state), gr.update(choices=_file_choices(workspace), value=None)


def _handle_progress(workspace, percent):
    name = workspace.state.current_file
    if name and not workspace.state.is_showing_url:
        workspace.update_read_progress(name, percent)
    return sources_df(workspace.state)


def build_library_tab(workspace):
    """Build the Library tab. Returns dict of components other tabs refresh."""
    with gr.Tab("Library") as library_tab:
        with gr.Row():
            # Left: sources
            with gr.Column(scale=1):
                gr.Markdown("### Sources")
                upload = gr.File(
                    label="Load documents",
                    file_count="multiple",
                    type="filepath",
                    file_types=list(get_ingest_extensions()),
                )
                with gr.Row():
                    folder_input = gr.Textbox(
                        label="Load folder", placeholder="~/Documents/notes", scale=4,
                    )
                    folder_btn = gr.Button("Load", scale=0)
                upload_status = gr.Markdown("")
                sources_table = gr.DataFrame(
                    value=sources_df(workspace.state),
                    interactive=False,
                    label="Files",
                )
                file_picker = gr.Dropdown(
                    label="File",
                    choices=_file_choices(workspace),
                    value=workspace.state.current_file,
                    interactive=True,
                )
                with gr.Row():
                    open_btn = gr.Button("Open", variant="primary")
                    hide_btn = gr.Button("Remove from sources", variant="stop")

            # Right: reader
            with gr.Column(scale=3):
                with gr.Row():
                    url_input = gr.Textbox(label="URL", placeholder="example.com", scale=4)
                    url_btn = gr.Button("Go", scale=0)
                    back_btn = gr.Button("Back to file", scale=0)
                body, progress, title = _reader_view(workspace)
                reader_title = gr.Markdown(f"## {title}" if title else "")
                reader = gr.Markdown(body, elem_id="reader-body")
                progress_slider = gr.Slider(
                    0, 100, value=progress, step=1, label="Read progress (%)",
                )

        def _render_open(name):
            body, pct, title, table = _handle_open(workspace, name)
            return f"## {title}" if title else "", body, pct, table

        def _render_url(url):
            workspace.show_url(url)
            body, pct, title = _reader_view(workspace)
            return f"## {title}" if title else "", body, pct

        def _render_back():
            workspace.back_to_file()
            body, pct, title = _reader_view(workspace)
            return f"## {title}" if title else "", body, pct, sources_df(workspace.state)

        upload.upload(
            lambda paths: _handle_upload(workspace, paths),
            inputs=[upload],
            outputs=[upload_status, sources_table, file_picker],
            api_visibility="private",
        )
        folder_btn.click(
            lambda directory: _handle_folder(workspace, directory),
            inputs=[folder_input],
            outputs=[upload_status, sources_table, file_picker],
            api_visibility="private",
        )
        open_btn.click(
            _render_open, inputs=[file_picker],
            outputs=[reader_title, reader, progress_slider, sources_table],
            api_visibility="private",
        )
        hide_btn.click(
            lambda name: _handle_hide(workspace, name),
            inputs=[file_picker],
            outputs=[upload_status, sources_table, file_picker],
            api_visibility="private",
        )
        progress_slider.release(
            lambda pct: _handle_progress(workspace, pct),
            inputs=[progress_slider], outputs=[sources_table],
            api_visibility="private",
        )
        url_btn.click(
            _render_url, inputs=[url_input],
            outputs=[reader_title, reader, progress_slider],
            api_visibility="private",
        )
        back_btn.click(
            _render_back, inputs=[],
            outputs=[reader_title, reader, progress_slider, sources_table],
            api_visibility="private",
        )

    return {
        'tab': library_tab,
        'sources_table': sources_table,
        'file_picker': file_picker,
    }
