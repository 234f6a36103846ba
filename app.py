"""ReadSpace — reading workspace with projects, progress and a reading calendar."""
import logging

import gradio as gr

from api import register_api
from db.operations import init_database
from readspace_theme import ReadSpaceTheme, READSPACE_CSS
from services.log_config import cleanup_old_logs, setup_logging
from services.settings import get_setting, init_settings
from tabs import build_calendar_tab, build_data_tab, build_library_tab, build_projects_tab
from workspace.controller import Workspace

logger = logging.getLogger(__name__)


def app_interface(workspace: Workspace) -> gr.Blocks:
    with gr.Blocks(title="ReadSpace") as demo:
        gr.Markdown("# ReadSpace")

        with gr.Tabs():
            library = build_library_tab(workspace)
            projects = build_projects_tab(workspace)
            calendar = build_calendar_tab(workspace)
            build_data_tab(workspace)

        # Other tabs change files and projects; redraw on tab switch
        projects['tab'].select(
            projects['refresh'], outputs=[projects['outline']], api_visibility="private",
        )
        projects['tab'].select(
            lambda: gr.update(choices=workspace.state.files.names()),
            outputs=[projects['file_pick']], api_visibility="private",
        )
        library['tab'].select(
            lambda: gr.update(choices=[r.name for r in workspace.state.files.visible()]),
            outputs=[library['file_picker']], api_visibility="private",
        )
        calendar['tab'].select(
            lambda: calendar['render'](), outputs=[calendar['calendar']],
            api_visibility="private",
        )

        register_api(workspace)

    return demo


def main():
    init_database()
    init_settings()
    setup_logging()
    retention = get_setting("log_retention_days")
    removed = cleanup_old_logs(int(retention) if retention.isdigit() else 30)
    if removed:
        logger.info("Removed %d old log entries", removed)

    workspace = Workspace().load()
    demo = app_interface(workspace)
    demo.launch(mcp_server=True, theme=ReadSpaceTheme(), css=READSPACE_CSS)


if __name__ == "__main__":
    main()
