"""Data tab -- Export, import, reset, storage info, settings and application logs."""
import gradio as gr
import pandas as pd

from db.operations import get_store_stats
from services.log_config import get_log_summary, get_logs
from services.settings import (
    SETTINGS_REGISTRY, get_all_settings, get_settings_by_category, require_setting, set_setting,
)
from services.transfer import export_to_file, import_from_file, preview_import
from shared.exceptions import MalformedImportError, SettingsError

LOG_COLUMNS = ["timestamp", "level", "module", "action", "message"]
SETTING_CATEGORIES = sorted({category for _default, category, _validator in SETTINGS_REGISTRY.values()})


def _handle_export(workspace):
    try:
        path = export_to_file(workspace)
    except OSError as e:
        return f"✗ Export failed: {e}", None
    return f"Exported to `{path}`", str(path)


def _handle_preview(workspace, path):
    """Counts shown before the user confirms a merge."""
    if not path:
        return "Choose an export file first"
    try:
        with open(path, "r", encoding="utf-8") as f:
            counts = preview_import(f.read(), workspace.state.files)
    except (OSError, MalformedImportError) as e:
        return f"✗ {e}"
    return (
        f"Projects: {counts['projects']}  \n"
        f"Files: {counts['files']}  \n"
        f"Files in project trees: {counts['files_in_projects']}  \n"
        "Current data will be merged with the imported data."
    )


def _handle_import(workspace, path):
    if not path:
        return "Choose an export file first"
    try:
        summary = import_from_file(workspace, path)
    except MalformedImportError as e:
        return f"✗ Invalid file: {e}"
    return (
        f"✓ Imported {summary['files']} files and {summary['projects']} projects"
        + (f" ({', '.join(summary['project_ids'])})" if summary["project_ids"] else "")
    )


def _logs_df(level="", module="", action="") -> pd.DataFrame:
    rows = get_logs(level=level, module=module, action=action, limit=200)
    if not rows:
        return pd.DataFrame(columns=LOG_COLUMNS)
    return pd.DataFrame([{
        "timestamp": r.get("timestamp", ""),
        "level": r.get("level", ""),
        "module": r.get("module", ""),
        "action": r["metadata"].get("action", ""),
        "message": (r.get("message") or "")[:200],
    } for r in rows])


def _settings_df(category="") -> pd.DataFrame:
    values = get_settings_by_category(category) if category else get_all_settings()
    return pd.DataFrame(
        [{"key": key, "value": value} for key, value in values.items()],
        columns=["key", "value"],
    )


def _handle_setting_pick(key):
    if not key:
        return ""
    try:
        return require_setting(key)
    except SettingsError as e:
        return f"✗ {e}"


def _handle_setting_save(key, value, category):
    if not key:
        return "Choose a setting first", _settings_df(category)
    error = set_setting(key, (value or "").strip())
    status = f"✗ {error}" if error else f"✓ Saved `{key}`"
    return status, _settings_df(category)


def build_data_tab(workspace):
    """Build the Data tab. Returns dict of components."""
    with gr.Tab("Data") as data_tab:
        with gr.Accordion("Export", open=True):
            export_btn = gr.Button("Export workspace", variant="primary")
            export_status = gr.Markdown("")
            export_file = gr.File(label="Export file", interactive=False)

        with gr.Accordion("Import", open=True):
            import_file = gr.File(label="Export JSON", file_types=[".json"], type="filepath")
            import_preview = gr.Markdown("")
            import_btn = gr.Button("Merge into workspace", variant="primary")
            import_status = gr.Markdown("")

        with gr.Accordion("Storage", open=False):
            storage_json = gr.JSON(label="Stored keys (bytes)")
            storage_btn = gr.Button("Refresh")
            clear_confirm = gr.Checkbox(label="I understand this deletes all data", value=False)
            clear_btn = gr.Button("Clear all data", variant="stop")
            clear_status = gr.Markdown("")

        with gr.Accordion("Settings", open=False):
            settings_category = gr.Dropdown(
                label="Category", choices=[""] + SETTING_CATEGORIES, value="", interactive=True,
            )
            settings_table = gr.DataFrame(value=_settings_df(), interactive=False, label="Settings")
            with gr.Row():
                setting_key = gr.Dropdown(
                    label="Setting", choices=list(SETTINGS_REGISTRY), interactive=True, scale=1,
                )
                setting_value = gr.Textbox(label="Value", scale=2)
                setting_save_btn = gr.Button("Save", variant="primary", scale=0)
            settings_status = gr.Markdown("")

        with gr.Accordion("Application Logs", open=False):
            with gr.Row():
                log_level_filter = gr.Dropdown(
                    label="Level",
                    choices=["", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    value="",
                    interactive=True,
                    scale=1,
                )
                log_module_filter = gr.Textbox(
                    label="Module Filter", placeholder="e.g. controller, transfer", scale=2,
                )
                log_action_filter = gr.Textbox(
                    label="Action", placeholder="e.g. move_file, delete_folder", scale=2,
                )
                log_refresh_btn = gr.Button("Refresh", variant="primary", scale=0)
            log_summary = gr.JSON(label="Entries per level")
            log_table = gr.DataFrame(
                value=pd.DataFrame(columns=LOG_COLUMNS),
                interactive=False,
                label="Recent Logs",
                wrap=True,
            )

        def _clear(confirmed):
            if not confirmed:
                return "Tick the confirmation box first"
            workspace.clear_all()
            return "All data cleared"

        export_btn.click(lambda: _handle_export(workspace), outputs=[export_status, export_file],
                         api_visibility="private")
        import_file.upload(lambda p: _handle_preview(workspace, p), inputs=[import_file],
                           outputs=[import_preview], api_visibility="private")
        import_btn.click(lambda p: _handle_import(workspace, p), inputs=[import_file],
                         outputs=[import_status], api_visibility="private")
        storage_btn.click(get_store_stats, outputs=[storage_json], api_visibility="private")
        clear_btn.click(_clear, inputs=[clear_confirm], outputs=[clear_status], api_visibility="private")
        settings_category.change(_settings_df, inputs=[settings_category], outputs=[settings_table],
                                 api_visibility="private")
        setting_key.change(_handle_setting_pick, inputs=[setting_key], outputs=[setting_value],
                           api_visibility="private")
        setting_save_btn.click(_handle_setting_save, inputs=[setting_key, setting_value, settings_category],
                               outputs=[settings_status, settings_table], api_visibility="private")
        log_refresh_btn.click(_logs_df, inputs=[log_level_filter, log_module_filter, log_action_filter],
                              outputs=[log_table], api_visibility="private")
        log_refresh_btn.click(get_log_summary, outputs=[log_summary], api_visibility="private")

    return {
        'tab': data_tab,
        'import_status': import_status,
    }
