"""Calendar tab -- Monthly activity calendar with per-day and overall stats."""
import gradio as gr

from services.settings import get_setting
from services.stats import (
    date_stats, month_grid, month_summary, month_title, overall_stats, weekday_header,
)


def _first_weekday() -> int:
    value = get_setting("calendar_first_weekday")
    return int(value) if value.isdigit() else 0


def render_calendar_html(workspace) -> str:
    """Month grid as an HTML table; active days bold, today underlined."""
    s = workspace.state
    first = _first_weekday()
    weeks = month_grid(
        s.current_year, s.current_month, s.statistics,
        today=workspace.today(), selected=s.selected_date, first_weekday=first,
    )
    head = "".join(f"<th>{name}</th>" for name in weekday_header(first))
    rows = []
    for week in weeks:
        cells = []
        for cell in week:
            if cell is None:
                cells.append("<td></td>")
                continue
            classes = [c for c in ("today", "has_activity", "selected") if cell[c]]
            label = str(cell["day"])
            if cell["has_activity"]:
                label = f"<b>{label}</b>"
            if cell["today"]:
                label = f"<u>{label}</u>"
            if cell["selected"]:
                label = f"[{label}]"
            cells.append(f'<td class="{" ".join(classes)}" title="{cell["date"]}">{label}</td>')
        rows.append(f"<tr>{''.join(cells)}</tr>")
    return (
        f"<h3>{month_title(s.current_year, s.current_month)}</h3>"
        f'<table class="readspace-calendar"><tr>{head}</tr>{"".join(rows)}</table>'
    )


def render_overall_markdown(workspace) -> str:
    stats = overall_stats(workspace.state)
    if not stats["file_count"]:
        return "_No data_"
    s = workspace.state
    month = month_summary(s.statistics, s.current_year, s.current_month)
    return (
        f"**Files:** {stats['file_count']}  \n"
        f"**Average progress:** {stats['average_progress']}%  \n"
        f"**Total opens:** {stats['total_opens']}  \n"
        f"**Days with activity:** {stats['active_days']}  \n"
        f"**This month:** {month['active_days']} active days, "
        f"{month['average_opens_per_active_day']} opens per active day"
    )


def build_calendar_tab(workspace):
    """Build the Calendar tab. Returns dict of components."""
    with gr.Tab("Calendar") as calendar_tab:
        with gr.Row():
            with gr.Column(scale=2):
                with gr.Row():
                    prev_btn = gr.Button("<", scale=0)
                    next_btn = gr.Button(">", scale=0)
                    refresh_btn = gr.Button("Refresh", scale=0)
                calendar_html = gr.HTML(render_calendar_html(workspace))
                with gr.Row():
                    date_box = gr.Textbox(label="Day (YYYY-MM-DD)", scale=3)
                    select_btn = gr.Button("Show day", scale=0)
                    clear_btn = gr.Button("Overall", scale=0)

            with gr.Column(scale=1):
                stats_title = gr.Markdown("### Statistics")
                overall_md = gr.Markdown(render_overall_markdown(workspace))
                day_table = gr.DataFrame(interactive=False, label="Files opened that day")

        def _view():
            s = workspace.state
            if s.selected_date:
                return (
                    render_calendar_html(workspace),
                    f"### {s.selected_date}",
                    "" if s.statistics.has_activity(s.selected_date) else "_No activity_",
                    date_stats(s, s.selected_date),
                )
            return (
                render_calendar_html(workspace),
                "### Statistics",
                render_overall_markdown(workspace),
                date_stats(s, ""),
            )

        outputs = [calendar_html, stats_title, overall_md, day_table]

        def _prev():
            workspace.previous_month()
            return _view()

        def _next():
            workspace.next_month()
            return _view()

        def _select(day):
            workspace.select_date(day.strip() if day else None)
            return _view()

        def _clear():
            workspace.clear_selected_date()
            return _view()

        prev_btn.click(_prev, outputs=outputs, api_visibility="private")
        next_btn.click(_next, outputs=outputs, api_visibility="private")
        refresh_btn.click(_view, outputs=outputs, api_visibility="private")
        select_btn.click(_select, inputs=[date_box], outputs=outputs, api_visibility="private")
        clear_btn.click(_clear, outputs=outputs, api_visibility="private")

    return {
        'tab': calendar_tab,
        'calendar': calendar_html,
        'render': lambda: render_calendar_html(workspace),
    }
