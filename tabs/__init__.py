"""Tab modules for the ReadSpace Gradio UI."""
from .tab_library import build_library_tab
from .tab_projects import build_projects_tab
from .tab_calendar import build_calendar_tab
from .tab_data import build_data_tab
