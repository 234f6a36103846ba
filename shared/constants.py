"""Shared constants for ReadSpace — persistence keys, schema versions, defaults."""

# --- Persistence gateway keys (one JSON snapshot per AppState field) ---

KEY_FILES = "files"
KEY_CURRENT_FILE = "currentFile"
KEY_STATISTICS = "statistics"
KEY_PROJECTS = "projects"
KEY_PROJECT_ID_COUNTER = "projectIdCounter"

SNAPSHOT_KEYS = [
    KEY_FILES, KEY_CURRENT_FILE, KEY_STATISTICS,
    KEY_PROJECTS, KEY_PROJECT_ID_COUNTER,
]

# --- Export document ---

EXPORT_VERSION = "2.0"
EXPORT_FILENAME_PREFIX = "workspace-export-"

# --- Tree / project defaults ---

NODE_FILE = "file"
NODE_FOLDER = "folder"

PROJECT_ID_PREFIX = "project_"
DEFAULT_PROJECT_NAME = "Imported project"
DEFAULT_FOLDER_NAME = "New folder"

# --- Reading ---

MIN_PROGRESS = 0
MAX_PROGRESS = 100

DATE_FORMAT = "%Y-%m-%d"

DOCUMENT_EXTENSIONS = (".md", ".markdown", ".txt")

# --- Calendar ---

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# --- UI messages ---

WELCOME_MESSAGE = (
    "# Welcome!\n\n"
    "Upload markdown files to get started, "
    "or enter a URL above to view a web page."
)
