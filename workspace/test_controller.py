"""Tests for the Workspace controller: validation, side effects, persistence."""

import pytest

from db.operations import load_snapshot, save_snapshot
from workspace import tree
from workspace.controller import Workspace
from workspace.models import FileNode, FolderNode

from conftest import TODAY


def _project(ws, name="Reading"):
    return ws.create_project(name).project_id


# =============================================================================
# PROJECTS
# =============================================================================

def test_create_project_allocates_sequential_ids(workspace):
    first = workspace.create_project("One")
    second = workspace.create_project("  Two  ", "notes")
    assert (first.project_id, second.project_id) == ("project_1", "project_2")
    project = workspace.get_project("project_2")
    assert project.name == "Two"
    assert project.description == "notes"
    assert project.expanded is True
    assert project.structure == []

    workspace.delete_project("project_1")
    assert workspace.create_project("Three").project_id == "project_3"


def test_create_project_rejects_blank_name(workspace):
    change = workspace.create_project("   ")
    assert not change
    assert workspace.state.projects == {}


def test_rename_project(workspace):
    pid = _project(workspace)
    assert workspace.rename_project(pid, "Renamed")
    assert workspace.get_project(pid).name == "Renamed"
    unchanged = workspace.rename_project(pid, "Renamed")
    assert not unchanged and unchanged.reason == "unchanged"
    assert not workspace.rename_project(pid, "  ")
    assert not workspace.rename_project("project_99", "X")


def test_toggle_and_describe_project(workspace):
    pid = _project(workspace)
    assert workspace.toggle_project_expanded(pid)
    assert workspace.get_project(pid).expanded is False
    assert workspace.set_project_description(pid, " about ")
    assert workspace.get_project(pid).description == "about"


def test_delete_project_unhides_orphaned_files(library):
    pid = _project(library)
    other = _project(library, "Other")
    library.insert_file(pid, [], None, "a.md")
    library.insert_file(pid, [], None, "b.md")
    library.insert_file(other, [], None, "b.md")
    library.hide_file("a.md")
    library.hide_file("b.md")

    change = library.delete_project(pid)
    assert change.files == ["a.md", "b.md"]
    assert library.state.files.get("a.md").hidden_from_sources is False
    # Still referenced by another project
    assert library.state.files.get("b.md").hidden_from_sources is True
    assert "a.md" in library.state.files


# =============================================================================
# FOLDERS
# =============================================================================

def test_delete_folder_lifts_direct_files(library):
    pid = _project(library)
    library.add_folder(pid, [], "Docs")
    library.insert_file(pid, [0], None, "b.md")
    library.add_folder(pid, [0], "Sub")
    library.insert_file(pid, [0, 1], None, "c.md")
    library.insert_file(pid, [], None, "a.md")
    library.hide_file("c.md")

    change = library.delete_folder(pid, [0])
    assert change
    assert change.files == ["b.md", "c.md"]
    structure = library.get_project(pid).structure
    assert structure == [FileNode("b.md"), FileNode("a.md")]
    # Dropped with the sub-folder and referenced nowhere else
    assert library.state.files.get("c.md").hidden_from_sources is False


def test_delete_folder_with_single_file_keeps_count(library):
    pid = _project(library, "P1")
    library.add_folder(pid, [], "Docs")
    library.insert_file(pid, [0], None, "a.md")
    project = library.get_project(pid)
    assert tree.count_files(project.structure) == 1

    assert library.delete_folder(pid, [0])
    assert project.structure == [FileNode("a.md")]
    assert tree.count_files(project.structure) == 1
    assert load_snapshot()["projects"][pid]["structure"] == [{"type": "file", "name": "a.md"}]


def test_folder_operations_validate(library):
    pid = _project(library)
    assert not library.add_folder(pid, [], "  ")
    assert not library.add_folder(pid, [3], "Docs")
    assert not library.add_folder("project_99", [], "Docs")
    assert library.get_project(pid).structure == []

    assert library.add_folder(pid, [], "Docs")
    assert library.rename_folder(pid, [0], "Papers")
    assert not library.rename_folder(pid, [0], "Papers")
    assert library.toggle_folder_expanded(pid, [0])
    assert library.get_project(pid).structure == [FolderNode("Papers", expanded=False)]
    assert not library.delete_folder(pid, [4])


# =============================================================================
# FILE MEMBERSHIP
# =============================================================================

def test_insert_requires_registered_file(library):
    pid = _project(library)
    change = library.insert_file(pid, [], 0, "missing.md")
    assert not change
    assert library.get_project(pid).structure == []


def test_insert_rejects_duplicate_in_project(library):
    pid = _project(library)
    library.add_folder(pid, [], "Docs")
    assert library.insert_file(pid, [0], 0, "a.md")
    change = library.insert_file(pid, [], 0, "a.md")
    assert not change
    assert tree.count_files(library.get_project(pid).structure) == 1


def test_same_file_may_join_several_projects(library):
    first = _project(library, "One")
    second = _project(library, "Two")
    assert library.insert_file(first, [], None, "a.md")
    assert library.insert_file(second, [], None, "a.md")
    assert library.is_file_in_any_project("a.md")
    assert len(library.state.files) == 3


def test_remove_last_reference_unhides_file(library):
    first = _project(library, "One")
    second = _project(library, "Two")
    library.insert_file(first, [], None, "c.md")
    library.insert_file(second, [], None, "c.md")
    library.hide_file("c.md")

    library.remove_file(first, [0])
    assert library.state.files.get("c.md").hidden_from_sources is True
    library.remove_file(second, [0])
    assert library.state.files.get("c.md").hidden_from_sources is False
    assert [r.name for r in library.state.files.visible()] == ["a.md", "b.md", "c.md"]


def test_move_onto_itself_changes_nothing(library):
    pid = _project(library)
    for name in ("a.md", "b.md", "c.md"):
        library.insert_file(pid, [], None, name)
    before = library.snapshot()

    change = library.move_file(pid, [1], pid, [], 2)
    assert not change
    assert change.reason == "unchanged"
    assert library.snapshot() == before


def test_move_within_project(library):
    pid = _project(library)
    for name in ("a.md", "b.md", "c.md"):
        library.insert_file(pid, [], None, name)
    change = library.move_file(pid, [0], pid, [], 3)
    assert change.files == ["a.md"]
    names = tree.list_files(library.get_project(pid).structure)
    assert names == ["b.md", "c.md", "a.md"]


def test_move_between_projects(library):
    source = _project(library, "One")
    target = _project(library, "Two")
    library.insert_file(source, [], None, "a.md")
    library.add_folder(target, [], "Inbox")

    change = library.move_file(source, [0], target, [0], 0)
    assert change and change.project_id == target
    assert library.get_project(source).structure == []
    assert library.get_project(target).structure[0].children == [FileNode("a.md")]


def test_move_rejects_duplicate_in_target(library):
    source = _project(library, "One")
    target = _project(library, "Two")
    library.insert_file(source, [], None, "a.md")
    library.insert_file(target, [], None, "a.md")
    before = library.snapshot()

    change = library.move_file(source, [0], target, [], 0)
    assert not change
    assert "already" in change.reason
    assert library.snapshot() == before


# =============================================================================
# FILES & READING
# =============================================================================

def test_open_file_counts_and_returns_content(library):
    content = library.open_file("a.md")
    library.open_file("a.md")
    record = library.state.files.get("a.md")
    assert content.startswith("# a.md")
    assert record.open_count == 2
    assert record.last_opened == TODAY.isoformat()
    assert library.state.current_file == "a.md"
    assert library.state.statistics.files_active_on("2024-03-15") == {"a.md": 2}


def test_open_unknown_file(library):
    assert library.open_file("nope.md") is None
    assert library.state.current_file is None
    assert library.state.statistics.activity_dates() == 0


def test_read_progress_is_clamped(library):
    assert library.update_read_progress("a.md", 150)
    assert library.state.files.get("a.md").read_progress == 100
    assert not library.update_read_progress("a.md", 100)
    assert not library.update_read_progress("missing.md", 10)


@pytest.mark.parametrize("percent", [float("nan"), float("inf"), float("-inf"), "50", None])
def test_read_progress_rejects_non_finite(library, percent):
    library.update_read_progress("a.md", 40)
    before = load_snapshot()
    change = library.update_read_progress("a.md", percent)
    assert not change
    assert "finite number" in change.reason
    assert library.state.files.get("a.md").read_progress == 40
    assert load_snapshot() == before


def test_upload_rejects_blank_name(workspace):
    assert not workspace.upload("  ", "x")
    assert len(workspace.state.files) == 0


def test_hide_file_keeps_project_membership(library):
    pid = _project(library)
    library.insert_file(pid, [], None, "a.md")
    assert library.hide_file("a.md")
    assert [r.name for r in library.state.files.visible()] == ["b.md", "c.md"]
    assert tree.contains_file(library.get_project(pid).structure, "a.md")


# =============================================================================
# VIEW STATE
# =============================================================================

def test_url_mode_and_back_to_file(library):
    library.open_file("b.md")
    assert library.show_url("example.com/page") == "https://example.com/page"
    assert library.state.is_showing_url
    assert library.show_url("http://plain.test") == "http://plain.test"
    assert library.show_url("   ") is None

    assert library.back_to_file() == "b.md"
    assert not library.state.is_showing_url
    assert library.state.files.get("b.md").open_count == 2


def test_back_to_file_falls_back_to_first_file(library):
    library.show_url("example.com")
    assert library.back_to_file() == "a.md"


def test_month_navigation_wraps_years(workspace):
    workspace.state.current_year, workspace.state.current_month = 2024, 11
    assert workspace.next_month() == (2025, 0)
    assert workspace.previous_month() == (2024, 11)
    workspace.state.current_month = 0
    assert workspace.previous_month() == (2023, 11)


def test_select_date(workspace):
    workspace.select_date("2024-03-02")
    assert workspace.state.selected_date == "2024-03-02"
    workspace.clear_selected_date()
    assert workspace.state.selected_date is None


# =============================================================================
# PERSISTENCE
# =============================================================================

def test_state_round_trips_through_store(library):
    pid = _project(library)
    library.add_folder(pid, [], "Docs")
    library.insert_file(pid, [0], None, "a.md")
    library.open_file("a.md")
    library.update_read_progress("a.md", 40)

    reloaded = Workspace(today=lambda: TODAY).load()
    assert reloaded.snapshot() == library.snapshot()
    assert reloaded.state.current_file == "a.md"
    assert reloaded.create_project("Next").project_id == "project_2"


def test_every_change_is_written_through(library):
    pid = _project(library)
    library.insert_file(pid, [], None, "a.md")
    stored = load_snapshot()
    assert stored["projects"][pid]["structure"] == [{"type": "file", "name": "a.md"}]
    assert set(stored["files"]) == {"a.md", "b.md", "c.md"}


def test_rejected_change_is_not_written(library):
    pid = _project(library)
    before = load_snapshot()
    library.insert_file(pid, [], None, "missing.md")
    assert load_snapshot() == before


def test_load_migrates_legacy_projects(workspace):
    save_snapshot({
        "files": {"a.md": {"name": "a.md", "content": "x"}},
        "projects": [
            {"id": "project_4", "name": "Old", "files": ["a.md", {"name": "b.md"}]},
            {"name": "no id"},
        ],
        "currentFile": "gone.md",
    })

    workspace.load()
    project = workspace.get_project("project_4")
    assert project.structure == [FileNode("a.md"), FileNode("b.md")]
    assert list(workspace.state.projects) == ["project_4"]
    assert workspace.state.current_file is None
    # Counter never re-issues an id already in use
    assert workspace.create_project("New").project_id == "project_1"
    workspace.state.project_id_counter = 4
    assert workspace.create_project("Newer").project_id == "project_5"


def test_clear_all(library):
    _project(library)
    library.clear_all()
    assert len(library.state.files) == 0
    assert library.state.projects == {}
    assert load_snapshot() == {}


def test_memory_only_workspace_does_not_persist():
    ws = Workspace(persist=False)
    ws.upload("a.md", "x")
    assert load_snapshot() == {}
    assert "a.md" in ws.state.files
