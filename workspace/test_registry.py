"""Tests for the file registry and the statistics ledger."""

import pytest

from shared.exceptions import NotFoundError, ValidationFailedError
from workspace.ledger import StatisticsLedger, normalize_statistics
from workspace.registry import (
    FileRecord, FileRegistry, calculate_scroll_progress, clamp_progress, is_finite_number,
)


# =============================================================================
# PROGRESS
# =============================================================================

def test_clamp_progress():
    assert clamp_progress(-5) == 0
    assert clamp_progress(42.6) == 43
    assert clamp_progress(180) == 100


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), True, "40", None])
def test_clamp_progress_rejects_non_finite(value):
    assert not is_finite_number(value)
    with pytest.raises(ValidationFailedError):
        clamp_progress(value)


def test_huge_integers_are_finite():
    assert is_finite_number(10 ** 400)
    assert clamp_progress(10 ** 400) == 100


def test_scroll_progress():
    assert calculate_scroll_progress(0, 1000, 200) == 0
    assert calculate_scroll_progress(400, 1000, 200) == 50
    assert calculate_scroll_progress(900, 1000, 200) == 100
    # Content that fits the viewport is fully read
    assert calculate_scroll_progress(0, 200, 400) == 100


# =============================================================================
# REGISTRY
# =============================================================================

def test_ingest_keeps_reading_history():
    files = FileRegistry()
    ledger = StatisticsLedger()
    files.ingest("a.md", "v1")
    files.set_read_progress("a.md", 60)
    files.record_open("a.md", ledger, "2024-03-01")
    files.hide("a.md")

    record = files.ingest("a.md", "v2")
    assert record.content == "v2"
    assert record.read_progress == 60
    assert record.open_count == 1
    assert record.last_opened == "2024-03-01"
    assert record.hidden_from_sources is True
    assert len(files) == 1


def test_record_open_updates_record_and_ledger():
    files = FileRegistry()
    ledger = StatisticsLedger()
    files.ingest("a.md", "")
    files.record_open("a.md", ledger, "2024-03-01")
    files.record_open("a.md", ledger, "2024-03-02")
    files.record_open("a.md", ledger, "2024-03-02")

    assert files.get("a.md").open_count == 3
    assert files.get("a.md").last_opened == "2024-03-02"
    assert ledger.to_dict() == {"2024-03-01": {"a.md": 1}, "2024-03-02": {"a.md": 2}}


def test_unknown_file_raises():
    files = FileRegistry()
    with pytest.raises(NotFoundError):
        files.require("missing.md")
    with pytest.raises(NotFoundError):
        files.record_open("missing.md", StatisticsLedger(), "2024-03-01")
    with pytest.raises(NotFoundError):
        files.hide("missing.md")


def test_visible_excludes_hidden():
    files = FileRegistry()
    for name in ("a.md", "b.md", "c.md"):
        files.ingest(name, "")
    files.hide("b.md")
    assert [r.name for r in files.visible()] == ["a.md", "c.md"]
    files.unhide("b.md")
    assert [r.name for r in files.visible()] == ["a.md", "b.md", "c.md"]


def test_registry_from_snapshot_tolerates_bad_values():
    files = FileRegistry({
        "a.md": {"name": "a.md", "content": "x", "readProgress": 250, "openCount": "many"},
        "b.md": {"content": None, "hiddenFromSources": 1},
        "junk": "not a record",
    })
    assert files.names() == ["a.md", "b.md"]
    assert files.get("a.md").read_progress == 100
    assert files.get("a.md").open_count == 0
    assert files.get("b.md").name == "b.md"
    assert files.get("b.md").content == ""
    # Only a real boolean hides a file
    assert files.get("b.md").hidden_from_sources is False


def test_record_dict_uses_export_field_names():
    record = FileRecord("a.md", "body", read_progress=30, open_count=2, last_opened="2024-01-02")
    data = record.to_dict()
    assert set(data) == {
        "name", "content", "readProgress", "openCount", "lastOpened", "hiddenFromSources",
    }
    assert FileRecord.from_dict(data) == record


# =============================================================================
# LEDGER
# =============================================================================

def test_ledger_merge_is_additive():
    ledger = StatisticsLedger({"2024-03-01": {"a.md": 2}})
    added = ledger.merge_from({"2024-03-01": {"a.md": 3, "b.md": 1}, "2024-03-02": {"a.md": 1}})
    assert added == 5
    assert ledger.files_active_on("2024-03-01") == {"a.md": 5, "b.md": 1}
    assert ledger.activity_dates() == 2
    assert ledger.dates() == ["2024-03-01", "2024-03-02"]


def test_ledger_ignores_malformed_counts():
    ledger = StatisticsLedger()
    added = ledger.merge_from({
        "2024-03-01": {"a.md": "3", "b.md": "lots", "c.md": -4, "d.md": True},
        "2024-03-02": ["not", "a", "mapping"],
    })
    assert added == 3
    assert ledger.files_active_on("2024-03-01") == {"a.md": 3, "b.md": 0, "c.md": 0, "d.md": 0}
    assert not ledger.has_activity("2024-03-02")
    assert ledger.merge_from("garbage") == 0


def test_ledger_merge_from_ledger():
    first = StatisticsLedger()
    first.record_open("2024-03-01", "a.md")
    second = StatisticsLedger()
    second.merge_from(first)
    second.merge_from(first)
    assert second.files_active_on("2024-03-01") == {"a.md": 2}
    assert first == StatisticsLedger({"2024-03-01": {"a.md": 1}})


def test_ledger_coerces_non_finite_counts():
    raw = {"2024-03-01": {"a.md": float("inf"), "b.md": float("nan"), "c.md": 10 ** 400, "d.md": 2}}
    assert normalize_statistics(raw) == {"2024-03-01": {"a.md": 0, "b.md": 0, "c.md": 0, "d.md": 2}}
    ledger = StatisticsLedger()
    assert ledger.merge_from(raw) == 2
    assert normalize_statistics({"2024-03-02": 5}) == {}
    assert normalize_statistics(None) == {}


def test_snapshot_record_tolerates_non_finite_numbers():
    record = FileRecord.from_dict({
        "name": "a.md", "readProgress": float("nan"), "openCount": float("inf"),
        "hiddenFromSources": "false",
    })
    assert (record.read_progress, record.open_count) == (0, 0)
    assert record.hidden_from_sources is False
