"""Tests for reading statistics and calendar data."""

from datetime import date

from services.stats import (
    daily_activity_df, date_stats, month_grid, month_summary, month_title,
    overall_stats, weekday_header,
)
from workspace.ledger import StatisticsLedger


def test_overall_stats_empty(workspace):
    assert overall_stats(workspace.state) == {
        "file_count": 0, "average_progress": 0, "total_opens": 0, "active_days": 0,
    }


def test_overall_stats(library):
    library.update_read_progress("a.md", 50)
    library.update_read_progress("b.md", 100)
    library.open_file("a.md")
    library.open_file("c.md")
    stats = overall_stats(library.state)
    assert stats["file_count"] == 3
    assert stats["average_progress"] == 50
    assert stats["total_opens"] == 2
    assert stats["active_days"] == 1


def test_date_stats_lists_files_opened_that_day(library):
    library.update_read_progress("b.md", 30)
    library.open_file("b.md")
    library.open_file("b.md")
    df = date_stats(library.state, "2024-03-15")
    assert list(df.columns) == ["File", "Opens", "Progress"]
    assert df.to_dict("records") == [{"File": "b.md", "Opens": 2, "Progress": 30}]
    assert date_stats(library.state, "2024-03-16").empty


def test_daily_activity_groups_by_date():
    ledger = StatisticsLedger({
        "2024-03-02": {"a.md": 1, "b.md": 2},
        "2024-03-01": {"a.md": 4},
    })
    df = daily_activity_df(ledger)
    assert df["date"].tolist() == ["2024-03-01", "2024-03-02"]
    assert df["opens"].tolist() == [4, 3]
    assert df["files"].tolist() == [1, 2]
    assert daily_activity_df(StatisticsLedger()).empty


def test_month_summary():
    ledger = StatisticsLedger({
        "2024-03-01": {"a.md": 4},
        "2024-03-20": {"a.md": 1, "b.md": 1},
        "2024-04-01": {"a.md": 9},
    })
    assert month_summary(ledger, 2024, 2) == {
        "active_days": 2, "opens": 6, "average_opens_per_active_day": 3.0,
    }
    assert month_summary(ledger, 2024, 5)["active_days"] == 0


def test_month_grid_marks_days():
    ledger = StatisticsLedger({"2024-03-05": {"a.md": 1}})
    weeks = month_grid(2024, 2, ledger, today=date(2024, 3, 15), selected="2024-03-20")
    cells = [cell for week in weeks for cell in week if cell]
    assert all(len(week) == 7 for week in weeks)
    assert len(cells) == 31
    # March 1st 2024 is a Friday: four padding days before it
    assert weeks[0][:4] == [None] * 4
    by_day = {cell["day"]: cell for cell in cells}
    assert by_day[5]["has_activity"] and not by_day[6]["has_activity"]
    assert by_day[15]["today"]
    assert by_day[20]["selected"]
    assert by_day[1]["date"] == "2024-03-01"


def test_month_grid_sunday_first():
    weeks = month_grid(2024, 2, StatisticsLedger(), today=date(2024, 1, 1), first_weekday=6)
    assert weeks[0][:5] == [None] * 5
    assert weeks[0][5]["day"] == 1


def test_calendar_labels():
    assert month_title(2024, 0) == "January 2024"
    assert weekday_header(6) == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
