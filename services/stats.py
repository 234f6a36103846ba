"""Reading statistics and calendar view data.

Everything here is read-only over AppState: overall totals, per-day file
lists, the month grid for the calendar, and a per-day activity table.
"""

import calendar
import logging
from datetime import date

import pandas as pd

from shared.constants import DATE_FORMAT, MONTH_NAMES, WEEKDAY_NAMES

logger = logging.getLogger(__name__)


def overall_stats(state) -> dict:
    """Totals shown when no calendar day is selected.

    Returns:
        Dict with keys: file_count, average_progress, total_opens,
        active_days.
    """
    records = list(state.files)
    file_count = len(records)
    average = round(sum(r.read_progress for r in records) / file_count) if file_count else 0
    return {
        "file_count": file_count,
        "average_progress": average,
        "total_opens": sum(r.open_count for r in records),
        "active_days": state.statistics.activity_dates(),
    }


def date_stats(state, date_string: str) -> pd.DataFrame:
    """Files opened on `date_string`, with opens that day and current progress."""
    columns = ["File", "Opens", "Progress"]
    day = state.statistics.files_active_on(date_string)
    if not day:
        return pd.DataFrame(columns=columns)

    rows = []
    for name, opens in day.items():
        record = state.files.get(name)
        rows.append({
            "File": name,
            "Opens": opens,
            "Progress": record.read_progress if record else 0,
        })
    return pd.DataFrame(rows, columns=columns)


def daily_activity_df(ledger) -> pd.DataFrame:
    """One row per active date: total opens and distinct files, oldest first."""
    columns = ["date", "opens", "files"]
    records = [
        {"date": day, "file": name, "opens": count}
        for day, files in ledger.to_dict().items()
        for name, count in files.items()
    ]
    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(records)
    grouped = df.groupby("date").agg(opens=("opens", "sum"), files=("file", "nunique"))
    return grouped.reset_index().sort_values("date").reset_index(drop=True)[columns]


def month_summary(ledger, year: int, month: int) -> dict:
    """Totals for one month (month is 0-based, as in AppState).

    Returns:
        Dict with keys: active_days, opens, average_opens_per_active_day.
    """
    df = daily_activity_df(ledger)
    prefix = f"{year:04d}-{month + 1:02d}-"
    if not df.empty:
        df = df[df["date"].str.startswith(prefix)]
    if df.empty:
        return {"active_days": 0, "opens": 0, "average_opens_per_active_day": 0.0}
    return {
        "active_days": int(len(df)),
        "opens": int(df["opens"].sum()),
        "average_opens_per_active_day": round(float(df["opens"].mean()), 1),
    }


def month_grid(
    year: int,
    month: int,
    ledger,
    today: date,
    selected: str | None = None,
    first_weekday: int = 0,
) -> list[list[dict | None]]:
    """Weeks of day cells for the calendar widget.

    Args:
        year: Calendar year.
        month: 0-based month (0 = January), as stored in AppState.
        ledger: StatisticsLedger used to mark active days.
        today: The date highlighted as today.
        selected: Selected 'YYYY-MM-DD', if any.
        first_weekday: 0 = Monday ... 6 = Sunday.

    Returns:
        List of weeks; each week has 7 entries, None for padding days or a
        dict {date, day, today, has_activity, selected}.
    """
    cal = calendar.Calendar(firstweekday=first_weekday)
    today_string = today.strftime(DATE_FORMAT)
    weeks = []
    for week in cal.monthdatescalendar(year, month + 1):
        cells = []
        for day in week:
            if day.month != month + 1:
                cells.append(None)
                continue
            day_string = day.strftime(DATE_FORMAT)
            cells.append({
                "date": day_string,
                "day": day.day,
                "today": day_string == today_string,
                "has_activity": ledger.has_activity(day_string),
                "selected": day_string == selected,
            })
        weeks.append(cells)
    return weeks


def month_title(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month]} {year}"


def weekday_header(first_weekday: int = 0) -> list[str]:
    return WEEKDAY_NAMES[first_weekday:] + WEEKDAY_NAMES[:first_weekday]
