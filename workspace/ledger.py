"""Statistics ledger — per-day, per-file open counters.

Counters only ever grow: opening a file adds one, importing another
ledger adds its counts. Nothing decrements.
"""

import logging
import math

logger = logging.getLogger(__name__)


def _as_count(value) -> int:
    """Coerce an imported counter to a non-negative int (non-numeric -> 0)."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(int(number), 0)


def normalize_statistics(raw) -> dict[str, dict[str, int]]:
    """Validate a raw statistics mapping into {date: {file: count}}.

    Days that are not mappings are dropped and every count is coerced
    with the same rules merge_from() applies.
    """
    if not isinstance(raw, dict):
        return {}
    return {
        str(date): {str(name): _as_count(count) for name, count in file_counts.items()}
        for date, file_counts in raw.items()
        if isinstance(file_counts, dict)
    }


class StatisticsLedger:
    """Mapping of 'YYYY-MM-DD' -> {file name -> open count}."""

    def __init__(self, data: dict | None = None):
        self._days: dict[str, dict[str, int]] = {}
        if data:
            self.merge_from(data)

    def record_open(self, date: str, file_name: str) -> int:
        """Add one open of `file_name` on `date`.

        Returns:
            The new counter value for that (date, file) pair.
        """
        day = self._days.setdefault(date, {})
        day[file_name] = day.get(file_name, 0) + 1
        return day[file_name]

    def merge_from(self, other) -> int:
        """Add every (date, file, count) from another ledger or raw mapping.

        Args:
            other: StatisticsLedger or a plain dict as found in export files.

        Returns:
            Total number of opens added.
        """
        raw = other.to_dict() if isinstance(other, StatisticsLedger) else other

        added = 0
        for date, file_counts in normalize_statistics(raw).items():
            day = self._days.setdefault(date, {})
            for file_name, amount in file_counts.items():
                day[file_name] = day.get(file_name, 0) + amount
                added += amount
        return added

    def activity_dates(self) -> int:
        """Number of distinct dates with at least one entry."""
        return sum(1 for day in self._days.values() if day)

    def files_active_on(self, date: str) -> dict[str, int]:
        return dict(self._days.get(date, {}))

    def has_activity(self, date: str) -> bool:
        return bool(self._days.get(date))

    def dates(self) -> list[str]:
        return sorted(date for date, day in self._days.items() if day)

    def to_dict(self) -> dict:
        return {date: dict(day) for date, day in self._days.items()}

    def __eq__(self, other):
        if isinstance(other, StatisticsLedger):
            return self.to_dict() == other.to_dict()
        return NotImplemented

    def __repr__(self):
        return f"StatisticsLedger({self.activity_dates()} active days)"
