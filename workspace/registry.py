"""
File registry — flat mapping of file name to FileRecord.

One record per unique name regardless of how many projects reference it.
Re-uploading a file replaces its content but keeps its reading history.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from shared.constants import MIN_PROGRESS, MAX_PROGRESS
from shared.exceptions import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


@dataclass
class FileRecord:
    name: str
    content: str = ""
    read_progress: int = 0
    open_count: int = 0
    last_opened: Optional[str] = None
    hidden_from_sources: bool = False

    def to_dict(self) -> dict:
        """Serialize using the camelCase field names of the export schema."""
        return {
            "name": self.name,
            "content": self.content,
            "readProgress": self.read_progress,
            "openCount": self.open_count,
            "lastOpened": self.last_opened,
            "hiddenFromSources": self.hidden_from_sources,
        }

    @classmethod
    def from_dict(cls, data: dict, name: str = "") -> "FileRecord":
        """Build a record from a persisted snapshot entry, tolerating bad types."""
        content = data.get("content")
        progress = data.get("readProgress")
        opens = data.get("openCount")
        return cls(
            name=data.get("name") or name,
            content=content if isinstance(content, str) else "",
            read_progress=clamp_progress(progress) if is_finite_number(progress) else 0,
            open_count=max(int(opens), 0) if is_finite_number(opens) else 0,
            last_opened=data.get("lastOpened") or None,
            hidden_from_sources=data.get("hiddenFromSources") is True,
        )


def is_finite_number(value) -> bool:
    """True for real ints and floats; bools, NaN and infinities are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def clamp_progress(percent) -> int:
    """Round and clamp a progress value into [0, 100].

    Raises:
        ValidationFailedError: If percent is not a finite number.
    """
    if not is_finite_number(percent):
        raise ValidationFailedError(f"Progress must be a finite number, got {percent!r}")
    return min(MAX_PROGRESS, max(MIN_PROGRESS, int(round(percent))))


def calculate_scroll_progress(
    scroll_top: float,
    scroll_height: float,
    client_height: float,
) -> int:
    """Percent of the scrollable distance already scrolled.

    Content that fits entirely in the viewport counts as fully read.

    Args:
        scroll_top: Current vertical scroll offset.
        scroll_height: Total content height.
        client_height: Visible viewport height.

    Returns:
        Integer percent in [0, 100].

    Raises:
        ValidationFailedError: If the offsets produce a non-finite ratio.
    """
    scrollable = scroll_height - client_height
    if scrollable <= 0:
        return MAX_PROGRESS
    return clamp_progress(scroll_top / scrollable * 100)


class FileRegistry:
    """Insertion-ordered mapping of name -> FileRecord."""

    def __init__(self, records: dict | None = None):
        self._records: dict[str, FileRecord] = {}
        for name, record in (records or {}).items():
            if isinstance(record, FileRecord):
                self._records[name] = record
            elif isinstance(record, dict):
                self._records[name] = FileRecord.from_dict(record, name=name)

    def ingest(self, name: str, content: str) -> FileRecord:
        """Create or overwrite a record, preserving reading history.

        Args:
            name: File name, the registry key.
            content: Raw document text.

        Returns:
            The stored FileRecord.
        """
        existing = self._records.get(name)
        if existing is None:
            record = FileRecord(name=name, content=content)
            logger.info("Registered new file '%s' (%d chars)", name, len(content))
        else:
            record = FileRecord(
                name=name,
                content=content,
                read_progress=existing.read_progress,
                open_count=existing.open_count,
                last_opened=existing.last_opened,
                hidden_from_sources=existing.hidden_from_sources,
            )
            logger.info("Replaced content of '%s', history kept", name)
        self._records[name] = record
        return record

    def record_open(self, name: str, ledger, today: str) -> FileRecord:
        """Count one open of `name` on the record and in the statistics ledger.

        Raises:
            NotFoundError: If the file is not registered.
        """
        record = self.require(name)
        record.open_count += 1
        record.last_opened = today
        ledger.record_open(today, name)
        return record

    def set_read_progress(self, name: str, percent) -> int:
        record = self.require(name)
        record.read_progress = clamp_progress(percent)
        return record.read_progress

    def hide(self, name: str):
        self.require(name).hidden_from_sources = True

    def unhide(self, name: str):
        self.require(name).hidden_from_sources = False

    def visible(self) -> list[FileRecord]:
        """Records shown in the sources list (not hidden), insertion order."""
        return [r for r in self._records.values() if not r.hidden_from_sources]

    def get(self, name: str) -> Optional[FileRecord]:
        return self._records.get(name)

    def require(self, name: str) -> FileRecord:
        record = self._records.get(name)
        if record is None:
            raise NotFoundError(f"File '{name}' is not registered")
        return record

    def put(self, record: FileRecord):
        self._records[record.name] = record

    def names(self) -> list[str]:
        return list(self._records)

    def to_dict(self) -> dict:
        return {name: record.to_dict() for name, record in self._records.items()}

    def __contains__(self, name):
        return name in self._records

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self._records.values())

    def __eq__(self, other):
        if isinstance(other, FileRegistry):
            return self.to_dict() == other.to_dict()
        return NotImplemented
