"""Base writer interface for report output."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from ..exceptions import ReportStateError

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Result of a write session."""
    destination: str
    header: List[str] = field(default_factory=list)
    rows_written: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "destination": self.destination,
            "header": self.header,
            "rows_written": self.rows_written,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }


class BaseWriter(ABC):
    """
    Base class for report writers.

    Writers receive the header exactly once, then one row per record in
    header order, then a single close(). Encoding and escaping belong to
    the concrete writer.
    """

    def __init__(self, destination: str):
        """
        Initialize the writer.

        Args:
            destination: Human readable name of the output (path, buffer, ...)
        """
        self.result = WriteResult(destination=destination)
        self._header: Optional[List[str]] = None
        self._closed = False

    @abstractmethod
    def _write_header(self, header: List[str]) -> None:
        """Write the header line."""
        pass

    @abstractmethod
    def _write_row(self, values: List[str]) -> None:
        """Write one row of values in header order."""
        pass

    @abstractmethod
    def _close(self) -> None:
        """Flush and release the output."""
        pass

    def write_header(self, header: Sequence[str]) -> None:
        """
        Write the header row.

        Args:
            header: Column names in output order
        """
        if self._closed:
            raise ReportStateError("Cannot write header: writer is closed")
        if self._header is not None:
            raise ReportStateError("Header has already been written")

        self._header = list(header)
        self.result.header = list(header)
        self.result.started_at = datetime.now(timezone.utc)
        self._write_header(self._header)
        logger.debug(f"Wrote header with {len(self._header)} columns to {self.result.destination}")

    def write_row(self, row: Mapping[str, str]) -> None:
        """
        Write one row.

        Args:
            row: Mapping of column name to value, in header order
        """
        if self._closed:
            raise ReportStateError("Cannot write row: writer is closed")
        if self._header is None:
            raise ReportStateError("write_header() must be called before write_row()")
        if list(row.keys()) != self._header:
            raise ValueError(
                f"Row columns do not match header: expected {len(self._header)} columns "
                f"in header order, got {len(row)}"
            )

        self._write_row([row[name] for name in self._header])
        self.result.rows_written += 1

    def close(self) -> None:
        """Close the writer. May be called only once."""
        if self._closed:
            raise ReportStateError("Writer has already been closed")

        self._closed = True
        self._close()
        self.result.completed_at = datetime.now(timezone.utc)
        logger.info(f"Closed {self.result.destination} after {self.result.rows_written} rows")

    @property
    def header(self) -> Optional[List[str]]:
        return list(self._header) if self._header is not None else None

    @property
    def rows_written(self) -> int:
        return self.result.rows_written

    @property
    def closed(self) -> bool:
        return self._closed
