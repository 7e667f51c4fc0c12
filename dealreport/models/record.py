"""Record and row models for report data."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union


ERROR_MARKER = "ERROR"


class _Failed:
    """Sentinel for a cell whose resolver failed on the current record."""

    _instance: Optional["_Failed"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "FAILED"

    def __bool__(self) -> bool:
        return False


FAILED = _Failed()

Cell = Union[str, _Failed]


def parse_record_key(value: Any) -> Optional[int]:
    """
    Interpret a raw key field value as an integer record key.

    Args:
        value: Raw value taken from the record

    Returns:
        The integer key, or None if the value is absent or not integer-like
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value

    text = str(value).strip()
    if not text:
        return None

    try:
        return int(text)
    except ValueError:
        return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SourceRecord:
    """A deal pulled from the record source."""
    data: Dict[str, Any]
    position: int = 0  # 1-based position in the stream
    pulled_at: datetime = field(default_factory=_utcnow)

    def get_field(self, name: str, default: Any = None) -> Any:
        """Get a source field value, or default when the field is absent."""
        value = self.data.get(name)
        if value is None:
            return default
        return value

    def has_field(self, name: str) -> bool:
        """Check whether the record carries a non-null value for a field."""
        return self.data.get(name) is not None

    def key(self, key_field: str) -> Optional[int]:
        """Get the integer key of the record, or None if unusable."""
        return parse_record_key(self.data.get(key_field))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "position": self.position,
            "data": self.data,
            "pulled_at": self.pulled_at.isoformat(),
        }


@dataclass
class ReportRow:
    """
    One output row, before rendering.

    Cells hold either the final string value or FAILED. FAILED cells are
    turned into the error marker only when the row is rendered for the
    writer.
    """
    key: Optional[int]
    cells: Dict[str, Cell] = field(default_factory=dict)
    is_error_row: bool = False

    @property
    def failed_columns(self) -> List[str]:
        """Names of the columns that failed to resolve."""
        return [name for name, value in self.cells.items() if value is FAILED]

    def render(self, header: Sequence[str], error_marker: str = ERROR_MARKER) -> Dict[str, str]:
        """
        Render the row in header order.

        Args:
            header: Column names in output order
            error_marker: Value substituted for failed cells

        Returns:
            Ordered mapping of column name to string value
        """
        rendered = {}
        for name in header:
            value = self.cells.get(name, FAILED)
            rendered[name] = error_marker if value is FAILED else value
        return rendered

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "key": self.key,
            "is_error_row": self.is_error_row,
            "failed_columns": self.failed_columns,
        }
