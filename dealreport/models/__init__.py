"""Data models for the report application."""

from .config import (
    DEFAULT_DEAL_FIELDS,
    ReportConfig,
)
from .report import (
    ReportRun,
    ReportState,
    ReportStatus,
)
from .record import (
    ERROR_MARKER,
    FAILED,
    Cell,
    ReportRow,
    SourceRecord,
    parse_record_key,
)

__all__ = [
    "DEFAULT_DEAL_FIELDS",
    "ReportConfig",
    "ReportRun",
    "ReportState",
    "ReportStatus",
    "ERROR_MARKER",
    "FAILED",
    "Cell",
    "ReportRow",
    "SourceRecord",
    "parse_record_key",
]
