"""Report run tracking models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


class ReportState(str, Enum):
    """Lifecycle state of a report run."""
    INITIALIZED = "initialized"
    VALIDATED = "validated"
    PRELOADED = "preloaded"
    HEADER_WRITTEN = "header_written"
    STREAMING = "streaming"
    CLOSED = "closed"


class ReportStatus(str, Enum):
    """Final outcome of a report run."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ReportRun:
    """A single export run and its statistics."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    output_path: Optional[str] = None
    state: ReportState = ReportState.INITIALIZED
    status: ReportStatus = ReportStatus.RUNNING

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Shape
    header: List[str] = field(default_factory=list)
    resolvers: List[str] = field(default_factory=list)

    # Statistics
    records_pulled: int = 0
    rows_written: int = 0
    error_rows: int = 0
    resolver_failures: Dict[str, int] = field(default_factory=dict)  # identifier -> failed records

    # Fatal errors
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def start(self) -> None:
        """Mark the run as started."""
        self.started_at = datetime.now(timezone.utc)
        self.status = ReportStatus.RUNNING

    def finish(self, status: ReportStatus) -> None:
        """Mark the run as finished with the given outcome."""
        self.completed_at = datetime.now(timezone.utc)
        self.status = status

    def record_resolver_failure(self, identifier: str) -> None:
        """Count one failed record for a resolver."""
        self.resolver_failures[identifier] = self.resolver_failures.get(identifier, 0) + 1

    def add_error(self, phase: str, error: Exception) -> None:
        """Record a fatal error."""
        self.errors.append({
            "phase": phase,
            "error": str(error),
            "type": type(error).__name__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def rows_match_records(self) -> bool:
        """Check that every pulled record produced exactly one row."""
        return self.records_pulled == self.rows_written

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "output_path": self.output_path,
            "state": self.state.value,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "header": self.header,
            "resolvers": self.resolvers,
            "records_pulled": self.records_pulled,
            "rows_written": self.rows_written,
            "error_rows": self.error_rows,
            "resolver_failures": self.resolver_failures,
            "errors": self.errors,
        }
