"""Errors raised by the report pipeline.

Everything deriving from ReportError is fatal for the run. Per-record
failures never surface as exceptions to the caller; they end up as error
marker cells in the output.
"""

from typing import Optional


class ReportError(RuntimeError):
    """Base class for errors that abort a report run."""


class ReportConfigurationError(ReportError):
    """Raised when the report configuration is inconsistent."""


class ReportStateError(ReportError):
    """Raised when an orchestrator phase is invoked out of order."""


class ReportOutputError(ReportError):
    """Raised when the report output cannot be created or written."""


class ResolverRegistrationError(ReportError):
    """Raised when the resolver set cannot be built."""


class ResolverPreloadError(ReportError):
    """Raised when a resolver fails to preload its reference data."""

    def __init__(self, resolver: str, message: str):
        self.resolver = resolver
        super().__init__(f"Resolver {resolver} failed to preload: {message}")


class ResolverError(Exception):
    """Raised by a resolver for an internal fault while resolving a record."""

    def __init__(self, message: str, record_key: Optional[int] = None):
        self.record_key = record_key
        super().__init__(message)
