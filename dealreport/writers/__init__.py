"""Report output writers."""

from .base import BaseWriter, WriteResult
from .csv_writer import CsvWriter

__all__ = [
    "BaseWriter",
    "WriteResult",
    "CsvWriter",
]
