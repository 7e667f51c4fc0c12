"""Base extractor interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging

from ..models.record import SourceRecord

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Base class for record sources.

    Extractors pull source records one at a time without buffering the
    full result set. The orchestrator calls next_record() until it
    returns None; the extractor releases its cursor once exhausted.
    """

    def __init__(self, fields: Sequence[str]):
        """
        Initialize the extractor.

        Args:
            fields: Source field names to select, in order
        """
        self.fields = list(fields)
        self._pulled_count = 0
        self._exhausted = False

    @abstractmethod
    def _fetch_next(self) -> Optional[Dict[str, Any]]:
        """
        Fetch the next raw record.

        Returns:
            Mapping of field name to value, or None at end of stream
        """
        pass

    def open(self) -> None:
        """Acquire the underlying cursor. Called lazily on first pull."""

    def close(self) -> None:
        """Release the underlying cursor."""

    def next_record(self) -> Optional[SourceRecord]:
        """
        Pull the next record from the source.

        Returns:
            SourceRecord, or None once the source is exhausted
        """
        if self._exhausted:
            return None

        data = self._fetch_next()
        if data is None:
            self._exhausted = True
            self.close()
            logger.info(f"Record source exhausted after {self._pulled_count} records")
            return None

        self._pulled_count += 1
        return SourceRecord(data=data, position=self._pulled_count)

    def __iter__(self) -> Iterator[SourceRecord]:
        while True:
            record = self.next_record()
            if record is None:
                return
            yield record

    @property
    def pulled_count(self) -> int:
        """Number of records pulled so far."""
        return self._pulled_count

    def validate_source(self) -> List[str]:
        """
        Validate the source configuration.

        Returns:
            List of validation error messages
        """
        errors = []

        if not self.fields:
            errors.append("At least one field must be selected")

        duplicates = sorted({name for name in self.fields if self.fields.count(name) > 1})
        if duplicates:
            errors.append(f"Fields selected more than once: {', '.join(duplicates)}")

        return errors
