"""Resolver contract for computed report columns."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from sqlalchemy.engine import Connection

from ..models.record import FAILED, Cell

logger = logging.getLogger(__name__)


@dataclass
class ResolverOutcome:
    """Cells produced by one resolver for one record."""
    identifier: str
    cells: Dict[str, Cell] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, identifier: str, columns: Sequence[str], values: Mapping[str, str]) -> "ResolverOutcome":
        """
        Keep exactly the declared columns from a resolver's output.

        Raises:
            KeyError: If a declared column is missing from values
        """
        cells: Dict[str, Cell] = {}
        for name in columns:
            value = values[name]
            cells[name] = "" if value is None else str(value)
        return cls(identifier=identifier, cells=cells)

    @classmethod
    def failure(cls, identifier: str, columns: Sequence[str], error: str) -> "ResolverOutcome":
        """Mark every declared column as failed."""
        return cls(identifier=identifier, cells={name: FAILED for name in columns}, error=error)


class BaseResolver(ABC):
    """
    Base class for property resolvers.

    A resolver contributes one or more columns to every row. It loads all
    reference data it needs once in preload(), then answers resolve() for
    each record from that cached state. Resolvers only read through the
    shared connection.

    Contract:
    - preload() is called exactly once per run, before any resolve().
    - column_names() never changes and never depends on record content.
    - resolve() returns every declared column; missing data is "" and
      exceptions are reserved for internal faults.
    """

    # Registry ordering key; defaults to the class name
    identifier: ClassVar[str] = ""

    # Source fields that must be selected for resolve() to see them
    required_fields: ClassVar[Tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("identifier"):
            cls.identifier = cls.__name__

    def __init__(self, connection: Connection):
        """
        Initialize the resolver.

        Args:
            connection: Shared read-only database connection
        """
        self.connection = connection

    @abstractmethod
    def preload(self) -> None:
        """Load and cache the reference data for the whole run."""
        pass

    @abstractmethod
    def column_names(self) -> List[str]:
        """Names of the columns this resolver contributes, in order."""
        pass

    @abstractmethod
    def resolve(self, record: Mapping[str, Any], record_key: int) -> Dict[str, str]:
        """
        Compute this resolver's columns for one record.

        Args:
            record: Source record fields
            record_key: Integer key of the record

        Returns:
            Mapping of column name to string value for every declared column
        """
        pass

    def empty_columns(self) -> Dict[str, str]:
        """All declared columns with empty values."""
        return {name: "" for name in self.column_names()}

    def __repr__(self) -> str:
        return f"<{self.identifier} columns={self.column_names()!r}>"
