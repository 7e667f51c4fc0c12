"""Database extractor that streams deals from the CRM tables."""

import logging
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import Select, column, select, table
from sqlalchemy.engine import Connection, MappingResult

from .base import BaseExtractor

logger = logging.getLogger(__name__)


class DealsExtractor(BaseExtractor):
    """
    Extractor for deals stored in the CRM database.

    Selects only the requested columns and walks the result one row at a
    time. Uses a server-side cursor where the dialect supports one, so the
    full result set is never held in memory.
    """

    def __init__(
        self,
        connection: Connection,
        fields: Sequence[str],
        table_name: str = "b_crm_deal",
        order_by: Optional[str] = "ID",
    ):
        """
        Initialize the deals extractor.

        Args:
            connection: Shared read-only database connection
            fields: Deal columns to select
            table_name: Table holding the deals
            order_by: Column to order by, ignored when not selected
        """
        super().__init__(fields)
        self.connection = connection
        self.table_name = table_name
        self.order_by = order_by
        self._result: Optional[MappingResult] = None

    def build_query(self) -> Select:
        """Build the SELECT statement for the configured fields."""
        source = table(self.table_name, *[column(name) for name in self.fields])
        query = select(*[source.c[name] for name in self.fields])

        if self.order_by and self.order_by in self.fields:
            query = query.order_by(source.c[self.order_by])

        if self.connection.dialect.supports_server_side_cursors:
            query = query.execution_options(stream_results=True)

        return query

    def open(self) -> None:
        if self._result is not None:
            return

        logger.info(f"Selecting {len(self.fields)} fields from {self.table_name}")
        self._result = self.connection.execute(self.build_query()).mappings()

    def _fetch_next(self) -> Optional[Dict[str, Any]]:
        if self._result is None:
            self.open()

        row = self._result.fetchone()
        if row is None:
            return None
        return dict(row)

    def close(self) -> None:
        if self._result is not None:
            self._result.close()
            self._result = None
