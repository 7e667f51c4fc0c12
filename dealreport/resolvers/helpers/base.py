"""Shared loading logic for deal user field helpers."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import column, inspect, select, table
from sqlalchemy.engine import Connection

from ...exceptions import ResolverError
from .user_field_meta import UserFieldInfo

logger = logging.getLogger(__name__)

# Single-value user fields live as columns of this table, keyed by VALUE_ID
SINGLE_VALUE_TABLE = "b_uts_crm_deal"

_FIELD_CODE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def multiple_value_table(field_code: str) -> str:
    """Name of the table holding the values of a multiple user field."""
    return f"{SINGLE_VALUE_TABLE}_{field_code.lower()}"


class BaseFieldHelper(ABC):
    """
    Base class for user field loaders.

    A helper loads the values of one user field for every deal at once and
    returns them as {deal_id: formatted value}. Deals without a value may
    be absent from the result.
    """

    # Field types this helper accepts
    supported_types: Tuple[str, ...] = ()

    def __init__(self, connection: Connection):
        self.connection = connection

    def load_field_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        """
        Load the values of a field for all deals.

        Args:
            field_code: Field code (e.g. UF_CRM_CONTACT)
            field_info: Field definition from UserFieldMetaHelper

        Returns:
            Mapping of deal ID to formatted value

        Raises:
            ResolverError: If the field type is not supported or the query fails
        """
        if field_info.type not in self.supported_types:
            raise ResolverError(
                f"Unsupported field type for {field_code}: {field_info.type}. "
                f"Expected one of: {', '.join(self.supported_types)}"
            )
        self._check_field_code(field_code)

        if field_info.multiple:
            return self.load_multiple_data(field_code, field_info)
        return self.load_single_data(field_code, field_info)

    @abstractmethod
    def load_single_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        pass

    @abstractmethod
    def load_multiple_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        pass

    def _check_field_code(self, field_code: str) -> None:
        if not _FIELD_CODE.match(field_code):
            raise ResolverError(f"Invalid field code: {field_code!r}")

    def _iter_single_values(self, field_code: str) -> Iterator[Tuple[int, Any]]:
        """Yield (deal_id, raw value) from the single-value table."""
        source = table(SINGLE_VALUE_TABLE, column("VALUE_ID"), column(field_code))
        query = select(source.c.VALUE_ID, source.c[field_code])

        try:
            result = self.connection.execute(query)
        except Exception as e:
            raise ResolverError(f"Failed to load data for field {field_code}: {e}") from e

        for deal_id, value in result:
            yield int(deal_id), value

    def _iter_multiple_values(
        self,
        field_code: str,
        value_columns: Tuple[str, ...] = ("VALUE",),
    ) -> Optional[Iterator[Tuple[int, Any]]]:
        """
        Yield (deal_id, raw value) from a multiple-value table.

        Args:
            field_code: Field code
            value_columns: Candidate value columns, first present one wins

        Returns:
            Iterator of rows, or None if the table or its columns do not
            exist (the table is only created once the field is used)
        """
        table_name = multiple_value_table(field_code)
        inspector = inspect(self.connection)

        if not inspector.has_table(table_name):
            logger.warning(f"Table {table_name} for field {field_code} does not exist")
            return None

        available = [col["name"] for col in inspector.get_columns(table_name)]
        if "VALUE_ID" not in available:
            logger.warning(f"Table {table_name} has no VALUE_ID column. Available: {', '.join(available)}")
            return None

        value_column = next((name for name in value_columns if name in available), None)
        if value_column is None:
            logger.warning(
                f"Table {table_name} has none of {', '.join(value_columns)}. Available: {', '.join(available)}"
            )
            return None

        source = table(table_name, *[column(name) for name in available])
        order: List[Any] = [source.c.VALUE_ID]
        if "ID" in available:
            order.append(source.c.ID)
        query = select(source.c.VALUE_ID, source.c[value_column]).order_by(*order)

        try:
            result = self.connection.execute(query)
        except Exception as e:
            raise ResolverError(f"Failed to load data for field {field_code}: {e}") from e

        return ((int(deal_id), value) for deal_id, value in result)
