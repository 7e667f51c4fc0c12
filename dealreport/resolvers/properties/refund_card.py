"""Composite resolver for refund cards."""

import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import column, select, table

from ..base import BaseResolver
from ..helpers.values import format_value

logger = logging.getLogger(__name__)

# Output column -> brs_refund_card column
REFUND_COLUMNS = {
    "Refund card ID": "ID",
    "Refund currency": "CURRENCY",
}


class RefundCardResolver(BaseResolver):
    """Adds the refund card of a deal. When a deal has several, the latest one wins."""

    CARD_TABLE = "brs_refund_card"

    def __init__(self, connection):
        super().__init__(connection)
        self._deal_data: Dict[int, Dict[str, str]] = {}

    def preload(self) -> None:
        fields = list(dict.fromkeys(["DEAL_ID", "ID", *REFUND_COLUMNS.values()]))
        cards = table(self.CARD_TABLE, *[column(name) for name in fields])
        query = select(*[cards.c[name] for name in fields]).order_by(cards.c.DEAL_ID, cards.c.ID)

        deal_data = {}
        for row in self.connection.execute(query).mappings():
            if row["DEAL_ID"] is None:
                continue
            deal_data[int(row["DEAL_ID"])] = {
                column_name: format_value(row[field_code])
                for column_name, field_code in REFUND_COLUMNS.items()
            }

        self._deal_data = deal_data
        logger.info(f"Loaded refund cards for {len(deal_data)} deals")

    def column_names(self) -> List[str]:
        return list(REFUND_COLUMNS)

    def resolve(self, record: Mapping[str, Any], record_key: int) -> Dict[str, str]:
        data = self._deal_data.get(record_key)
        if data is None:
            return self.empty_columns()
        return dict(data)
