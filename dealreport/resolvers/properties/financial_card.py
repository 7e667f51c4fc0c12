"""Composite resolver for financial cards and their price breakdown."""

import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import column, select, table

from ..base import BaseResolver
from ..helpers.values import format_value

logger = logging.getLogger(__name__)

SCHEME_COLUMN = "Financial card scheme"

SCHEME_WORK_MAP = {
    "BUYER_AGENT": "Buyer agent",
    "SR_SUPPLIER_AGENT": "SR supplier agent",
    "LR_SUPPLIER_AGENT": "LR supplier agent",
    "PROVISION_SERVICES": "Provision of services",
    "RS_TLS_SERVICE_FEE": "RS TLS service fee",
}

# Output column -> brs_financial_card_price column
PRICE_COLUMNS = {
    "Payment exchange rate": "CURRENCY_RATE",
    "Deal currency": "CURRENCY_ID",
    "Supplier invoice amount (net)": "SUPPLIER_NET",
    "Supplier invoice amount (net), currency": "SUPPLIER_NET_CURRENCY",
    "Additional benefit": "ADDITIONAL_BENEFIT",
    "Additional benefit, currency": "ADDITIONAL_BENEFIT_CURRENCY",
    "Supplier fee": "SUPPLIER",
    "Supplier fee, currency": "SUPPLIER_CURRENCY",
    "Service fee": "SERVICE",
    "Service fee, currency": "SERVICE_CURRENCY",
    "Commission": "COMMISSION",
    "Commission, currency": "COMMISSION_CURRENCY",
    "Total payable to supplier": "SUPPLIER_TOTAL_PAID",
    "Total payable to supplier, currency": "SUPPLIER_TOTAL_PAID_CURRENCY",
    "Total payable by client": "RESULT",
    "Total payable by client, currency": "RESULT_CURRENCY",
}

# Price rows are fetched in chunks to stay under driver parameter limits
PRICE_BATCH_SIZE = 500


class FinancialCardResolver(BaseResolver):
    """
    Adds the financial card scheme and its prices to each deal.

    Preload runs two queries: every financial card, then every referenced
    price row, fetched by ID in batches. The result is a ready row per
    deal, so resolve() is a dictionary lookup.
    """

    CARD_TABLE = "brs_financial_card"
    PRICE_TABLE = "brs_financial_card_price"

    def __init__(self, connection):
        super().__init__(connection)
        self._columns = [SCHEME_COLUMN, *PRICE_COLUMNS]
        self._deal_data: Dict[int, Dict[str, str]] = {}

    def preload(self) -> None:
        cards = table(
            self.CARD_TABLE,
            column("ID"),
            column("DEAL_ID"),
            column("SCHEME_WORK"),
            column("FINANCIAL_CARD_PRICE_ID"),
        )
        query = select(cards.c.DEAL_ID, cards.c.SCHEME_WORK, cards.c.FINANCIAL_CARD_PRICE_ID).order_by(
            cards.c.DEAL_ID, cards.c.ID
        )

        cards_by_deal: Dict[int, Dict[str, Any]] = {}
        for row in self.connection.execute(query).mappings():
            if row["DEAL_ID"] is None:
                continue
            cards_by_deal[int(row["DEAL_ID"])] = {
                "scheme": row["SCHEME_WORK"] or "",
                "price_id": int(row["FINANCIAL_CARD_PRICE_ID"] or 0),
            }

        price_ids = sorted({card["price_id"] for card in cards_by_deal.values() if card["price_id"] > 0})
        prices = self._load_prices(price_ids)

        deal_data = {}
        for deal_id, card in cards_by_deal.items():
            result = {name: "" for name in self._columns}
            result[SCHEME_COLUMN] = SCHEME_WORK_MAP.get(card["scheme"], card["scheme"])

            price = prices.get(card["price_id"])
            if price is not None:
                for column_name, field_code in PRICE_COLUMNS.items():
                    result[column_name] = format_value(price.get(field_code))

            deal_data[deal_id] = result

        self._deal_data = deal_data
        logger.info(f"Loaded {len(cards_by_deal)} financial cards with {len(prices)} price rows")

    def _load_prices(self, price_ids: List[int]) -> Dict[int, Dict[str, Any]]:
        if not price_ids:
            return {}

        fields = ["ID", *PRICE_COLUMNS.values()]
        prices_table = table(self.PRICE_TABLE, *[column(name) for name in fields])
        columns = [prices_table.c[name] for name in fields]

        prices = {}
        for start in range(0, len(price_ids), PRICE_BATCH_SIZE):
            batch = price_ids[start:start + PRICE_BATCH_SIZE]
            query = select(*columns).where(prices_table.c.ID.in_(batch))
            for row in self.connection.execute(query).mappings():
                prices[int(row["ID"])] = dict(row)
        return prices

    def column_names(self) -> List[str]:
        return list(self._columns)

    def resolve(self, record: Mapping[str, Any], record_key: int) -> Dict[str, str]:
        data = self._deal_data.get(record_key)
        if data is None:
            return self.empty_columns()
        return dict(data)
