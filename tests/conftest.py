"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import create_engine, text

from dealreport.extractors.base import BaseExtractor
from dealreport.writers.base import BaseWriter


PRICE_FIELDS = [
    "CURRENCY_RATE", "CURRENCY_ID",
    "SUPPLIER_NET", "SUPPLIER_NET_CURRENCY",
    "ADDITIONAL_BENEFIT", "ADDITIONAL_BENEFIT_CURRENCY",
    "SUPPLIER", "SUPPLIER_CURRENCY",
    "SERVICE", "SERVICE_CURRENCY",
    "COMMISSION", "COMMISSION_CURRENCY",
    "SUPPLIER_TOTAL_PAID", "SUPPLIER_TOTAL_PAID_CURRENCY",
    "RESULT", "RESULT_CURRENCY",
]

SCHEMA = [
    """CREATE TABLE b_crm_deal (
        ID INTEGER PRIMARY KEY, TITLE TEXT, LEAD_ID INTEGER, STAGE_ID TEXT,
        DATE_CREATE TEXT, CATEGORY_ID INTEGER, ASSIGNED_BY_ID INTEGER,
        CONTACT_ID INTEGER, COMPANY_ID INTEGER, PROBABILITY INTEGER,
        OPPORTUNITY TEXT, CURRENCY_ID TEXT, DATE_MODIFY TEXT, OPENED TEXT,
        CLOSED TEXT, COMMENTS TEXT
    )""",
    "CREATE TABLE b_crm_status (ID INTEGER PRIMARY KEY, ENTITY_ID TEXT, STATUS_ID TEXT, NAME TEXT, SORT INTEGER)",
    "CREATE TABLE b_user (ID INTEGER PRIMARY KEY, NAME TEXT, LAST_NAME TEXT, SECOND_NAME TEXT)",
    "CREATE TABLE brs_agent_participation (ID INTEGER PRIMARY KEY, DEAL_ID INTEGER, AGENT_ID INTEGER, PERCENT INTEGER)",
    """CREATE TABLE brs_financial_card (
        ID INTEGER PRIMARY KEY, DEAL_ID INTEGER, SCHEME_WORK TEXT, FINANCIAL_CARD_PRICE_ID INTEGER
    )""",
    "CREATE TABLE brs_financial_card_price (ID INTEGER PRIMARY KEY, "
    + ", ".join(f"{name} TEXT" for name in PRICE_FIELDS) + ")",
    "CREATE TABLE brs_refund_card (ID INTEGER PRIMARY KEY, DEAL_ID INTEGER, CURRENCY TEXT)",
    """CREATE TABLE b_user_field (
        ID INTEGER PRIMARY KEY, ENTITY_ID TEXT, FIELD_NAME TEXT, USER_TYPE_ID TEXT,
        MULTIPLE TEXT, MANDATORY TEXT, SORT INTEGER, EDIT_FORM_LABEL TEXT,
        LIST_COLUMN_LABEL TEXT, SETTINGS TEXT
    )""",
    "CREATE TABLE b_user_field_enum (ID INTEGER PRIMARY KEY, USER_FIELD_ID INTEGER, VALUE TEXT, XML_ID TEXT, SORT INTEGER)",
    """CREATE TABLE b_uts_crm_deal (
        VALUE_ID INTEGER PRIMARY KEY, UF_S_TYPE INTEGER, UF_DATE_SERVICE_PROVISION TEXT,
        UF_NOTE TEXT, UF_PAX TEXT
    )""",
    "CREATE TABLE b_uts_crm_deal_uf_crm_contact (ID INTEGER PRIMARY KEY, VALUE_ID INTEGER, VALUE TEXT)",
    "CREATE TABLE b_uts_crm_deal_uf_meetings (ID INTEGER PRIMARY KEY, VALUE_ID INTEGER, VALUE_DATE TEXT)",
    "CREATE TABLE b_uts_crm_deal_uf_tags (ID INTEGER PRIMARY KEY, VALUE_ID INTEGER, VALUE INTEGER)",
]

DATA = {
    "b_crm_deal": [
        {"ID": 1, "TITLE": "Flight to Rome", "STAGE_ID": "NEW", "OPPORTUNITY": "1500.00", "CURRENCY_ID": "EUR"},
        {"ID": 2, "TITLE": "Hotel booking", "STAGE_ID": "WON", "OPPORTUNITY": "300.00", "CURRENCY_ID": "USD"},
        {"ID": 3, "TITLE": "Visa support", "STAGE_ID": "ARCHIVED"},
    ],
    "b_crm_status": [
        {"ID": 1, "ENTITY_ID": "DEAL_STAGE", "STATUS_ID": "NEW", "NAME": "New", "SORT": 10},
        {"ID": 2, "ENTITY_ID": "DEAL_STAGE", "STATUS_ID": "WON", "NAME": "Won", "SORT": 20},
        {"ID": 3, "ENTITY_ID": "SOURCE", "STATUS_ID": "ARCHIVED", "NAME": "Archive source", "SORT": 10},
    ],
    "b_user": [
        {"ID": 10, "NAME": "Ivan", "LAST_NAME": "Petrov", "SECOND_NAME": "Sergeevich"},
        {"ID": 11, "NAME": "Anna", "LAST_NAME": "Smith", "SECOND_NAME": None},
    ],
    "brs_agent_participation": [
        {"ID": 1, "DEAL_ID": 1, "AGENT_ID": 10, "PERCENT": 60},
        {"ID": 2, "DEAL_ID": 1, "AGENT_ID": 11, "PERCENT": 40},
        {"ID": 3, "DEAL_ID": 2, "AGENT_ID": 99, "PERCENT": 100},
    ],
    "brs_financial_card": [
        {"ID": 1, "DEAL_ID": 1, "SCHEME_WORK": "BUYER_AGENT", "FINANCIAL_CARD_PRICE_ID": 100},
        {"ID": 2, "DEAL_ID": 2, "SCHEME_WORK": "CUSTOM_SCHEME", "FINANCIAL_CARD_PRICE_ID": 0},
    ],
    "brs_financial_card_price": [
        {"ID": 100, "CURRENCY_RATE": "1", "CURRENCY_ID": "EUR", "RESULT": "1500", "RESULT_CURRENCY": "EUR"},
    ],
    "brs_refund_card": [
        {"ID": 1, "DEAL_ID": 2, "CURRENCY": "USD"},
        {"ID": 2, "DEAL_ID": 2, "CURRENCY": "EUR"},
    ],
    "b_user_field": [
        {"ID": 1, "FIELD_NAME": "UF_S_TYPE", "USER_TYPE_ID": "enumeration", "MULTIPLE": "N",
         "SORT": 100, "EDIT_FORM_LABEL": "Request type", "LIST_COLUMN_LABEL": "Type"},
        {"ID": 2, "FIELD_NAME": "UF_DATE_SERVICE_PROVISION", "USER_TYPE_ID": "date", "MULTIPLE": "N", "SORT": 200},
        {"ID": 3, "FIELD_NAME": "UF_CRM_CONTACT", "USER_TYPE_ID": "crm", "MULTIPLE": "Y", "SORT": 300},
        {"ID": 4, "FIELD_NAME": "UF_MEETINGS", "USER_TYPE_ID": "datetime", "MULTIPLE": "Y", "SORT": 400},
        {"ID": 5, "FIELD_NAME": "UF_NOTE", "USER_TYPE_ID": "string", "MULTIPLE": "N", "SORT": 50},
        {"ID": 6, "FIELD_NAME": "UF_PAX", "USER_TYPE_ID": "integer", "MULTIPLE": "N", "SORT": 500},
        {"ID": 7, "FIELD_NAME": "UF_TAGS", "USER_TYPE_ID": "enumeration", "MULTIPLE": "Y", "SORT": 600},
        {"ID": 8, "FIELD_NAME": "UF_GHOST", "USER_TYPE_ID": "string", "MULTIPLE": "Y", "SORT": 700},
        {"ID": 9, "FIELD_NAME": "UF_FILE", "USER_TYPE_ID": "file", "MULTIPLE": "N", "SORT": 800},
    ],
    "b_user_field_enum": [
        {"ID": 1, "USER_FIELD_ID": 1, "VALUE": "Tour", "XML_ID": "TOUR", "SORT": 10},
        {"ID": 2, "USER_FIELD_ID": 1, "VALUE": "Ticket", "XML_ID": "TICKET", "SORT": 20},
        {"ID": 3, "USER_FIELD_ID": 7, "VALUE": "VIP", "XML_ID": "VIP", "SORT": 10},
        {"ID": 4, "USER_FIELD_ID": 7, "VALUE": "Corporate", "XML_ID": "CORP", "SORT": 5},
        {"ID": 5, "USER_FIELD_ID": 7, "VALUE": "Agent", "XML_ID": "AGENT", "SORT": 5},
    ],
    "b_uts_crm_deal": [
        {"VALUE_ID": 1, "UF_S_TYPE": 2, "UF_DATE_SERVICE_PROVISION": "2024-03-05",
         "UF_NOTE": "  <b>Window</b>   seat &amp; meal ", "UF_PAX": "3 pax"},
        {"VALUE_ID": 2, "UF_S_TYPE": 1, "UF_DATE_SERVICE_PROVISION": None, "UF_NOTE": "", "UF_PAX": "abc"},
    ],
    "b_uts_crm_deal_uf_crm_contact": [
        {"ID": 1, "VALUE_ID": 1, "VALUE": "C_12"},
        {"ID": 2, "VALUE_ID": 1, "VALUE": "C_7"},
        {"ID": 3, "VALUE_ID": 1, "VALUE": "C_12"},
    ],
    "b_uts_crm_deal_uf_meetings": [
        {"ID": 1, "VALUE_ID": 1, "VALUE_DATE": "2024-05-02 10:00:00"},
        {"ID": 2, "VALUE_ID": 1, "VALUE_DATE": "2024-01-15 09:30:00"},
        {"ID": 3, "VALUE_ID": 1, "VALUE_DATE": "2024-05-02 10:00:00"},
    ],
    "b_uts_crm_deal_uf_tags": [
        {"ID": 1, "VALUE_ID": 1, "VALUE": 3},
        {"ID": 2, "VALUE_ID": 1, "VALUE": 5},
        {"ID": 3, "VALUE_ID": 1, "VALUE": 4},
        {"ID": 4, "VALUE_ID": 1, "VALUE": 3},
    ],
}


def create_crm_schema(connection) -> None:
    """Create the CRM tables and load the sample deals."""
    for ddl in SCHEMA:
        connection.execute(text(ddl))

    for table_name, rows in DATA.items():
        for row in rows:
            if table_name == "b_user_field":
                row = {"ENTITY_ID": "CRM_DEAL", "MANDATORY": "N", "EDIT_FORM_LABEL": None,
                       "LIST_COLUMN_LABEL": None, "SETTINGS": None, **row}
            columns = ", ".join(row)
            params = ", ".join(f":{name}" for name in row)
            connection.execute(text(f"INSERT INTO {table_name} ({columns}) VALUES ({params})"), row)


class ListExtractor(BaseExtractor):
    """Record source over an in-memory list of dicts."""

    def __init__(self, records: Iterable[Dict[str, Any]], fields: Optional[List[str]] = None):
        self.records = [dict(record) for record in records]
        if fields is None:
            fields = list(dict.fromkeys(name for record in self.records for name in record))
        super().__init__(fields)
        self._index = 0
        self.close_calls = 0

    def _fetch_next(self) -> Optional[Dict[str, Any]]:
        if self._index >= len(self.records):
            return None
        record = self.records[self._index]
        self._index += 1
        return record

    def close(self) -> None:
        self.close_calls += 1


class MemoryWriter(BaseWriter):
    """Writer that keeps the header and rows in memory."""

    def __init__(self):
        super().__init__("memory")
        self.written_header: Optional[List[str]] = None
        self.rows: List[List[str]] = []
        self.close_calls = 0

    def _write_header(self, header: List[str]) -> None:
        self.written_header = header

    def _write_row(self, values: List[str]) -> None:
        self.rows.append(values)

    def _close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def crm_connection():
    """In-memory SQLite connection holding the sample CRM database."""
    engine = create_engine("sqlite://")
    with engine.connect() as connection:
        create_crm_schema(connection)
        yield connection
    engine.dispose()


@pytest.fixture
def crm_database_url(tmp_path) -> str:
    """File-backed SQLite database with the sample CRM data."""
    db_path = tmp_path / "crm.db"
    url = f"sqlite:///{db_path}"
    engine = create_engine(url)
    with engine.begin() as connection:
        create_crm_schema(connection)
    engine.dispose()
    return url


@pytest.fixture
def memory_writer() -> MemoryWriter:
    return MemoryWriter()


@pytest.fixture
def make_extractor():
    """Factory for list-backed record sources."""
    return ListExtractor


@pytest.fixture
def make_writer():
    """Factory for in-memory writers."""
    return MemoryWriter
