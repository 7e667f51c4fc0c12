"""Helper for CRM link user fields."""

from typing import Dict, List

from .base import BaseFieldHelper
from .user_field_meta import UserFieldInfo
from .values import clean_string, join_unique


class CrmFieldHelper(BaseFieldHelper):
    """
    Loads "crm" user fields: links to contacts, companies or leads.

    Values are kept in their stored form (C_123 for a contact, CO_456 for a
    company, L_789 for a lead), cleaned for output.
    """

    supported_types = ("crm",)

    def load_single_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        return {
            deal_id: clean_string(value) if value not in (None, "") else ""
            for deal_id, value in self._iter_single_values(field_code)
        }

    def load_multiple_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        rows = self._iter_multiple_values(field_code)
        if rows is None:
            return {}

        deal_values: Dict[int, List[str]] = {}
        for deal_id, value in rows:
            if value not in (None, ""):
                deal_values.setdefault(deal_id, []).append(clean_string(value))

        return {deal_id: join_unique(values) for deal_id, values in deal_values.items()}
