"""Helper for string, integer and date user fields."""

from typing import Any, Dict, List

from .base import BaseFieldHelper
from .user_field_meta import UserFieldInfo
from .values import clean_integer, clean_string, date_sort_key, format_date, join_unique


class StringFieldHelper(BaseFieldHelper):
    """
    Loads string, integer, date and datetime user fields.

    - string: whitespace collapsed, HTML removed, entities decoded
    - integer: digits and sign only, invalid numbers dropped
    - date/datetime: DD.MM.YYYY[ HH:MM:SS]

    Multiple values are deduplicated and joined with ", ". Multiple date
    values may be stored in VALUE_DATE instead of VALUE.
    """

    supported_types = ("string", "integer", "date", "datetime")

    def clean_value(self, value: Any, field_type: str) -> str:
        """Normalize a raw value according to the field type."""
        if value is None:
            return ""
        if field_type == "integer":
            return clean_integer(value)
        if field_type in ("date", "datetime"):
            return format_date(value, field_type)
        return clean_string(value)

    def load_single_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        data = {}
        for deal_id, value in self._iter_single_values(field_code):
            if value is None or value == "":
                data[deal_id] = ""
            else:
                data[deal_id] = self.clean_value(value, field_info.type)
        return data

    def load_multiple_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        is_date = field_info.type in ("date", "datetime")
        value_columns = ("VALUE_DATE", "VALUE") if is_date else ("VALUE",)

        rows = self._iter_multiple_values(field_code, value_columns)
        if rows is None:
            return {}

        deal_values: Dict[int, List[Any]] = {}
        for deal_id, value in rows:
            if value is None or value == "":
                continue
            deal_values.setdefault(deal_id, []).append(value)

        data = {}
        for deal_id, values in deal_values.items():
            if is_date:
                values = sorted(values, key=date_sort_key)
            cleaned = [self.clean_value(v, field_info.type) for v in values]
            data[deal_id] = join_unique(cleaned)
        return data
