"""Helper for date and datetime user fields."""

from typing import Any, Dict, List

from .base import BaseFieldHelper
from .user_field_meta import UserFieldInfo
from .values import date_sort_key, format_date, join_unique


class DateFieldHelper(BaseFieldHelper):
    """
    Loads date and datetime user fields.

    date values render as DD.MM.YYYY, datetime values as
    DD.MM.YYYY HH:MM:SS. Values that cannot be parsed are kept as stored.
    Multiple values are sorted chronologically and deduplicated.
    """

    supported_types = ("date", "datetime")

    def load_single_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        data = {}
        for deal_id, value in self._iter_single_values(field_code):
            if value is None or value == "":
                data[deal_id] = ""
            else:
                data[deal_id] = format_date(value, field_info.type)
        return data

    def load_multiple_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        rows = self._iter_multiple_values(field_code, ("VALUE_DATE", "VALUE"))
        if rows is None:
            return {}

        deal_values: Dict[int, List[Any]] = {}
        for deal_id, value in rows:
            if value is not None and value != "":
                deal_values.setdefault(deal_id, []).append(value)

        return {
            deal_id: join_unique(format_date(v, field_info.type) for v in sorted(values, key=date_sort_key))
            for deal_id, values in deal_values.items()
        }
