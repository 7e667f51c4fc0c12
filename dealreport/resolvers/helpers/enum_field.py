"""Helper for enumeration (list) user fields."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import text

from .base import BaseFieldHelper
from .user_field_meta import UserFieldInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnumOption:
    """One option of a list field."""
    id: str
    value: str
    xml_id: str = ""
    sort: int = 500


class EnumFieldHelper(BaseFieldHelper):
    """
    Loads enumeration user fields.

    Stored values are option IDs; they are replaced with the option text
    from b_user_field_enum. Multiple values are ordered by option SORT,
    then by text.
    """

    supported_types = ("enumeration",)

    def __init__(self, connection):
        super().__init__(connection)
        self._options_cache: Dict[str, Dict[str, EnumOption]] = {}

    def load_enum_values(self, field_code: str) -> Dict[str, EnumOption]:
        """
        Load the options of a list field.

        Args:
            field_code: Field code

        Returns:
            Mapping of option ID (as string) to EnumOption
        """
        if field_code in self._options_cache:
            return self._options_cache[field_code]

        query = text("""
            SELECT
                ue.ID AS ENUM_ID,
                ue.VALUE AS VALUE,
                ue.XML_ID AS XML_ID,
                ue.SORT AS SORT
            FROM b_user_field uf
            INNER JOIN b_user_field_enum ue ON uf.ID = ue.USER_FIELD_ID
            WHERE uf.FIELD_NAME = :field_name
            ORDER BY ue.SORT, ue.VALUE
        """)

        options = {}
        for row in self.connection.execute(query, {"field_name": field_code}).mappings():
            option = EnumOption(
                id=str(row["ENUM_ID"]),
                value=row["VALUE"] or "",
                xml_id=row["XML_ID"] or "",
                sort=int(row["SORT"] or 0),
            )
            options[option.id] = option

        self._options_cache[field_code] = options
        logger.debug(f"Loaded {len(options)} options for {field_code}")
        return options

    def get_enum_value_by_id(self, field_code: str, enum_id: str) -> Optional[str]:
        """Get the text of an option, or None if unknown."""
        option = self.load_enum_values(field_code).get(str(enum_id))
        return option.value if option else None

    def get_sorted_enum_values(self, field_code: str) -> List[str]:
        """Option texts ordered by SORT, then text."""
        options = self.load_enum_values(field_code).values()
        return [o.value for o in sorted(options, key=lambda o: (o.sort, o.value))]

    def load_single_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        options = self.load_enum_values(field_code)

        data = {}
        for deal_id, enum_id in self._iter_single_values(field_code):
            option = options.get(str(enum_id)) if enum_id else None
            data[deal_id] = option.value if option else ""
        return data

    def load_multiple_data(self, field_code: str, field_info: UserFieldInfo) -> Dict[int, str]:
        options = self.load_enum_values(field_code)

        rows = self._iter_multiple_values(field_code)
        if rows is None:
            return {}

        deal_options: Dict[int, List[EnumOption]] = {}
        for deal_id, enum_id in rows:
            option = options.get(str(enum_id)) if enum_id else None
            if option is not None:
                deal_options.setdefault(deal_id, []).append(option)

        data = {}
        for deal_id, selected in deal_options.items():
            ordered = sorted(set(selected), key=lambda o: (o.sort, o.value))
            data[deal_id] = ", ".join(o.value for o in ordered)
        return data
