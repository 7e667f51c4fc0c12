"""Metadata lookup for CRM user fields."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)

DEAL_ENTITY_ID = "CRM_DEAL"

_FIELD_COLUMNS = """
    FIELD_NAME,
    ENTITY_ID,
    USER_TYPE_ID,
    MULTIPLE,
    MANDATORY,
    SORT,
    EDIT_FORM_LABEL,
    LIST_COLUMN_LABEL,
    SETTINGS
"""


@dataclass(frozen=True)
class UserFieldInfo:
    """Definition of a CRM user field."""
    name: str
    entity_id: str
    type: str
    multiple: bool = False
    mandatory: bool = False
    sort: int = 100
    edit_label: str = ""
    list_label: str = ""
    settings: str = ""  # serialized settings, kept as stored

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserFieldInfo":
        return cls(
            name=row["FIELD_NAME"],
            entity_id=row["ENTITY_ID"],
            type=row["USER_TYPE_ID"],
            multiple=row["MULTIPLE"] == "Y",
            mandatory=row["MANDATORY"] == "Y",
            sort=int(row["SORT"] or 0),
            edit_label=row["EDIT_FORM_LABEL"] or "",
            list_label=row["LIST_COLUMN_LABEL"] or "",
            settings=row["SETTINGS"] or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "entity_id": self.entity_id,
            "type": self.type,
            "multiple": self.multiple,
            "mandatory": self.mandatory,
            "sort": self.sort,
            "edit_label": self.edit_label,
            "list_label": self.list_label,
        }


class UserFieldMetaHelper:
    """
    Reads user field definitions from b_user_field.

    Lookups are cached for the lifetime of the helper, which is one run.
    """

    def __init__(self, connection: Connection):
        self.connection = connection
        self._fields_cache: Dict[str, Optional[UserFieldInfo]] = {}
        self._entity_cache: Dict[tuple, Dict[str, UserFieldInfo]] = {}

    def get_field_info(self, field_code: str) -> Optional[UserFieldInfo]:
        """
        Get the definition of a user field.

        Args:
            field_code: Field code (e.g. UF_CRM_CATEGORY)

        Returns:
            UserFieldInfo, or None if the field does not exist
        """
        if field_code in self._fields_cache:
            return self._fields_cache[field_code]

        query = text(f"SELECT {_FIELD_COLUMNS} FROM b_user_field WHERE FIELD_NAME = :field_name")
        row = self.connection.execute(query, {"field_name": field_code}).mappings().first()

        info = UserFieldInfo.from_row(row) if row is not None else None
        self._fields_cache[field_code] = info
        return info

    def field_exists(self, field_code: str) -> bool:
        """Check whether a user field is defined."""
        return self.get_field_info(field_code) is not None

    def get_all_fields_for_entity(
        self,
        entity_id: str = DEAL_ENTITY_ID,
        supported_types: Optional[Sequence[str]] = None,
    ) -> Dict[str, UserFieldInfo]:
        """
        Get every user field of an entity, ordered by SORT then name.

        Args:
            entity_id: Entity identifier (e.g. CRM_DEAL)
            supported_types: Restrict to these field types

        Returns:
            Ordered mapping of field code to UserFieldInfo
        """
        cache_key = (entity_id, tuple(supported_types or ()))
        if cache_key in self._entity_cache:
            return self._entity_cache[cache_key]

        sql = f"SELECT {_FIELD_COLUMNS} FROM b_user_field WHERE ENTITY_ID = :entity_id"
        params: Dict[str, Any] = {"entity_id": entity_id}

        if supported_types:
            sql += " AND USER_TYPE_ID IN :types"
            params["types"] = list(supported_types)
        sql += " ORDER BY SORT, FIELD_NAME"

        query = text(sql)
        if supported_types:
            query = query.bindparams(bindparam("types", expanding=True))

        fields = {}
        for row in self.connection.execute(query, params).mappings():
            info = UserFieldInfo.from_row(row)
            fields[info.name] = info
            self._fields_cache[info.name] = info

        self._entity_cache[cache_key] = fields
        logger.debug(f"Loaded {len(fields)} user fields for {entity_id}")
        return fields

    @staticmethod
    def get_fields_by_type(fields: Mapping[str, UserFieldInfo], field_type: str) -> Dict[str, UserFieldInfo]:
        """Filter field definitions by type."""
        return {code: info for code, info in fields.items() if info.type == field_type}

    @staticmethod
    def get_sorted_field_names(fields: Mapping[str, UserFieldInfo]) -> List[str]:
        """Field codes ordered by SORT, then by name."""
        return [info.name for info in sorted(fields.values(), key=lambda info: (info.sort, info.name))]

    def get_field_label(self, field_code: str, label_type: str = "list") -> str:
        """
        Get the human readable label of a field.

        Args:
            field_code: Field code
            label_type: "edit" for the form label, "list" for the list column label

        Returns:
            The label, or the field code when no label is set
        """
        info = self.get_field_info(field_code)
        if info is None:
            return field_code

        label = info.edit_label if label_type == "edit" else info.list_label
        return label or field_code
