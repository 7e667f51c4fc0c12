"""Field helpers shared by resolvers."""

from .base import BaseFieldHelper, multiple_value_table
from .crm_field import CrmFieldHelper
from .date_field import DateFieldHelper
from .enum_field import EnumFieldHelper, EnumOption
from .string_field import StringFieldHelper
from .user_field_meta import DEAL_ENTITY_ID, UserFieldInfo, UserFieldMetaHelper

__all__ = [
    "BaseFieldHelper",
    "multiple_value_table",
    "CrmFieldHelper",
    "DateFieldHelper",
    "EnumFieldHelper",
    "EnumOption",
    "StringFieldHelper",
    "DEAL_ENTITY_ID",
    "UserFieldInfo",
    "UserFieldMetaHelper",
]
