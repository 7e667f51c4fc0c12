"""Resolvers backed by deal user fields."""

import logging
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type

from ...exceptions import ResolverError
from ..base import BaseResolver
from ..helpers import (
    BaseFieldHelper,
    CrmFieldHelper,
    DateFieldHelper,
    EnumFieldHelper,
    StringFieldHelper,
    UserFieldInfo,
    UserFieldMetaHelper,
)

logger = logging.getLogger(__name__)

# Field type -> helper that loads it
FIELD_HELPERS: Dict[str, Type[BaseFieldHelper]] = {
    "string": StringFieldHelper,
    "integer": StringFieldHelper,
    "date": DateFieldHelper,
    "datetime": DateFieldHelper,
    "enumeration": EnumFieldHelper,
    "crm": CrmFieldHelper,
}


class UserFieldResolver(BaseResolver):
    """
    Base for resolvers that export a single deal user field.

    Subclasses set FIELD_CODE and COLUMN_NAME. The field's metadata decides
    which helper loads it. A field that is not defined in this CRM gives an
    empty column rather than a failure.
    """

    FIELD_CODE: ClassVar[str] = ""
    COLUMN_NAME: ClassVar[str] = ""

    def __init__(self, connection):
        super().__init__(connection)
        if not self.FIELD_CODE or not self.COLUMN_NAME:
            raise ResolverError(f"{type(self).__name__} must define FIELD_CODE and COLUMN_NAME")
        self.field_info: Optional[UserFieldInfo] = None
        self._data: Dict[int, str] = {}

    def preload(self) -> None:
        self.field_info = UserFieldMetaHelper(self.connection).get_field_info(self.FIELD_CODE)
        if self.field_info is None:
            logger.warning(f"User field {self.FIELD_CODE} is not defined, column {self.COLUMN_NAME!r} stays empty")
            self._data = {}
            return

        helper_class = FIELD_HELPERS.get(self.field_info.type)
        if helper_class is None:
            raise ResolverError(f"Unsupported type {self.field_info.type!r} for user field {self.FIELD_CODE}")

        helper = helper_class(self.connection)
        self._data = helper.load_field_data(self.FIELD_CODE, self.field_info)
        logger.info(f"Loaded {self.FIELD_CODE} ({self.field_info.type}) for {len(self._data)} deals")

    def column_names(self) -> List[str]:
        return [self.COLUMN_NAME]

    def resolve(self, record: Mapping[str, Any], record_key: int) -> Dict[str, str]:
        return {self.COLUMN_NAME: self._data.get(record_key, "")}


class RequestTypeResolver(UserFieldResolver):
    FIELD_CODE = "UF_S_TYPE"
    COLUMN_NAME = "Request type"


class ServiceDateResolver(UserFieldResolver):
    FIELD_CODE = "UF_DATE_SERVICE_PROVISION"
    COLUMN_NAME = "Service provision date"


class ContactLinkResolver(UserFieldResolver):
    FIELD_CODE = "UF_CRM_CONTACT"
    COLUMN_NAME = "Linked contacts"
