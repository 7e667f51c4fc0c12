"""Report configuration model."""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ReportConfigurationError
from .record import ERROR_MARKER

# Standard deal fields exported as-is
DEFAULT_DEAL_FIELDS = [
    "ID",
    "TITLE",
    "LEAD_ID",
    "STAGE_ID",
    "DATE_CREATE",
    "CATEGORY_ID",
    "ASSIGNED_BY_ID",
    "CONTACT_ID",
    "COMPANY_ID",
    "PROBABILITY",
    "OPPORTUNITY",
    "CURRENCY_ID",
    "DATE_MODIFY",
    "OPENED",
    "CLOSED",
    "COMMENTS",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_direct_fields() -> Dict[str, str]:
    return {name: name for name in DEFAULT_DEAL_FIELDS}


class ReportConfig(BaseModel):
    """Configuration for a deals report run."""

    name: str = "deals"
    description: str = ""

    # Source
    database_url: Optional[str] = None
    source_table: str = "b_crm_deal"
    key_field: str = "ID"

    # Columns: output column name -> source field name, in output order
    direct_fields: Dict[str, str] = Field(default_factory=_default_direct_fields)
    select_fields: Optional[List[str]] = None
    resolvers: Optional[List[str]] = None  # None enables every registered resolver

    # Output
    output_path: str = "deals_report.csv"
    error_marker: str = ERROR_MARKER
    delimiter: str = ","
    encoding: str = "utf-8"
    report_file: Optional[str] = None

    log_level: str = "INFO"

    @field_validator("source_table", "key_field", "error_marker")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("delimiter")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("must be a single character")
        return value

    @field_validator("direct_fields")
    @classmethod
    def _has_direct_fields(cls, value: Dict[str, str]) -> Dict[str, str]:
        if not value:
            raise ValueError("at least one direct field is required")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def selected_fields(self) -> List[str]:
        """
        Source fields to select from the deals table.

        Defaults to the key field followed by every direct field source,
        deduplicated with order preserved.
        """
        if self.select_fields is not None:
            return list(self.select_fields)
        return list(dict.fromkeys([self.key_field, *self.direct_fields.values()]))

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (without credentials)."""
        return self.model_dump(exclude={"database_url"})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportConfig":
        """Create from dictionary representation."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ReportConfigurationError(f"Invalid report configuration: {e}") from e

    @classmethod
    def from_json_file(cls, filepath: str) -> "ReportConfig":
        """Load configuration from a JSON file."""
        try:
            with open(filepath, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ReportConfigurationError(f"Cannot read configuration {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ReportConfigurationError(f"Configuration {filepath} must contain a JSON object")

        return cls.from_dict(data)
