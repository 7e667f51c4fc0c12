"""Resolver for the deal stage name."""

import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import text

from ..base import BaseResolver

logger = logging.getLogger(__name__)


class DealStageResolver(BaseResolver):
    """Replaces the deal's STAGE_ID with the stage name from b_crm_status."""

    COLUMN_NAME = "Stage"
    STATUS_ENTITY_ID = "DEAL_STAGE"

    required_fields = ("STAGE_ID",)

    def __init__(self, connection):
        super().__init__(connection)
        self._stages: Dict[str, str] = {}

    def preload(self) -> None:
        query = text("""
            SELECT STATUS_ID, NAME
            FROM b_crm_status
            WHERE ENTITY_ID = :entity_id
            ORDER BY SORT, NAME
        """)
        result = self.connection.execute(query, {"entity_id": self.STATUS_ENTITY_ID}).mappings()
        self._stages = {str(row["STATUS_ID"]): row["NAME"] or "" for row in result}
        logger.info(f"Loaded {len(self._stages)} deal stages")

    def column_names(self) -> List[str]:
        return [self.COLUMN_NAME]

    def resolve(self, record: Mapping[str, Any], record_key: int) -> Dict[str, str]:
        stage_id = record.get("STAGE_ID")
        stage_name = self._stages.get(str(stage_id), "") if stage_id else ""
        return {self.COLUMN_NAME: stage_name}
