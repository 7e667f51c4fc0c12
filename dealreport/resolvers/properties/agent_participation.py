"""Resolver for the agents' share in a sale."""

import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import text

from ..base import BaseResolver
from ..helpers.values import MULTIPLE_SEPARATOR, format_value

logger = logging.getLogger(__name__)


class AgentParticipationResolver(BaseResolver):
    """
    Lists the agents taking part in a deal with their share.

    Each agent renders as "Last First Middle=NN%"; several agents are
    joined with ", " in the order they were recorded.
    """

    COLUMN_NAME = "Agent participation %"

    def __init__(self, connection):
        super().__init__(connection)
        self._participation: Dict[int, List[str]] = {}

    def preload(self) -> None:
        users = self._load_user_names()

        query = text("""
            SELECT DEAL_ID, AGENT_ID, PERCENT
            FROM brs_agent_participation
            ORDER BY DEAL_ID, ID
        """)

        participation: Dict[int, List[str]] = {}
        for row in self.connection.execute(query).mappings():
            if row["DEAL_ID"] is None:
                continue
            agent_id = row["AGENT_ID"]
            name = users.get(agent_id) or f"#{agent_id}"
            participation.setdefault(int(row["DEAL_ID"]), []).append(
                f"{name}={format_value(row['PERCENT'])}%"
            )

        self._participation = participation
        logger.info(f"Loaded agent participation for {len(participation)} deals")

    def _load_user_names(self) -> Dict[Any, str]:
        query = text("SELECT ID, NAME, LAST_NAME, SECOND_NAME FROM b_user")

        users = {}
        for row in self.connection.execute(query).mappings():
            parts = [row["LAST_NAME"], row["NAME"], row["SECOND_NAME"]]
            users[row["ID"]] = " ".join(p.strip() for p in parts if p and p.strip())
        return users

    def column_names(self) -> List[str]:
        return [self.COLUMN_NAME]

    def resolve(self, record: Mapping[str, Any], record_key: int) -> Dict[str, str]:
        agents = self._participation.get(record_key, [])
        return {self.COLUMN_NAME: MULTIPLE_SEPARATOR.join(agents)}
