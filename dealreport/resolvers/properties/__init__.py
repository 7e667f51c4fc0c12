"""Property resolvers shipped with the deals report."""

from .agent_participation import AgentParticipationResolver
from .deal_stage import DealStageResolver
from .financial_card import FinancialCardResolver
from .refund_card import RefundCardResolver
from .user_fields import (
    ContactLinkResolver,
    RequestTypeResolver,
    ServiceDateResolver,
    UserFieldResolver,
)

# Registered by default; the registry orders them by identifier
DEFAULT_RESOLVERS = [
    AgentParticipationResolver,
    ContactLinkResolver,
    DealStageResolver,
    FinancialCardResolver,
    RefundCardResolver,
    RequestTypeResolver,
    ServiceDateResolver,
]

__all__ = [
    "DEFAULT_RESOLVERS",
    "AgentParticipationResolver",
    "ContactLinkResolver",
    "DealStageResolver",
    "FinancialCardResolver",
    "RefundCardResolver",
    "RequestTypeResolver",
    "ServiceDateResolver",
    "UserFieldResolver",
]
