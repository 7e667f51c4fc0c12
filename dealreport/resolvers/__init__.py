"""Property resolvers and their registry."""

from .base import BaseResolver, ResolverOutcome
from .registry import ResolverRegistry

__all__ = [
    "BaseResolver",
    "ResolverOutcome",
    "ResolverRegistry",
]
