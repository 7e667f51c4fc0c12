"""Resolver registry - the explicit list of resolvers available to a report."""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Type

from sqlalchemy.engine import Connection

from ..exceptions import ResolverRegistrationError
from .base import BaseResolver

logger = logging.getLogger(__name__)


class ResolverRegistry:
    """
    Registry of resolver classes.

    Resolvers are registered by direct class reference. discover() builds
    one instance of each enabled class, ordered by identifier. That order
    defines the column order of the exported file, so it must stay stable
    between runs.
    """

    def __init__(self, resolver_classes: Optional[Iterable[Type[BaseResolver]]] = None):
        """
        Initialize the registry.

        Args:
            resolver_classes: Classes to register; the shipped resolvers when omitted
        """
        self._classes: Dict[str, Type[BaseResolver]] = {}

        if resolver_classes is None:
            from .properties import DEFAULT_RESOLVERS
            resolver_classes = DEFAULT_RESOLVERS

        for resolver_class in resolver_classes:
            self.register(resolver_class)

    def register(self, resolver_class: Type[BaseResolver]) -> Type[BaseResolver]:
        """
        Register a resolver class.

        Returns the class unchanged so it can be used as a decorator.

        Raises:
            ResolverRegistrationError: If the class is not a resolver or its
                identifier is already taken
        """
        if not isinstance(resolver_class, type) or not issubclass(resolver_class, BaseResolver):
            raise ResolverRegistrationError(f"{resolver_class!r} is not a BaseResolver subclass")

        identifier = resolver_class.identifier
        existing = self._classes.get(identifier)
        if existing is not None and existing is not resolver_class:
            raise ResolverRegistrationError(
                f"Resolver identifier {identifier!r} is used by both "
                f"{existing.__module__}.{existing.__name__} and "
                f"{resolver_class.__module__}.{resolver_class.__name__}"
            )

        self._classes[identifier] = resolver_class
        logger.debug(f"Registered resolver {identifier}")
        return resolver_class

    def get(self, identifier: str) -> Optional[Type[BaseResolver]]:
        """Get a registered class by identifier."""
        return self._classes.get(identifier)

    def list_identifiers(self) -> List[str]:
        """Registered identifiers in registry order."""
        return sorted(self._classes)

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._classes

    def discover(self, connection: Connection, enabled: Optional[Sequence[str]] = None) -> List[BaseResolver]:
        """
        Build the ordered resolver set for a run.

        Args:
            connection: Shared data-access handle passed to every resolver
            enabled: Identifiers to include; every registered resolver when None

        Returns:
            Resolver instances sorted by identifier

        Raises:
            ResolverRegistrationError: If an enabled identifier is unknown,
                nothing is left to run, or a resolver fails to construct
        """
        if enabled is None:
            identifiers = self.list_identifiers()
        else:
            unknown = [name for name in enabled if name not in self._classes]
            if unknown:
                raise ResolverRegistrationError(
                    f"Unknown resolvers: {', '.join(unknown)} "
                    f"(registered: {', '.join(self.list_identifiers()) or 'none'})"
                )
            identifiers = sorted(set(enabled))

        if not identifiers:
            raise ResolverRegistrationError("No resolvers available for the report")

        resolvers = []
        for identifier in identifiers:
            try:
                resolvers.append(self._classes[identifier](connection))
            except Exception as e:
                raise ResolverRegistrationError(f"Failed to construct resolver {identifier}: {e}") from e

        logger.info(f"Discovered {len(resolvers)} resolvers: {', '.join(identifiers)}")
        return resolvers
