"""Adapter dispatch: domain → store adapter."""

from typing import Dict, Optional, Type

import structlog

from fashion.scrapers.adapters import (
    EndClothingAdapter,
    FootLockerAdapter,
    GenericAdapter,
    MrPorterAdapter,
    SneakersnstuffAdapter,
)
from fashion.scrapers.base import BaseStoreAdapter

logger = structlog.get_logger(__name__)

# Static domain → adapter table
ADAPTER_MAP: Dict[str, Type[BaseStoreAdapter]] = {
    "sneakersnstuff.com": SneakersnstuffAdapter,
    "endclothing.com": EndClothingAdapter,
    "footlocker.nl": FootLockerAdapter,
    "footlocker.co.uk": FootLockerAdapter,
    "footlocker.com": FootLockerAdapter,
    "footlocker.de": FootLockerAdapter,
    "footlocker.fr": FootLockerAdapter,
    "mrporter.com": MrPorterAdapter,
    "net-a-porter.com": MrPorterAdapter,
}


class AdapterFactory:
    """Resolves domains to adapter instances.

    Lookup is exact domain first, then a substring match: a key whose
    first label appears in the domain ("footlocker.be" still maps to the
    Foot Locker adapter). Anything else gets the generic adapter.
    """

    def __init__(self, adapter_map: Optional[Dict[str, Type[BaseStoreAdapter]]] = None):
        self._adapter_registry: Dict[str, Type[BaseStoreAdapter]] = dict(
            adapter_map if adapter_map is not None else ADAPTER_MAP
        )
        self._instances: Dict[Type[BaseStoreAdapter], BaseStoreAdapter] = {}

    def resolve_class(self, domain: str) -> Optional[Type[BaseStoreAdapter]]:
        """Adapter class for ``domain``, or None when only the generic path applies."""
        domain = (domain or "").lower()
        if domain.startswith("www."):
            domain = domain[4:]
        if not domain:
            return None

        if domain in self._adapter_registry:
            return self._adapter_registry[domain]

        for key, adapter_class in self._adapter_registry.items():
            if key.split(".")[0] in domain:
                return adapter_class
        return None

    def get_adapter(self, domain: str) -> BaseStoreAdapter:
        """Adapter instance for ``domain``; generic when nothing matches."""
        adapter_class = self.resolve_class(domain) or GenericAdapter
        if adapter_class not in self._instances:
            self._instances[adapter_class] = adapter_class()
        adapter = self._instances[adapter_class]
        logger.debug("adapter_resolved", domain=domain, adapter=adapter.shop_slug)
        return adapter


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory instance.

    Returns:
        AdapterFactory instance
    """
    return adapter_factory
