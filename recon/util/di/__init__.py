"""Provider registry for the dishka container.

The auth provider client and the CRM persistence layer are mockable
components; everything else is wired the same way in every run.
"""

from typing import Type

from recon.util.di.application import ProdApplicationProvider
from recon.util.di.base import Component, ProviderBase
from recon.util.di.core import ProdConfigProvider
from recon.util.di.domain import ProdDomainProvider
from recon.util.di.infrastructure import (
    AuthProviderProvider,
    PersistenceProvider,
    ProdAuthProviderProvider,
    ProdPersistenceProvider,
)

# Every provider the container is built from.
PROVIDERS: list[Type[ProviderBase]] = [
    # Core providers (not mockable)
    ProdConfigProvider,
    ProdDomainProvider,
    ProdApplicationProvider,
    # Infrastructure components (mockable)
    AuthProviderProvider,
    PersistenceProvider,
]


def get_provider(
    base: Type[ProviderBase], use_mock: bool = False
) -> Type[ProviderBase]:
    """Resolve a provider base to the class to instantiate.

    A base with no subclasses is concrete. A base with subclasses is a
    mockable component, and the subclass whose ``__is_mock__`` matches
    ``use_mock`` is returned.

    Raises:
        ValueError: If the component has no implementation of that kind
    """
    subclasses = base.__subclasses__()

    if not subclasses:
        return base

    impl = next(
        (c for c in subclasses if getattr(c, "__is_mock__", False) == use_mock),
        None,
    )

    if not impl:
        kind = "mock" if use_mock else "production"
        component_name = getattr(base, "__mock_component__", base.__name__)
        raise ValueError(f"No {kind} implementation for {component_name}")

    return impl


__all__ = [
    "Component",
    "ProviderBase",
    "PROVIDERS",
    "get_provider",
    # Core providers
    "ProdConfigProvider",
    "ProdDomainProvider",
    "ProdApplicationProvider",
    # Infrastructure base classes
    "AuthProviderProvider",
    "PersistenceProvider",
    # Infrastructure implementations
    "ProdAuthProviderProvider",
    "ProdPersistenceProvider",
]
