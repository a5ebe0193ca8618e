"""Base interface for reputation resolvers.

Resolvers are responsible for fetching upstream health signals (stars,
active contributors, dependents, last update) from external services such
as GitHub or a package registry.
"""

from abc import ABC, abstractmethod
from typing import Optional

from dependency_risk.models import PackageNode, Reputation


class BaseResolver(ABC):
    """Abstract base class for reputation resolvers.

    Resolvers fetch reputation information for packages from external
    sources. They are async so lookups for many packages can run
    concurrently. A failed lookup returns None and never raises for
    expected conditions (missing repository, rate limits, network errors).
    """

    @abstractmethod
    async def lookup(self, package: PackageNode) -> Optional[Reputation]:
        """Fetch reputation data for a package.

        Args:
            package: Package to look up.

        Returns:
            Reputation with the fields this source knows about, or None if
            the lookup failed.
        """
        ...

    def supports(self, package: PackageNode) -> bool:
        """Return True if this resolver can say anything about ``package``."""
        return True

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the resolver name for logging/debugging.

        Returns:
            Name like "GitHub", "crates.io", etc.
        """
        ...

    @property
    def priority(self) -> int:
        """Return resolver priority for merge ordering.

        Lower numbers win when two resolvers provide the same field.
        Default is 100.

        Returns:
            Priority value.
        """
        return 100

    async def close(self) -> None:
        """Release any resources held by the resolver."""
