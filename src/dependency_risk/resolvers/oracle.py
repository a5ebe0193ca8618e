"""Reputation oracle combining every reputation resolver.

This module implements the lookup strategy that asks each applicable
resolver about a package and merges their answers into one Reputation.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Optional

from dependency_risk.config import DEFAULT_MAX_WORKERS
from dependency_risk.models import PackageId, PackageNode, Reputation
from dependency_risk.resolvers.base import BaseResolver

logger = logging.getLogger(__name__)


class ReputationOracle:
    """Orchestrates reputation resolvers for many packages.

    Resolution strategy:
    1. Ask every resolver that supports the package, in priority order
    2. Merge their answers field by field (lower priority value wins)
    3. Report None when nobody knew anything

    Lookup failures never propagate: a failing resolver leaves only its own
    fields empty, and the other resolvers' answers are still merged.

    Attributes:
        resolvers: Resolvers sorted by priority.
        max_concurrency: Upper bound on packages looked up at once.
    """

    def __init__(
        self,
        resolvers: list[BaseResolver],
        max_concurrency: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        """Initialize the oracle.

        Args:
            resolvers: Resolvers to consult.
            max_concurrency: Upper bound on concurrent package lookups.
        """
        self.resolvers = sorted(resolvers, key=lambda r: r.priority)
        self.max_concurrency = max(1, max_concurrency)

    async def lookup(self, package: PackageNode) -> Optional[Reputation]:
        """Look up one package with every supporting resolver.

        Args:
            package: Package to look up.

        Returns:
            Merged Reputation, or None if no resolver produced anything.
        """
        merged: Optional[Reputation] = None
        for resolver in self.resolvers:
            if not resolver.supports(package):
                continue
            try:
                result = await resolver.lookup(package)
            except Exception as e:
                # Only this resolver's fields stay empty
                logger.error("%s failed looking up %s: %s", resolver.name, package.name, e)
                continue
            if result is None:
                logger.debug("%s had nothing on %s", resolver.name, package.name)
                continue
            merged = result if merged is None else merged.merge(result)

        if merged is None or merged.is_empty:
            return None
        return merged

    async def lookup_batch(
        self, packages: Iterable[PackageNode]
    ) -> dict[PackageId, Optional[Reputation]]:
        """Look up many packages concurrently.

        Uses asyncio.gather bounded by a semaphore, with exception handling
        to ensure partial failures don't stop the entire batch.

        Args:
            packages: Packages to look up.

        Returns:
            Dictionary mapping every package identity to its Reputation (or
            None). All packages are guaranteed to have an entry.
        """
        packages = list(packages)
        logger.info("Starting reputation lookup of %d packages", len(packages))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(package: PackageNode) -> Optional[Reputation]:
            async with semaphore:
                return await self.lookup(package)

        results = await asyncio.gather(
            *(bounded(package) for package in packages), return_exceptions=True
        )

        result_dict: dict[PackageId, Optional[Reputation]] = {}
        for package, result in zip(packages, results):
            if isinstance(result, Exception):
                # Log the exception but don't let it stop other lookups
                logger.error("Exception looking up %s: %s", package.name, result)
                result_dict[package.id] = None
            else:
                result_dict[package.id] = result

        found = sum(1 for reputation in result_dict.values() if reputation is not None)
        logger.info("Reputation lookup complete: %d/%d found", found, len(packages))
        return result_dict

    async def close(self) -> None:
        """Close every resolver's resources (like HTTP sessions)."""
        for resolver in self.resolvers:
            await resolver.close()

    async def __aenter__(self) -> "ReputationOracle":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
