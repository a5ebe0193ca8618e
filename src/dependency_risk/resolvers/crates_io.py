"""crates.io reputation resolver.

Fetches registry statistics for packages published on crates.io: how many
crates depend on it, and when it was last updated.
"""

import logging
from datetime import date, datetime
from typing import Optional

from dependency_risk.models import PackageNode, Reputation
from dependency_risk.resolvers.http import HttpResolver

logger = logging.getLogger(__name__)

CRATES_IO_API = "https://crates.io/api/v1"

# Index locations identifying a crates.io package source
_CRATES_IO_INDEXES = (
    "github.com/rust-lang/crates.io-index",
    "index.crates.io",
)


class CratesIoResolver(HttpResolver):
    """Resolver for crates.io registry statistics.

    Only packages whose source is the crates.io index are looked up; path,
    git and private-registry dependencies are skipped.
    """

    @property
    def name(self) -> str:
        """Return the resolver name.

        Returns:
            The string "crates.io".
        """
        return "crates.io"

    @property
    def priority(self) -> int:
        """Return the resolver priority.

        Returns:
            Priority value of 20.
        """
        return 20

    def supports(self, package: PackageNode) -> bool:
        source = package.source or ""
        return any(index in source for index in _CRATES_IO_INDEXES)

    async def _fetch_dependents(self, crate: str) -> Optional[int]:
        data = await self._get_json(f"{CRATES_IO_API}/crates/{crate}/reverse_dependencies")
        if not isinstance(data, dict):
            return None
        total = (data.get("meta") or {}).get("total")
        return total if isinstance(total, int) else None

    async def _fetch_last_updated(self, crate: str) -> Optional[date]:
        data = await self._get_json(f"{CRATES_IO_API}/crates/{crate}")
        if not isinstance(data, dict):
            return None
        updated_at = (data.get("crate") or {}).get("updated_at")
        if not updated_at:
            return None
        try:
            return datetime.fromisoformat(updated_at).date()
        except ValueError:
            logger.debug("Unparseable updated_at for %s: %s", crate, updated_at)
            return None

    async def lookup(self, package: PackageNode) -> Optional[Reputation]:
        """Fetch registry statistics for a package.

        Args:
            package: Package to look up.

        Returns:
            Reputation with downstream dependents and last update, or None if
            the package is not from crates.io or both requests failed.
        """
        if not self.supports(package):
            return None

        dependents = await self._fetch_dependents(package.name)
        last_updated = await self._fetch_last_updated(package.name)

        if dependents is None and last_updated is None:
            return None

        return Reputation(downstream_dependents=dependents, last_updated=last_updated)
