"""Detection of dependencies introduced by one package and one package only.

For a package P, a transitive dependency d is exclusive to P when d stops
being reachable from every analyzed root once nothing depends on P any
more. Anything still reachable after that cut has another import path, so
it is shared with some other package.
"""

import logging
from collections.abc import Collection
from typing import Optional

from dependency_risk.graph import GraphView
from dependency_risk.models import PackageId
from dependency_risk.reachability import forward_reachable

logger = logging.getLogger(__name__)


class ExclusivityDetector:
    """Computes exclusive dependencies with one filtered view per package.

    Attributes:
        view: Production graph view (dev-only edges already hidden).
        roots: Roots selected for analysis.
    """

    def __init__(self, view: GraphView, roots: Collection[PackageId]) -> None:
        self.view = view
        self.roots = frozenset(roots)

    def exclusive_dependencies(
        self,
        package_id: PackageId,
        transitive: Optional[Collection[PackageId]] = None,
    ) -> set[PackageId]:
        """Return the dependencies exclusively introduced by ``package_id``.

        Args:
            package_id: The package whose removal is simulated.
            transitive: The package's transitive dependencies, if already
                known. Computed from the view otherwise.

        Returns:
            Identities that disappear from the roots' closure once every
            edge into ``package_id`` is cut. Never contains the package itself.
        """
        if transitive is None:
            transitive = forward_reachable(
                self.view, self.view.dependencies_of(package_id)
            )
        candidates = set(transitive)
        candidates.discard(package_id)
        if not candidates:
            return set()

        cut = self.view.without_edges_to(package_id)
        still_reachable = forward_reachable(cut, self.roots)
        exclusive = candidates - still_reachable
        logger.debug(
            "%s introduces %d exclusive dependenc%s",
            package_id,
            len(exclusive),
            "y" if len(exclusive) == 1 else "ies",
        )
        return exclusive
