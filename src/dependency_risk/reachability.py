"""Forward and reverse reachability over the production dependency graph.

Traversals run on the view's networkx graph, so they terminate on cyclic
input. Results are plain sets: traversal order never affects them.
"""

from collections.abc import Collection, Iterable

import networkx as nx

from dependency_risk.graph import GraphView
from dependency_risk.models import PackageId


def forward_reachable(view: GraphView, seeds: Iterable[PackageId]) -> set[PackageId]:
    """Return every package reachable from ``seeds``, seeds included."""
    reached: set[PackageId] = set()
    for seed in seeds:
        # A seed reached earlier already brought in its whole closure.
        if seed not in reached:
            reached |= nx.descendants(view.graph, seed)
            reached.add(seed)
    return reached


def reverse_reachable(view: GraphView, seeds: Iterable[PackageId]) -> set[PackageId]:
    """Return every package from which one of ``seeds`` is reachable, seeds included."""
    reached: set[PackageId] = set()
    for seed in seeds:
        if seed not in reached:
            reached |= nx.ancestors(view.graph, seed)
            reached.add(seed)
    return reached


class ReachabilityEngine:
    """Derives direct, transitive and importer sets for analyzed roots.

    The view passed in is expected to already hide dev-only edges (see
    DependencyGraph.production_view). Workspace roots are traversed through
    but never reported as dependencies.

    Attributes:
        view: Graph view traversed by every query.
        roots: Roots selected for analysis.
        workspace_roots: Every workspace package, analyzed or not.
    """

    def __init__(
        self,
        view: GraphView,
        roots: Collection[PackageId],
        workspace_roots: Collection[PackageId] = (),
    ) -> None:
        self.view = view
        self.roots = frozenset(roots)
        self.workspace_roots = frozenset(workspace_roots) | self.roots

    def direct_dependencies(self) -> set[PackageId]:
        """Return the union of the analyzed roots' direct dependencies."""
        direct: set[PackageId] = set()
        for root in self.roots:
            direct.update(self.view.dependencies_of(root))
        return direct - self.workspace_roots

    def transitive_dependencies(self) -> set[PackageId]:
        """Return every third-party package pulled in by the analyzed roots."""
        frontier = set()
        for root in self.roots:
            frontier.update(self.view.dependencies_of(root))
        return forward_reachable(self.view, frontier) - self.workspace_roots

    def dependencies_of(self, package_id: PackageId) -> set[PackageId]:
        """Return the direct dependencies of one package."""
        deps = set(self.view.dependencies_of(package_id))
        deps.discard(package_id)
        return deps - self.workspace_roots

    def transitive_dependencies_of(self, package_id: PackageId) -> set[PackageId]:
        """Return every dependency reachable from one package, excluding itself."""
        reachable = forward_reachable(self.view, self.view.dependencies_of(package_id))
        reachable.discard(package_id)
        return reachable - self.workspace_roots

    def root_importers(self, package_id: PackageId) -> set[PackageId]:
        """Return the analyzed roots from which ``package_id`` is reachable."""
        if package_id in self.workspace_roots:
            return set()
        importers = reverse_reachable(self.view, [package_id])
        return importers & self.roots
