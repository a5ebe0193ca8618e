"""Immutable package dependency graph and non-mutating filtered views.

The DependencyGraph is built once from a resolved graph snapshot into a
networkx MultiDiGraph (one edge per dependency kind, keyed by the kind) and
never changes afterwards. Algorithms that need a modified graph (dropping
dev-only edges, cutting every edge into one package) get a FilteredGraphView
backed by ``nx.subgraph_view`` instead of a mutated copy, so the same graph
can be consulted by several algorithms at once.
"""

from collections.abc import Callable, Iterable, Iterator
from itertools import islice
from typing import Optional

import networkx as nx

from dependency_risk.exceptions import MalformedGraphError
from dependency_risk.models import DependencyEdge, DependencyKind, PackageId, PackageNode

EdgePredicate = Callable[[DependencyEdge], bool]


class GraphView:
    """Read-only access to a package graph or one of its filtered views.

    Attributes:
        graph: The underlying networkx graph. Nodes carry their PackageNode
            under the ``package`` attribute, edges are keyed by DependencyKind.
    """

    def __init__(self, graph: nx.MultiDiGraph) -> None:
        self.graph = graph

    def __contains__(self, package_id: object) -> bool:
        return package_id in self.graph

    def package(self, package_id: PackageId) -> PackageNode:
        """Return the node for ``package_id``.

        Raises:
            KeyError: If the identity is not part of the graph.
        """
        return self.graph.nodes[package_id]["package"]

    def package_ids(self) -> Iterator[PackageId]:
        """Iterate over every package identity in the graph."""
        return iter(self.graph)

    def edges_from(self, package_id: PackageId) -> tuple[DependencyEdge, ...]:
        """Return the outgoing edges of a package (its dependencies)."""
        return tuple(
            DependencyEdge(package_id, target, kind)
            for target, kinds in self.graph.succ[package_id].items()
            for kind in kinds
        )

    def edges_to(self, package_id: PackageId) -> tuple[DependencyEdge, ...]:
        """Return the incoming edges of a package (its dependents)."""
        return tuple(
            DependencyEdge(source, package_id, kind)
            for source, kinds in self.graph.pred[package_id].items()
            for kind in kinds
        )

    def dependencies_of(self, package_id: PackageId) -> list[PackageId]:
        """Return distinct dependency identities, in edge order."""
        return list(self.graph.succ[package_id])

    def dependents_of(self, package_id: PackageId) -> list[PackageId]:
        """Return distinct dependent identities, in edge order."""
        return list(self.graph.pred[package_id])

    def cycles(
        self,
        among: Optional[Iterable[PackageId]] = None,
        limit: Optional[int] = None,
    ) -> list[list[PackageId]]:
        """Return the elementary dependency cycles of the view.

        Args:
            among: Restrict the search to these packages. Defaults to the
                whole view.
            limit: Stop after this many cycles.

        Returns:
            One list of identities per cycle, a self-dependency included.
        """
        graph = self.graph if among is None else self.graph.subgraph(among)
        if nx.is_directed_acyclic_graph(graph):
            return []
        # Parallel edges of different kinds would repeat every cycle.
        cycles = nx.simple_cycles(nx.DiGraph(graph))
        return [list(cycle) for cycle in islice(cycles, limit)]

    def without_edges(self, exclude: EdgePredicate) -> "FilteredGraphView":
        """Return a view hiding every edge for which ``exclude`` is true."""
        return FilteredGraphView(self, exclude)

    def without_edges_to(self, package_id: PackageId) -> "FilteredGraphView":
        """Return a view in which nothing depends on ``package_id`` any more."""
        return self.without_edges(lambda edge: edge.target == package_id)


class DependencyGraph(GraphView):
    """Resolved package dependency graph.

    Attributes:
        root_ids: Identities of every workspace (root) package.
    """

    def __init__(
        self,
        packages: Iterable[PackageNode],
        edges: Iterable[DependencyEdge],
    ) -> None:
        """Build and validate the graph.

        Args:
            packages: Every package identity of the resolved graph.
            edges: Dependency edges between those packages. Repeated edges
                of the same kind collapse into one.

        Raises:
            MalformedGraphError: If an identity is declared twice or an edge
                references an identity that is not in ``packages``.
        """
        graph = nx.MultiDiGraph()
        for node in packages:
            if node.id in graph:
                raise MalformedGraphError(f"Duplicate package identity: {node.id}")
            graph.add_node(node.id, package=node)

        for edge in edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in graph:
                    raise MalformedGraphError(
                        f"Edge {edge.source} -> {edge.target} references "
                        f"unknown package {endpoint}"
                    )
            graph.add_edge(edge.source, edge.target, key=edge.kind)

        super().__init__(nx.freeze(graph))
        self.root_ids: frozenset[PackageId] = frozenset(
            node.id for node in self.packages() if node.is_root
        )
        self._production: Optional[FilteredGraphView] = None

    def __len__(self) -> int:
        return len(self.graph)

    def packages(self) -> Iterator[PackageNode]:
        """Iterate over every package node."""
        return (package for _, package in self.graph.nodes(data="package"))

    def packages_named(self, name: str) -> list[PackageNode]:
        """Return every identity sharing ``name`` (one per version pulled in)."""
        return [node for node in self.packages() if node.name == name]

    def production_view(self) -> "FilteredGraphView":
        """Return the view every production-risk traversal works on.

        Dev-only edges are hidden from it.
        """
        if self._production is None:
            self._production = self.without_edges(lambda edge: edge.is_dev)
        return self._production


class FilteredGraphView(GraphView):
    """A graph view that skips edges matching a predicate.

    Views wrap another view (or the graph itself) and can be stacked. They
    are ``nx.subgraph_view`` instances: no copy of the graph is made and the
    wrapped graph is never modified.

    Attributes:
        base: The view this one filters.
    """

    def __init__(self, base: GraphView, exclude: EdgePredicate) -> None:
        def keep(source: PackageId, target: PackageId, kind: DependencyKind) -> bool:
            return not exclude(DependencyEdge(source, target, kind))

        super().__init__(nx.subgraph_view(base.graph, filter_edge=keep))
        self.base = base
