"""Tests for the dependency graph and filtered views."""

import networkx as nx
import pytest

from dependency_risk.exceptions import GraphLoadError, MalformedGraphError
from dependency_risk.graph import DependencyGraph
from dependency_risk.models import DependencyEdge, DependencyKind, PackageNode


def _node(pid: str, is_root: bool = False) -> PackageNode:
    return PackageNode(id=pid, name=pid, version="1.0.0", is_root=is_root)


class TestDependencyGraph:
    """Test suite for DependencyGraph."""

    def test_duplicate_identity_rejected(self) -> None:
        with pytest.raises(MalformedGraphError, match="Duplicate"):
            DependencyGraph([_node("a"), _node("a")], [])

    def test_unknown_endpoint_rejected(self) -> None:
        """Test that an edge to an undeclared package is a fatal error."""
        with pytest.raises(MalformedGraphError, match="ghost"):
            DependencyGraph([_node("a")], [DependencyEdge("a", "ghost")])

    def test_malformed_graph_is_a_load_error(self) -> None:
        assert issubclass(MalformedGraphError, GraphLoadError)

    def test_duplicate_edges_are_collapsed(self) -> None:
        graph = DependencyGraph(
            [_node("a"), _node("b")],
            [DependencyEdge("a", "b"), DependencyEdge("a", "b")],
        )
        assert len(graph.edges_from("a")) == 1
        assert len(graph.edges_to("b")) == 1

    def test_root_ids(self) -> None:
        graph = DependencyGraph([_node("a", is_root=True), _node("b")], [])
        assert graph.root_ids == frozenset({"a"})
        assert len(graph) == 2

    def test_contains(self, shared_graph: DependencyGraph) -> None:
        assert "B" in shared_graph
        assert "Z" not in shared_graph

    def test_unknown_package_raises_key_error(self, shared_graph: DependencyGraph) -> None:
        with pytest.raises(KeyError):
            shared_graph.package("Z")

    def test_dependencies_and_dependents(self, shared_graph: DependencyGraph) -> None:
        assert shared_graph.dependencies_of("A") == ["B", "C"]
        assert sorted(shared_graph.dependents_of("C")) == ["A", "B"]

    def test_dependencies_distinct_across_kinds(self) -> None:
        """Test that one target with several edge kinds is listed once."""
        graph = DependencyGraph(
            [_node("a"), _node("b")],
            [
                DependencyEdge("a", "b", DependencyKind.NORMAL),
                DependencyEdge("a", "b", DependencyKind.BUILD),
            ],
        )
        assert graph.dependencies_of("a") == ["b"]

    def test_packages_named(self) -> None:
        graph = DependencyGraph(
            [
                PackageNode(id="foo 1", name="foo", version="1"),
                PackageNode(id="foo 2", name="foo", version="2"),
                PackageNode(id="bar 1", name="bar", version="1"),
            ],
            [],
        )
        assert {n.version for n in graph.packages_named("foo")} == {"1", "2"}

    def test_graph_is_frozen(self, shared_graph: DependencyGraph) -> None:
        with pytest.raises(nx.NetworkXError):
            shared_graph.graph.add_edge("C", "A")

    def test_cycles(self, graph_factory) -> None:
        graph = graph_factory([("A", "B"), ("B", "A"), ("B", "C"), ("C", "C")])

        cycles = sorted(sorted(cycle) for cycle in graph.cycles())

        assert cycles == [["A", "B"], ["C"]]
        assert graph.cycles(among=["B", "C"]) == [["C"]]
        assert len(graph.cycles(limit=1)) == 1

    def test_cycles_listed_once_across_edge_kinds(self, graph_factory) -> None:
        graph = graph_factory(
            [("A", "B"), ("B", "A"), ("B", "A", DependencyKind.BUILD)]
        )
        assert len(graph.cycles()) == 1

    def test_acyclic_graph_has_no_cycles(self, shared_graph: DependencyGraph) -> None:
        assert shared_graph.cycles() == []


class TestFilteredGraphView:
    """Test suite for FilteredGraphView."""

    def test_production_view_hides_dev_edges(self, graph_factory) -> None:
        graph = graph_factory([("A", "B"), ("A", "T", DependencyKind.DEV)])
        view = graph.production_view()

        assert view.dependencies_of("A") == ["B"]
        assert view.dependents_of("T") == []
        # The graph itself is untouched
        assert graph.dependencies_of("A") == ["B", "T"]

    def test_production_view_is_cached(self, shared_graph: DependencyGraph) -> None:
        assert shared_graph.production_view() is shared_graph.production_view()

    def test_without_edges_to(self, shared_graph: DependencyGraph) -> None:
        """Test that cutting a package removes every edge into it only."""
        cut = shared_graph.without_edges_to("C")

        assert cut.dependencies_of("A") == ["B"]
        assert cut.dependencies_of("B") == []
        assert cut.dependents_of("C") == []
        assert sorted(shared_graph.dependents_of("C")) == ["A", "B"]

    def test_views_stack(self, graph_factory) -> None:
        graph = graph_factory(
            [("A", "B"), ("A", "C"), ("A", "T", DependencyKind.DEV)]
        )
        view = graph.production_view().without_edges_to("B")

        assert view.dependencies_of("A") == ["C"]
        assert "B" in view
        assert set(view.package_ids()) == {"A", "B", "C", "T"}

    def test_cut_view_breaks_cycle(self, graph_factory) -> None:
        graph = graph_factory([("A", "B"), ("B", "A")])
        assert graph.without_edges_to("A").cycles() == []
        assert len(graph.cycles()) == 1
