"""Pytest configuration and fixtures."""

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from dependency_risk.graph import DependencyGraph
from dependency_risk.models import DependencyEdge, DependencyKind, PackageNode

FIXTURES_DIR = Path(__file__).parent / "fixtures"

GraphFactory = Callable[..., DependencyGraph]


def make_graph(
    edges: Iterable[tuple],
    roots: Iterable[str] = ("A",),
    extra: Iterable[str] = (),
) -> DependencyGraph:
    """Build a graph from ``(source, target[, kind])`` tuples.

    Package identities double as names, with version "1.0.0".
    """
    edges = list(edges)
    roots = set(roots)
    ids: dict[str, None] = dict.fromkeys(roots)
    for edge in edges:
        ids.setdefault(edge[0])
        ids.setdefault(edge[1])
    ids.update(dict.fromkeys(extra))

    packages = [
        PackageNode(id=pid, name=pid, version="1.0.0", is_root=pid in roots)
        for pid in ids
    ]
    graph_edges = [
        DependencyEdge(
            source=edge[0],
            target=edge[1],
            kind=edge[2] if len(edge) > 2 else DependencyKind.NORMAL,
        )
        for edge in edges
    ]
    return DependencyGraph(packages, graph_edges)


@pytest.fixture
def graph_factory() -> GraphFactory:
    """Return the make_graph helper."""
    return make_graph


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def shared_graph() -> DependencyGraph:
    """A root importing B and C, with B also importing C."""
    return make_graph([("A", "B"), ("B", "C"), ("A", "C")])


@pytest.fixture
def fan_out_graph() -> DependencyGraph:
    """A root importing B, which alone pulls in C and D."""
    return make_graph([("A", "B"), ("B", "C"), ("B", "D")])


@pytest.fixture
def multi_version_graph() -> DependencyGraph:
    """Two roots importing different versions of foo."""
    packages = [
        PackageNode(id="app 0.1.0", name="app", version="0.1.0", is_root=True),
        PackageNode(id="cli 0.1.0", name="cli", version="0.1.0", is_root=True),
        PackageNode(
            id="foo 1.0.0",
            name="foo",
            version="1.0.0",
            repository_url="https://github.com/example/foo",
        ),
        PackageNode(id="foo 2.0.0", name="foo", version="2.0.0"),
        PackageNode(id="bar 0.3.0", name="bar", version="0.3.0"),
    ]
    edges = [
        DependencyEdge("app 0.1.0", "foo 1.0.0"),
        DependencyEdge("cli 0.1.0", "foo 2.0.0"),
        DependencyEdge("foo 2.0.0", "bar 0.3.0"),
    ]
    return DependencyGraph(packages, edges)
