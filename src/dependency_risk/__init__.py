"""Dependency Risk - Per-dependency risk profiles for a project's supply chain.

This package walks an already-resolved package dependency graph and
computes, for every third-party package, who imports it, what it drags in
(exclusively or not), how much code and unsafe code it ships, and how
healthy its upstream project looks.
"""

__version__ = "0.1.0"
__author__ = "forkrul"

from dependency_risk.exceptions import (
    BuildError,
    DependencyRiskError,
    EmptyRootSetError,
    GraphLoadError,
    MalformedGraphError,
)
from dependency_risk.graph import DependencyGraph, FilteredGraphView
from dependency_risk.models import (
    DependencyEdge,
    DependencyKind,
    LeafMetrics,
    PackageNode,
    PackageRisk,
    Reputation,
)

__all__ = [
    "__version__",
    "BuildError",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyKind",
    "DependencyRiskError",
    "EmptyRootSetError",
    "FilteredGraphView",
    "GraphLoadError",
    "LeafMetrics",
    "MalformedGraphError",
    "PackageNode",
    "PackageRisk",
    "Reputation",
]
