"""Fatal error taxonomy for dependency_risk.

Only conditions that abort a whole run are exceptions. Per-package
degradation (missing provenance, failed lookups, incomplete totals) is
recorded on the affected PackageRisk instead of being raised.
"""


class DependencyRiskError(Exception):
    """Base class for errors that abort an analysis run."""


class GraphLoadError(DependencyRiskError):
    """The resolved dependency graph could not be obtained or parsed."""


class MalformedGraphError(GraphLoadError):
    """The graph input is internally inconsistent.

    Raised when an edge references an unknown package identity or when the
    same identity is declared more than once.
    """


class EmptyRootSetError(DependencyRiskError):
    """Root filtering left no package to analyze."""


class BuildError(DependencyRiskError):
    """The external build failed, so build provenance cannot be resolved."""
