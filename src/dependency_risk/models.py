"""Core data models for dependency_risk.

This module defines the fundamental data structures used throughout the
analysis: the immutable package graph records, the leaf metrics produced by
source scanning, reputation data from external services, and the mutable
per-package risk record that every component fills in.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dependency_risk.exceptions import GraphLoadError

# Opaque unique key of a package (name + version + source location).
PackageId = str


class DependencyKind(str, Enum):
    """Kind of a dependency edge."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "DependencyKind":
        """Convert a raw kind string from a graph provider.

        Args:
            value: Raw kind. ``None`` and ``"normal"`` mean a regular
                dependency; ``"dev-only"`` is accepted as an alias of ``"dev"``.

        Returns:
            The matching DependencyKind.

        Raises:
            GraphLoadError: If the kind is not recognized.
        """
        if value is None or value == "normal":
            return cls.NORMAL
        if value == "build":
            return cls.BUILD
        if value in ("dev", "dev-only"):
            return cls.DEV
        raise GraphLoadError(f"Unknown dependency kind: {value!r}")


@dataclass(frozen=True)
class PackageNode:
    """Immutable description of one package identity in the resolved graph.

    Attributes:
        id: Unique package identity.
        name: Package name. Several identities may share a name.
        version: Exact version string.
        manifest_path: Path to the package manifest on disk, if known.
        repository_url: Source repository URL, if declared.
        description: Package description, if declared.
        is_root: True for workspace (root) packages.
        source: Registry source string (e.g. the crates.io index), None for
            path dependencies and workspace members.
    """

    id: PackageId
    name: str
    version: str
    manifest_path: Optional[Path] = None
    repository_url: Optional[str] = None
    description: Optional[str] = None
    is_root: bool = False
    source: Optional[str] = None


@dataclass(frozen=True)
class DependencyEdge:
    """A directed dependency edge: ``source`` depends on ``target``."""

    source: PackageId
    target: PackageId
    kind: DependencyKind = DependencyKind.NORMAL

    @property
    def is_dev(self) -> bool:
        """Return True for dev-only edges, which never carry production risk."""
        return self.kind is DependencyKind.DEV


@dataclass(frozen=True)
class ProvenanceResult:
    """Files that make up a package, as far as the build could tell.

    Attributes:
        used: True if the file list comes from the actual build. False means
            it is a best-effort fallback (every file of the package directory).
        files: Source files attributed to the package.
    """

    used: bool
    files: frozenset[Path] = frozenset()


@dataclass
class LeafMetrics:
    """Per-package metrics computed from its own source files only.

    Attributes:
        loc_by_language: Lines of code keyed by language name.
        unsafe_loc: Lines containing unsafe code.
        skipped_files: Number of files the scanner could not read.
    """

    loc_by_language: dict[str, int] = field(default_factory=dict)
    unsafe_loc: int = 0
    skipped_files: int = 0

    @property
    def loc(self) -> int:
        """Return lines of code over all recognized languages."""
        return sum(self.loc_by_language.values())


@dataclass
class Reputation:
    """Upstream project health signals from external services.

    Every field is optional; a missing value means the information could
    not be obtained, not that it is zero.
    """

    stars: Optional[int] = None
    active_contributors: Optional[int] = None
    downstream_dependents: Optional[int] = None
    last_updated: Optional[date] = None

    def merge(self, other: Optional["Reputation"]) -> "Reputation":
        """Return a copy with missing fields filled from ``other``."""
        if other is None:
            return replace(self)
        return Reputation(
            stars=self.stars if self.stars is not None else other.stars,
            active_contributors=(
                self.active_contributors
                if self.active_contributors is not None
                else other.active_contributors
            ),
            downstream_dependents=(
                self.downstream_dependents
                if self.downstream_dependents is not None
                else other.downstream_dependents
            ),
            last_updated=(
                self.last_updated
                if self.last_updated is not None
                else other.last_updated
            ),
        )

    @property
    def is_empty(self) -> bool:
        """Return True if no field is known."""
        return (
            self.stars is None
            and self.active_contributors is None
            and self.downstream_dependents is None
            and self.last_updated is None
        )


@dataclass
class PackageRisk:
    """Risk record of a package.

    During analysis there is one record per package identity. The assembler
    then merges records sharing a name into one record per logical package.
    "Total" fields include the package's whole non-dev dependency subtree,
    summed along every path: a dependency shared by two direct dependencies
    is counted twice. A record merging several versions sums the totals of
    each version, so a subtree the versions share is counted once per version.

    Attributes:
        name: Package name.
        ids: Identities merged into this record.
        versions: Distinct versions pulled in (more than one is a risk signal).
        repository_url: Repository link.
        description: Package description.
        is_direct: True if imported directly by an analyzed root package.
        used: True if build provenance was precise for at least one version,
            None if provenance was never resolved.
        direct_dependencies: Names of direct non-dev dependencies.
        transitive_dependencies: Names of every non-dev dependency reachable
            from this package, excluding itself.
        root_importers: Identities of analyzed roots that import this package.
        exclusive_dependencies: Identities of dependencies pulled in by this
            package and by this package only.
        loc: Own lines of code.
        loc_by_language: Own lines of code keyed by language.
        unsafe_loc: Own unsafe lines of code.
        skipped_files: Source files that could not be scanned.
        total_loc: Subtree lines of code, None unless totals_ready.
        total_unsafe_loc: Subtree unsafe lines of code, None unless totals_ready.
        total_loc_by_language: Subtree lines of code keyed by language, None
            unless totals_ready.
        totals_ready: False when aggregation could not finish for this package.
        stargazers_count: Repository stars, if known.
        active_contributors: Distinct commit authors in the last six months.
        downstream_dependents: Registry packages depending on this one.
        last_updated: Last registry update.
    """

    name: str
    ids: set[PackageId] = field(default_factory=set)
    versions: set[str] = field(default_factory=set)
    repository_url: Optional[str] = None
    description: Optional[str] = None
    is_direct: bool = False
    used: Optional[bool] = None
    direct_dependencies: set[str] = field(default_factory=set)
    transitive_dependencies: set[str] = field(default_factory=set)
    root_importers: set[PackageId] = field(default_factory=set)
    exclusive_dependencies: set[PackageId] = field(default_factory=set)
    loc: int = 0
    loc_by_language: dict[str, int] = field(default_factory=dict)
    unsafe_loc: int = 0
    skipped_files: int = 0
    total_loc: Optional[int] = None
    total_unsafe_loc: Optional[int] = None
    total_loc_by_language: Optional[dict[str, int]] = None
    totals_ready: bool = False
    stargazers_count: Optional[int] = None
    active_contributors: Optional[int] = None
    downstream_dependents: Optional[int] = None
    last_updated: Optional[date] = None

    @classmethod
    def from_node(cls, node: PackageNode, is_direct: bool = False) -> "PackageRisk":
        """Create an empty record for a package identity."""
        return cls(
            name=node.name,
            ids={node.id},
            versions={node.version},
            repository_url=node.repository_url,
            description=node.description,
            is_direct=is_direct,
        )

    def apply_leaf_metrics(self, metrics: LeafMetrics) -> None:
        """Store own metrics produced by the source scanner."""
        self.loc = metrics.loc
        self.loc_by_language = dict(metrics.loc_by_language)
        self.unsafe_loc = metrics.unsafe_loc
        self.skipped_files = metrics.skipped_files

    def apply_reputation(self, reputation: Optional[Reputation]) -> None:
        """Store reputation data; None leaves the fields empty."""
        if reputation is None:
            return
        self.stargazers_count = reputation.stars
        self.active_contributors = reputation.active_contributors
        self.downstream_dependents = reputation.downstream_dependents
        self.last_updated = reputation.last_updated

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable view with deterministic ordering.

        The ``total_*`` entries follow the summing rules of the class: shared
        subtrees are counted once per path and once per merged version.
        """
        return {
            "versions": sorted(self.versions),
            "repository": self.repository_url,
            "description": self.description,
            "is_direct": self.is_direct,
            "used": self.used,
            "direct_dependencies": sorted(self.direct_dependencies),
            "transitive_dependencies": sorted(self.transitive_dependencies),
            "root_importers": sorted(self.root_importers),
            "exclusive_dependencies": sorted(self.exclusive_dependencies),
            "loc": self.loc,
            "loc_by_language": dict(sorted(self.loc_by_language.items())),
            "unsafe_loc": self.unsafe_loc,
            "skipped_files": self.skipped_files,
            "total_loc": self.total_loc,
            "total_unsafe_loc": self.total_unsafe_loc,
            "total_loc_by_language": (
                dict(sorted(self.total_loc_by_language.items()))
                if self.total_loc_by_language is not None
                else None
            ),
            "totals_ready": self.totals_ready,
            "stargazers_count": self.stargazers_count,
            "active_contributors": self.active_contributors,
            "downstream_dependents": self.downstream_dependents,
            "last_updated": (
                self.last_updated.isoformat() if self.last_updated else None
            ),
        }
