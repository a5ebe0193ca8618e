"""Bottom-up aggregation of leaf metrics into subtree totals.

A package's total is its own metric plus the totals of its direct
dependencies, so every package is finalized only after all of its direct
dependencies are. Packages are processed in topological levels until a
pass makes no progress; whatever is left at that fixed point (cycles,
missing leaf metrics, dependencies outside the analyzed set) is reported
as aggregation-incomplete instead of being looped over forever or counted
as zero.
"""

import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field

from dependency_risk.graph import GraphView
from dependency_risk.models import LeafMetrics, PackageId

logger = logging.getLogger(__name__)

# Cycle enumeration is exponential in the worst case
MAX_REPORTED_CYCLES = 50


@dataclass(frozen=True)
class SubtreeTotals:
    """Metrics summed over a package and its whole dependency subtree."""

    loc: int
    unsafe_loc: int
    loc_by_language: dict[str, int] = field(default_factory=dict)


@dataclass
class AggregationResult:
    """Outcome of an aggregation run.

    Attributes:
        totals: Subtree totals of every finalized package.
        incomplete: Packages whose totals could not be computed.
        passes: Number of passes that finalized at least one package.
        cycles: Dependency cycles among the incomplete packages.
    """

    totals: dict[PackageId, SubtreeTotals] = field(default_factory=dict)
    incomplete: frozenset[PackageId] = frozenset()
    passes: int = 0
    cycles: list[list[PackageId]] = field(default_factory=list)


class MetricAggregator:
    """Folds leaf metrics upward through the non-dev dependency graph.

    Attributes:
        view: Production graph view (dev-only edges already hidden).
        packages: Packages to aggregate.
        excluded: Packages never counted as dependencies (the roots).
    """

    def __init__(
        self,
        view: GraphView,
        packages: Iterable[PackageId],
        excluded: Collection[PackageId] = (),
    ) -> None:
        self.view = view
        self.packages = sorted(set(packages))
        self.excluded = frozenset(excluded)

    def _direct_dependencies(self, package_id: PackageId) -> set[PackageId]:
        # A self-edge keeps the package pending, like any other cycle.
        return set(self.view.dependencies_of(package_id)) - self.excluded

    def aggregate(self, leaf_metrics: Mapping[PackageId, LeafMetrics]) -> AggregationResult:
        """Compute subtree totals for every package.

        Args:
            leaf_metrics: Own metrics per package. A package without an entry
                cannot be finalized, and neither can anything depending on it.

        Returns:
            AggregationResult with totals and the incomplete set.
        """
        pending = {pid: self._direct_dependencies(pid) for pid in self.packages}
        result = AggregationResult()

        while pending:
            ready = [
                pid
                for pid, deps in pending.items()
                if pid in leaf_metrics and all(d in result.totals for d in deps)
            ]
            if not ready:
                break

            for pid in ready:
                result.totals[pid] = self._fold(
                    leaf_metrics[pid], [result.totals[dep] for dep in pending[pid]]
                )
                del pending[pid]
            result.passes += 1

        result.incomplete = frozenset(pending)
        if pending:
            result.cycles = self.view.cycles(among=pending, limit=MAX_REPORTED_CYCLES)
            for cycle in result.cycles:
                names = [self.view.package(pid).name for pid in cycle]
                logger.warning(
                    "Dependency cycle detected: %s", " -> ".join(names + names[:1])
                )
        for pid in sorted(pending):
            logger.warning(
                "Total LOC of %s was not calculated: %s",
                pid,
                self._blocker(pid, pending[pid], leaf_metrics, result),
            )
        logger.debug(
            "Aggregated %d package(s) in %d pass(es), %d incomplete",
            len(result.totals),
            result.passes,
            len(result.incomplete),
        )
        return result

    @staticmethod
    def _fold(own: LeafMetrics, dependencies: list[SubtreeTotals]) -> SubtreeTotals:
        loc = own.loc
        unsafe_loc = own.unsafe_loc
        by_language = dict(own.loc_by_language)
        for totals in dependencies:
            loc += totals.loc
            unsafe_loc += totals.unsafe_loc
            for language, count in totals.loc_by_language.items():
                by_language[language] = by_language.get(language, 0) + count
        return SubtreeTotals(loc=loc, unsafe_loc=unsafe_loc, loc_by_language=by_language)

    @staticmethod
    def _blocker(
        package_id: PackageId,
        deps: set[PackageId],
        leaf_metrics: Mapping[PackageId, LeafMetrics],
        result: AggregationResult,
    ) -> str:
        if package_id not in leaf_metrics:
            return "no leaf metrics"
        missing = sorted(d for d in deps if d not in result.totals)
        return f"depends on {', '.join(missing)} which was not calculated"
