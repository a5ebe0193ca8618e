"""End-to-end risk analysis of a resolved dependency graph.

The analyzer runs the graph algorithms (reachability, exclusivity), gathers
leaf metrics for every package through the provenance resolver and source
scanner, folds them into subtree totals, optionally enriches packages with
reputation data, and finally merges everything into one record per
package name.
"""

import asyncio
import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dependency_risk.aggregation import MetricAggregator
from dependency_risk.assembler import RiskRecordAssembler
from dependency_risk.build import BuildResult
from dependency_risk.config import DEFAULT_MAX_WORKERS
from dependency_risk.exclusivity import ExclusivityDetector
from dependency_risk.graph import DependencyGraph, GraphView
from dependency_risk.models import (
    LeafMetrics,
    PackageId,
    PackageNode,
    PackageRisk,
)
from dependency_risk.provenance import BuildProvenanceResolver, DepInfoProvenanceResolver
from dependency_risk.reachability import ReachabilityEngine
from dependency_risk.resolvers.oracle import ReputationOracle
from dependency_risk.source_metrics import LineCountScanner, SourceScanner

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """Result of an analysis run.

    Attributes:
        project_name: Name of the analyzed project.
        roots: Names of the analyzed root packages.
        direct_dependencies: Names of the roots' direct dependencies.
        packages: Final risk records keyed by package name.
    """

    project_name: str
    roots: list[str] = field(default_factory=list)
    direct_dependencies: list[str] = field(default_factory=list)
    packages: dict[str, PackageRisk] = field(default_factory=dict)

    @property
    def incomplete(self) -> list[str]:
        """Return names of packages whose totals could not be computed."""
        return [name for name, record in self.packages.items() if not record.totals_ready]

    def to_dict(self) -> dict[str, Any]:
        """Return the flat, name-keyed JSON view of the records."""
        return {name: record.to_dict() for name, record in self.packages.items()}


class RiskAnalyzer:
    """Computes PackageRisk records for every third-party package.

    Attributes:
        graph: The resolved dependency graph.
        provenance: Resolves the files of each package.
        scanner: Measures those files.
        oracle: Optional reputation oracle; no lookups are made without one.
        max_workers: Upper bound on packages measured concurrently.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        provenance: Optional[BuildProvenanceResolver] = None,
        scanner: Optional[SourceScanner] = None,
        oracle: Optional[ReputationOracle] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.graph = graph
        self.provenance = provenance or DepInfoProvenanceResolver()
        self.scanner = scanner or LineCountScanner()
        self.oracle = oracle
        self.max_workers = max(1, max_workers)

    async def analyze(
        self,
        roots: Collection[PackageId],
        build_dir: Optional[Path] = None,
        leaf_metrics: Optional[Mapping[PackageId, LeafMetrics]] = None,
        project_name: str = "",
        build: Optional[BuildResult] = None,
    ) -> AnalysisReport:
        """Run the full analysis.

        Args:
            roots: Root packages to analyze (see roots.select_roots).
            build_dir: Build output directory for precise provenance.
            leaf_metrics: Precomputed leaf metrics. When given, provenance
                resolution and scanning are skipped.
            project_name: Name reported for the project.
            build: Compiler report of the build. For every package it
                compiled, its unsafe count replaces the scanner's estimate.

        Returns:
            AnalysisReport with one record per package name.
        """
        view = self.graph.production_view()
        engine = ReachabilityEngine(view, roots, self.graph.root_ids)
        direct = engine.direct_dependencies()
        records = self._structural_records(engine, direct)
        logger.info(
            "Found %d direct and %d total third-party package(s)",
            len(direct),
            len(records),
        )

        if leaf_metrics is None:
            leaf_metrics = await self._collect_leaf_metrics(records, build_dir, build)
        for pid, record in records.items():
            metrics = leaf_metrics.get(pid)
            if metrics is not None:
                record.apply_leaf_metrics(metrics)

        self._aggregate(view, engine, records, leaf_metrics)

        if self.oracle is not None:
            await self._enrich(records)

        packages = RiskRecordAssembler().assemble(records.values())
        return AnalysisReport(
            project_name=project_name,
            roots=sorted({self.graph.package(pid).name for pid in engine.roots}),
            direct_dependencies=sorted({self.graph.package(pid).name for pid in direct}),
            packages=packages,
        )

    def _structural_records(
        self, engine: ReachabilityEngine, direct: set[PackageId]
    ) -> dict[PackageId, PackageRisk]:
        detector = ExclusivityDetector(engine.view, engine.roots)
        records: dict[PackageId, PackageRisk] = {}
        for pid in sorted(engine.transitive_dependencies()):
            record = PackageRisk.from_node(self.graph.package(pid), is_direct=pid in direct)
            transitive = engine.transitive_dependencies_of(pid)
            record.direct_dependencies = self._names(engine.dependencies_of(pid))
            record.transitive_dependencies = self._names(transitive)
            record.root_importers = engine.root_importers(pid)
            record.exclusive_dependencies = detector.exclusive_dependencies(pid, transitive)
            records[pid] = record
        return records

    def _names(self, package_ids: Collection[PackageId]) -> set[str]:
        return {self.graph.package(pid).name for pid in package_ids}

    async def _collect_leaf_metrics(
        self,
        records: Mapping[PackageId, PackageRisk],
        build_dir: Optional[Path],
        build: Optional[BuildResult] = None,
    ) -> dict[PackageId, LeafMetrics]:
        """Measure every package in a bounded pool of worker threads.

        Each task writes only its own package's slot.
        """
        semaphore = asyncio.Semaphore(self.max_workers)
        slots: dict[PackageId, Optional[LeafMetrics]] = dict.fromkeys(records)

        async def measure(pid: PackageId) -> None:
            node = self.graph.package(pid)
            async with semaphore:
                used, metrics = await asyncio.to_thread(self._measure, node, build_dir)
            records[pid].used = used
            if metrics is not None and build is not None:
                unsafe = build.unsafe_count(pid)
                if unsafe is not None:
                    metrics.unsafe_loc = unsafe
            slots[pid] = metrics

        await asyncio.gather(*(measure(pid) for pid in slots))
        return {pid: metrics for pid, metrics in slots.items() if metrics is not None}

    def _measure(
        self, node: PackageNode, build_dir: Optional[Path]
    ) -> tuple[bool, Optional[LeafMetrics]]:
        try:
            provenance = self.provenance.resolve_files(node, build_dir)
        except OSError as e:
            logger.warning("Could not resolve files of %s: %s", node.id, e)
            return False, None
        if not provenance.used:
            logger.debug("Imprecise provenance for %s, scanning its whole directory", node.id)
        return provenance.used, self.scanner.scan(provenance.files)

    def _aggregate(
        self,
        view: GraphView,
        engine: ReachabilityEngine,
        records: Mapping[PackageId, PackageRisk],
        leaf_metrics: Mapping[PackageId, LeafMetrics],
    ) -> None:
        aggregator = MetricAggregator(view, records, excluded=engine.workspace_roots)
        result = aggregator.aggregate(leaf_metrics)
        for pid, totals in result.totals.items():
            record = records[pid]
            record.total_loc = totals.loc
            record.total_unsafe_loc = totals.unsafe_loc
            record.total_loc_by_language = dict(totals.loc_by_language)
            record.totals_ready = True
        if result.incomplete:
            logger.warning(
                "%d package(s) are aggregation-incomplete", len(result.incomplete)
            )

    async def _enrich(self, records: Mapping[PackageId, PackageRisk]) -> None:
        """Look up each package name once and share the answer across versions."""
        representatives: dict[str, PackageNode] = {}
        for pid in sorted(records):
            node = self.graph.package(pid)
            representatives.setdefault(node.name, node)

        found = await self.oracle.lookup_batch(representatives.values())
        for record in records.values():
            record.apply_reputation(found.get(representatives[record.name].id))
