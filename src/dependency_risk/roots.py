"""Selection of the root (workspace) packages to analyze."""

import logging
from collections.abc import Collection
from typing import Optional

from dependency_risk.exceptions import EmptyRootSetError
from dependency_risk.graph import DependencyGraph
from dependency_risk.models import PackageId

logger = logging.getLogger(__name__)


def _matches(graph: DependencyGraph, package_id: PackageId, selectors: set[str]) -> bool:
    return package_id in selectors or graph.package(package_id).name in selectors


def select_roots(
    graph: DependencyGraph,
    include: Optional[Collection[str]] = None,
    exclude: Optional[Collection[str]] = None,
) -> frozenset[PackageId]:
    """Determine which root packages to analyze.

    Roots are the graph's workspace packages. Selectors match either a
    package name or a full package identity. A non-empty ``include`` list
    takes precedence over ``exclude``.

    Args:
        graph: The resolved dependency graph.
        include: Only analyze these roots.
        exclude: Analyze every root except these.

    Returns:
        Identities of the roots to analyze.

    Raises:
        EmptyRootSetError: If no root is left after filtering.
    """
    roots = graph.root_ids
    selected = roots

    if include:
        if exclude:
            logger.warning("Both include and exclude lists given, ignoring exclude list")
        wanted = set(include)
        selected = frozenset(pid for pid in roots if _matches(graph, pid, wanted))
        _warn_unmatched(graph, roots, wanted, "include")
    elif exclude:
        unwanted = set(exclude)
        selected = frozenset(pid for pid in roots if not _matches(graph, pid, unwanted))
        _warn_unmatched(graph, roots, unwanted, "exclude")

    if not selected:
        raise EmptyRootSetError("No package to analyze was found")

    logger.debug(
        "Analyzing %d of %d root package(s): %s",
        len(selected),
        len(roots),
        ", ".join(sorted(graph.package(pid).name for pid in selected)),
    )
    return selected


def _warn_unmatched(
    graph: DependencyGraph,
    roots: frozenset[PackageId],
    selectors: set[str],
    label: str,
) -> None:
    known = set(roots) | {graph.package(pid).name for pid in roots}
    for selector in sorted(selectors - known):
        logger.warning("No root package matches %s entry %r", label, selector)
