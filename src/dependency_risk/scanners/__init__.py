"""Resolved-graph scanners for various project sources.

This module provides scanners that load an already-resolved package
dependency graph from a project manifest or a graph snapshot.
"""

from pathlib import Path

from dependency_risk.exceptions import GraphLoadError
from dependency_risk.scanners.base import BaseScanner
from dependency_risk.scanners.cargo import CargoScanner, parse_cargo_metadata
from dependency_risk.scanners.snapshot import SnapshotScanner

__all__ = [
    "BaseScanner",
    "CargoScanner",
    "SnapshotScanner",
    "get_scanner",
    "parse_cargo_metadata",
]

# Registry of available scanners in priority order
_SCANNERS: list[type[BaseScanner]] = [
    CargoScanner,
    SnapshotScanner,
]


def get_scanner(path: Path) -> BaseScanner:
    """Get the appropriate scanner for a given path.

    Auto-detects the source type from the file name. A directory is looked
    up for a Cargo.toml.

    Args:
        path: Path to the manifest, snapshot, or project directory.

    Returns:
        Scanner instance configured for the given path.

    Raises:
        GraphLoadError: If no scanner can handle the given path.
    """
    if path.is_dir():
        path = path / "Cargo.toml"

    for scanner_cls in _SCANNERS:
        if scanner_cls.can_handle(path):
            return scanner_cls(path)

    raise GraphLoadError(
        f"No scanner available for '{path.name}'. "
        f"Supported files: Cargo.toml, *.json graph snapshots"
    )
