"""Scanner for cargo projects.

This module runs ``cargo metadata`` against a Cargo.toml and turns its
resolved dependency graph into a DependencyGraph.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from dependency_risk.exceptions import GraphLoadError
from dependency_risk.graph import DependencyGraph
from dependency_risk.models import DependencyEdge, DependencyKind, PackageNode
from dependency_risk.scanners.base import BaseScanner

logger = logging.getLogger(__name__)


def parse_cargo_metadata(data: dict[str, Any]) -> DependencyGraph:
    """Build a DependencyGraph from ``cargo metadata --format-version 1`` output.

    Workspace members become root packages. Each resolved dependency yields
    one edge per distinct dependency kind, so a crate used both as a normal
    and as a dev dependency keeps its normal edge.

    Args:
        data: Parsed JSON document.

    Returns:
        The resolved graph.

    Raises:
        GraphLoadError: If required sections are missing or malformed.
    """
    resolve = data.get("resolve")
    if not resolve or "nodes" not in resolve:
        raise GraphLoadError(
            "cargo metadata output has no resolved dependency graph "
            "(was it run with --no-deps?)"
        )

    workspace_members = set(data.get("workspace_members", []))
    packages: list[PackageNode] = []
    for pkg in data.get("packages", []):
        for key in ("id", "name", "version"):
            if key not in pkg:
                raise GraphLoadError(f"Package missing required field '{key}' in cargo metadata")
        manifest = pkg.get("manifest_path")
        packages.append(
            PackageNode(
                id=pkg["id"],
                name=pkg["name"],
                version=pkg["version"],
                manifest_path=Path(manifest) if manifest else None,
                repository_url=pkg.get("repository"),
                description=pkg.get("description"),
                is_root=pkg["id"] in workspace_members,
                source=pkg.get("source"),
            )
        )

    edges: list[DependencyEdge] = []
    for node in resolve["nodes"]:
        for dep in node.get("deps", []):
            target = dep.get("pkg")
            if target is None:
                raise GraphLoadError(f"Dependency of {node.get('id')} has no 'pkg' field")
            kinds = {
                DependencyKind.from_raw(kind.get("kind"))
                for kind in dep.get("dep_kinds") or [{"kind": None}]
            }
            for kind in sorted(kinds, key=lambda k: k.value):
                edges.append(DependencyEdge(source=node["id"], target=target, kind=kind))

    return DependencyGraph(packages, edges)


class CargoScanner(BaseScanner):
    """Scanner for cargo manifests.

    Invokes ``cargo metadata`` to obtain the fully resolved package graph,
    including every workspace member.

    Attributes:
        cargo: The cargo executable.
    """

    def __init__(self, source_path: Path, cargo: str = "cargo") -> None:
        super().__init__(source_path)
        self.cargo = cargo

    def scan(self) -> DependencyGraph:
        """Run cargo metadata and parse its output.

        Returns:
            The resolved DependencyGraph.

        Raises:
            GraphLoadError: If cargo fails or its output cannot be parsed.
        """
        if self.source_path is None:
            raise GraphLoadError("source_path must be set before calling scan()")

        if not self.source_path.exists():
            raise GraphLoadError(f"Manifest not found: {self.source_path}")

        cmd = [
            self.cargo,
            "metadata",
            "--format-version",
            "1",
            "--manifest-path",
            str(self.source_path),
        ]
        logger.debug("Running %s", " ".join(cmd))
        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise GraphLoadError(f"Could not run {self.cargo}: {e}") from e

        if completed.returncode != 0:
            raise GraphLoadError(
                f"cargo metadata failed for {self.source_path}: {completed.stderr.strip()}"
            )

        try:
            data = json.loads(completed.stdout)
        except json.JSONDecodeError as e:
            raise GraphLoadError(f"Invalid JSON from cargo metadata: {e}") from e

        return parse_cargo_metadata(data)

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        """Check if this scanner can handle the given file.

        Args:
            path: Path to check.

        Returns:
            True if the file is named "Cargo.toml", False otherwise.
        """
        return path.name == "Cargo.toml"

    @property
    def source_name(self) -> str:
        """Return a human-readable name for this scanner's source type.

        Returns:
            The string "Cargo.toml".
        """
        return "Cargo.toml"

    @property
    def supports_build(self) -> bool:
        return True
