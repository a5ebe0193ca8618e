"""Scanner for JSON graph snapshots.

A snapshot is the resolved graph written out by some external resolver::

    {
      "packages": [
        {"id": "...", "name": "...", "version": "...", "manifest_path": "...",
         "repository_url": "...", "description": "...", "is_root": false,
         "source": "..."}
      ],
      "edges": [{"from": "...", "to": "...", "kind": "normal"}]
    }

A captured ``cargo metadata`` document is accepted as well.
"""

import json
from pathlib import Path
from typing import Any

from dependency_risk.exceptions import GraphLoadError
from dependency_risk.graph import DependencyGraph
from dependency_risk.models import DependencyEdge, DependencyKind, PackageNode
from dependency_risk.scanners.base import BaseScanner
from dependency_risk.scanners.cargo import parse_cargo_metadata


class SnapshotScanner(BaseScanner):
    """Scanner for JSON files holding an already-resolved graph."""

    def scan(self) -> DependencyGraph:
        """Load the snapshot.

        Returns:
            The resolved DependencyGraph.

        Raises:
            GraphLoadError: If the file is missing or its content is invalid.
        """
        if self.source_path is None:
            raise GraphLoadError("source_path must be set before calling scan()")

        if not self.source_path.exists():
            raise GraphLoadError(f"Graph snapshot not found: {self.source_path}")

        try:
            with open(self.source_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise GraphLoadError(f"Invalid JSON in {self.source_path}: {e}") from e
        except OSError as e:
            raise GraphLoadError(f"Could not read {self.source_path}: {e}") from e

        if not isinstance(data, dict):
            raise GraphLoadError(f"Expected a JSON object in {self.source_path}")

        if "workspace_members" in data:
            return parse_cargo_metadata(data)
        return self._parse_snapshot(data)

    def _parse_snapshot(self, data: dict[str, Any]) -> DependencyGraph:
        packages: list[PackageNode] = []
        for pkg in data.get("packages", []):
            for key in ("id", "name", "version"):
                if key not in pkg:
                    raise GraphLoadError(
                        f"Package missing required field '{key}' in {self.source_path}"
                    )
            manifest = pkg.get("manifest_path")
            packages.append(
                PackageNode(
                    id=pkg["id"],
                    name=pkg["name"],
                    version=pkg["version"],
                    manifest_path=Path(manifest) if manifest else None,
                    repository_url=pkg.get("repository_url"),
                    description=pkg.get("description"),
                    is_root=bool(pkg.get("is_root", False)),
                    source=pkg.get("source"),
                )
            )

        edges: list[DependencyEdge] = []
        for edge in data.get("edges", []):
            if "from" not in edge or "to" not in edge:
                raise GraphLoadError(
                    f"Edge missing 'from' or 'to' field in {self.source_path}"
                )
            edges.append(
                DependencyEdge(
                    source=edge["from"],
                    target=edge["to"],
                    kind=DependencyKind.from_raw(edge.get("kind")),
                )
            )

        return DependencyGraph(packages, edges)

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        """Check if this scanner can handle the given file.

        Args:
            path: Path to check.

        Returns:
            True for ``.json`` files, False otherwise.
        """
        return path.suffix == ".json"

    @property
    def source_name(self) -> str:
        """Return a human-readable name for this scanner's source type.

        Returns:
            The string "graph snapshot".
        """
        return "graph snapshot"
