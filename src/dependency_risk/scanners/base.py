"""Base interface for resolved-graph scanners.

Scanners obtain an already-resolved dependency graph from some source,
such as a cargo project or a captured graph snapshot. They never perform
dependency resolution themselves.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from dependency_risk.graph import DependencyGraph


class BaseScanner(ABC):
    """Abstract base class for resolved-graph scanners.

    Attributes:
        source_path: Optional path to the file being scanned.
    """

    def __init__(self, source_path: Optional[Path] = None) -> None:
        """Initialize the scanner.

        Args:
            source_path: Optional path to the source file (manifest, snapshot, etc.).
        """
        self.source_path = source_path

    @abstractmethod
    def scan(self) -> DependencyGraph:
        """Scan the source and build the dependency graph.

        Returns:
            The resolved DependencyGraph.

        Raises:
            GraphLoadError: If the graph cannot be obtained or parsed.
        """
        ...

    @classmethod
    @abstractmethod
    def can_handle(cls, path: Path) -> bool:
        """Check if this scanner can handle the given file.

        Args:
            path: Path to check.

        Returns:
            True if this scanner can process the file, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for this scanner's source type.

        Returns:
            Name like "Cargo.toml", "graph snapshot", etc.
        """
        ...

    @property
    def supports_build(self) -> bool:
        """Return True if the source can be built to resolve file provenance."""
        return False
