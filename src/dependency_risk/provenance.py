"""Build provenance: which files were actually compiled for a package.

Precise provenance comes from the compiler's dep-info files (Makefile-style
``target: dependency ...`` lines written next to the build artifacts). When
no dep-info file exists for a package, usually because it is not part of the
compiled target or feature set, every file of the package directory is
returned instead and the result is flagged ``used=False``. Neither answer
should be read as file-level precise.
"""

import fnmatch
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from dependency_risk.models import PackageNode, ProvenanceResult

logger = logging.getLogger(__name__)

DEFAULT_SKIP_DIRS = [".git", "target", "node_modules", "__pycache__", ".venv"]


class BuildProvenanceResolver(ABC):
    """Abstract base class for build provenance resolvers."""

    @abstractmethod
    def resolve_files(
        self, package: PackageNode, build_dir: Optional[Path]
    ) -> ProvenanceResult:
        """Return the files that make up ``package``.

        Args:
            package: The package to resolve.
            build_dir: Build output directory, or None if no build was run.

        Returns:
            ProvenanceResult; ``used=False`` marks a best-effort fallback.
        """
        ...


class DepInfoProvenanceResolver(BuildProvenanceResolver):
    """Resolves files from rustc dep-info files, falling back to a directory walk.

    Attributes:
        profile: Build profile directory holding the ``deps`` folder.
        skip_dirs: Directory name patterns ignored by the fallback walk.
    """

    def __init__(
        self, profile: str = "debug", skip_dirs: Optional[list[str]] = None
    ) -> None:
        self.profile = profile
        self.skip_dirs = skip_dirs or list(DEFAULT_SKIP_DIRS)

    def resolve_files(
        self, package: PackageNode, build_dir: Optional[Path]
    ) -> ProvenanceResult:
        if build_dir is not None:
            dep_info = self._find_dep_info(package, build_dir)
            if dep_info is None:
                logger.debug("No dep-info file found for %s", package.name)
            else:
                try:
                    listed = parse_dep_info(dep_info)
                except OSError as e:
                    logger.warning("Could not read %s: %s", dep_info, e)
                else:
                    base = package.manifest_path.parent if package.manifest_path else None
                    files = {
                        path if path.is_absolute() or base is None else base / path
                        for path in listed
                    }
                    return ProvenanceResult(used=True, files=frozenset(files))

        if package.manifest_path is None:
            logger.warning("No manifest path for %s, nothing to scan", package.id)
            return ProvenanceResult(used=False)
        return ProvenanceResult(
            used=False, files=frozenset(self._every_file(package.manifest_path.parent))
        )

    def _find_dep_info(self, package: PackageNode, build_dir: Path) -> Optional[Path]:
        deps_dir = build_dir / self.profile / "deps"
        crate_name = package.name.replace("-", "_")
        candidates = sorted(deps_dir.glob(f"{crate_name}-*.d"))
        return candidates[0] if candidates else None

    def _every_file(self, directory: Path) -> set[Path]:
        files: set[Path] = set()
        for path in sorted(directory.rglob("*")):
            if self._should_skip(path.relative_to(directory)):
                continue
            if path.is_file():
                files.add(path)
        return files

    def _should_skip(self, relative: Path) -> bool:
        for part in relative.parts[:-1]:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False


def parse_dep_info(path: Path) -> set[Path]:
    """Parse a dep-info file into the set of files it lists.

    Each relevant line reads ``target: dep1 dep2 ...``; a space inside a
    file name is escaped with a trailing backslash.

    Args:
        path: The ``.d`` file.

    Returns:
        Every dependency file named in it.
    """
    files: set[Path] = set()
    for line in path.read_text(encoding="utf-8").splitlines():
        pos = line.find(": ")
        if pos == -1:
            continue
        tokens = iter(line[pos + 2:].split())
        for token in tokens:
            name = token
            while name.endswith("\\"):
                following = next(tokens, None)
                if following is None:
                    logger.warning("Malformed dep-info line in %s: %s", path, line)
                    name = name[:-1]
                    break
                name = name[:-1] + " " + following
            files.add(Path(name))
    return files
