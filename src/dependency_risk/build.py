"""Runs the project build so compiler dep-info files exist for provenance.

The build also reports unsafe code: every crate is compiled with the
``unsafe_code`` lint forbidden but capped to a warning, and each resulting
diagnostic in cargo's JSON message stream is attributed to its package.
"""

import json
import logging
import os
import subprocess
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dependency_risk.exceptions import BuildError
from dependency_risk.models import PackageId

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 20

# Forbid unsafe code, but only warn so every crate still builds
UNSAFE_RUSTFLAGS = "-Funsafe-code --cap-lints=warn"


@dataclass
class BuildResult:
    """What the compiler reported about each package.

    Attributes:
        compiled: Packages the build compiled.
        unsafe_code: Number of ``unsafe_code`` diagnostics per package.
    """

    compiled: set[PackageId] = field(default_factory=set)
    unsafe_code: Counter = field(default_factory=Counter)

    def unsafe_count(self, package_id: PackageId) -> Optional[int]:
        """Return the compiler's unsafe count, or None if it never saw the package."""
        if package_id not in self.compiled:
            return None
        return self.unsafe_code[package_id]


def parse_messages(stdout: str) -> BuildResult:
    """Parse cargo's ``--message-format=json`` output.

    Args:
        stdout: One JSON message per line. Other lines are ignored.

    Returns:
        BuildResult built from the compiler artifacts and messages.
    """
    result = BuildResult()
    for line in stdout.splitlines():
        if not line.startswith("{"):
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed cargo message: %s", line[:80])
            continue

        package_id = message.get("package_id")
        if not package_id:
            continue
        reason = message.get("reason")
        if reason == "compiler-artifact":
            result.compiled.add(package_id)
        elif reason == "compiler-message":
            result.compiled.add(package_id)
            code = (message.get("message") or {}).get("code") or {}
            if code.get("code") == "unsafe_code":
                result.unsafe_code[package_id] += 1
    return result


class CargoBuild:
    """Type-checks a cargo project into a dedicated target directory.

    ``cargo check`` is enough: it writes a dep-info file for every compiled
    crate without producing binaries. ``-vv`` makes cargo report the
    warnings of registry dependencies too.

    Attributes:
        cargo: The cargo executable.
    """

    def __init__(self, cargo: str = "cargo") -> None:
        self.cargo = cargo

    def run(self, manifest_path: Path, target_dir: Path) -> BuildResult:
        """Build the project.

        Args:
            manifest_path: Path to the project's Cargo.toml.
            target_dir: Directory receiving build output.

        Returns:
            BuildResult with the unsafe code found in each compiled package.

        Raises:
            BuildError: If cargo cannot be started or the build fails.
        """
        cmd = [
            self.cargo,
            "check",
            "-vv",
            "--message-format=json",
            "--manifest-path",
            str(manifest_path),
            "--target-dir",
            str(target_dir),
        ]
        rustflags = " ".join(filter(None, [os.environ.get("RUSTFLAGS"), UNSAFE_RUSTFLAGS]))
        logger.debug("Running %s with RUSTFLAGS=%s", " ".join(cmd), rustflags)
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                env={**os.environ, "RUSTFLAGS": rustflags},
            )
        except OSError as e:
            raise BuildError(f"Could not run {self.cargo}: {e}") from e

        if completed.returncode != 0:
            tail = "\n".join(completed.stderr.splitlines()[-_STDERR_TAIL_LINES:])
            raise BuildError(
                f"Could not build {manifest_path} (exit code {completed.returncode})"
                + (f":\n{tail}" if tail else "")
            )

        result = parse_messages(completed.stdout)
        logger.debug(
            "Build of %s succeeded: %d package(s) compiled, %d unsafe usage(s)",
            manifest_path,
            len(result.compiled),
            sum(result.unsafe_code.values()),
        )
        return result
