"""Run configuration for dependency_risk.

Settings come from command-line options and environment variables; there
is no configuration file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dependency_risk import __version__

DEFAULT_MAX_WORKERS = 8
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
USER_AGENT = f"dependency-risk/{__version__}"


@dataclass
class AnalysisConfig:
    """Everything a single analysis run needs to know.

    Attributes:
        manifest_path: Project manifest (Cargo.toml) or graph snapshot (JSON).
        include: Root packages to analyze exclusively.
        exclude: Root packages to leave out.
        html_output: Where to write the HTML report; JSON goes to stdout if None.
        template: Custom Jinja2 template for the HTML report.
        github_token: GitHub API token, enables repository statistics.
        proxy: Proxy URL for every external HTTP request.
        build: Run the build to resolve precise file provenance.
        offline: Skip every reputation lookup.
        max_workers: Upper bound on concurrent scans and lookups.
        max_retries: Retries for a failing HTTP lookup.
        retry_delay: Base delay in seconds for exponential backoff.
    """

    manifest_path: Path = field(default_factory=lambda: Path("Cargo.toml"))
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    html_output: Optional[Path] = None
    template: Optional[Path] = None
    github_token: Optional[str] = None
    proxy: Optional[str] = None
    build: bool = True
    offline: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
