"""Command-line interface for dependency_risk.

Provides the main entry point and subcommands for analyzing the supply
chain of a project and listing its root packages.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from dependency_risk.analysis import AnalysisReport, RiskAnalyzer
from dependency_risk.build import BuildResult, CargoBuild
from dependency_risk.config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_WORKERS,
    AnalysisConfig,
)
from dependency_risk.exceptions import DependencyRiskError, EmptyRootSetError
from dependency_risk.provenance import DepInfoProvenanceResolver
from dependency_risk.reporters import HtmlReporter, JsonReporter
from dependency_risk.resolvers import (
    BaseResolver,
    CratesIoResolver,
    GitHubResolver,
    ReputationOracle,
)
from dependency_risk.roots import select_roots
from dependency_risk.scanners import get_scanner

app = typer.Typer(
    name="dependency-risk",
    help="Per-dependency risk profiles for a project's supply chain.",
    no_args_is_help=True,
)

# Status goes to stderr so that stdout stays clean JSON
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("dependency_risk")


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("dependency_risk").setLevel(level)


def _project_name(path: Path) -> str:
    path = path.resolve()
    if path.is_dir():
        return path.name
    if path.name == "Cargo.toml":
        return path.parent.name
    return path.stem


def _build_oracle(config: AnalysisConfig) -> Optional[ReputationOracle]:
    """Create the reputation oracle for a run, or None when offline.

    GitHub statistics are only gathered with a token; the anonymous rate
    limit is far too low for a real dependency tree.
    """
    if config.offline:
        return None

    http_options = {
        "proxy": config.proxy,
        "max_retries": config.max_retries,
        "retry_delay": config.retry_delay,
    }
    resolvers: list[BaseResolver] = [CratesIoResolver(**http_options)]
    if config.github_token:
        resolvers.append(GitHubResolver(github_token=config.github_token, **http_options))
    else:
        logger.info("No GitHub token given, skipping repository statistics")
    return ReputationOracle(resolvers, max_concurrency=config.max_workers)


async def _run_analysis(config: AnalysisConfig) -> AnalysisReport:
    """Load the graph, build the project, and run the analysis.

    Args:
        config: Settings for this run.

    Returns:
        The finished analysis report.

    Raises:
        DependencyRiskError: If the run cannot proceed.
    """
    scanner = get_scanner(config.manifest_path)
    logger.debug("Using scanner: %s", scanner.source_name)

    graph = scanner.scan()
    roots = select_roots(graph, include=config.include, exclude=config.exclude)

    oracle = _build_oracle(config)
    analyzer = RiskAnalyzer(
        graph,
        provenance=DepInfoProvenanceResolver(),
        oracle=oracle,
        max_workers=config.max_workers,
    )
    try:
        with tempfile.TemporaryDirectory(prefix="dependency-risk-") as tmp:
            build_dir: Optional[Path] = None
            build: Optional[BuildResult] = None
            if config.build and scanner.supports_build:
                build_dir = Path(tmp)
                build = CargoBuild().run(scanner.source_path, build_dir)
            elif config.build:
                logger.info("%s cannot be built, using directory scans", scanner.source_name)

            return await analyzer.analyze(
                roots,
                build_dir=build_dir,
                build=build,
                project_name=_project_name(config.manifest_path),
            )
    finally:
        if oracle is not None:
            await oracle.close()


@app.command()
def analyze(
    manifest_path: Annotated[
        Path,
        typer.Option(
            "--manifest-path",
            "-m",
            help="Path to Cargo.toml, a project directory, or a JSON graph snapshot",
        ),
    ] = Path("Cargo.toml"),
    package: Annotated[
        Optional[list[str]],
        typer.Option(
            "--package",
            "-p",
            help="Only analyze this root package (repeatable)",
        ),
    ] = None,
    exclude: Annotated[
        Optional[list[str]],
        typer.Option(
            "--exclude",
            "-x",
            help="Do not analyze this root package (repeatable)",
        ),
    ] = None,
    html_output: Annotated[
        Optional[Path],
        typer.Option(
            "--html-output",
            "-o",
            help="Write an HTML report here instead of printing JSON",
        ),
    ] = None,
    template: Annotated[
        Optional[Path],
        typer.Option(
            "--template",
            "-t",
            help="Custom Jinja2 template for the HTML report",
            exists=True,
            readable=True,
        ),
    ] = None,
    github_token: Annotated[
        Optional[str],
        typer.Option(
            "--github-token",
            envvar="GITHUB_TOKEN",
            help="GitHub API token, enables stars and contributor counts",
        ),
    ] = None,
    proxy: Annotated[
        Optional[str],
        typer.Option(
            "--proxy",
            envvar="DEPENDENCY_RISK_PROXY",
            help="Proxy URL for every external HTTP request",
        ),
    ] = None,
    no_build: Annotated[
        bool,
        typer.Option(
            "--no-build",
            help="Skip the build; scan whole package directories instead",
        ),
    ] = False,
    offline: Annotated[
        bool,
        typer.Option(
            "--offline",
            help="Skip every reputation lookup",
        ),
    ] = False,
    jobs: Annotated[
        int,
        typer.Option(
            "--jobs",
            "-j",
            min=1,
            help="Packages scanned and looked up concurrently",
        ),
    ] = DEFAULT_MAX_WORKERS,
    retries: Annotated[
        int,
        typer.Option(
            "--retries",
            min=0,
            help="Retries for a failing HTTP lookup",
        ),
    ] = DEFAULT_MAX_RETRIES,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Analyze the dependencies of a project.

    Computes a risk record for every third-party package and prints them
    as JSON, or writes an HTML report with --html-output.

    Exit codes:
        0 - Analysis finished (possibly with incomplete records)
        1 - The analysis could not run
    """
    _setup_logging(verbose)

    config = AnalysisConfig(
        manifest_path=manifest_path,
        include=package or [],
        exclude=exclude or [],
        html_output=html_output,
        template=template,
        github_token=github_token,
        proxy=proxy,
        build=not no_build,
        offline=offline,
        max_workers=jobs,
        max_retries=retries,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress:
        task = progress.add_task("Analyzing dependencies...", total=None)
        try:
            report = asyncio.run(_run_analysis(config))
        except DependencyRiskError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1)
        progress.update(task, completed=True)

    err_console.print(
        f"Analyzed [bold]{len(report.packages)}[/bold] packages "
        f"for {', '.join(report.roots)}"
    )
    if report.incomplete:
        err_console.print(
            f"[yellow]{len(report.incomplete)} package(s) have incomplete totals[/yellow]"
        )

    if html_output:
        try:
            HtmlReporter(template_path=template).write(report, html_output)
        except OSError as e:
            err_console.print(f"[red]Error writing output:[/red] {e}")
            raise typer.Exit(code=1)
        err_console.print(f"[green]Generated:[/green] {html_output}")
    else:
        typer.echo(JsonReporter().render(report))


@app.command()
def roots(
    manifest_path: Annotated[
        Path,
        typer.Option(
            "--manifest-path",
            "-m",
            help="Path to Cargo.toml, a project directory, or a JSON graph snapshot",
        ),
    ] = Path("Cargo.toml"),
    package: Annotated[
        Optional[list[str]],
        typer.Option("--package", "-p", help="Only analyze this root package (repeatable)"),
    ] = None,
    exclude: Annotated[
        Optional[list[str]],
        typer.Option("--exclude", "-x", help="Do not analyze this root package (repeatable)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """List the root packages and whether they would be analyzed."""
    _setup_logging(verbose)

    try:
        graph = get_scanner(manifest_path).scan()
    except DependencyRiskError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    try:
        selected = select_roots(graph, include=package, exclude=exclude)
    except EmptyRootSetError as e:
        err_console.print(f"[yellow]{e}[/yellow]")
        selected = frozenset()

    for pid in sorted(graph.root_ids, key=lambda p: graph.package(p).name):
        node = graph.package(pid)
        status = "analyzed" if pid in selected else "skipped"
        typer.echo(f"{node.name} {node.version}\t{status}")

    if not selected:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
