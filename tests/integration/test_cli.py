import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dependency_risk.analysis import AnalysisReport
from dependency_risk.cli import _build_oracle, app
from dependency_risk.config import AnalysisConfig
from dependency_risk.models import PackageRisk
from dependency_risk.resolvers import CratesIoResolver, GitHubResolver

runner = CliRunner()


def _json_from(output: str) -> dict:
    return json.loads(output[output.index("{"):])


@pytest.fixture
def snapshot(fixtures_dir: Path) -> Path:
    return fixtures_dir / "snapshot.json"


@pytest.fixture
def mock_run_analysis(mocker):
    """Mock the _run_analysis function."""
    report = AnalysisReport(
        project_name="demo",
        roots=["demo"],
        direct_dependencies=["anyhow"],
        packages={
            "anyhow": PackageRisk(
                name="anyhow",
                ids={"anyhow 1.0.79"},
                versions={"1.0.79"},
                is_direct=True,
            )
        },
    )
    return mocker.patch("dependency_risk.cli._run_analysis", return_value=report)


def test_analyze_prints_json(mock_run_analysis) -> None:
    result = runner.invoke(app, ["analyze", "--offline"])

    assert result.exit_code == 0
    assert _json_from(result.stdout)["anyhow"]["is_direct"] is True
    assert "1 package(s) have incomplete totals" in result.output


def test_analyze_passes_options(mock_run_analysis, tmp_path: Path) -> None:
    manifest = tmp_path / "Cargo.toml"
    result = runner.invoke(
        app,
        [
            "analyze",
            "-m",
            str(manifest),
            "-p",
            "core",
            "-p",
            "cli",
            "--no-build",
            "--jobs",
            "3",
            "--proxy",
            "http://proxy:3128",
        ],
        env={"GITHUB_TOKEN": "ghp_env"},
    )

    assert result.exit_code == 0
    config: AnalysisConfig = mock_run_analysis.call_args.args[0]
    assert config.manifest_path == manifest
    assert config.include == ["core", "cli"]
    assert config.exclude == []
    assert config.build is False
    assert config.max_workers == 3
    assert config.proxy == "http://proxy:3128"
    assert config.github_token == "ghp_env"


def test_analyze_writes_html(mock_run_analysis, tmp_path: Path) -> None:
    output_file = tmp_path / "risk.html"

    result = runner.invoke(app, ["analyze", "--html-output", str(output_file)])

    assert result.exit_code == 0
    assert "Generated:" in result.output
    assert "anyhow" in output_file.read_text(encoding="utf-8")


def test_analyze_html_with_custom_template(mock_run_analysis, tmp_path: Path) -> None:
    template = tmp_path / "brief.html.j2"
    template.write_text("{{ name }} has {{ package_count }} package(s)")
    output_file = tmp_path / "risk.html"

    result = runner.invoke(
        app, ["analyze", "-o", str(output_file), "--template", str(template)]
    )

    assert result.exit_code == 0
    assert mock_run_analysis.call_args.args[0].template == template
    assert output_file.read_text(encoding="utf-8") == "demo has 1 package(s)"


def test_analyze_snapshot_end_to_end(snapshot: Path) -> None:
    """Test a full offline run over a captured graph."""
    result = runner.invoke(
        app, ["analyze", "--manifest-path", str(snapshot), "--offline", "--no-build"]
    )

    assert result.exit_code == 0
    data = _json_from(result.stdout)
    assert sorted(data) == ["bytes", "http", "hyper"]
    hyper = data["hyper"]
    assert hyper["versions"] == ["0.14.28", "1.1.0"]
    assert hyper["root_importers"] == ["web 0.1.0", "worker 0.1.0"]
    assert hyper["exclusive_dependencies"] == ["http 0.2.11"]
    assert hyper["transitive_dependencies"] == ["bytes", "http"]
    assert hyper["stargazers_count"] is None
    assert data["bytes"]["is_direct"] is False


def test_analyze_excluding_roots(snapshot: Path) -> None:
    result = runner.invoke(
        app,
        ["analyze", "-m", str(snapshot), "-x", "web", "--offline", "--no-build"],
    )

    assert result.exit_code == 0
    data = _json_from(result.stdout)
    assert sorted(data) == ["bytes", "hyper"]
    assert data["hyper"]["versions"] == ["1.1.0"]


def test_analyze_missing_manifest(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", "-m", str(tmp_path / "Cargo.toml")])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Manifest not found" in result.output


def test_analyze_empty_root_set(snapshot: Path) -> None:
    result = runner.invoke(
        app, ["analyze", "-m", str(snapshot), "-p", "nope", "--offline", "--no-build"]
    )

    assert result.exit_code == 1
    assert "No package to analyze" in result.output


def test_roots_command(snapshot: Path) -> None:
    result = runner.invoke(app, ["roots", "-m", str(snapshot), "--exclude", "worker"])

    assert result.exit_code == 0
    assert "web 0.1.0\tanalyzed" in result.output
    assert "worker 0.1.0\tskipped" in result.output


def test_roots_command_nothing_selected(snapshot: Path) -> None:
    result = runner.invoke(app, ["roots", "-m", str(snapshot), "-p", "missing"])

    assert result.exit_code == 1
    assert "web 0.1.0\tskipped" in result.output


class TestBuildOracle:
    """Test suite for the reputation oracle set up by the CLI."""

    def test_offline_has_no_oracle(self) -> None:
        assert _build_oracle(AnalysisConfig(offline=True)) is None

    def test_github_requires_token(self) -> None:
        """Test that repository statistics are only fetched with a token."""
        oracle = _build_oracle(AnalysisConfig())
        assert [type(r) for r in oracle.resolvers] == [CratesIoResolver]

    def test_github_with_token(self) -> None:
        oracle = _build_oracle(
            AnalysisConfig(github_token="ghp_x", proxy="http://p:1", max_retries=5)
        )

        assert [type(r) for r in oracle.resolvers] == [GitHubResolver, CratesIoResolver]
        assert all(r.proxy == "http://p:1" for r in oracle.resolvers)
        assert all(r.max_retries == 5 for r in oracle.resolvers)
