"""Tests for core data models."""

from datetime import date
from pathlib import Path

import pytest

from dependency_risk.exceptions import GraphLoadError
from dependency_risk.models import (
    DependencyEdge,
    DependencyKind,
    LeafMetrics,
    PackageNode,
    PackageRisk,
    Reputation,
)


class TestDependencyKind:
    """Test suite for DependencyKind."""

    @pytest.mark.parametrize("raw", [None, "normal"])
    def test_normal_aliases(self, raw: str | None) -> None:
        """Test that a missing kind means a normal dependency."""
        assert DependencyKind.from_raw(raw) is DependencyKind.NORMAL

    def test_build(self) -> None:
        assert DependencyKind.from_raw("build") is DependencyKind.BUILD

    @pytest.mark.parametrize("raw", ["dev", "dev-only"])
    def test_dev_aliases(self, raw: str) -> None:
        """Test that dev-only is accepted as an alias of dev."""
        assert DependencyKind.from_raw(raw) is DependencyKind.DEV

    def test_unknown_kind_raises(self) -> None:
        """Test that unknown kinds are rejected."""
        with pytest.raises(GraphLoadError, match="optional"):
            DependencyKind.from_raw("optional")


def test_edge_is_dev() -> None:
    """Test that only dev edges report is_dev."""
    assert DependencyEdge("a", "b", DependencyKind.DEV).is_dev
    assert not DependencyEdge("a", "b", DependencyKind.BUILD).is_dev
    assert not DependencyEdge("a", "b").is_dev


def test_leaf_metrics_loc_sums_languages() -> None:
    """Test that loc is the sum over every language."""
    metrics = LeafMetrics(loc_by_language={"Rust": 100, "C": 20})
    assert metrics.loc == 120


class TestReputation:
    """Test suite for Reputation."""

    def test_merge_fills_missing_fields(self) -> None:
        """Test that merge keeps known values and fills unknown ones."""
        github = Reputation(stars=10, active_contributors=3)
        registry = Reputation(
            stars=99, downstream_dependents=7, last_updated=date(2024, 5, 1)
        )

        merged = github.merge(registry)

        assert merged.stars == 10
        assert merged.active_contributors == 3
        assert merged.downstream_dependents == 7
        assert merged.last_updated == date(2024, 5, 1)

    def test_merge_with_none_returns_copy(self) -> None:
        """Test that merging with None returns an equal, distinct object."""
        reputation = Reputation(stars=1)
        merged = reputation.merge(None)
        assert merged == reputation
        assert merged is not reputation

    def test_is_empty(self) -> None:
        assert Reputation().is_empty
        assert not Reputation(downstream_dependents=0).is_empty


class TestPackageRisk:
    """Test suite for PackageRisk."""

    @pytest.fixture
    def node(self) -> PackageNode:
        return PackageNode(
            id="serde 1.0.0 (registry+https://github.com/rust-lang/crates.io-index)",
            name="serde",
            version="1.0.0",
            manifest_path=Path("/registry/serde-1.0.0/Cargo.toml"),
            repository_url="https://github.com/serde-rs/serde",
            description="A serialization framework",
        )

    def test_from_node(self, node: PackageNode) -> None:
        """Test that a fresh record carries the node's identity data."""
        record = PackageRisk.from_node(node, is_direct=True)

        assert record.name == "serde"
        assert record.ids == {node.id}
        assert record.versions == {"1.0.0"}
        assert record.repository_url == "https://github.com/serde-rs/serde"
        assert record.is_direct
        assert record.used is None
        assert not record.totals_ready
        assert record.total_loc is None

    def test_apply_leaf_metrics(self, node: PackageNode) -> None:
        record = PackageRisk.from_node(node)
        record.apply_leaf_metrics(
            LeafMetrics(loc_by_language={"Rust": 40}, unsafe_loc=2, skipped_files=1)
        )

        assert record.loc == 40
        assert record.loc_by_language == {"Rust": 40}
        assert record.unsafe_loc == 2
        assert record.skipped_files == 1

    def test_apply_reputation_none_leaves_fields_empty(self, node: PackageNode) -> None:
        """Test that a failed lookup leaves the enrichment fields unset."""
        record = PackageRisk.from_node(node)
        record.apply_reputation(None)

        assert record.stargazers_count is None
        assert record.downstream_dependents is None

    def test_to_dict_is_deterministic(self, node: PackageNode) -> None:
        """Test that set fields are serialized sorted."""
        record = PackageRisk.from_node(node)
        record.versions = {"1.0.1", "1.0.0"}
        record.transitive_dependencies = {"zeta", "alpha"}
        record.apply_reputation(
            Reputation(stars=5, last_updated=date(2023, 12, 31))
        )

        data = record.to_dict()

        assert data["versions"] == ["1.0.0", "1.0.1"]
        assert data["transitive_dependencies"] == ["alpha", "zeta"]
        assert data["repository"] == "https://github.com/serde-rs/serde"
        assert data["stargazers_count"] == 5
        assert data["last_updated"] == "2023-12-31"
        assert data["totals_ready"] is False
        assert data["total_loc_by_language"] is None

    def test_to_dict_total_languages_sorted(self, node: PackageNode) -> None:
        record = PackageRisk.from_node(node)
        record.total_loc_by_language = {"Rust": 7, "C": 2}
        record.totals_ready = True

        assert list(record.to_dict()["total_loc_by_language"]) == ["C", "Rust"]
