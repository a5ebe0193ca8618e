"""Merging of per-identity risk records into one record per package name.

Callers reason about dependency risk per logical package, not per exact
version, so every version of a name is folded into a single record. Set
fields are unioned and counters summed, subtree totals included, so a
subtree shared by two versions counts once per version. Scalar fields that
disagree keep the first non-empty value.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from dependency_risk.models import PackageRisk

logger = logging.getLogger(__name__)

_SCALAR_FIELDS = (
    "repository_url",
    "description",
    "stargazers_count",
    "active_contributors",
    "downstream_dependents",
    "last_updated",
)


class RiskRecordAssembler:
    """Builds the final name-keyed PackageRisk mapping."""

    def assemble(self, records: Iterable[PackageRisk]) -> dict[str, PackageRisk]:
        """Merge per-identity records by package name.

        Records are processed in identity order so that "first non-empty
        value" is deterministic across runs.

        Args:
            records: One record per package identity.

        Returns:
            Mapping from package name to merged record, sorted by name.
        """
        merged: dict[str, PackageRisk] = {}
        for record in sorted(records, key=lambda r: (r.name, sorted(r.ids))):
            existing = merged.get(record.name)
            if existing is None:
                merged[record.name] = self._copy(record)
            else:
                self._merge_into(existing, record)
        return dict(sorted(merged.items()))

    @staticmethod
    def _copy(record: PackageRisk) -> PackageRisk:
        return PackageRisk(
            name=record.name,
            ids=set(record.ids),
            versions=set(record.versions),
            repository_url=record.repository_url,
            description=record.description,
            is_direct=record.is_direct,
            used=record.used,
            direct_dependencies=set(record.direct_dependencies),
            transitive_dependencies=set(record.transitive_dependencies),
            root_importers=set(record.root_importers),
            exclusive_dependencies=set(record.exclusive_dependencies),
            loc=record.loc,
            loc_by_language=dict(record.loc_by_language),
            unsafe_loc=record.unsafe_loc,
            skipped_files=record.skipped_files,
            total_loc=record.total_loc,
            total_unsafe_loc=record.total_unsafe_loc,
            total_loc_by_language=(
                dict(record.total_loc_by_language)
                if record.total_loc_by_language is not None
                else None
            ),
            totals_ready=record.totals_ready,
            stargazers_count=record.stargazers_count,
            active_contributors=record.active_contributors,
            downstream_dependents=record.downstream_dependents,
            last_updated=record.last_updated,
        )

    def _merge_into(self, target: PackageRisk, other: PackageRisk) -> None:
        target.ids |= other.ids
        target.versions |= other.versions
        target.is_direct = target.is_direct or other.is_direct
        target.used = _merge_used(target.used, other.used)

        target.direct_dependencies |= other.direct_dependencies
        target.transitive_dependencies |= other.transitive_dependencies
        target.root_importers |= other.root_importers
        target.exclusive_dependencies |= other.exclusive_dependencies

        target.loc += other.loc
        target.unsafe_loc += other.unsafe_loc
        target.skipped_files += other.skipped_files
        for language, count in other.loc_by_language.items():
            target.loc_by_language[language] = (
                target.loc_by_language.get(language, 0) + count
            )

        if target.totals_ready and other.totals_ready:
            target.total_loc = (target.total_loc or 0) + (other.total_loc or 0)
            target.total_unsafe_loc = (target.total_unsafe_loc or 0) + (
                other.total_unsafe_loc or 0
            )
            by_language = dict(target.total_loc_by_language or {})
            for language, count in (other.total_loc_by_language or {}).items():
                by_language[language] = by_language.get(language, 0) + count
            target.total_loc_by_language = by_language
        else:
            target.totals_ready = False
            target.total_loc = None
            target.total_unsafe_loc = None
            target.total_loc_by_language = None

        for name in _SCALAR_FIELDS:
            current = getattr(target, name)
            incoming = getattr(other, name)
            if current in (None, ""):
                setattr(target, name, incoming)
            elif incoming not in (None, "") and incoming != current:
                logger.info(
                    "%s: versions disagree on %s (%r vs %r), keeping %r",
                    target.name,
                    name,
                    current,
                    incoming,
                    current,
                )


def _merge_used(current: Optional[bool], incoming: Optional[bool]) -> Optional[bool]:
    if current is None:
        return incoming
    if incoming is None:
        return current
    return current or incoming
