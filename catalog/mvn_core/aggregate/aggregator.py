"""
Taxonomy aggregation for series and their units.

Metadata flows in two directions:
- Aggregation (units -> series): the series record shows the union of its
  own curated values and everything its units carry
- Inheritance (series -> unit): a unit that does not set a field is read
  with the series value; this view is computed on read and never stored

Aggregation rules:
    - tags, content_warnings: ordered set union, exact string match, case
      preserved; series values first
    - authors, scanlators: keyed by id; first-seen position kept, a later
      entry's non-empty fields overwrite earlier ones
    - localized[lang].scanlators: unit scanlators are merged into the
      series block for the same language, creating the block if absent
    - series.scanlators: series scanlators plus every localized scanlator
    - every other series field passes through unchanged

Invariants:
    - recompute() is pure: inputs are never mutated, no I/O, no clock
    - recompute(recompute(s, u), u) == recompute(s, u)
    - Union is monotonic: series-level values are never dropped

How to change safely:
    - New aggregated fields must be unions over a seed taken from the series
    - Run the idempotence tests after any change to merge ordering

The unit list is trusted to be the complete, current set of units for the
series. Passing a stale or foreign list is a caller error; the result in
that case is undefined.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import fields, replace
from typing import Optional, TypeVar

from ..errors import UrnError, UrnErrorKind
from ..identity import urn as urn_codec
from ..model import (
    Author,
    LocalizedMetadata,
    Scanlator,
    Series,
    Unit,
    UnitLocalizedMetadata,
)

logger = logging.getLogger(__name__)

Keyed = TypeVar("Keyed", Author, Scanlator)


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _overlay(current: Keyed, newer: Keyed) -> Keyed:
    """Copy newer's non-empty fields onto current, keeping current's id."""
    changes = {
        f.name: getattr(newer, f.name)
        for f in fields(newer)
        if f.name != "id" and not _is_blank(getattr(newer, f.name))
    }
    return replace(current, **changes) if changes else current


def _union_strings(seed: Iterable[str], contributions: Iterable[Iterable[str]]) -> tuple[str, ...]:
    merged: dict[str, None] = dict.fromkeys(seed)
    for values in contributions:
        for value in values:
            if not _is_blank(value):
                merged.setdefault(value, None)
    return tuple(merged)


def _union_keyed(*groups: Optional[Iterable[Keyed]]) -> tuple[Keyed, ...]:
    merged: dict[str, Keyed] = {}
    for group in groups:
        if not group:
            continue
        for item in group:
            if item is None or _is_blank(item.id):
                continue
            key = item.id.lower()
            current = merged.get(key)
            merged[key] = item if current is None else _overlay(current, item)
    return tuple(merged.values())


class TaxonomyAggregator:
    """Computes the aggregated view of a series from its units.

    Thread safety:
        This class is stateless and safe to share between tasks.

    Example:
        >>> aggregator = TaxonomyAggregator()
        >>> series = Series(id="urn:mvn:series:s1", title="S", tags=("Action",))
        >>> unit = Unit(id="urn:mvn:unit:u1", series_id=series.id, unit_number=1,
        ...             tags=("Action", "Drama"))
        >>> aggregator.recompute(series, [unit]).tags
        ('Action', 'Drama')
    """

    def recompute(self, series: Series, units: Iterable[Unit]) -> Series:
        """Roll unit metadata up into the series.

        Args:
            series: Current series record; its own values are the seed
            units: The complete current unit list of the series

        Returns:
            New Series with tags, content_warnings, authors, scanlators and
            localized scanlators replaced by the aggregated unions

        Raises:
            UrnError: If series.id is not a series URN
        """
        target = urn_codec.parse(series.id)
        if not target.is_of_type("series"):
            raise UrnError(
                UrnErrorKind.NOT_APPLICABLE,
                f"Aggregation target must be a series URN, got {series.id}",
                value=series.id,
            )

        unit_list = list(units)
        logger.debug(
            "Starting metadata aggregation",
            extra={"series_id": series.id, "unit_count": len(unit_list)},
        )

        tags = _union_strings(series.tags, (u.tags or () for u in unit_list))
        warnings = _union_strings(
            series.content_warnings, (u.content_warnings or () for u in unit_list)
        )
        authors = _union_keyed(series.authors, *(u.authors for u in unit_list))
        localized = self._aggregate_localized(series, unit_list)
        scanlators = _union_keyed(
            series.scanlators, *(meta.scanlators for meta in localized.values())
        )

        logger.info(
            "Metadata aggregation completed",
            extra={
                "series_id": series.id,
                "unit_count": len(unit_list),
                "tag_count": len(tags),
                "warning_count": len(warnings),
                "author_count": len(authors),
                "scanlator_count": len(scanlators),
                "language_count": len(localized),
            },
        )

        return replace(
            series,
            tags=tags,
            content_warnings=warnings,
            authors=authors,
            scanlators=scanlators,
            localized=localized,
        )

    def _aggregate_localized(
        self, series: Series, units: list[Unit]
    ) -> dict[str, LocalizedMetadata]:
        aggregated = {
            lang: replace(meta, scanlators=_union_keyed(meta.scanlators))
            for lang, meta in series.localized.items()
        }

        for unit in units:
            if not unit.localized:
                continue
            for lang, unit_meta in unit.localized.items():
                if _is_blank(lang):
                    logger.warning(
                        "Skipping empty language code in unit localized metadata",
                        extra={"unit_id": unit.id},
                    )
                    continue

                existing = aggregated.get(lang)
                if existing is None:
                    aggregated[lang] = LocalizedMetadata(
                        scanlators=_union_keyed(unit_meta.scanlators)
                    )
                    logger.debug(
                        "Added language block from unit",
                        extra={"unit_id": unit.id, "language": lang},
                    )
                else:
                    aggregated[lang] = replace(
                        existing,
                        scanlators=_union_keyed(existing.scanlators, unit_meta.scanlators),
                    )

        return aggregated

    def inherit(self, unit: Unit, series: Series, language: Optional[str] = None) -> Unit:
        """Read-time view of a unit with series values filled in.

        Fields the unit sets (including explicit empty tuples) are kept.
        When language is given, the series has a block for it and the unit
        has no localized map, a unit block carrying the series scanlators
        for that language is added.

        Args:
            unit: Unit as stored
            series: Its parent series
            language: Optional ISO 639-1 code

        Returns:
            New Unit; never persist it
        """
        localized: Optional[dict[str, UnitLocalizedMetadata]] = unit.localized
        if localized is None and language and language in series.localized:
            localized = {
                language: UnitLocalizedMetadata(
                    scanlators=series.localized[language].scanlators
                )
            }

        inherited = replace(
            unit,
            tags=unit.tags if unit.tags is not None else series.tags,
            content_warnings=(
                unit.content_warnings
                if unit.content_warnings is not None
                else series.content_warnings
            ),
            authors=unit.authors if unit.authors is not None else series.authors,
            localized=localized,
        )

        if inherited != unit:
            logger.debug(
                "Unit read with inherited metadata",
                extra={
                    "unit_id": unit.id,
                    "series_id": series.id,
                    "tags": unit.tags is None,
                    "content_warnings": unit.content_warnings is None,
                    "authors": unit.authors is None,
                    "localized": localized is not unit.localized,
                },
            )
        return inherited


_default_aggregator: TaxonomyAggregator | None = None


def get_aggregator() -> TaxonomyAggregator:
    """Get the default aggregator instance."""
    global _default_aggregator
    if _default_aggregator is None:
        _default_aggregator = TaxonomyAggregator()
    return _default_aggregator
