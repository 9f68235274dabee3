# services/analytics/aggregator.py
from collections import defaultdict
from typing import Dict, Iterable, List, Optional
import logging

from services.analytics.models import (
    AbstractRecord,
    AggregationResult,
    CategoryShare,
    EntityCategory,
    FrequencyEntry,
)
from services.analytics.normalizer import EntityNormalizer, get_normalizer

logger = logging.getLogger(__name__)


def percentage(count: int, total: int) -> float:
    """count / total * 100, one decimal; 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)


def build_frequency_table(counts: Dict[str, int], labels: Dict[str, str]) -> List[FrequencyEntry]:
    """
    Full table sorted by count descending, ties by label (then key) ascending.
    Callers truncate for presentation.
    """
    total = sum(counts.values())
    rows = [
        FrequencyEntry(
            entity=labels.get(key, key),
            key=key,
            count=count,
            percentage=percentage(count, total),
        )
        for key, count in counts.items()
    ]
    rows.sort(key=lambda r: (-r.count, r.entity.lower(), r.key))
    return rows


def aggregate_entities(
    records: Iterable[AbstractRecord],
    normalizer: Optional[EntityNormalizer] = None,
) -> AggregationResult:
    """
    Counts every kept entity occurrence across eligible records.

    Occurrences are not deduplicated across or within records: an entity
    mentioned by 5 records counts 5. False positives and blanks are dropped.
    """
    normalizer = normalizer or get_normalizer()

    counts: Dict[str, int] = defaultdict(int)
    category_counts: Dict[EntityCategory, Dict[str, int]] = {c: defaultdict(int) for c in EntityCategory}
    labels: Dict[str, str] = {}
    record_count = 0

    for record in records:
        if not record.is_eligible:
            continue
        record_count += 1

        for category in EntityCategory:
            for raw in record.entities.by_category(category):
                canonical = normalizer.normalize(raw, apply_false_positive_filter=True)
                if canonical is None:
                    logger.debug("Dropped entity %r from record %s", raw, record.id)
                    continue
                key = canonical.lower()
                labels[key] = min(labels.get(key, canonical), canonical)
                counts[key] += 1
                category_counts[category][key] += 1

    per_category = {
        category: build_frequency_table(dict(cat_counts), labels)
        for category, cat_counts in category_counts.items()
    }
    category_totals = {category: sum(c.values()) for category, c in category_counts.items()}
    total = sum(counts.values())

    logger.info(
        "📊 Aggregated %d entity occurrences (%d unique) over %d eligible records",
        total, len(counts), record_count,
    )

    return AggregationResult(
        per_entity=build_frequency_table(dict(counts), labels),
        per_category=per_category,
        category_totals=category_totals,
        total_count=total,
        record_count=record_count,
    )


def category_distribution(result: AggregationResult) -> List[CategoryShare]:
    """Mention totals per category with their share; empty categories omitted."""
    total = sum(result.category_totals.values())
    return [
        CategoryShare(category=category, count=count, percentage=percentage(count, total))
        for category, count in (
            (c, result.category_totals.get(c, 0)) for c in EntityCategory
        )
        if count > 0
    ]


def top_by_category(
    result: AggregationResult,
    category: EntityCategory,
    k: Optional[int] = None,
    normalizer: Optional[EntityNormalizer] = None,
) -> List[FrequencyEntry]:
    """
    Category table with misplaced terms removed (e.g. 'Python' listed as a domain).
    Percentages are kept relative to the full category total.
    """
    normalizer = normalizer or get_normalizer()
    category = EntityCategory(category)
    rows = [
        row for row in result.per_category.get(category, [])
        if normalizer.is_valid_for_category(row.entity, category)
    ]
    return rows if k is None else rows[:max(0, k)]
