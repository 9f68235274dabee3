# services/analytics/pipeline.py
import logging
from typing import Iterable, Optional

from services.analytics.aggregator import aggregate_entities, category_distribution, top_by_category
from services.analytics.emerging_tech import detect_emerging_technologies
from services.analytics.graph_builder import build_batch_graph
from services.analytics.models import (
    AbstractRecord,
    AnalyticsSnapshot,
    CorpusOverview,
    EntityCategory,
)
from services.analytics.normalizer import EntityNormalizer, get_normalizer
from services.analytics.settings import AnalyticsSettings, load_settings
from services.analytics.trend_classifier import (
    build_timeline,
    classify_themes,
    summarize_submissions,
)
from services.schema.entity_vocabulary import EntityVocabulary, get_default_vocabulary

logger = logging.getLogger(__name__)


def _overview(records) -> CorpusOverview:
    eligible = [r for r in records if r.is_eligible]
    average = sum(r.confidence for r in eligible) / len(eligible) if eligible else 0.0
    return CorpusOverview(
        total_records=len(records),
        eligible_records=len(eligible),
        records_with_themes=sum(1 for r in eligible if r.themes),
        average_confidence=round(average, 3),
    )


def recompute(
    records: Iterable[AbstractRecord],
    settings: Optional[AnalyticsSettings] = None,
    vocabulary: Optional[EntityVocabulary] = None,
    current_year: Optional[int] = None,
) -> AnalyticsSnapshot:
    """
    Full analytics pass over a complete record snapshot.

    Pure and deterministic: the same snapshot, settings and vocabulary always
    produce the same output. The caller must pass the COMPLETE record set;
    a paginated subset silently skews percentages and trend directions.
    """
    settings = settings or load_settings()
    if vocabulary is None:
        # cached per path: the file is read once per process, not once per pass
        vocabulary = get_default_vocabulary(settings.vocabulary_path)
    normalizer: EntityNormalizer = get_normalizer(vocabulary)
    year = current_year or settings.resolve_year()

    records = list(records)
    logger.info("🔄 Recomputing analytics for %d records (year=%d, vocabulary=%s)", len(records), year, normalizer.version)

    aggregation = aggregate_entities(records, normalizer)
    eligible = [r for r in records if r.is_eligible]

    return AnalyticsSnapshot(
        current_year=year,
        vocabulary_version=normalizer.version,
        overview=_overview(records),
        frequency_table=aggregation.per_entity,
        top_entities=aggregation.top(settings.top_k),
        category_tables={
            category: top_by_category(aggregation, category, settings.top_k, normalizer)
            for category in EntityCategory
        },
        category_distribution=category_distribution(aggregation),
        themes=classify_themes(records, current_year=year, normalizer=normalizer),
        timeline=build_timeline(records, top_n=settings.timeline_top_n, current_year=year),
        emerging_technologies=detect_emerging_technologies(records, current_year=year, normalizer=normalizer),
        submissions=summarize_submissions(records, current_year=year),
        graph=build_batch_graph(eligible, normalizer, settings.graph_max_entities),
        meta={
            "total_entity_occurrences": aggregation.total_count,
            "unique_entities": len(aggregation.per_entity),
        },
    )
