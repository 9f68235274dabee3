# services/analytics/trend_classifier.py
from collections import Counter, defaultdict
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging

from services.analytics.aggregator import percentage
from services.analytics.models import (
    AbstractRecord,
    EntityCategory,
    Significance,
    SubmissionPeriod,
    ThemeFrequency,
    TrendDirection,
    TrendPeriod,
)
from services.analytics.normalizer import EntityNormalizer, get_normalizer
from utils.sanitization import clean_text

logger = logging.getLogger(__name__)

ThemeExtractor = Callable[[AbstractRecord], List[str]]

GROWTH_THRESHOLD = 5.0          # percent, exclusive on both sides
HIGH_SIGNIFICANCE = 10
MEDIUM_SIGNIFICANCE = 5
MAX_TIMELINE_TOPICS = 5
RELATED_DOMAINS_LIMIT = 3


def manual_themes(record: AbstractRecord) -> List[str]:
    """Default extractor: the record's manually assigned theme labels."""
    return list(record.themes)


def in_year_scope(record: AbstractRecord, current_year: int) -> bool:
    """Records with an absent or future year are left out of year-keyed computations."""
    return record.year is not None and record.year <= current_year


def format_growth(rate: float) -> str:
    rounded = round(rate, 1)
    if rounded == 0:
        return "0%"
    if rounded == int(rounded):
        return f"{int(rounded):+d}%"
    return f"{rounded:+.1f}%"


def classify_growth(current: int, prior: int) -> Tuple[TrendDirection, str, float]:
    """
    Year-over-year direction for a theme.
    Returns (direction, growth string, growth rate in percent).
    """
    if prior == 0 and current == 0:
        return TrendDirection.STABLE, "0%", 0.0
    if prior == 0:
        return TrendDirection.UP, "+100%", 100.0
    if current == 0:
        return TrendDirection.DOWN, "-100%", -100.0

    rate = (current - prior) / prior * 100
    if rate > GROWTH_THRESHOLD:
        direction = TrendDirection.UP
    elif rate < -GROWTH_THRESHOLD:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE
    return direction, format_growth(rate), round(rate, 1)


def significance_for(frequency: int) -> Significance:
    if frequency >= HIGH_SIGNIFICANCE:
        return Significance.HIGH
    if frequency >= MEDIUM_SIGNIFICANCE:
        return Significance.MEDIUM
    return Significance.LOW


def _theme_occurrences(record: AbstractRecord, extractor: ThemeExtractor) -> List[Tuple[str, str]]:
    """(key, label) pairs, one per yielded theme, blanks dropped."""
    pairs = []
    for theme in extractor(record) or []:
        label = clean_text(theme) if isinstance(theme, str) else ""
        if label:
            pairs.append((label.lower(), label))
    return pairs


def classify_themes(
    records: Iterable[AbstractRecord],
    theme_extractor: Optional[ThemeExtractor] = None,
    current_year: Optional[int] = None,
    normalizer: Optional[EntityNormalizer] = None,
    reference_total: Optional[int] = None,
) -> List[ThemeFrequency]:
    """
    Groups eligible records by theme and classifies each theme's direction
    (current year vs the year before).

    A record may feed several themes; records with no theme only count toward
    the corpus size, which is the default reference total for `percentage`.
    """
    extractor = theme_extractor or manual_themes
    current_year = current_year or date.today().year
    normalizer = normalizer or get_normalizer()

    eligible = [r for r in records if r.is_eligible]
    corpus_size = len(eligible) if reference_total is None else reference_total

    labels: Dict[str, str] = {}
    frequency: Dict[str, int] = defaultdict(int)
    papers: Dict[str, List[str]] = defaultdict(list)
    yearly: Dict[str, Counter] = defaultdict(Counter)
    domain_counts: Dict[str, Counter] = defaultdict(Counter)

    for record in eligible:
        occurrences = _theme_occurrences(record, extractor)
        if not occurrences:
            continue
        record_domains = normalizer.unique(record.entities.by_category(EntityCategory.DOMAINS))

        for key, label in occurrences:
            labels[key] = min(labels.get(key, label), label)
            frequency[key] += 1
            if in_year_scope(record, current_year):
                yearly[key][record.year] += 1
            if record.id not in papers[key]:
                papers[key].append(record.id)
                domain_counts[key].update(record_domains)

    results = []
    for key, total in frequency.items():
        current = yearly[key].get(current_year, 0)
        prior = yearly[key].get(current_year - 1, 0)
        direction, growth, rate = classify_growth(current, prior)
        related = sorted(domain_counts[key].items(), key=lambda kv: (-kv[1], kv[0].lower()))

        results.append(ThemeFrequency(
            theme=labels[key],
            frequency=total,
            unique_papers=len(papers[key]),
            percentage=percentage(len(papers[key]), corpus_size),
            trend=direction,
            growth=growth,
            growth_rate=rate,
            significance=significance_for(total),
            current_year_count=current,
            prior_year_count=prior,
            papers=papers[key],
            related_domains=[name for name, _ in related[:RELATED_DOMAINS_LIMIT]],
        ))

    results.sort(key=lambda t: (-t.frequency, t.theme.lower()))
    logger.info(
        "📈 Classified %d themes (%d up, %d down) for %d",
        len(results),
        sum(1 for t in results if t.trend == TrendDirection.UP),
        sum(1 for t in results if t.trend == TrendDirection.DOWN),
        current_year,
    )
    return results


def build_timeline(
    records: Iterable[AbstractRecord],
    theme_extractor: Optional[ThemeExtractor] = None,
    top_n: int = MAX_TIMELINE_TOPICS,
    current_year: Optional[int] = None,
) -> List[TrendPeriod]:
    """
    One period per year that has eligible records, ascending.
    Years without records are omitted, not zero-filled.
    """
    extractor = theme_extractor or manual_themes
    current_year = current_year or date.today().year
    top_n = max(0, min(top_n, MAX_TIMELINE_TOPICS))

    ids_by_year: Dict[int, List[str]] = defaultdict(list)
    counts_by_year: Dict[int, Counter] = defaultdict(Counter)
    labels: Dict[str, str] = {}
    skipped = 0

    for record in records:
        if not record.is_eligible:
            continue
        if not in_year_scope(record, current_year):
            skipped += 1
            continue
        if record.id not in ids_by_year[record.year]:
            ids_by_year[record.year].append(record.id)
        for key, label in _theme_occurrences(record, extractor):
            labels[key] = min(labels.get(key, label), label)
            counts_by_year[record.year][key] += 1

    if skipped:
        logger.warning("Timeline: %d eligible record(s) without a usable year were excluded", skipped)

    timeline = []
    for year in sorted(ids_by_year):
        ranked = sorted(counts_by_year[year].items(), key=lambda kv: (-kv[1], labels[kv[0]].lower()))
        topics = [labels[key] for key, _ in ranked[:top_n]]
        timeline.append(TrendPeriod(
            period=year,
            record_ids=ids_by_year[year],
            total_papers=len(ids_by_year[year]),
            topics=topics,
            topic_counts={labels[key]: count for key, count in ranked},
            dominant_theme=labels[ranked[0][0]] if ranked else None,
        ))
    return timeline


def summarize_submissions(
    records: Iterable[AbstractRecord],
    current_year: Optional[int] = None,
) -> List[SubmissionPeriod]:
    """Submission volume and review outcome per year, over all statuses."""
    current_year = current_year or date.today().year
    periods: Dict[int, SubmissionPeriod] = {}

    for record in records:
        if not in_year_scope(record, current_year):
            continue
        period = periods.setdefault(record.year, SubmissionPeriod(period=record.year))
        period.submissions += 1
        if record.status in ("approved", "pending", "rejected"):
            setattr(period, record.status, getattr(period, record.status) + 1)

    return [periods[year] for year in sorted(periods)]
