# services/analytics/emerging_tech.py
from collections import Counter, defaultdict
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional
import logging

from services.analytics.models import (
    AbstractRecord,
    EmergingTechnology,
    EntityCategory,
    MaturityTier,
    PaperRef,
)
from services.analytics.normalizer import EntityNormalizer, get_normalizer
from services.analytics.trend_classifier import in_year_scope

logger = logging.getLogger(__name__)

TechnologyExtractor = Callable[[AbstractRecord], List[str]]

EXPERIMENTAL_MAX_PAPERS = 5
EMERGING_MAX_PAPERS = 12
ADOPTION_SATURATION_PAPERS = 20

BASE_POTENTIAL = 80
RECENCY_BONUS = 10
GROWTH_BONUS = 10
RECENCY_WINDOW_YEARS = 2
GROWTH_BONUS_THRESHOLD = 50.0

TIMEFRAMES: Dict[MaturityTier, str] = {
    MaturityTier.EXPERIMENTAL: "3-5 years",
    MaturityTier.EMERGING: "1-3 years",
    MaturityTier.GROWING: "1-2 years",
}


def maturity_for(paper_count: int) -> MaturityTier:
    if paper_count <= EXPERIMENTAL_MAX_PAPERS:
        return MaturityTier.EXPERIMENTAL
    if paper_count <= EMERGING_MAX_PAPERS:
        return MaturityTier.EMERGING
    return MaturityTier.GROWING


def adoption_score(paper_count: int) -> float:
    return round(min(paper_count / ADOPTION_SATURATION_PAPERS * 100, 100.0), 1)


def growth_rate(current_count: int, last_count: int) -> float:
    if last_count > 0:
        return round((current_count - last_count) / last_count * 100, 1)
    return 100.0 if current_count > 0 else 0.0


def potential_score(first_seen: Optional[int], rate: float, current_year: int) -> int:
    score = BASE_POTENTIAL
    if first_seen is not None and first_seen >= current_year - RECENCY_WINDOW_YEARS:
        score += RECENCY_BONUS
    if rate > GROWTH_BONUS_THRESHOLD:
        score += GROWTH_BONUS
    return min(score, 100)


def normalized_technologies(normalizer: EntityNormalizer) -> TechnologyExtractor:
    """Default extractor: every kept technology mention of the record."""
    def extract(record: AbstractRecord) -> List[str]:
        return normalizer.normalize_all(record.entities.by_category(EntityCategory.TECHNOLOGIES))
    return extract


def detect_emerging_technologies(
    records: Iterable[AbstractRecord],
    technology_extractor: Optional[TechnologyExtractor] = None,
    current_year: Optional[int] = None,
    normalizer: Optional[EntityNormalizer] = None,
    limit: Optional[int] = None,
) -> List[EmergingTechnology]:
    """
    Scores technologies for momentum and assigns a maturity tier.

    Paper counts are per distinct record; yearly tallies count every mention.
    Records without a usable year contribute papers but no yearly data.
    Sorted by potential, then paper count, then name.
    """
    current_year = current_year or date.today().year
    normalizer = normalizer or get_normalizer()
    extractor = technology_extractor or normalized_technologies(normalizer)

    labels: Dict[str, str] = {}
    papers: Dict[str, Dict[str, AbstractRecord]] = defaultdict(dict)
    yearly: Dict[str, Counter] = defaultdict(Counter)

    for record in records:
        if not record.is_eligible:
            continue
        dated = in_year_scope(record, current_year)
        for name in extractor(record) or []:
            if not isinstance(name, str) or not name.strip():
                continue
            label = name.strip()
            key = label.lower()
            labels[key] = min(labels.get(key, label), label)
            papers[key].setdefault(record.id, record)
            if dated:
                yearly[key][record.year] += 1

    detected = []
    for key, contributing in papers.items():
        years = sorted(yearly[key])
        paper_count = len(contributing)
        rate = growth_rate(yearly[key].get(current_year, 0), yearly[key].get(current_year - 1, 0))
        first_seen = years[0] if years else None
        maturity = maturity_for(paper_count)

        detected.append(EmergingTechnology(
            name=labels[key],
            maturity=maturity,
            adoption=adoption_score(paper_count),
            potential=potential_score(first_seen, rate, current_year),
            growth_rate=rate,
            timeframe=TIMEFRAMES[maturity],
            related_papers=paper_count,
            first_seen=first_seen,
            last_seen=years[-1] if years else None,
            yearly_mentions={year: yearly[key][year] for year in years},
            papers=[
                PaperRef(id=r.id, title=r.title, authors=list(r.authors), year=r.year)
                for r in contributing.values()
            ],
        ))

    detected.sort(key=lambda t: (-t.potential, -t.related_papers, t.name.lower()))
    if limit is not None:
        detected = detected[:max(0, limit)]

    logger.info(
        "🚀 Emerging technologies: %d candidates (%d growing, %d emerging, %d experimental)",
        len(detected),
        sum(1 for t in detected if t.maturity == MaturityTier.GROWING),
        sum(1 for t in detected if t.maturity == MaturityTier.EMERGING),
        sum(1 for t in detected if t.maturity == MaturityTier.EXPERIMENTAL),
    )
    return detected
