"""Unit tests for services/analytics/emerging_tech.py."""

import pytest

from services.analytics.emerging_tech import (
    adoption_score,
    detect_emerging_technologies,
    growth_rate,
    maturity_for,
    potential_score,
)
from services.analytics.models import MaturityTier

CURRENT_YEAR = 2025


def test_six_new_papers_make_an_emerging_technology(normalizer, record_factory):
    records = [record_factory(f"r{i}", year=CURRENT_YEAR, technologies=["Blockchain"]) for i in range(6)]

    [tech] = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer)

    assert tech.name == "Blockchain"
    assert tech.maturity == MaturityTier.EMERGING
    assert tech.growth_rate == 100.0
    assert tech.potential >= 90
    assert tech.adoption == 30.0
    assert tech.timeframe == "1-3 years"
    assert tech.related_papers == 6
    assert tech.first_seen == tech.last_seen == CURRENT_YEAR


def test_paper_count_is_per_record_but_mentions_are_not(normalizer, record_factory):
    records = [record_factory("r1", year=CURRENT_YEAR, technologies=["Blockchain", "blockchain"])]

    [tech] = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer)

    assert tech.related_papers == 1
    assert tech.yearly_mentions == {CURRENT_YEAR: 2}
    assert [p.id for p in tech.papers] == ["r1"]


def test_yearly_history_and_growth(normalizer, record_factory):
    records = (
        [record_factory(f"a{i}", year=2024, technologies=["Flutter"]) for i in range(4)]
        + [record_factory(f"b{i}", year=2025, technologies=["Flutter"]) for i in range(6)]
        + [record_factory("c0", year=2021, technologies=["Flutter"])]
    )

    [tech] = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer)

    assert tech.yearly_mentions == {2021: 1, 2024: 4, 2025: 6}
    assert tech.growth_rate == 50.0
    assert tech.first_seen == 2021
    assert tech.last_seen == 2025
    # not recent, growth not above 50
    assert tech.potential == 80
    assert tech.maturity == MaturityTier.EMERGING


def test_undated_records_add_papers_without_history(normalizer, record_factory):
    records = [
        record_factory("r1", year=None, technologies=["Rust"]),
        record_factory("r2", year=2031, technologies=["Rust"]),
    ]

    [tech] = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer)

    assert tech.related_papers == 2
    assert tech.yearly_mentions == {}
    assert tech.first_seen is None
    assert tech.growth_rate == 0.0
    assert tech.potential == 80


def test_sorted_by_potential_then_papers_then_name(normalizer, record_factory):
    records = [
        record_factory("k1", year=2025, technologies=["Kotlin", "Rust"]),
        record_factory("k2", year=2025, technologies=["Kotlin", "Rust"]),
        record_factory("k3", year=2025, technologies=["Kotlin", "Swift"]),
        record_factory("c1", year=2018, technologies=["Cobol"]),
        record_factory("c2", year=2025, technologies=["Cobol"]),
    ]

    detected = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer)

    assert [(t.name, t.potential) for t in detected] == [
        ("Kotlin", 100), ("Rust", 100), ("Swift", 100), ("Cobol", 90),
    ]
    limited = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer, limit=2)
    assert [t.name for t in limited] == ["Kotlin", "Rust"]


def test_paper_references_carry_metadata(normalizer, record_factory):
    records = [
        record_factory(
            "r1", year=2024, technologies=["Rust"],
            title="Memory-safe Firmware", authors="Ana Cruz, Ben Lim",
        ),
    ]

    [tech] = detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer)
    [paper] = tech.papers

    assert paper.title == "Memory-safe Firmware"
    assert paper.authors == ["Ana Cruz", "Ben Lim"]
    assert paper.year == 2024


def test_unapproved_and_false_positive_mentions_ignored(normalizer, record_factory):
    records = [
        record_factory("r1", status="pending", technologies=["Blockchain"]),
        record_factory("r2", technologies=["Technology", "Research"]),
    ]
    assert detect_emerging_technologies(records, current_year=CURRENT_YEAR, normalizer=normalizer) == []


def test_custom_extractor(record_factory):
    records = [record_factory("r1", year=2025, title="LoRa mesh", technologies=[])]

    detected = detect_emerging_technologies(
        records,
        technology_extractor=lambda r: [r.title.split()[0], "  ", None],
        current_year=CURRENT_YEAR,
    )
    assert [t.name for t in detected] == ["LoRa"]


def test_empty_input():
    assert detect_emerging_technologies([], current_year=CURRENT_YEAR) == []


# ─────────────────────────────────────────────────────────────────────────────
# Scoring helpers
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("papers, tier", [
    (1, MaturityTier.EXPERIMENTAL),
    (5, MaturityTier.EXPERIMENTAL),
    (6, MaturityTier.EMERGING),
    (12, MaturityTier.EMERGING),
    (13, MaturityTier.GROWING),
])
def test_maturity_boundaries(papers, tier):
    assert maturity_for(papers) == tier


def test_adoption_score_caps_at_100():
    assert adoption_score(0) == 0.0
    assert adoption_score(3) == 15.0
    assert adoption_score(20) == 100.0
    assert adoption_score(45) == 100.0


@pytest.mark.parametrize("current, last, rate", [
    (6, 4, 50.0), (2, 4, -50.0), (3, 0, 100.0), (0, 0, 0.0), (1, 3, -66.7),
])
def test_growth_rate(current, last, rate):
    assert growth_rate(current, last) == rate


@pytest.mark.parametrize("first_seen, rate, score", [
    (2018, 50.0, 80),
    (2023, 50.0, 90),
    (2018, 50.1, 90),
    (2023, 60.0, 100),
    (None, 100.0, 90),
])
def test_potential_score(first_seen, rate, score):
    assert potential_score(first_seen, rate, CURRENT_YEAR) == score
