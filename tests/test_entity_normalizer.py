"""Unit tests for services/analytics/normalizer.py."""

import pytest

from services.analytics.models import EntityCategory
from services.analytics.normalizer import (
    EntityNormalizer,
    collect_normalized_entities,
    normalize_entity,
)
from services.schema.entity_vocabulary import EntityVocabulary, get_default_vocabulary


# ─────────────────────────────────────────────────────────────────────────────
# Blank and malformed input
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw", ["", "   ", "\t\n", "\x00 \x01"])
@pytest.mark.parametrize("flag", [True, False])
def test_blank_input_returns_none(normalizer, raw, flag):
    assert normalizer.normalize(raw, flag) is None


def test_non_string_raises_type_error(normalizer):
    with pytest.raises(TypeError):
        normalizer.normalize(42)


# ─────────────────────────────────────────────────────────────────────────────
# Canonical forms
# ─────────────────────────────────────────────────────────────────────────────

def test_case_and_whitespace_variants_collapse(normalizer):
    variants = ["Python", "python", "  Python ", "PYTHON", "\tpython\n"]
    assert {normalizer.normalize(v) for v in variants} == {"Python"}


def test_internal_whitespace_is_collapsed(normalizer):
    assert normalizer.normalize("deep    learning") == "Deep Learning"


def test_alias_lookup(normalizer):
    assert normalizer.normalize("ML") == "Machine Learning"
    assert normalizer.normalize("iot") == "Internet of Things"
    assert normalizer.normalize("A.I.") == "AI"
    assert normalizer.normalize("ai") == "AI"


def test_alias_targets_are_fixed_points(normalizer):
    for target in get_default_vocabulary().aliases.values():
        assert normalizer.normalize(target, False) == target
        assert normalizer.normalize(target, True) == target


@pytest.mark.parametrize("raw", [
    "Python", "  deep   learning ", "iOS", "A.I.", "node.js", "e-learning",
    "Straße", "ßx", "Internet of Things", "Blockchain-based Voting", "ML",
])
@pytest.mark.parametrize("flag", [True, False])
def test_normalization_is_idempotent(normalizer, raw, flag):
    once = normalizer.normalize(raw, flag)
    if once is not None:
        assert normalizer.normalize(once, flag) == once


def test_repeated_calls_are_identical(normalizer):
    results = {normalizer.normalize("Machine   learning") for _ in range(5)}
    assert len(results) == 1


# ─────────────────────────────────────────────────────────────────────────────
# False positives
# ─────────────────────────────────────────────────────────────────────────────

def test_exact_false_positive_dropped(normalizer):
    assert normalizer.normalize("Research") is None
    assert normalizer.normalize("  PHILIPPINES ") is None


def test_fragment_false_positive_dropped(normalizer):
    assert normalizer.normalize("Northern Bukidnon State College") is None
    assert normalizer.normalize("Central Mindanao University") is None


def test_false_positive_kept_without_filter(normalizer):
    assert normalizer.normalize("Research", False) == "Research"


def test_short_terms_dropped_only_when_filtering(normalizer):
    assert normalizer.normalize("Go") is None
    assert normalizer.normalize("Go", False) == "Go"
    # aliases bypass the length rule
    assert normalizer.normalize("AI") == "AI"


def test_false_positive_checked_on_raw_and_canonical_form():
    vocabulary = EntityVocabulary(
        version="test",
        aliases={"internet": "Web-Based System", "cms": "Content Management"},
        false_positives=["internet", "content management"],
    )
    normalizer = EntityNormalizer(vocabulary)

    assert normalizer.normalize("internet") is None
    assert normalizer.normalize("internet", False) == "Web-Based System"
    assert normalizer.normalize("CMS") is None


def test_module_level_normalize_uses_default_vocabulary():
    assert normalize_entity("ml") == "Machine Learning"


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def test_unique_preserves_first_seen_order(normalizer):
    assert normalizer.unique(["AI", "ai", "A.I."]) == ["AI"]
    assert normalizer.unique(["Blockchain", "ML", "blockchain", "machine learning"]) == [
        "Blockchain",
        "Machine Learning",
    ]


def test_normalize_all_keeps_duplicates_and_drops_nones(normalizer):
    assert normalizer.normalize_all(["Python", "python", "", "research"]) == ["Python", "Python"]


def test_key_is_lowercase_canonical(normalizer):
    assert normalizer.key("  ML ") == "machine learning"
    assert normalizer.key("research") is None


def test_is_valid_for_category(normalizer):
    assert normalizer.is_valid_for_category("Python", EntityCategory.DOMAINS) is False
    assert normalizer.is_valid_for_category("Education", EntityCategory.DOMAINS) is True
    assert normalizer.is_valid_for_category("Healthcare", EntityCategory.TECHNOLOGIES) is False
    assert normalizer.is_valid_for_category("Machine Learning Pipeline", EntityCategory.DOMAINS) is False
    assert normalizer.is_valid_for_category("Smart Farming", EntityCategory.DOMAINS) is True
    assert normalizer.is_valid_for_category("   ", EntityCategory.DOMAINS) is False


def test_collect_normalized_entities_tracks_sources(normalizer, record_factory):
    records = [
        record_factory("r1", technologies=["Python", "ML"]),
        record_factory("r2", technologies=["python ", "PYTHON"], domains=["Research"]),
        record_factory("r3", technologies=["Rust"], status="pending"),
    ]
    entities = collect_normalized_entities(records, normalizer)

    assert [e.key for e in entities] == ["machine learning", "python"]
    python = entities[1]
    assert python.label == "Python"
    assert python.sources == ["PYTHON", "Python", "python"]
