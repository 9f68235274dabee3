# services/analytics/normalizer.py
import logging
from typing import Dict, Iterable, List, Optional

from services.analytics.models import AbstractRecord, EntityCategory, NormalizedEntity
from services.schema.entity_vocabulary import EntityVocabulary, get_default_vocabulary
from utils.sanitization import capitalize_words, clean_text, contains_phrase

logger = logging.getLogger(__name__)


class EntityNormalizer:
    """
    Canonicalizes raw entity strings against an injected vocabulary.

    normalize() is a pure function of (raw, flag): the comparison key is the
    trimmed, whitespace-collapsed, lowercased string; the returned value is the
    presentation form (alias target, or word-capitalized raw text).
    """

    def __init__(self, vocabulary: Optional[EntityVocabulary] = None):
        self.vocabulary = vocabulary or get_default_vocabulary()
        self._index = self.vocabulary.canonical_index()
        self._false_positives = frozenset(self.vocabulary.false_positives)
        self._fragments = tuple(self.vocabulary.false_positive_fragments)

    @property
    def version(self) -> str:
        return self.vocabulary.version

    def normalize(self, raw: str, apply_false_positive_filter: bool = True) -> Optional[str]:
        if not isinstance(raw, str):
            raise TypeError(f"Entity must be a string, got {type(raw).__name__}")

        text = clean_text(raw)
        if not text:
            return None

        key = text.lower()
        aliased = self._index.get(key)
        canonical = aliased if aliased is not None else capitalize_words(text)

        if apply_false_positive_filter:
            if self._is_false_positive(key) or self._is_false_positive(canonical.lower()):
                return None
            if aliased is None and len(key) < self.vocabulary.min_entity_length:
                return None

        return canonical

    def key(self, raw: str, apply_false_positive_filter: bool = True) -> Optional[str]:
        canonical = self.normalize(raw, apply_false_positive_filter)
        return canonical.lower() if canonical is not None else None

    def normalize_all(self, terms: Iterable[str], apply_false_positive_filter: bool = True) -> List[str]:
        """Normalized terms in input order, Nones dropped, duplicates kept."""
        result = []
        for term in terms:
            canonical = self.normalize(term, apply_false_positive_filter)
            if canonical is not None:
                result.append(canonical)
        return result

    def unique(self, terms: Iterable[str], apply_false_positive_filter: bool = True) -> List[str]:
        """Normalized terms, deduplicated case-insensitively, first-seen order."""
        seen = set()
        result = []
        for canonical in self.normalize_all(terms, apply_false_positive_filter):
            k = canonical.lower()
            if k in seen:
                continue
            seen.add(k)
            result.append(canonical)
        return result

    def is_valid_for_category(self, term: str, category: EntityCategory) -> bool:
        """False when the term is listed as misplaced for the category."""
        text = clean_text(term)
        if not text:
            return False
        misplaced = self.vocabulary.misplaced_terms.get(EntityCategory(category).value, [])
        lowered = text.lower()
        return not any(lowered == m or contains_phrase(lowered, m) for m in misplaced)

    def _is_false_positive(self, key: str) -> bool:
        if key in self._false_positives:
            return True
        return any(fragment in key for fragment in self._fragments)


_default_normalizer: Optional[EntityNormalizer] = None


def get_normalizer(vocabulary: Optional[EntityVocabulary] = None) -> EntityNormalizer:
    global _default_normalizer
    if vocabulary is not None:
        return EntityNormalizer(vocabulary)
    if _default_normalizer is None:
        _default_normalizer = EntityNormalizer()
    return _default_normalizer


def normalize_entity(raw: str, apply_false_positive_filter: bool = True) -> Optional[str]:
    """Normalize with the default vocabulary."""
    return get_normalizer().normalize(raw, apply_false_positive_filter)


def collect_normalized_entities(
    records: Iterable[AbstractRecord],
    normalizer: Optional[EntityNormalizer] = None,
    eligible_only: bool = True,
) -> List[NormalizedEntity]:
    """
    Catalogue of canonical entities with the raw strings that collapsed into them.
    Sorted by key.
    """
    normalizer = normalizer or get_normalizer()
    labels: Dict[str, str] = {}
    sources: Dict[str, set] = {}

    for record in records:
        if eligible_only and not record.is_eligible:
            continue
        for category in EntityCategory:
            for raw in record.entities.by_category(category):
                canonical = normalizer.normalize(raw)
                if canonical is None:
                    continue
                k = canonical.lower()
                # Smallest label wins so the output does not depend on record order
                labels[k] = min(labels.get(k, canonical), canonical)
                sources.setdefault(k, set()).add(raw.strip())

    return [
        NormalizedEntity(key=k, label=labels[k], sources=sorted(sources[k]))
        for k in sorted(labels)
    ]
