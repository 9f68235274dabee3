# services/schema/entity_vocabulary.py
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_VOCABULARY_PATH = Path(__file__).with_name("entity_vocabulary.json")


class VocabularyError(ValueError):
    """Raised when an entity vocabulary is inconsistent or cannot be loaded."""
    pass


class EntityVocabulary(BaseModel):
    """
    Versioned alias / false-positive configuration consumed by the normalizer.

    - aliases: lowercase source term -> presentation-cased canonical term
    - false_positives: lowercase terms dropped on exact match
    - false_positive_fragments: lowercase terms dropped when contained anywhere
    - misplaced_terms: per-category lowercase terms that do not belong there
    """
    version: str
    min_entity_length: int = 3
    aliases: Dict[str, str] = Field(default_factory=dict)
    false_positives: List[str] = Field(default_factory=list)
    false_positive_fragments: List[str] = Field(default_factory=list)
    misplaced_terms: Dict[str, List[str]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("aliases", mode="before")
    @classmethod
    def lowercase_alias_keys(cls, v):
        if not isinstance(v, dict):
            raise VocabularyError("aliases must be a mapping")
        cleaned = {}
        for source, target in v.items():
            key = " ".join(str(source).split()).lower()
            target = " ".join(str(target).split()) if target is not None else ""
            if not key or not target:
                raise VocabularyError(f"Alias entries must be non-empty, got {source!r} -> {target!r}")
            cleaned[key] = target
        return cleaned

    @field_validator("false_positives", "false_positive_fragments", mode="before")
    @classmethod
    def lowercase_terms(cls, v):
        return [" ".join(str(t).split()).lower() for t in (v or []) if str(t).strip()]

    @field_validator("misplaced_terms", mode="before")
    @classmethod
    def lowercase_misplaced(cls, v):
        return {
            str(category).lower(): [" ".join(str(t).split()).lower() for t in terms if str(t).strip()]
            for category, terms in (v or {}).items()
        }

    def canonical_index(self) -> Dict[str, str]:
        """
        Lookup table including each canonical target mapped to itself,
        so that re-normalizing a canonical form is a fixed point.
        """
        index = {target.lower(): target for target in self.aliases.values()}
        index.update(self.aliases)
        return index

    def check_consistency(self) -> None:
        for source, target in self.aliases.items():
            aliased = self.aliases.get(target.lower())
            if aliased is not None and aliased != target:
                raise VocabularyError(
                    f"Alias target {target!r} (from {source!r}) is itself aliased to {aliased!r}"
                )


def load_vocabulary(path: Union[str, Path]) -> EntityVocabulary:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise VocabularyError(f"Cannot load entity vocabulary from {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise VocabularyError(f"Entity vocabulary in {path} must be a JSON object")
    try:
        vocabulary = EntityVocabulary(**raw)
    except ValidationError as exc:
        raise VocabularyError(f"Invalid entity vocabulary in {path}: {exc}") from exc
    vocabulary.check_consistency()
    logger.info(
        "Loaded entity vocabulary %s (%d aliases, %d false positives) from %s",
        vocabulary.version,
        len(vocabulary.aliases),
        len(vocabulary.false_positives) + len(vocabulary.false_positive_fragments),
        path,
    )
    return vocabulary


@lru_cache(maxsize=8)
def get_default_vocabulary(path: Optional[str] = None) -> EntityVocabulary:
    """Vocabulary from ENTITY_VOCABULARY_PATH, or the packaged default."""
    return load_vocabulary(path or os.getenv("ENTITY_VOCABULARY_PATH") or DEFAULT_VOCABULARY_PATH)
