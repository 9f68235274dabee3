# tests/conftest.py
import pytest

from services.analytics.models import AbstractRecord
from services.analytics.normalizer import EntityNormalizer
from services.schema.entity_vocabulary import get_default_vocabulary


def make_record(
    record_id="r1",
    year=2024,
    status="approved",
    technologies=None,
    domains=None,
    methodologies=None,
    themes=None,
    confidence=0.8,
    title="",
    authors=None,
) -> AbstractRecord:
    return AbstractRecord(
        id=record_id,
        year=year,
        status=status,
        entities={
            "technologies": technologies or [],
            "domains": domains or [],
            "methodologies": methodologies or [],
        },
        confidence=confidence,
        themes=themes or [],
        title=title,
        authors=authors or [],
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def normalizer():
    return EntityNormalizer(get_default_vocabulary())


@pytest.fixture
def sample_corpus():
    """Nine submissions: two themes over 2024-2025 plus unapproved noise."""
    return [
        make_record("r1", year=2024, themes=["AI in Education"], domains=["Education"]),
        make_record("r2", year=2025, themes=["AI in Education"], domains=["Education", "Healthcare"]),
        make_record("r3", year=2025, themes=["AI in Education"], domains=["education", "health care"]),
        make_record("r4", year=2025, themes=["ai in education "], domains=["Education"]),
        make_record("r5", year=2024, themes=["Legacy Systems"]),
        make_record("r6", year=2024, themes=["Legacy Systems"]),
        make_record("r7", year=2025),
        make_record("r8", year=2025, status="pending", themes=["AI in Education"]),
        make_record("r9", year=2022, status="pending", themes=["Legacy Systems"]),
    ]
