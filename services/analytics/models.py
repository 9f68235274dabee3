# services/analytics/models.py
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from services.data_normalization_service import (
    coerce_string_list,
    normalize_authors,
    normalize_year,
)
from utils.id_normalization import normalize_record_id

APPROVED_STATUS = "approved"


class EntityCategory(str, Enum):
    TECHNOLOGIES = "technologies"
    DOMAINS = "domains"
    METHODOLOGIES = "methodologies"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class Significance(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MaturityTier(str, Enum):
    EXPERIMENTAL = "experimental"
    EMERGING = "emerging"
    GROWING = "growing"


class ChangeEvent(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


# ------------------------------------------------------------------
# Input
# ------------------------------------------------------------------
class ExtractedEntities(BaseModel):
    """Raw entity lists as returned by the extraction service."""
    technologies: List[str] = Field(default_factory=list)
    domains: List[str] = Field(default_factory=list)
    methodologies: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("technologies", "domains", "methodologies", mode="before")
    @classmethod
    def coerce_lists(cls, v, info):
        return coerce_string_list(v, info.field_name)

    def by_category(self, category: EntityCategory) -> List[str]:
        return getattr(self, category.value)


class AbstractRecord(BaseModel):
    """One submission snapshot as supplied by the record store."""
    id: str
    year: Optional[int] = None
    status: str = "pending"
    entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    themes: List[str] = Field(default_factory=list)
    title: str = ""
    authors: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def require_id(cls, v):
        rid = normalize_record_id(v)
        if rid is None:
            raise ValueError("Record id is required")
        return rid

    @field_validator("year", mode="before")
    @classmethod
    def parse_year(cls, v):
        return normalize_year(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return str(v).strip().lower() if v is not None else "pending"

    @field_validator("entities", mode="before")
    @classmethod
    def coerce_entities(cls, v):
        if v is None or not isinstance(v, (dict, ExtractedEntities)):
            return {}
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def default_confidence(cls, v):
        return 0.0 if v is None else v

    @field_validator("themes", mode="before")
    @classmethod
    def coerce_themes(cls, v):
        return coerce_string_list(v, "themes")

    @field_validator("title", mode="before")
    @classmethod
    def coerce_title(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("authors", mode="before")
    @classmethod
    def coerce_authors(cls, v):
        return normalize_authors(v)

    @property
    def is_eligible(self) -> bool:
        return self.status == APPROVED_STATUS


# ------------------------------------------------------------------
# Normalization / aggregation outputs
# ------------------------------------------------------------------
class NormalizedEntity(BaseModel):
    key: str                       # canonical lowercase form
    label: str                     # presentation-cased form
    sources: List[str] = Field(default_factory=list)  # raw strings collapsed into it


class FrequencyEntry(BaseModel):
    entity: str
    key: str
    count: int
    percentage: float


class CategoryShare(BaseModel):
    category: EntityCategory
    count: int
    percentage: float


class AggregationResult(BaseModel):
    per_entity: List[FrequencyEntry] = Field(default_factory=list)
    per_category: Dict[EntityCategory, List[FrequencyEntry]] = Field(default_factory=dict)
    category_totals: Dict[EntityCategory, int] = Field(default_factory=dict)
    total_count: int = 0
    record_count: int = 0

    def counts(self) -> Dict[str, int]:
        return {e.key: e.count for e in self.per_entity}

    def top(self, k: int) -> List[FrequencyEntry]:
        return self.per_entity[:max(0, k)]


# ------------------------------------------------------------------
# Trends
# ------------------------------------------------------------------
class ThemeFrequency(BaseModel):
    theme: str
    frequency: int
    unique_papers: int
    percentage: float
    trend: TrendDirection
    growth: str
    growth_rate: float
    significance: Significance
    current_year_count: int = 0
    prior_year_count: int = 0
    papers: List[str] = Field(default_factory=list)
    related_domains: List[str] = Field(default_factory=list)


class TrendPeriod(BaseModel):
    period: int
    record_ids: List[str] = Field(default_factory=list)
    total_papers: int
    topics: List[str] = Field(default_factory=list)
    topic_counts: Dict[str, int] = Field(default_factory=dict)
    dominant_theme: Optional[str] = None


class SubmissionPeriod(BaseModel):
    period: int
    submissions: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0


class PaperRef(BaseModel):
    id: str
    title: str = ""
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = None


class EmergingTechnology(BaseModel):
    name: str
    maturity: MaturityTier
    adoption: float
    potential: int
    growth_rate: float
    timeframe: str
    related_papers: int
    first_seen: Optional[int] = None
    last_seen: Optional[int] = None
    yearly_mentions: Dict[int, int] = Field(default_factory=dict)
    papers: List[PaperRef] = Field(default_factory=list)


# ------------------------------------------------------------------
# Graph
# ------------------------------------------------------------------
class GraphNode(BaseModel):
    id: str
    label: str
    type: str                      # "abstract" (center) | "entity"
    record_id: str
    category: Optional[EntityCategory] = None


class GraphEdge(BaseModel):
    source: str
    target: str


class GraphModel(BaseModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)


# ------------------------------------------------------------------
# Snapshot
# ------------------------------------------------------------------
class CorpusOverview(BaseModel):
    total_records: int = 0
    eligible_records: int = 0
    records_with_themes: int = 0
    average_confidence: float = 0.0


class AnalyticsSnapshot(BaseModel):
    current_year: int
    vocabulary_version: str
    overview: CorpusOverview
    frequency_table: List[FrequencyEntry] = Field(default_factory=list)
    top_entities: List[FrequencyEntry] = Field(default_factory=list)
    category_tables: Dict[EntityCategory, List[FrequencyEntry]] = Field(default_factory=dict)
    category_distribution: List[CategoryShare] = Field(default_factory=list)
    themes: List[ThemeFrequency] = Field(default_factory=list)
    timeline: List[TrendPeriod] = Field(default_factory=list)
    emerging_technologies: List[EmergingTechnology] = Field(default_factory=list)
    submissions: List[SubmissionPeriod] = Field(default_factory=list)
    graph: GraphModel = Field(default_factory=GraphModel)
    meta: Dict[str, Any] = Field(default_factory=dict)
