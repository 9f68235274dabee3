# services/analytics/settings.py
import logging
import os
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AnalyticsSettings(BaseModel):
    top_k: int = Field(15, ge=0)
    timeline_top_n: int = Field(5, ge=0, le=5)
    current_year: Optional[int] = None       # None: calendar year of each pass
    graph_max_entities: Optional[int] = Field(None, ge=0)
    vocabulary_path: Optional[str] = None

    def resolve_year(self) -> int:
        return self.current_year or date.today().year


def _int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_settings() -> AnalyticsSettings:
    """Settings from the environment; unset variables keep their defaults."""
    values = {
        "top_k": _int_env("ANALYTICS_TOP_K"),
        "timeline_top_n": _int_env("ANALYTICS_TIMELINE_TOP_N"),
        "current_year": _int_env("ANALYTICS_CURRENT_YEAR"),
        "graph_max_entities": _int_env("ANALYTICS_GRAPH_MAX_ENTITIES"),
        "vocabulary_path": os.getenv("ENTITY_VOCABULARY_PATH") or None,
    }
    settings = AnalyticsSettings(**{k: v for k, v in values.items() if v is not None})
    logger.debug("Analytics settings: %s", settings)
    return settings
