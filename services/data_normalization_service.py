#File: services/data_normalization_service.py
import logging
import re
from datetime import datetime
from typing import List, Any, Optional

from utils.sanitization import clean_text

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


def normalize_year(value: Any) -> Optional[int]:
    """
    Extracts a 4-digit year from the shapes record stores hand us.
    Supports: int, YYYY, YYYY-MM-DD, ISO timestamps.
    Returns: Year as Integer or None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value if MIN_YEAR <= value <= MAX_YEAR else None

    if isinstance(value, float):
        if value.is_integer() and MIN_YEAR <= value <= MAX_YEAR:
            return int(value)
        return None

    text = str(value).strip()
    if not text:
        return None

    # 1. Exact 4-digit year
    if re.match(r"^\d{4}$", text):
        year = int(text)
        return year if MIN_YEAR <= year <= MAX_YEAR else None

    # 2. ISO / standard date starting with YYYY
    match = re.match(r"^(\d{4})-\d{2}-\d{2}", text)
    if match:
        year = int(match.group(1))
        return year if MIN_YEAR <= year <= MAX_YEAR else None

    # 3. Submission timestamps, e.g. '2024-10-15T12:00:00Z'
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).year
    except ValueError:
        pass

    logger.debug("Unparseable year value: %r", value)
    return None


def normalize_authors(authors: Any) -> List[str]:
    """
    Standardizes author list to simple list of strings.
    Handles: comma-separated strings, list of strings, list of {'name': ...} dicts.
    """
    if not authors:
        return []

    if isinstance(authors, str):
        return [a for a in (clean_text(part) for part in authors.split(",")) if a]

    normalized = []
    if isinstance(authors, (list, tuple)):
        for a in authors:
            name = None
            if isinstance(a, str):
                name = clean_text(a)
            elif isinstance(a, dict):
                name = clean_text(a.get("name")) if isinstance(a.get("name"), str) else None
            if name:
                normalized.append(name)

    return normalized


def coerce_string_list(value: Any, field_name: str = "value") -> List[str]:
    """
    Malformed or missing entity lists are treated as empty, not as errors.
    Non-string items are dropped; a bare string becomes a one-item list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        logger.debug("Coercing malformed %s (%s) to empty list", field_name, type(value).__name__)
        return []

    items = [v for v in value if isinstance(v, str)]
    dropped = len(value) - len(items)
    if dropped:
        logger.debug("Dropped %d non-string item(s) from %s", dropped, field_name)
    return items
