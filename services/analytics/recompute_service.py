# services/analytics/recompute_service.py
import hashlib
import json
import logging
import threading
from typing import Iterable, List, Optional, Union

from services.analytics.models import AbstractRecord, AnalyticsSnapshot, ChangeEvent
from services.analytics.pipeline import recompute
from services.analytics.settings import AnalyticsSettings, load_settings
from services.schema.entity_vocabulary import EntityVocabulary, get_default_vocabulary

logger = logging.getLogger(__name__)


def snapshot_fingerprint(
    records: List[AbstractRecord],
    settings: AnalyticsSettings,
    version: str,
    current_year: int,
) -> str:
    payload = {
        "current_year": current_year,
        "records": [r.model_dump(mode="json") for r in records],
        "settings": settings.model_dump(mode="json"),
        "vocabulary": version,
    }
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


class AnalyticsRecomputeService:
    """
    Observer side of the record store's change channel.

    Every insert/update/delete notification reruns the full pipeline on the
    complete snapshot passed in. Notifications are serialized; a snapshot
    identical to the last computed one is coalesced into the previous result.
    """

    def __init__(self, settings: Optional[AnalyticsSettings] = None, vocabulary: Optional[EntityVocabulary] = None):
        self.settings = settings or load_settings()
        # loaded once; a vocabulary edit needs a new service (or process)
        self.vocabulary = vocabulary or get_default_vocabulary(self.settings.vocabulary_path)
        self._lock = threading.Lock()
        self._snapshot: Optional[AnalyticsSnapshot] = None
        self._fingerprint: Optional[str] = None
        self.runs = 0

    def notify_change(
        self,
        event: Union[ChangeEvent, str],
        records: Iterable[AbstractRecord],
    ) -> AnalyticsSnapshot:
        event = ChangeEvent(event)
        records = list(records)
        # resolved per event, not per service
        year = self.settings.resolve_year()
        fingerprint = snapshot_fingerprint(records, self.settings, self.vocabulary.version, year)

        with self._lock:
            if self._snapshot is not None and fingerprint == self._fingerprint:
                logger.info("Change event '%s' coalesced (snapshot unchanged)", event.value)
                return self._snapshot

            logger.info("Change event '%s': recomputing over %d records", event.value, len(records))
            snapshot = recompute(records, settings=self.settings, vocabulary=self.vocabulary, current_year=year)
            self._snapshot = snapshot
            self._fingerprint = fingerprint
            self.runs += 1
            return snapshot

    def latest(self) -> Optional[AnalyticsSnapshot]:
        with self._lock:
            return self._snapshot


_service: Optional[AnalyticsRecomputeService] = None
_service_lock = threading.Lock()


def get_recompute_service() -> AnalyticsRecomputeService:
    global _service
    with _service_lock:
        if _service is None:
            _service = AnalyticsRecomputeService()
        return _service
