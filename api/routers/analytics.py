# File: api/routers/analytics.py
from fastapi import APIRouter, HTTPException
from api.models.analytics_models import ChangeNotification, GraphRequest, RecomputeRequest
from services.analytics.graph_builder import build_record_graph
from services.analytics.models import AnalyticsSnapshot, GraphModel
from services.analytics.pipeline import recompute
from services.analytics.recompute_service import get_recompute_service
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/recompute", response_model=AnalyticsSnapshot)
def recompute_analytics(payload: RecomputeRequest) -> AnalyticsSnapshot:
    try:
        return recompute(payload.records, current_year=payload.current_year)

    except ValueError as e:
        logger.warning(f"Validation error in recompute_analytics: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception:
        logger.error("Unexpected error in recompute_analytics", exc_info=True)
        raise HTTPException(status_code=500, detail="An internal error occurred")


@router.post("/graph", response_model=GraphModel)
def record_graph(payload: GraphRequest) -> GraphModel:
    try:
        return build_record_graph(payload.record, max_entities=payload.max_entities)

    except ValueError as e:
        logger.warning(f"Validation error in record_graph: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception:
        logger.error("Unexpected error in record_graph", exc_info=True)
        raise HTTPException(status_code=500, detail="An internal error occurred")


@router.post("/events", response_model=AnalyticsSnapshot)
def change_event(payload: ChangeNotification) -> AnalyticsSnapshot:
    try:
        return get_recompute_service().notify_change(payload.event_type, payload.records)

    except ValueError as e:
        logger.warning(f"Validation error in change_event: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception:
        logger.error("Unexpected error in change_event", exc_info=True)
        raise HTTPException(status_code=500, detail="An internal error occurred")


@router.get("/snapshot", response_model=AnalyticsSnapshot)
def latest_snapshot() -> AnalyticsSnapshot:
    snapshot = get_recompute_service().latest()
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No analytics computed yet")
    return snapshot
