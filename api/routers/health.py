# File: api/routers/health.py
from fastapi import APIRouter

from services.schema.entity_vocabulary import get_default_vocabulary


router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "vocabulary_version": get_default_vocabulary().version}
