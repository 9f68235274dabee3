# File: api/main.py
from dotenv import load_dotenv
import os

env = os.getenv("APP_ENV", "local")
if env == "local":
    load_dotenv(".env.local")
else:
    load_dotenv(".env")

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from fastapi.middleware.cors import CORSMiddleware

from api.routers import analytics, health
from services.schema.entity_vocabulary import get_default_vocabulary

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Abstract Analytics API (env=%s)", env)
    try:
        # Fail fast on a broken vocabulary instead of on the first request
        get_default_vocabulary()
    except Exception as e:
        logger.error(f"❌ Failed to load entity vocabulary: {e}", exc_info=True)
        raise
    yield
    logger.info("🛑 Shutting down Abstract Analytics API")


app = FastAPI(
    title="Abstract Analytics API",
    version="1.0.0",
    description="Entity normalization and research trend analytics over approved abstracts.",
    lifespan=lifespan
)

# CORS Configuration
origins = []
if env == "local":
    origins = ["http://localhost:3000", "http://localhost:5173"]  # Common dev ports
else:
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])


@app.get("/")
async def root():
    return {"message": "Abstract Analytics API running"}
