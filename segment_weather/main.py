"""FastAPI application setup for the segment weather service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as api_router
from .service import SegmentWeatherService
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="segment_weather/main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the service on startup and release its connections on shutdown."""
    app.state.service = SegmentWeatherService.from_settings()
    logger.info("Segment weather service started")
    try:
        yield
    finally:
        await app.state.service.aclose()
        app.state.service = None
        logger.info("Segment weather service stopped")


app = FastAPI(title="Segment Weather Impact", lifespan=lifespan)


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


app.include_router(api_router, prefix="/v1")
