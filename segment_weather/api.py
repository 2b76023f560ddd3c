"""HTTP API for segment weather impact analysis."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from .config import settings
from .domain import AssistAssessment, Segment, SegmentImpactRequest, SegmentImpactResult
from .errors import CacheError, SegmentWeatherError, UpstreamError
from .service import SegmentWeatherService
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="segment_weather/api")


def get_service(request: Request) -> SegmentWeatherService:
    """Return the service created by the application lifespan."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready")
    return service


router = APIRouter()


class ImpactBatchRequest(BaseModel):
    """Segments to analyse, each with an optional effort timestamp."""
    segments: List[SegmentImpactRequest] = Field(min_length=1)
    use_cache: bool = True


class ImpactBatchResponse(BaseModel):
    """Per-segment results in request order."""
    results: List[SegmentImpactResult]


class AssistRequest(BaseModel):
    """Single segment to classify."""
    segment: Segment
    timestamp: Optional[int] = None


class CacheClearResponse(BaseModel):
    """Outcome of a cache maintenance call."""
    removed: int


@router.post("/segments/impact", response_model=ImpactBatchResponse)
async def segment_impacts(
    body: ImpactBatchRequest,
    service: SegmentWeatherService = Depends(get_service),
) -> ImpactBatchResponse:
    """Analyse a batch of segments; failures are reported per segment, never as a 5xx."""
    if len(body.segments) > settings.max_batch_size:
        raise HTTPException(
            status_code=422,
            detail=f"At most {settings.max_batch_size} segments per request",
        )
    results = await service.get_impacts(body.segments, use_cache=body.use_cache)
    return ImpactBatchResponse(results=results)


@router.post("/segments/assist", response_model=AssistAssessment)
async def segment_assist(
    body: AssistRequest,
    service: SegmentWeatherService = Depends(get_service),
) -> AssistAssessment:
    """Classify one segment's conditions as favorable, neutral or unfavorable."""
    try:
        return await service.get_assist(body.segment, body.timestamp)
    except UpstreamError as exc:
        logger.warning("Upstream weather failure", extra={"segment_id": body.segment.id, "error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    except SegmentWeatherError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.delete("/cache", response_model=CacheClearResponse)
async def clear_cache(service: SegmentWeatherService = Depends(get_service)) -> CacheClearResponse:
    """Remove every cached weather reading."""
    try:
        removed = await service.clear_cache()
    except CacheError as exc:
        logger.error("Failed to clear weather cache", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return CacheClearResponse(removed=removed)
