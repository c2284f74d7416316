"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends

from syllabus_sync import __version__
from syllabus_sync.api.dependencies import get_fallback_config, get_parse_service
from syllabus_sync.api.models import HealthResponse
from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.services.parser import SyllabusParseService

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    service: SyllabusParseService = Depends(get_parse_service),
    fallback_config: FallbackConfig = Depends(get_fallback_config),
) -> HealthResponse:
    api_key = fallback_config.api_key
    return HealthResponse(
        version=__version__,
        fallback_enabled=fallback_config.enabled,
        fallback_configured=bool(api_key and api_key.get_secret_value().strip()),
        stats=service.get_stats(),
    )
