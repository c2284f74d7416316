"""
Dependency injection for FastAPI endpoints.
"""

from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.parsing.config import ParsingConfig
from syllabus_sync.services.parser import SyllabusParseService

# Global service instance (initialized on first request)
_parse_service: SyllabusParseService | None = None


def get_fallback_config() -> FallbackConfig:
    return FallbackConfig()


def get_parse_service() -> SyllabusParseService:
    """
    Get parse service instance.

    A singleton so the cost guard counters are shared by all requests
    in this process.
    """
    global _parse_service

    if _parse_service is None:
        _parse_service = SyllabusParseService(
            parsing_config=ParsingConfig(),
            fallback_config=get_fallback_config(),
        )

    return _parse_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _parse_service

    if _parse_service is not None:
        await _parse_service.close()
        _parse_service = None
