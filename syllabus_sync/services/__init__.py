"""Service layer for syllabus parsing."""

from syllabus_sync.services.parser import (
    CourseCodeError,
    ParseRequest,
    ParseResult,
    SyllabusParseService,
)

__all__ = [
    "CourseCodeError",
    "ParseRequest",
    "ParseResult",
    "SyllabusParseService",
]
