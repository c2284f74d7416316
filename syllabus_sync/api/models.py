"""
Request and response models for the syllabus parsing API.
"""

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ParseSyllabusRequest(BaseModel):
    """Request model for syllabus parsing."""

    model_config = ConfigDict(populate_by_name=True)

    text: StrictStr = Field(
        ...,
        description="Raw syllabus text",
    )
    course_code: str | None = Field(
        default=None,
        alias="courseCode",
        max_length=50,
        description="Course code; detected from the text when omitted",
    )
    default_year: int | None = Field(
        default=None,
        alias="defaultYear",
        ge=1900,
        le=2100,
        description="Year applied to dates written without one",
    )
    term_start: dt.date | None = Field(
        default=None,
        alias="termStart",
        description="Earliest allowed event date (YYYY-MM-DD)",
    )
    term_end: dt.date | None = Field(
        default=None,
        alias="termEnd",
        description="Latest allowed event date (YYYY-MM-DD)",
    )
    timezone: str | None = Field(
        default=None,
        max_length=64,
        description="Informational timezone label; output stays zone-naive",
    )


class ParseSyllabusResponse(BaseModel):
    """Response model for syllabus parsing."""

    model_config = ConfigDict(populate_by_name=True)

    course_code: str = Field(..., alias="courseCode")
    events: list[dict[str, Any]] = Field(
        ...,
        description="Validated events with camelCase fields",
    )
    total: int = Field(..., description="Number of events returned")
    source: Literal["heuristics", "model"] = Field(
        ...,
        description="Which path produced the events",
    )
    diagnostics: dict[str, Any] = Field(
        default_factory=dict,
        description="Per-stage statistics and fallback details",
    )
    latency_ms: float = Field(..., description="Processing time in milliseconds")


class HealthResponse(BaseModel):
    """Response model for the health check."""

    status: Literal["healthy"] = "healthy"
    version: str
    fallback_enabled: bool
    fallback_configured: bool
    stats: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Stable error category",
    )
