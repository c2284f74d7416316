"""Syllabus parsing endpoint."""

import json
import time

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from starlette.requests import Request

from syllabus_sync.api.dependencies import get_parse_service
from syllabus_sync.api.models import (
    ErrorResponse,
    ParseSyllabusRequest,
    ParseSyllabusResponse,
)
from syllabus_sync.config.settings import Settings, get_settings
from syllabus_sync.services.parser import CourseCodeError, ParseRequest, SyllabusParseService

router = APIRouter()
logger = structlog.get_logger(__name__)


class APIError(HTTPException):
    """HTTPException carrying a stable error_type for the response body."""

    def __init__(self, status_code: int, detail: str, error_type: str):
        super().__init__(status_code=status_code, detail=detail)
        self.error_type = error_type


def _client_id(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "anonymous"


async def _read_body(request: Request, settings: Settings) -> ParseSyllabusRequest:
    """Decode the request body, mapping each failure to a typed API error."""
    raw = await request.body()
    if len(raw) > settings.max_body_bytes:
        raise APIError(
            413,
            f"Request body exceeds {settings.max_body_bytes} bytes",
            "payload_too_large",
        )

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise APIError(400, "Request body must be valid JSON", "invalid_json") from None

    if not isinstance(payload, dict):
        raise APIError(400, "Request body must be a JSON object", "invalid_request")
    if "text" in payload and not isinstance(payload["text"], str):
        raise APIError(400, "text must be a string", "invalid_request")

    try:
        body = ParseSyllabusRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise APIError(400, f"Invalid request fields: {fields}", "invalid_request") from e

    if len(body.text) > settings.max_text_chars:
        raise APIError(
            413,
            f"text exceeds {settings.max_text_chars} characters",
            "payload_too_large",
        )
    return body


@router.post(
    "/parse",
    response_model=ParseSyllabusResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed request"},
        413: {"model": ErrorResponse, "description": "Text too large"},
        422: {"model": ErrorResponse, "description": "Course code could not be determined"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
    summary="Parse syllabus text into calendar events",
    description=(
        "Extract dated events from syllabus text with heuristics, falling back "
        "to the language model when heuristic confidence is low."
    ),
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": ParseSyllabusRequest.model_json_schema(by_alias=True)
                }
            },
        }
    },
)
async def parse_syllabus(
    request: Request,
    service: SyllabusParseService = Depends(get_parse_service),
    settings: Settings = Depends(get_settings),
) -> ParseSyllabusResponse:
    start_time = time.perf_counter()
    body = await _read_body(request, settings)

    try:
        result = await service.parse(
            ParseRequest(
                text=body.text,
                course_code=body.course_code,
                default_year=body.default_year,
                term_start=body.term_start,
                term_end=body.term_end,
                timezone=body.timezone,
                client_id=_client_id(request),
            )
        )
    except CourseCodeError as e:
        raise APIError(422, str(e), "course_code_undetermined") from e

    latency_ms = (time.perf_counter() - start_time) * 1000

    return ParseSyllabusResponse(
        course_code=result.course_code,
        events=[event.to_dict() for event in result.events],
        total=len(result.events),
        source=result.source,
        diagnostics=result.diagnostics,
        latency_ms=round(latency_ms, 2),
    )
