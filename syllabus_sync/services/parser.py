"""
Syllabus parse service - runs the full extraction pipeline for one request.

Pipeline stages:
1. Course code resolution (explicit or detected)
2. Heuristic candidate building
3. Validation and term clamping
4. Confidence routing
5. Model fallback, gated by the cost guard

Fallback failures never surface to the caller; the heuristic result is
kept and the failure is recorded in the diagnostics.
"""

import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

import structlog

from syllabus_sync.fallback.client import FallbackError, ModelFallbackClient
from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.fallback.cost_guard import CostGuard
from syllabus_sync.fallback.router import ConfidenceRouter
from syllabus_sync.parsing.builder import EventCandidateBuilder
from syllabus_sync.parsing.config import ParsingConfig
from syllabus_sync.parsing.course_code import detect_course_code
from syllabus_sync.validation.schemas import EventItem, ValidationConfig, ValidationResult
from syllabus_sync.validation.validator import EventValidator

logger = structlog.get_logger(__name__)

SOURCE_HEURISTICS = "heuristics"
SOURCE_MODEL = "model"


class CourseCodeError(ValueError):
    """Raised when no course code was supplied and none could be detected."""


@dataclass
class ParseRequest:
    """
    One syllabus parse request.

    Attributes:
        text: Raw syllabus text.
        course_code: Explicit course code; detected from text when omitted.
        default_year: Year for dates written without one.
        term_start: Lower bound for event dates.
        term_end: Upper bound for event dates.
        timezone: Informational label passed to the model.
        client_id: Identifier used for per-client fallback caps.
        allow_fallback: Set False to stay on the heuristic path.
    """

    text: str
    course_code: str | None = None
    default_year: int | None = None
    term_start: date | None = None
    term_end: date | None = None
    timezone: str | None = None
    client_id: str = "anonymous"
    allow_fallback: bool = True


@dataclass
class ParseResult:
    """Final events plus diagnostics for one parse."""

    course_code: str
    events: list[EventItem] = field(default_factory=list)
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str:
        return self.diagnostics.get("source", SOURCE_HEURISTICS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "courseCode": self.course_code,
            "events": [e.to_dict() for e in self.events],
            "diagnostics": self.diagnostics,
        }


def _as_datetime(value: date | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def _iso_date(value: date | None) -> str | None:
    return value.isoformat()[:10] if value is not None else None


class SyllabusParseService:
    """
    End-to-end syllabus parsing.

    Collaborators default to fresh instances built from config and may be
    injected for testing. The cost guard is the only state shared across
    requests.

    Usage:
        service = SyllabusParseService()
        result = await service.parse(ParseRequest(text=syllabus, default_year=2025))
        await service.close()
    """

    def __init__(
        self,
        parsing_config: ParsingConfig | None = None,
        fallback_config: FallbackConfig | None = None,
        builder: EventCandidateBuilder | None = None,
        router: ConfidenceRouter | None = None,
        cost_guard: CostGuard | None = None,
        fallback_client: ModelFallbackClient | None = None,
    ):
        self._parsing_config = parsing_config or ParsingConfig()
        self._fallback_config = fallback_config or FallbackConfig()
        self._builder = builder or EventCandidateBuilder(self._parsing_config)
        self._router = router or ConfidenceRouter(self._fallback_config.confidence_threshold)
        self._cost_guard = cost_guard or CostGuard(
            per_client_cap=self._fallback_config.per_client_cap,
            daily_budget=self._fallback_config.daily_budget,
            cost_per_call=self._fallback_config.cost_per_call,
        )
        self._fallback_client = fallback_client
        self._stats = {
            "requests": 0,
            "heuristic_results": 0,
            "model_results": 0,
            "fallback_attempts": 0,
            "fallback_denied": 0,
            "fallback_errors": 0,
        }

    def _get_fallback_client(self) -> ModelFallbackClient:
        if self._fallback_client is None:
            self._fallback_client = ModelFallbackClient(self._fallback_config)
        return self._fallback_client

    @property
    def cost_guard(self) -> CostGuard:
        return self._cost_guard

    # ── Course Code ──────────────────────────────────────

    @staticmethod
    def resolve_course_code(text: str, course_code: str | None) -> str:
        """
        Use the explicit course code when given, otherwise detect it.

        Raises:
            CourseCodeError: If neither yields a code.
        """
        explicit = course_code.strip() if course_code else ""
        resolved = explicit or detect_course_code(text)
        if not resolved:
            raise CourseCodeError("Unable to determine course code from syllabus text")
        return resolved

    # ── Main Pipeline ────────────────────────────────────

    async def parse(self, request: ParseRequest) -> ParseResult:
        """
        Parse one syllabus.

        Args:
            request: Text plus optional course code, year and term bounds.

        Returns:
            ParseResult with the winning event list and diagnostics.

        Raises:
            TypeError: If request.text is not a string.
            CourseCodeError: If no course code can be determined.
        """
        if not isinstance(request.text, str):
            raise TypeError(f"text must be a string, got {type(request.text).__name__}")

        self._stats["requests"] += 1
        course_code = self.resolve_course_code(request.text, request.course_code)

        build = self._builder.build(
            request.text, course_code=course_code, default_year=request.default_year
        )
        validator = EventValidator(
            ValidationConfig(
                default_course_code=course_code,
                term_start=_as_datetime(request.term_start),
                term_end=_as_datetime(request.term_end),
            )
        )
        validation = validator.validate(build.candidates)
        decision = self._router.route(validation.events)

        events = validation.events
        source = SOURCE_HEURISTICS
        fallback: dict[str, Any] = {
            "attempted": False,
            "reason": decision.reason,
            "model": None,
            "processing_time_ms": None,
            "denial_reason": None,
            "error_code": None,
        }

        if decision.use_fallback:
            model_events = await self._run_fallback(request, course_code, validator, fallback)
            if model_events:
                events = model_events
                source = SOURCE_MODEL

        self._stats["model_results" if source == SOURCE_MODEL else "heuristic_results"] += 1

        diagnostics = {
            "source": source,
            "confidence": round(self._router.overall_confidence(events), 4),
            "heuristic_confidence": round(decision.overall_confidence, 4),
            "threshold": decision.threshold,
            "parsing": build.stats.to_dict(),
            "validation": self._validation_diagnostics(validation),
            "fallback": fallback,
        }

        logger.info(
            "Syllabus parsed",
            text_length=len(request.text),
            source=source,
            events=len(events),
            confidence=diagnostics["confidence"],
        )
        return ParseResult(course_code=course_code, events=events, diagnostics=diagnostics)

    # ── Fallback ─────────────────────────────────────────

    async def _run_fallback(
        self,
        request: ParseRequest,
        course_code: str,
        validator: EventValidator,
        fallback: dict[str, Any],
    ) -> list[EventItem]:
        """Attempt the model call. Fills in fallback diagnostics; returns [] on any failure."""
        if not (request.allow_fallback and self._fallback_config.enabled):
            fallback["denial_reason"] = "disabled"
            return []

        denial = self._cost_guard.check(request.client_id)
        if denial is not None:
            self._stats["fallback_denied"] += 1
            fallback["denial_reason"] = denial
            return []

        client = self._get_fallback_client()
        fallback["attempted"] = True
        fallback["model"] = client.model
        self._stats["fallback_attempts"] += 1

        started = time.perf_counter()
        try:
            items = await client.parse(
                request.text,
                course_code=course_code,
                term_start=_iso_date(request.term_start),
                term_end=_iso_date(request.term_end),
                timezone=request.timezone,
            )
        except FallbackError as e:
            self._stats["fallback_errors"] += 1
            fallback["error_code"] = e.code
            fallback["processing_time_ms"] = round((time.perf_counter() - started) * 1000, 2)
            logger.warning("Model fallback failed", error_code=e.code, error=str(e))
            return []

        fallback["processing_time_ms"] = round((time.perf_counter() - started) * 1000, 2)
        self._cost_guard.record(request.client_id)

        # Model items are already schema-valid; this applies term clamping
        clamped = validator.validate([item.to_dict() for item in items])
        fallback["event_count"] = len(clamped.events)
        return clamped.events

    @staticmethod
    def _validation_diagnostics(validation: ValidationResult) -> dict[str, Any]:
        return {
            "valid": validation.valid,
            **validation.stats.to_dict(),
            "errors": validation.errors,
            "warnings": validation.warnings,
        }

    # ── Stats & Cleanup ──────────────────────────────────

    def get_stats(self) -> dict[str, Any]:
        """Return request counters and cost guard usage."""
        return {
            **self._stats,
            "cost_guard": self._cost_guard.get_stats(),
        }

    async def close(self) -> None:
        """Clean up the fallback client."""
        if self._fallback_client is not None:
            await self._fallback_client.close()
            self._fallback_client = None
