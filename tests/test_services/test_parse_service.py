"""Tests for SyllabusParseService."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from syllabus_sync.fallback.client import HTTP_STATUS, FallbackError, ModelFallbackClient
from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.fallback.cost_guard import CostGuard
from syllabus_sync.services.parser import (
    CourseCodeError,
    ParseRequest,
    SyllabusParseService,
)

WEAK_SYLLABUS = "CS101 Introduction\nWelcome to the course"


def _mock_client(events=None, error: Exception | None = None):
    """Create a mock ModelFallbackClient."""
    client = MagicMock(spec=ModelFallbackClient)
    client.model = "gpt-4o-mini"
    if error is not None:
        client.parse = AsyncMock(side_effect=error)
    else:
        client.parse = AsyncMock(return_value=events or [])
    client.close = AsyncMock()
    return client


def _service(client=None, cost_guard=None, **config) -> SyllabusParseService:
    fallback_config = FallbackConfig(api_key="test-key", **config)
    return SyllabusParseService(
        fallback_config=fallback_config,
        cost_guard=cost_guard,
        fallback_client=client or _mock_client(),
    )


class TestHeuristicPath:
    """Tests for confident heuristic results."""

    @pytest.mark.asyncio
    async def test_confident_result_skips_fallback(self, sample_syllabus):
        client = _mock_client()
        service = _service(client)

        result = await service.parse(ParseRequest(text=sample_syllabus, default_year=2025))

        assert result.course_code == "CS 101"
        assert result.source == "heuristics"
        assert len(result.events) == 5
        assert all(e.course_code == "CS 101" for e in result.events)
        assert result.diagnostics["fallback"]["attempted"] is False
        assert result.diagnostics["fallback"]["reason"] is None
        client.parse.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_explicit_course_code_wins(self, sample_syllabus):
        service = _service()
        result = await service.parse(
            ParseRequest(text=sample_syllabus, course_code="  COMP 1010 ", default_year=2025)
        )
        assert result.course_code == "COMP 1010"

    @pytest.mark.asyncio
    async def test_term_window_clamps_events(self, sample_syllabus):
        service = _service()
        result = await service.parse(
            ParseRequest(
                text=sample_syllabus,
                default_year=2025,
                term_start=date(2025, 9, 20),
                term_end=date(2025, 12, 1),
            )
        )
        starts = [e.start for e in result.events]
        assert starts[0] == "2025-09-20T00:00:00.000"
        assert starts[-1] == "2025-12-01T00:00:00.000"
        assert result.diagnostics["validation"]["clamped_events"] == 2

    @pytest.mark.asyncio
    async def test_diagnostics_shape(self, sample_syllabus):
        service = _service()
        result = await service.parse(ParseRequest(text=sample_syllabus, default_year=2025))
        diagnostics = result.diagnostics
        assert diagnostics["confidence"] >= diagnostics["threshold"]
        assert diagnostics["parsing"]["total_lines"] == 7
        assert diagnostics["validation"]["valid"] is True
        assert set(diagnostics["fallback"]) >= {
            "attempted", "reason", "model", "processing_time_ms", "denial_reason", "error_code"
        }

    @pytest.mark.asyncio
    async def test_to_dict(self, sample_syllabus):
        service = _service()
        result = await service.parse(ParseRequest(text=sample_syllabus, default_year=2025))
        data = result.to_dict()
        assert data["courseCode"] == "CS 101"
        assert data["events"][0]["type"] == "ASSIGNMENT"
        assert "diagnostics" in data


class TestFallbackPath:
    """Tests for routing to the model fallback."""

    @pytest.mark.asyncio
    async def test_model_events_replace_heuristics(self, make_event):
        client = _mock_client(events=[make_event(courseCode="CS101")])
        service = _service(client)

        result = await service.parse(ParseRequest(text=WEAK_SYLLABUS, client_id="1.2.3.4"))

        assert result.source == "model"
        assert [e.id for e in result.events] == ["quiz-1"]
        fallback = result.diagnostics["fallback"]
        assert fallback["attempted"] is True
        assert fallback["reason"] == "no_events"
        assert fallback["model"] == "gpt-4o-mini"
        assert fallback["event_count"] == 1
        assert service.cost_guard.get_stats()["total_calls"] == 1
        client.parse.assert_awaited_once()
        assert client.parse.await_args.kwargs["course_code"] == "CS101"

    @pytest.mark.asyncio
    async def test_term_bounds_passed_to_model(self, make_event):
        client = _mock_client(events=[make_event()])
        service = _service(client)
        await service.parse(
            ParseRequest(
                text=WEAK_SYLLABUS,
                term_start=date(2025, 9, 1),
                term_end=date(2025, 12, 15),
                timezone="America/Toronto",
            )
        )
        kwargs = client.parse.await_args.kwargs
        assert kwargs["term_start"] == "2025-09-01"
        assert kwargs["term_end"] == "2025-12-15"
        assert kwargs["timezone"] == "America/Toronto"

    @pytest.mark.asyncio
    async def test_model_events_clamped_to_term(self, make_event):
        client = _mock_client(events=[make_event(start="2025-08-01T00:00:00.000")])
        service = _service(client)
        result = await service.parse(
            ParseRequest(text=WEAK_SYLLABUS, term_start=date(2025, 9, 1))
        )
        assert result.events[0].start == "2025-09-01T00:00:00.000"

    @pytest.mark.asyncio
    async def test_empty_model_result_keeps_heuristics(self):
        client = _mock_client(events=[])
        service = _service(client)
        result = await service.parse(ParseRequest(text=WEAK_SYLLABUS))
        assert result.source == "heuristics"
        assert result.events == []
        assert result.diagnostics["fallback"]["attempted"] is True

    @pytest.mark.asyncio
    async def test_fallback_error_keeps_heuristics(self):
        client = _mock_client(error=FallbackError(HTTP_STATUS, "boom", status_code=500))
        service = _service(client)

        result = await service.parse(ParseRequest(text=WEAK_SYLLABUS))

        assert result.source == "heuristics"
        assert result.diagnostics["fallback"]["error_code"] == HTTP_STATUS
        assert result.diagnostics["fallback"]["processing_time_ms"] is not None
        assert service.cost_guard.get_stats()["total_calls"] == 0
        assert service.get_stats()["fallback_errors"] == 1

    @pytest.mark.asyncio
    async def test_per_client_cap_denies_before_call(self, make_event):
        client = _mock_client(events=[make_event()])
        service = _service(client, cost_guard=CostGuard(per_client_cap=1, daily_budget=0))

        first = await service.parse(ParseRequest(text=WEAK_SYLLABUS, client_id="a"))
        second = await service.parse(ParseRequest(text=WEAK_SYLLABUS, client_id="a"))

        assert first.source == "model"
        assert second.source == "heuristics"
        assert second.diagnostics["fallback"]["attempted"] is False
        assert second.diagnostics["fallback"]["denial_reason"] == "per_client_cap"
        assert client.parse.await_count == 1

    @pytest.mark.asyncio
    async def test_fallback_disallowed_by_request(self):
        client = _mock_client()
        service = _service(client)
        result = await service.parse(ParseRequest(text=WEAK_SYLLABUS, allow_fallback=False))
        assert result.diagnostics["fallback"]["denial_reason"] == "disabled"
        assert result.diagnostics["fallback"]["reason"] == "no_events"
        client.parse.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fallback_disabled_by_config(self):
        client = _mock_client()
        service = _service(client, enabled=False)
        result = await service.parse(ParseRequest(text=WEAK_SYLLABUS))
        assert result.diagnostics["fallback"]["denial_reason"] == "disabled"
        client.parse.assert_not_awaited()


class TestErrors:
    """Tests for caller errors and lifecycle."""

    @pytest.mark.asyncio
    async def test_undetermined_course_code(self):
        service = _service()
        with pytest.raises(CourseCodeError):
            await service.parse(ParseRequest(text="Assignment 1 due September 15, 2025"))

    @pytest.mark.asyncio
    async def test_non_string_text(self):
        service = _service()
        with pytest.raises(TypeError):
            await service.parse(ParseRequest(text=None, course_code="CS101"))

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        client = _mock_client()
        service = _service(client)
        await service.close()
        client.close.assert_awaited_once()

    def test_resolve_course_code(self):
        assert SyllabusParseService.resolve_course_code("Intro to CS 101", None) == "CS 101"
        assert SyllabusParseService.resolve_course_code("anything", " MATH-151 ") == "MATH-151"
        with pytest.raises(CourseCodeError):
            SyllabusParseService.resolve_course_code("no code here", "   ")
