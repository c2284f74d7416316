"""Shared test fixtures."""

import pytest

from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.parsing.builder import EventCandidateBuilder
from syllabus_sync.validation.schemas import EventItem

SAMPLE_SYLLABUS = """\
CS 101 Introduction to Programming
Fall 2025

Assignment 1: Hello World - Due September 15, 2025
Quiz 1 on Sept 26, 2025 (covers chapters 1-3)
Midterm Exam - October 20, 2025
Lab 2 in Room 204 on Oct 3, 2025 at 2:00 pm
Final Exam in Hall 101 - December 15, 2025
"""

MODEL_ENDPOINT = "https://llm.test/v1/chat/completions"


def _make_event_item(**overrides) -> EventItem:
    """Helper to create a valid EventItem with sensible defaults."""
    data = {
        "id": "quiz-1",
        "courseCode": "CS101",
        "type": "QUIZ",
        "title": "Quiz 1",
        "start": "2025-09-19T00:00:00.000",
        "allDay": True,
        "confidence": 0.9,
    }
    data.update(overrides)
    return EventItem.model_validate(data)


@pytest.fixture
def make_event():
    """Factory for valid EventItem objects; keyword overrides use camelCase keys."""
    return _make_event_item


@pytest.fixture
def sample_syllabus():
    """A small syllabus with one line per event type."""
    return SAMPLE_SYLLABUS


@pytest.fixture
def builder():
    """EventCandidateBuilder with default config."""
    return EventCandidateBuilder()


@pytest.fixture
def fallback_config():
    """FallbackConfig pointing at a test endpoint with zero backoff."""
    return FallbackConfig(
        api_key="test-key",
        endpoint=MODEL_ENDPOINT,
        backoff_base_seconds=0.0,
        backoff_jitter_seconds=0.0,
    )
