"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from syllabus_sync.api.app import create_app
from syllabus_sync.api.dependencies import get_fallback_config, get_parse_service
from syllabus_sync.config.settings import Settings, get_settings
from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.services.parser import SyllabusParseService


@pytest.fixture
def fallback_disabled_config():
    """FallbackConfig with the model path switched off."""
    return FallbackConfig(enabled=False, api_key=None)


@pytest.fixture
def parse_service(fallback_disabled_config):
    """A real parse service that never calls the model."""
    return SyllabusParseService(fallback_config=fallback_disabled_config)


@pytest.fixture
def api_settings():
    """Settings with small payload limits."""
    return Settings(max_text_chars=2_000, max_body_bytes=10_000)


@pytest.fixture
def app(parse_service, fallback_disabled_config, api_settings):
    """App with parse service, fallback config and settings overridden."""
    app = create_app()
    app.dependency_overrides[get_parse_service] = lambda: parse_service
    app.dependency_overrides[get_fallback_config] = lambda: fallback_disabled_config
    app.dependency_overrides[get_settings] = lambda: api_settings
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """TestClient for the configured app."""
    return TestClient(app)
