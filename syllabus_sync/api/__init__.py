"""
FastAPI syllabus parsing service.

Provides REST API with:
- POST /parse - Syllabus text to calendar events
- GET /health - Service health check
"""

from syllabus_sync.api.app import create_app

__all__ = ["create_app"]
