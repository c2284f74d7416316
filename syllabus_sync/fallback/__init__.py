"""Confidence-gated model fallback for syllabus parsing.

Components:
- ConfidenceRouter: decides when heuristic output needs the model
- CostGuard: per-client and per-day call caps
- ModelFallbackClient: HTTP client with retry, timeout and validation
- build_parse_request / preprocess_for_model: prompt assembly
"""

from syllabus_sync.fallback.client import (
    FallbackError,
    ModelFallbackClient,
    RetryConfig,
    extract_response_text,
    parse_event_payload,
)
from syllabus_sync.fallback.config import FallbackConfig
from syllabus_sync.fallback.cost_guard import CostGuard
from syllabus_sync.fallback.preprocess import preprocess_for_model
from syllabus_sync.fallback.prompts import build_parse_request
from syllabus_sync.fallback.router import ConfidenceRouter, RoutingDecision

__all__ = [
    "ConfidenceRouter",
    "CostGuard",
    "FallbackConfig",
    "FallbackError",
    "ModelFallbackClient",
    "RetryConfig",
    "RoutingDecision",
    "build_parse_request",
    "extract_response_text",
    "parse_event_payload",
    "preprocess_for_model",
]
