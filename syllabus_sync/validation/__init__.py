"""Validation of event candidates into the output event schema.

Components:
- EventItem: Pydantic model for one output event
- EventValidator: batch validation with soft repairs and term clamping
- create_term_window: default semester bounds
- timestamp helpers for the zone-naive wire format
"""

from syllabus_sync.validation.schemas import (
    EventItem,
    ValidationConfig,
    ValidationResult,
    ValidationStats,
)
from syllabus_sync.validation.timestamps import (
    format_timestamp,
    is_valid_timestamp,
    normalize_timestamp,
    parse_timestamp,
    strip_timezone,
)
from syllabus_sync.validation.validator import (
    EventValidator,
    candidate_to_dict,
    create_term_window,
)

__all__ = [
    "EventItem",
    "EventValidator",
    "ValidationConfig",
    "ValidationResult",
    "ValidationStats",
    "candidate_to_dict",
    "create_term_window",
    "format_timestamp",
    "is_valid_timestamp",
    "normalize_timestamp",
    "parse_timestamp",
    "strip_timezone",
]
