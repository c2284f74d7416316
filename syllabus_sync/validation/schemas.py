"""Output schema for validated events.

EventItem is the single per-item contract shared by the heuristic path
and the model fallback path. Field names serialize in camelCase to match
the calendar client.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from syllabus_sync.parsing.schemas import EventType
from syllabus_sync.validation.timestamps import normalize_timestamp


class EventItem(BaseModel):
    """
    A validated calendar event.

    Timestamps are canonical zone-naive strings (YYYY-MM-DDTHH:MM:SS.mmm);
    any timezone suffix on input is dropped.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    course_code: str = Field(alias="courseCode", min_length=1)
    type: EventType
    title: str = Field(min_length=1, max_length=200)
    start: str
    end: str | None = None
    all_day: StrictBool = Field(alias="allDay")
    location: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=1000)
    recurrence_rule: str | None = Field(default=None, alias="recurrenceRule")
    reminder_minutes: int | None = Field(default=None, alias="reminderMinutes", ge=0, le=43200)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)

    @field_validator("start", "end")
    @classmethod
    def _canonical_timestamp(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_timestamp(value)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ValidationConfig:
    """
    Validation settings for one batch.

    Attributes:
        default_course_code: Course code for items that carry none.
        term_start: Earliest allowed start/end; earlier values are clamped.
        term_end: Latest allowed start/end; later values are clamped.
        strict: Skip soft repairs, so items needing them fail validation.
    """

    default_course_code: str | None = None
    term_start: datetime | None = None
    term_end: datetime | None = None
    strict: bool = False

    @property
    def has_term_window(self) -> bool:
        return self.term_start is not None or self.term_end is not None


@dataclass
class ValidationStats:
    """Per-batch validation counters."""

    total_events: int = 0
    valid_events: int = 0
    invalid_events: int = 0
    clamped_events: int = 0
    defaults_applied: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_events": self.total_events,
            "valid_events": self.valid_events,
            "invalid_events": self.invalid_events,
            "clamped_events": self.clamped_events,
            "defaults_applied": self.defaults_applied,
        }


@dataclass
class ValidationResult:
    """Validated events plus everything that went wrong on the way."""

    valid: bool = True
    events: list[EventItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: ValidationStats = field(default_factory=ValidationStats)
