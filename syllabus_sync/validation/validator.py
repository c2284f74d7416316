"""Event validation.

Turns builder candidates (or raw model items) into EventItem objects.
Soft problems are repaired in place; hard failures drop the single
offending item and mark the batch invalid while the rest continue.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from syllabus_sync.parsing.schemas import TYPE_LABELS, EventCandidate
from syllabus_sync.validation.schemas import (
    EventItem,
    ValidationConfig,
    ValidationResult,
)
from syllabus_sync.validation.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

_STRING_FIELDS = ("id", "courseCode", "title", "location", "notes", "recurrenceRule")

# (start month, start day, end month, end day)
_TERM_WINDOWS: dict[str, tuple[int, int, int, int]] = {
    "fall": (8, 15, 12, 20),
    "spring": (1, 10, 5, 15),
    "summer": (5, 20, 8, 10),
}


def create_term_window(year: int, semester: str) -> tuple[datetime, datetime]:
    """
    Build the default term window for an academic semester.

    Args:
        year: Calendar year of the semester.
        semester: "fall", "spring" or "summer" (case-insensitive).

    Returns:
        (term_start, term_end) at midnight.

    Raises:
        ValueError: For an unknown semester name.
    """
    window = _TERM_WINDOWS.get(semester.lower())
    if window is None:
        raise ValueError(
            f"Invalid semester: {semester}. Must be 'fall', 'spring', or 'summer'"
        )
    start_month, start_day, end_month, end_day = window
    return datetime(year, start_month, start_day), datetime(year, end_month, end_day)


def candidate_to_dict(candidate: EventCandidate) -> dict[str, Any]:
    """Map a builder candidate onto the camelCase item shape."""
    item: dict[str, Any] = {
        "id": candidate.id,
        "courseCode": candidate.course_code,
        "type": candidate.type,
        "title": candidate.title,
        "start": format_timestamp(candidate.start),
        "allDay": candidate.all_day,
        "confidence": candidate.confidence,
    }
    if candidate.end is not None:
        item["end"] = format_timestamp(candidate.end)
    if candidate.location:
        item["location"] = candidate.location
    if candidate.notes:
        item["notes"] = candidate.notes
    return item


def _format_error(index: int, exc: ValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "item"
        messages.append(f"Event {index + 1}: {loc}: {err['msg']}")
    return messages


class EventValidator:
    """
    Validates and repairs a batch of events.

    Per item: defaults are applied (unless strict), the item is checked
    against EventItem, then start/end are clamped to the term window and
    an end that does not follow the start is repaired.
    """

    def __init__(self, config: ValidationConfig | None = None):
        self.config = config or ValidationConfig()

    def validate(self, items: list[EventCandidate | dict[str, Any]]) -> ValidationResult:
        """
        Validate a batch, continuing past individual failures.

        Args:
            items: Builder candidates or camelCase dicts.

        Returns:
            ValidationResult with the surviving events and diagnostics.
        """
        result = ValidationResult()
        result.stats.total_events = len(items)

        for i, raw in enumerate(items):
            data = candidate_to_dict(raw) if isinstance(raw, EventCandidate) else raw
            if not isinstance(data, dict):
                result.valid = False
                result.stats.invalid_events += 1
                result.errors.append(f"Event {i + 1}: item must be an object")
                continue

            data = dict(data)
            if not self.config.strict and self._apply_defaults(data):
                result.stats.defaults_applied += 1

            try:
                event = EventItem.model_validate(data)
            except ValidationError as e:
                result.valid = False
                result.stats.invalid_events += 1
                result.errors.extend(_format_error(i, e))
                continue

            event, adjusted = self._clamp(event)
            if adjusted:
                result.stats.clamped_events += 1
                if self.config.has_term_window:
                    result.warnings.append(
                        f'Event "{event.title}" had dates clamped to term window'
                    )
                else:
                    result.warnings.append(
                        f'Event "{event.title}" had invalid date range corrected'
                    )

            result.stats.valid_events += 1
            result.events.append(event)

        if result.errors:
            logger.info(
                "Dropped %d of %d events during validation",
                result.stats.invalid_events,
                result.stats.total_events,
            )
        return result

    def validate_item(self, item: dict[str, Any]) -> EventItem:
        """
        Validate one item without term clamping.

        Used for model output, where any failure rejects the whole batch.

        Raises:
            pydantic.ValidationError: If the item does not fit the schema.
        """
        data = dict(item) if isinstance(item, dict) else item
        if isinstance(data, dict) and not self.config.strict:
            self._apply_defaults(data)
        return EventItem.model_validate(data)

    # ── Soft repairs ─────────────────────────────────────────────────

    def _apply_defaults(self, data: dict[str, Any]) -> bool:
        """Repair data in place. Returns True if anything was filled or changed."""
        applied = False

        for key in _STRING_FIELDS:
            value = data.get(key)
            if isinstance(value, str):
                data[key] = value.strip()

        if not data.get("courseCode") and self.config.default_course_code:
            data["courseCode"] = self.config.default_course_code
            applied = True

        event_type = data.get("type")
        if not data.get("title") and event_type in TYPE_LABELS:
            data["title"] = TYPE_LABELS[event_type]
            applied = True

        if data.get("allDay") is None and isinstance(data.get("start"), str):
            try:
                start = parse_timestamp(data["start"])
            except ValueError:
                pass  # left for schema validation to report
            else:
                data["allDay"] = start.time() == datetime.min.time()
                applied = True

        confidence = data.get("confidence")
        if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
            clamped = max(0.0, min(1.0, float(confidence)))
            if clamped != confidence:
                applied = True
            data["confidence"] = clamped

        return applied

    def _clamp(self, event: EventItem) -> tuple[EventItem, bool]:
        """Clamp to the term window and fix an end that precedes the start."""
        term_start = self.config.term_start
        term_end = self.config.term_end
        adjusted = False

        start = parse_timestamp(event.start)
        end = parse_timestamp(event.end) if event.end else None

        if term_start and start < term_start:
            start, adjusted = term_start, True
        elif term_end and start > term_end:
            start, adjusted = term_end, True

        if end is not None:
            if term_start and end < term_start:
                end, adjusted = term_start, True
            elif term_end and end > term_end:
                end, adjusted = term_end, True

            if end <= start:
                end = None if event.all_day else start + timedelta(hours=1)
                adjusted = True

        if not adjusted:
            return event, False

        updated = event.model_copy(
            update={
                "start": format_timestamp(start),
                "end": format_timestamp(end) if end is not None else None,
            }
        )
        return updated, True
