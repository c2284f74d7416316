"""Confidence routing between heuristic output and the model fallback."""

from dataclasses import dataclass
from typing import Sequence

from syllabus_sync.validation.schemas import EventItem


@dataclass
class RoutingDecision:
    """Outcome of routing one validated batch."""

    overall_confidence: float
    threshold: float
    use_fallback: bool
    reason: str | None = None


class ConfidenceRouter:
    """
    Decides whether heuristic output is good enough to return.

    The decision is binary: a successful fallback replaces the heuristic
    events entirely, nothing is blended.
    """

    def __init__(self, threshold: float = 0.6):
        self.threshold = threshold

    @staticmethod
    def overall_confidence(events: Sequence[EventItem]) -> float:
        """Mean event confidence, treating a missing value as 0. Empty batch is 0."""
        if not events:
            return 0.0
        return sum(e.confidence or 0.0 for e in events) / len(events)

    def route(self, events: Sequence[EventItem]) -> RoutingDecision:
        confidence = self.overall_confidence(events)
        if not events:
            return RoutingDecision(confidence, self.threshold, True, "no_events")
        if confidence < self.threshold:
            return RoutingDecision(confidence, self.threshold, True, "low_confidence")
        return RoutingDecision(confidence, self.threshold, False)

    def should_fallback(self, events: Sequence[EventItem]) -> bool:
        return self.route(events).use_fallback
