"""Best-effort cost caps for model fallback calls.

Counters live in process memory and reset when the UTC date changes.
They are soft limits: concurrent requests may overshoot by a call or two.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

DENIED_PER_CLIENT_CAP = "per_client_cap"
DENIED_BUDGET_EXCEEDED = "budget_exceeded"


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class CostGuard:
    """
    Per-day call and spend tracking with per-client caps.

    Injected into the parse service so a shared store can replace the
    in-memory counters later without touching the pipeline.

    Args:
        per_client_cap: Calls allowed per client identifier per day.
        daily_budget: Spend cap in USD; 0 or less disables it.
        cost_per_call: Estimated spend recorded for each call.
        clock: Returns the current UTC date.
    """

    def __init__(
        self,
        per_client_cap: int = 10,
        daily_budget: float = 1.0,
        cost_per_call: float = 0.02,
        clock: Callable[[], date] = _utc_today,
    ) -> None:
        self.per_client_cap = per_client_cap
        self.daily_budget = daily_budget
        self.cost_per_call = cost_per_call
        self._clock = clock
        self._day = clock()
        self._total_calls = 0
        self._total_cost = 0.0
        self._per_client: dict[str, int] = {}

    def _roll_over(self) -> None:
        today = self._clock()
        if today != self._day:
            logger.info("Resetting fallback usage counters for %s", today.isoformat())
            self._day = today
            self._total_calls = 0
            self._total_cost = 0.0
            self._per_client.clear()

    def check(self, client_id: str) -> str | None:
        """
        Check whether another call is allowed for this client.

        Returns:
            None if allowed, otherwise a denial reason.
        """
        self._roll_over()

        used = self._per_client.get(client_id, 0)
        if used >= self.per_client_cap:
            logger.info("Fallback denied: per-client cap reached (%d/%d)", used, self.per_client_cap)
            return DENIED_PER_CLIENT_CAP

        if self.daily_budget > 0 and self._total_cost + self.cost_per_call > self.daily_budget:
            logger.info(
                "Fallback denied: daily budget %.2f would be exceeded (spent %.2f)",
                self.daily_budget,
                self._total_cost,
            )
            return DENIED_BUDGET_EXCEEDED

        return None

    def record(self, client_id: str) -> None:
        """Record one completed call against the client and the daily budget."""
        self._roll_over()
        self._total_calls += 1
        self._total_cost += self.cost_per_call
        self._per_client[client_id] = self._per_client.get(client_id, 0) + 1

    def reset(self) -> None:
        """Clear all counters."""
        self._day = self._clock()
        self._total_calls = 0
        self._total_cost = 0.0
        self._per_client.clear()

    def get_stats(self) -> dict[str, Any]:
        self._roll_over()
        return {
            "day": self._day.isoformat(),
            "total_calls": self._total_calls,
            "total_cost": round(self._total_cost, 4),
            "clients": len(self._per_client),
            "daily_budget": self.daily_budget,
            "per_client_cap": self.per_client_cap,
        }
