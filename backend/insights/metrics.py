"""Reduce one user's events to a :class:`~.schemas.UserMetrics` summary."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Sequence

from .models import Event
from .schemas import UserMetrics


def round_half_up(value: float, places: int) -> float:
    """Round ``value`` half away from zero on its shortest decimal form.

    ``round()`` rounds the binary float half-to-even, so ``round(0.125, 2)``
    gives ``0.12``; here it gives ``0.13``.
    """

    quantizer = Decimal(10) ** -places
    return float(Decimal(repr(value)).quantize(quantizer, rounding=ROUND_HALF_UP))


def summarize(user_id: str, events: Sequence[Event]) -> Optional[UserMetrics]:
    """Aggregate the events of a single user.

    ``events`` must already be filtered to ``user_id``. Returns ``None`` when
    there are no events, which callers report as an unknown user.
    """

    if not events:
        return None

    events_per_type: Dict[str, int] = {}
    events_per_day: Dict[str, int] = {}
    total_value = 0.0
    valued = 0

    for event in events:
        events_per_type[event.event_type] = events_per_type.get(event.event_type, 0) + 1

        day = event.timestamp.date().isoformat()
        events_per_day[day] = events_per_day.get(day, 0) + 1

        if event.value is not None:
            total_value += event.value
            valued += 1

    avg_value = total_value / valued if valued else 0.0

    return UserMetrics(
        user_id=user_id,
        total_events=len(events),
        events_per_type=events_per_type,
        total_value=round_half_up(total_value, 2),
        avg_value=round_half_up(avg_value, 2),
        events_per_day=events_per_day,
    )
