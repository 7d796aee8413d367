"""Prompt construction for the local text-generation model."""
from __future__ import annotations

from .metrics import round_half_up
from .schemas import UserMetrics

INSTRUCTIONS = (
    "Write a 2-3 sentence analysis of this user's activity. You must mention: total events, "
    "event type breakdown, total value, average value, and activity pattern."
)

GUIDANCE = (
    "Describe activity level (high/moderate/low based on event count), which event types "
    "dominate, what the total and average values indicate, and the activity pattern. "
    "Only use the data provided, no assumptions."
)


def describe_breakdown(metrics: UserMetrics) -> str:
    return ", ".join(f"{count} {event_type}" for event_type, count in metrics.events_per_type.items())


def average_per_day(metrics: UserMetrics) -> float:
    counts = list(metrics.events_per_day.values())
    if not counts:
        return 0.0
    return round_half_up(sum(counts) / len(counts), 1)


def build_explanation_prompt(metrics: UserMetrics) -> str:
    dates = sorted(metrics.events_per_day)
    date_range = f"{dates[0]} to {dates[-1]}" if dates else "N/A"

    facts = (
        f"User {metrics.user_id}: {metrics.total_events} events consisting of "
        f"{describe_breakdown(metrics)}. "
        f"Total value: ${metrics.total_value:.2f}, average value: ${metrics.avg_value:.2f} per event. "
        f"Active from {date_range} ({average_per_day(metrics):.1f} events/day average)."
    )
    return f"{INSTRUCTIONS}\n\n{facts}\n\n{GUIDANCE}"
