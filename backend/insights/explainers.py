"""Text explainers turning a metrics summary into a short paragraph.

Two implementations share the :class:`TextExplainer` interface:

- :class:`DeterministicExplainer` applies fixed thresholds and is always
  available.
- :class:`ExternalModelExplainer` asks a local text-generation model. It
  raises :class:`~.llm.ExternalGenerationError` when the model fails, and the
  request handler falls back to the deterministic explainer.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Tuple

from .llm import ExternalGenerationError, LocalModelClient
from .metrics import round_half_up
from .prompts import average_per_day, build_explanation_prompt
from .schemas import UserMetrics

HIGH_ACTIVITY_EVENTS = 50
MODERATE_ACTIVITY_EVENTS = 20
HIGH_VALUE_AVERAGE = 100
MODERATE_VALUE_AVERAGE = 50
CONSISTENT_VARIANCE = 2
MODERATE_VARIANCE = 10


class TextExplainer(ABC):
    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    def explain(self, metrics: UserMetrics) -> str:
        ...


def activity_level(total_events: int) -> str:
    if total_events >= HIGH_ACTIVITY_EVENTS:
        return "high"
    if total_events >= MODERATE_ACTIVITY_EVENTS:
        return "moderate"
    return "low"


def value_tier(avg_value: float) -> str:
    if avg_value > HIGH_VALUE_AVERAGE:
        return "high-value transactions"
    if avg_value > MODERATE_VALUE_AVERAGE:
        return "moderate-value transactions"
    return "low-value transactions"


def activity_pattern(variance: float) -> str:
    if variance < CONSISTENT_VARIANCE:
        return "consistent daily activity"
    if variance < MODERATE_VARIANCE:
        return "moderately variable activity"
    return "highly variable activity with irregular patterns"


def ranked_event_types(metrics: UserMetrics) -> List[Tuple[str, int]]:
    """Event types by descending count; ties keep first-seen order."""
    return sorted(metrics.events_per_type.items(), key=lambda item: item[1], reverse=True)


def daily_variance(metrics: UserMetrics) -> float:
    # Deviations are measured from the mean as displayed (one decimal), not the exact mean.
    counts = list(metrics.events_per_day.values())
    mean = average_per_day(metrics)
    return sum((count - mean) ** 2 for count in counts) / len(counts)


class DeterministicExplainer(TextExplainer):
    """Rule-based explanation built from fixed thresholds."""

    def available(self) -> bool:
        return True

    def explain(self, metrics: UserMetrics) -> str:
        ranked = ranked_event_types(metrics)
        dominant_type, dominant_count = ranked[0]
        dominant_share = round_half_up(dominant_count / metrics.total_events * 100, 0)
        breakdown = ", ".join(f"{count} {event_type}" for event_type, count in ranked)

        sentences = [
            f"This user shows {activity_level(metrics.total_events)} activity with "
            f"{metrics.total_events} total events consisting of {breakdown}, "
            f"with {dominant_type} events dominating at {dominant_share:.0f}% of all activity.",
            f"The user generated ${metrics.total_value:.2f} in total value across all events, "
            f"averaging ${metrics.avg_value:.2f} per event, indicating {value_tier(metrics.avg_value)}.",
        ]

        if metrics.events_per_day:
            dates = sorted(metrics.events_per_day)
            sentences.append(
                f"Activity spans from {dates[0]} to {dates[-1]} with an average of "
                f"{average_per_day(metrics):.1f} events per day, "
                f"showing {activity_pattern(daily_variance(metrics))}."
            )
        else:
            sentences.append("No temporal activity pattern available.")

        return " ".join(sentences)


class ExternalModelExplainer(TextExplainer):
    """Explanation written by a local text-generation model."""

    def __init__(self, client: LocalModelClient) -> None:
        self.client = client

    def available(self) -> bool:
        return self.client.available()

    def explain(self, metrics: UserMetrics) -> str:
        if not self.available():
            raise ExternalGenerationError("Local model is not available")
        return self.client.generate(build_explanation_prompt(metrics)).strip()
