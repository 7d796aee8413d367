"""Pydantic models for response bodies."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class UsersOut(BaseModel):
    user_ids: List[str] = Field(
        default_factory=list, alias="userIds", description="Known user identifiers, ascending"
    )


class UserMetrics(BaseModel):
    user_id: str
    total_events: int = Field(..., ge=1)
    events_per_type: Dict[str, int] = Field(
        default_factory=dict,
        description="Event count per event type, in first-seen order",
    )
    total_value: float = Field(..., description="Sum of event values, rounded to 2 decimals")
    avg_value: float = Field(..., description="Mean of present event values, rounded to 2 decimals")
    events_per_day: Dict[str, int] = Field(
        default_factory=dict,
        description="Event count per calendar day (YYYY-MM-DD); days without events are omitted",
    )


class ExplanationOut(BaseModel):
    explanation: str
