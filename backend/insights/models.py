"""SQLAlchemy models for the event store and its lookups."""
from __future__ import annotations

from typing import List

from sqlalchemy import Column, DateTime, Float, String, select
from sqlalchemy.orm import Session, declarative_base

Base = declarative_base()


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(255), primary_key=True)
    user_id = Column(String(255), index=True, nullable=False)
    event_type = Column(String(64), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    value = Column(Float, nullable=True)


def list_user_ids(db: Session) -> List[str]:
    stmt = select(Event.user_id).distinct().order_by(Event.user_id.asc())
    return list(db.execute(stmt).scalars().all())


def fetch_user_events(db: Session, user_id: str) -> List[Event]:
    """Return every event recorded for ``user_id`` (exact match)."""
    stmt = (
        select(Event)
        .where(Event.user_id == user_id)
        .order_by(Event.timestamp.asc(), Event.event_id.asc())
    )
    return list(db.execute(stmt).scalars().all())
