"""Populate the events table from a CSV export.

Expected header: ``event_id,user_id,event_type,timestamp,value``. Rows that
cannot be parsed are skipped with a warning so one bad line does not block
the rest of the export.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import Event

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("event_id", "user_id", "event_type", "timestamp")


class MalformedRowError(ValueError):
    """Raised when a CSV row cannot be turned into an event."""


def parse_timestamp(raw: str) -> datetime:
    # Keep the wall clock as written; the offset is not applied.
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError as exc:
        raise MalformedRowError(f"Unparseable timestamp {raw!r}") from exc


def parse_value(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise MalformedRowError(f"Unparseable value {raw!r}") from exc
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise MalformedRowError(f"Invalid value {raw!r}")
    return value


def parse_row(row: Dict[str, Optional[str]]) -> Event:
    for column in REQUIRED_COLUMNS:
        if not (row.get(column) or "").strip():
            raise MalformedRowError(f"Missing {column}")
    return Event(
        event_id=row["event_id"].strip(),
        user_id=row["user_id"].strip(),
        event_type=row["event_type"].strip(),
        timestamp=parse_timestamp(row["timestamp"]),
        value=parse_value(row.get("value")),
    )


def parse_rows(rows: Iterable[Dict[str, Optional[str]]]) -> List[Event]:
    events: List[Event] = []
    seen = set()
    for row_number, row in enumerate(rows, start=1):
        try:
            event = parse_row(row)
        except MalformedRowError as exc:
            logger.warning("Skipping CSV row %d: %s", row_number, exc)
            continue
        if event.event_id in seen:
            logger.warning("Skipping CSV row %d: duplicate event_id %s", row_number, event.event_id)
            continue
        seen.add(event.event_id)
        events.append(event)
    return events


def load_events_csv(db: Session, path: Union[str, Path]) -> int:
    """Replace the stored events with those read from ``path``.

    Returns the number of events inserted. The caller owns the transaction.
    """

    frame = pd.read_csv(
        path, dtype=str, keep_default_na=False, skip_blank_lines=True, encoding="utf-8-sig"
    )
    # Short rows leave NaN in the trailing columns.
    events = parse_rows(frame.fillna("").to_dict("records"))

    db.execute(delete(Event))
    db.add_all(events)
    db.flush()
    logger.info("Loaded %d events from %s", len(events), path)
    return len(events)
