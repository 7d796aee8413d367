"""FastAPI application entrypoint for the user insights API."""
from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI, HTTPException, status
from sqlalchemy.orm import Session

from . import schemas
from .database import SessionLocal, engine, session_scope
from .explainers import DeterministicExplainer, ExternalModelExplainer, TextExplainer
from .llm import ExternalGenerationError, client_from_env
from .loader import load_events_csv
from .metrics import summarize
from .models import Base, fetch_user_events, list_user_ids

logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="User Insights API",
    description="API for per-user event metrics and short explanations of them.",
    version="0.1.0",
)

_rule_based_explainer = DeterministicExplainer()
_model_explainer = ExternalModelExplainer(client_from_env())


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _load_user_metrics(db: Session, user_id: str) -> schemas.UserMetrics:
    metrics = summarize(user_id, fetch_user_events(db, user_id))
    if metrics is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return metrics


def select_explainer() -> TextExplainer:
    if _model_explainer.available():
        return _model_explainer
    return _rule_based_explainer


def explain_metrics(metrics: schemas.UserMetrics) -> str:
    explainer = select_explainer()
    try:
        return explainer.explain(metrics)
    except ExternalGenerationError:
        logger.warning(
            "Local model failed for user %s, using rule-based explanation", metrics.user_id, exc_info=True
        )
        return _rule_based_explainer.explain(metrics)


@app.get("/users", response_model=schemas.UsersOut)
def list_users(db: Session = Depends(get_db)) -> schemas.UsersOut:
    try:
        return schemas.UsersOut(userIds=list_user_ids(db))
    except Exception as exc:
        logger.exception("Failed to fetch user IDs")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch user IDs") from exc


@app.get("/users/{user_id}/metrics", response_model=schemas.UserMetrics)
def get_user_metrics(user_id: str, db: Session = Depends(get_db)) -> schemas.UserMetrics:
    try:
        return _load_user_metrics(db, user_id)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to fetch metrics for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch user metrics"
        ) from exc


@app.post("/users/{user_id}/explain", response_model=schemas.ExplanationOut)
def explain_user_metrics(user_id: str, db: Session = Depends(get_db)) -> schemas.ExplanationOut:
    try:
        metrics = _load_user_metrics(db, user_id)
        return schemas.ExplanationOut(explanation=explain_metrics(metrics))
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to generate explanation for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to generate explanation"
        ) from exc


def load_initial_events() -> int:
    csv_path = os.environ.get("INSIGHTS_CSV_PATH")
    if not csv_path:
        logger.warning("INSIGHTS_CSV_PATH is not set; serving events already in the database")
        return 0
    with session_scope() as db:
        return load_events_csv(db, csv_path)


@app.on_event("startup")
def prepare_event_store() -> None:
    load_initial_events()
    _model_explainer.client.probe()


def reset_application_state() -> None:
    """Reset mutable globals for test isolation."""

    global _model_explainer
    _model_explainer = ExternalModelExplainer(client_from_env())
