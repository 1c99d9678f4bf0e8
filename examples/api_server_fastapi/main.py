"""Example FastAPI server for `review-manager`.

Goals
-----
- Load the review file once at startup (do NOT reload per request)
- Write the file back after every change
- Expose substring and typo-tolerant name search

Endpoints
---------
GET    /reviews
POST   /reviews                 {"reviewer_name", "satisfaction_score", "review_date", "feedback"}
GET    /reviews/search?q=...&fuzzy=true&max_distance=2
DELETE /reviews/{number}        (1-based, as shown by GET /reviews)
GET    /stats

Environment variables
---------------------
- REVIEW_MANAGER_CSV (default: reviews.csv)
- REVIEW_MANAGER_MAX_DISTANCE (default: 2)
- REVIEW_MANAGER_SUGGEST_THRESHOLD (default: 70)

A `.env` file in the working directory (or `REVIEW_MANAGER_ENV_FILE`) fills
missing variables.

Run (example)
-------------
1) Install dependencies:
   pip install -e ".[api]"

2) Export env:
   export REVIEW_MANAGER_CSV="/abs/path/to/reviews.csv"

3) Start server:
   uvicorn examples.api_server_fastapi.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from review_manager import ConfigurationError, Review, ReviewStore, ReviewValidationError
from review_manager.config import Settings, load_dotenv_if_present


class ReviewIn(BaseModel):
    """Request payload for POST /reviews."""

    reviewer_name: str = Field(..., min_length=1)
    satisfaction_score: int = Field(..., ge=1, le=5)
    review_date: str = Field(..., description="YYYY-MM-DD")
    feedback: str = ""


class ReviewOut(BaseModel):
    number: int
    reviewer_name: str
    satisfaction_score: int
    review_date: str
    feedback: str


class SearchMatch(ReviewOut):
    distance: int | None = None
    tier: str | None = None


class SearchResponse(BaseModel):
    query: str
    mode: str
    matches: list[SearchMatch]
    suggestions: list[str] = []


class _AppState:
    """Holds long-lived objects shared across requests."""

    def __init__(self) -> None:
        self.store: ReviewStore | None = None
        self.settings: Settings | None = None


STATE = _AppState()

# Sync handlers run in a threadpool; the store and its file serve one request at a time.
_STORE_LOCK = threading.Lock()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration and the review file once."""
    load_dotenv_if_present()
    settings = Settings.from_env()

    STATE.settings = settings
    try:
        STATE.store = ReviewStore.from_csv(settings.csv_path, missing_ok=True)
    except (OSError, UnicodeDecodeError) as e:
        raise RuntimeError(f"Cannot read review file {settings.csv_path}: {e}") from e

    yield

    STATE.store = None
    STATE.settings = None


app = FastAPI(title="Review Manager API", version="0.1.0", lifespan=lifespan)


def _state() -> tuple[ReviewStore, Settings]:
    if STATE.store is None or STATE.settings is None:
        raise HTTPException(status_code=503, detail="Server is still starting up")
    return STATE.store, STATE.settings


def _review_out(store: ReviewStore, index: int, **extra: Any) -> dict[str, Any]:
    return {"number": index + 1, **store.get(index).to_dict(), **extra}


@app.get("/reviews", response_model=list[ReviewOut])
def list_reviews() -> list[dict[str, Any]]:
    store, _ = _state()
    with _STORE_LOCK:
        return [_review_out(store, i) for i in range(len(store))]


@app.post("/reviews", response_model=ReviewOut, status_code=201)
def add_review(req: ReviewIn) -> dict[str, Any]:
    store, _ = _state()
    try:
        review = Review.create(
            req.reviewer_name, req.satisfaction_score, req.review_date, req.feedback
        )
    except ReviewValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    with _STORE_LOCK:
        index = store.add(review)
        store.save()
        return _review_out(store, index)


@app.get("/reviews/search", response_model=SearchResponse)
def search_reviews(q: str, fuzzy: bool = False, max_distance: int | None = None) -> dict[str, Any]:
    store, settings = _state()

    q = q.strip()
    if not q:
        raise HTTPException(status_code=400, detail="q must be non-empty")

    with _STORE_LOCK:
        if fuzzy:
            try:
                results = store.search_fuzzy(
                    q, settings.max_distance if max_distance is None else max_distance
                )
            except ConfigurationError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            matches = [
                _review_out(store, r.candidate_id, distance=r.distance, tier=r.tier.value)
                for r in results
            ]
        else:
            matches = [_review_out(store, i) for i in store.search_partial(q)]

        suggestions: list[str] = []
        if not matches:
            suggestions = [
                name for name, _score in store.suggest(q, threshold=settings.suggest_threshold)
            ]

    return {
        "query": q,
        "mode": "fuzzy" if fuzzy else "partial",
        "matches": matches,
        "suggestions": suggestions,
    }


@app.delete("/reviews/{number}", response_model=ReviewOut)
def delete_review(number: int) -> dict[str, Any]:
    store, _ = _state()
    with _STORE_LOCK:
        if not 1 <= number <= len(store):
            raise HTTPException(status_code=404, detail=f"No review number {number}")

        out = _review_out(store, number - 1)
        store.delete_at(number - 1)
        store.save()
    return out


@app.get("/stats")
def statistics() -> dict[str, Any]:
    store, _ = _state()
    with _STORE_LOCK:
        return store.statistics().to_dict()
