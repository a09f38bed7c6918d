"""Scrape endpoints.

Routes
------
POST /scrape           Body: {"url": "https://...", "max_pages": 3}
GET  /scrape/latest    Query: ?url=https://...   → last stored result
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field, HttpUrl

from compintel.config import settings
from compintel.scraper import ScrapeError

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    url: HttpUrl
    max_pages: int = Field(default_factory=lambda: settings.default_max_pages, ge=0, le=20)


class ScrapeResponse(BaseModel):
    success: bool
    data: dict[str, Any]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=ScrapeResponse)
def scrape_endpoint(body: ScrapeRequest, request: Request) -> dict[str, Any]:
    """Scrape the URL plus up to ``max_pages`` related pages.

    The result is also saved to the snapshot store.
    """
    engine = request.app.state.engine
    url_str = str(body.url)
    try:
        result = engine.scrape(url_str, max_pages=body.max_pages)
    except ScrapeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    request.app.state.store.save(result)
    return {"success": True, "data": result.to_dict()}


@router.get("/latest", response_model=ScrapeResponse)
def latest_endpoint(request: Request, url: str = Query(..., min_length=1)) -> dict[str, Any]:
    """Return the most recent stored result for *url*."""
    result = request.app.state.store.latest(url)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No scrape stored for {url}")
    return {"success": True, "data": result.to_dict()}
