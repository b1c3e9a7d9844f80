"""
Stop directory API endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from naolametric.config import settings
from naolametric.models.transit import Stop
from naolametric.services.stop_directory import DirectoryNotReadyError, stop_directory

router = APIRouter(tags=["stops"])


def clamp_stops_limit(raw_limit: Optional[str]) -> int:
    try:
        limit = int(raw_limit) if raw_limit is not None else settings.stops_default_limit
    except ValueError:
        limit = settings.stops_default_limit
    return max(1, min(limit, settings.stops_max_limit))


@router.get("/stops", response_model=List[Stop])
async def search_stops(
    search: str = Query("", description="Search query (stop name or code)"),
    limit: Optional[str] = Query(None, description="Maximum number of results"),
):
    """
    Stop search

    Query params:
        search: Substring of the stop name or code, accents and case ignored
        limit: Maximum number of results (1-500)
    """
    try:
        return stop_directory.search(search, clamp_stops_limit(limit))
    except DirectoryNotReadyError:
        return JSONResponse(status_code=503, content={"error": "Cache not ready"})


@router.get("/popular-stops", response_model=List[Stop])
async def popular_stops():
    return stop_directory.popular_stops()
