from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from naolametric.config import settings
from naolametric.models.transit import ArrivalQuery, FramesResponse
from naolametric.services.arrival_resolver import ResolverError, arrival_resolver
from naolametric.services.display_mapper import error_frame

router = APIRouter(tags=["frames"])


def parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"true", "1"}


def error_frames_response(exc: ResolverError) -> JSONResponse:
    body = FramesResponse(frames=[error_frame(exc.display_text)])
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def build_arrival_query(
    stop: Optional[str],
    line: Optional[str],
    direction: Optional[str],
    limit: Optional[str],
    show_terminus: Optional[str],
) -> ArrivalQuery:
    stop_code = stop if stop and stop.strip() else settings.naolib_stop_code
    return ArrivalQuery(
        stop_code=stop_code,
        line=line,
        direction=direction,
        limit=limit if limit is not None else settings.arrivals_default_limit,
        show_terminus=parse_flag(show_terminus),
    )


@router.get("/", response_model=FramesResponse)
async def get_frames(
    stop: Optional[str] = Query(None, description="Stop code (COMM, GSNO...)"),
    line: Optional[str] = Query(None, description="Line filter (1, 2, C1...)"),
    direction: Optional[str] = Query(None, description="Direction (1 or 2)"),
    limit: Optional[str] = Query(None, description="Number of results (1-10)"),
    show_terminus: Optional[str] = Query(None, description="Show destination"),
):
    """
    Upcoming passages for a LaMetric Time display

    Errors are returned as a single frame with the error icon so the
    device always receives a well-formed body.
    """
    query = build_arrival_query(stop, line, direction, limit, show_terminus)
    try:
        result = await arrival_resolver.resolve(query)
    except ResolverError as exc:
        return error_frames_response(exc)
    return FramesResponse(frames=result.frames)
