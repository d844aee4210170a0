from fastapi import APIRouter, Depends, Query, Request
from starlette.concurrency import run_in_threadpool
from app.config import settings
from app.models import ApiResponse, StartTimerRequest
from app.tools.time_tracker import TimeTrackerAdapter
from app.utils.ids import request_id as get_request_id

router = APIRouter(prefix="/api/time", tags=["time"])

DEFAULT_ENTRIES_LIMIT = 10


def get_time_tracker() -> TimeTrackerAdapter:
    return TimeTrackerAdapter(settings)


@router.post("/start")
async def start_timer(
    request: Request,
    req: StartTimerRequest,
    tracker: TimeTrackerAdapter = Depends(get_time_tracker),
):
    """Start a timer for client/project."""
    req_id = get_request_id(request.headers.get("x-request-id"))
    entry = await run_in_threadpool(
        tracker.start_timer, req.client, req.project, req.description
    )
    return ApiResponse.ok(data=entry, request_id=req_id)


@router.post("/stop")
async def stop_timer(request: Request, tracker: TimeTrackerAdapter = Depends(get_time_tracker)):
    """Stop the running timer."""
    req_id = get_request_id(request.headers.get("x-request-id"))
    entry = await run_in_threadpool(tracker.stop_timer)
    return ApiResponse.ok(data=entry, request_id=req_id)


@router.get("/current")
async def current_timer(request: Request, tracker: TimeTrackerAdapter = Depends(get_time_tracker)):
    """Running timer, or data=null when nothing is running."""
    req_id = get_request_id(request.headers.get("x-request-id"))
    status = await run_in_threadpool(tracker.get_status)
    return ApiResponse.ok(data=status, request_id=req_id)


@router.get("/entries")
async def recent_entries(
    request: Request,
    limit: str = Query(str(DEFAULT_ENTRIES_LIMIT)),
    tracker: TimeTrackerAdapter = Depends(get_time_tracker),
):
    """Recent time entries; a non-numeric limit falls back to 10."""
    req_id = get_request_id(request.headers.get("x-request-id"))
    try:
        parsed_limit = int(limit)
    except ValueError:
        parsed_limit = DEFAULT_ENTRIES_LIMIT
    entries = await run_in_threadpool(tracker.get_recent_entries, parsed_limit)
    return ApiResponse.ok(data=entries, request_id=req_id)


@router.get("/today")
async def today_summary(request: Request, tracker: TimeTrackerAdapter = Depends(get_time_tracker)):
    """Today's totals and per client/project breakdown."""
    req_id = get_request_id(request.headers.get("x-request-id"))
    summary = await run_in_threadpool(tracker.get_today_summary)
    return ApiResponse.ok(data=summary, request_id=req_id)
