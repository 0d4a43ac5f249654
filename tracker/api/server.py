"""
NFT Activity Tracker: HTTP API
==============================

Trigger surface for the scheduler plus read access to stored artifacts.

Endpoints:
- POST /capture-snapshot          -> store the current hourly snapshot
- POST /process-daily-events      -> daily log for ?date= (default: yesterday)
- POST /aggregate-weekly          -> weekly log for ?week= (default: last week)
- POST /aggregate-monthly         -> monthly log for ?month= (default: last month)
- POST /aggregate-yearly          -> yearly log for ?year= (default: last year)
- GET  /health, /status
- GET  /data/{level}/{key}        -> stored artifact JSON

Usage:
    uvicorn tracker.api.server:app
"""
from __future__ import annotations
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import TrackerConfig
from ..contracts.base import ErrorCode, Level, TrackerError
from ..engine import ActivityTracker, PeriodResult
from ..temporal.periods import (
    expect_level, previous_day, previous_month, previous_week, previous_year,
)

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_DATA: 422,
    ErrorCode.MALFORMED_INPUT: 422,
    ErrorCode.SOURCE_UNREACHABLE: 502,
    ErrorCode.WRITE_FAILURE: 500,
}


class CaptureResponse(BaseModel):
    success: bool
    timestamp: str
    filename: str
    nft_count: int


class PeriodResponse(BaseModel):
    success: bool
    level: str
    period: str
    inputs: List[str]
    total_events: int


def _period_response(result: PeriodResult) -> JSONResponse:
    body = PeriodResponse(
        success=result.saved,
        level=result.level.value,
        period=result.period_key,
        inputs=list(result.input_keys),
        total_events=result.total_events,
    ).model_dump()
    if not result.saved:
        body['error'] = result.write.error.to_dict()
        return JSONResponse(status_code=500, content=body)
    return JSONResponse(content=body)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_app(tracker: Optional[ActivityTracker] = None) -> FastAPI:
    """Build the app. Without a tracker, one is created from the environment on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, 'tracker', None) is None:
            config = TrackerConfig.from_env()
            logger.info("Initializing tracker (storage=%s, data_dir=%s)",
                        config.storage.backend_type, config.storage.data_dir)
            app.state.tracker = ActivityTracker(config)
        yield
        logger.info("Shutting down tracker API")

    app = FastAPI(
        title="NFT Activity Tracker",
        version="0.1.0",
        description="Hourly snapshots and hierarchical activity rollups",
        lifespan=lifespan,
    )
    app.state.tracker = tracker

    @app.exception_handler(TrackerError)
    async def tracker_error_handler(request: Request, exc: TrackerError):
        status = STATUS_BY_CODE.get(exc.error.code, 500)
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status,
            content={'success': False, 'error': exc.error.to_dict()},
        )

    def current(request: Request) -> ActivityTracker:
        return request.app.state.tracker

    # =========================================================================
    # TRIGGERS
    # =========================================================================

    @app.post("/capture-snapshot", response_model=CaptureResponse)
    async def capture_snapshot(request: Request):
        result = await current(request).capture_snapshot(_now())
        return CaptureResponse(
            success=True,
            timestamp=result.key,
            filename=f"{result.key}.json",
            nft_count=result.entity_count,
        )

    @app.post("/process-daily-events")
    def process_daily_events(request: Request, date: Optional[str] = None):
        if date is None:
            target = previous_day(_now())
        else:
            period = expect_level(date, Level.DAILY)
            target = period.start
        return _period_response(current(request).process_daily(target))

    @app.post("/aggregate-weekly")
    def aggregate_weekly(request: Request, week: Optional[str] = None):
        return _period_response(current(request).aggregate_weekly(week or previous_week(_now())))

    @app.post("/aggregate-monthly")
    def aggregate_monthly(request: Request, month: Optional[str] = None):
        return _period_response(current(request).aggregate_monthly(month or previous_month(_now())))

    @app.post("/aggregate-yearly")
    def aggregate_yearly(request: Request, year: Optional[str] = None):
        return _period_response(current(request).aggregate_yearly(year or previous_year(_now())))

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "timestamp": _now().isoformat()}

    @app.get("/status")
    def status(request: Request) -> Dict[str, int]:
        return current(request).status()

    @app.get("/data/{level}/{key}")
    def get_artifact(request: Request, level: str, key: str):
        if key.endswith(".json"):
            key = key[:-len(".json")]
        return current(request).store.load_raw(Level.parse(level), key)

    return app


app = create_app()
