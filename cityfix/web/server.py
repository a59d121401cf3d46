"""FastAPI surface for the CityFix map client.

Provides:
  - GET  /api/map                     — view config, fitted bounds, load notice
  - GET  /api/issues                  — visible markers as GeoJSON
  - GET  /api/filters                 — enabled tags
  - POST /api/filters/{dim}/{tag}     — toggle one tag
  - GET  /api/report                  — reporting session state
  - POST /api/report/arm | location | submit | cancel, PATCH /api/report/draft
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from cityfix.app import CityFixApp
from cityfix.core.config import load_config
from cityfix.core.exceptions import (
    BulkLoadError,
    DraftValidationError,
    FilterError,
    WorkflowStateError,
)
from cityfix.core.models import SubmissionSuccess

logger = logging.getLogger("cityfix.web.server")


class ToggleBody(BaseModel):
    enabled: bool


class LocationBody(BaseModel):
    lat: float
    lon: float


class DraftBody(BaseModel):
    category: Optional[str] = None
    severity: Optional[int] = None
    description: Optional[str] = None


def create_app(app_state: Optional[CityFixApp] = None) -> FastAPI:
    """Build the API around one ``CityFixApp`` (created from env if omitted)."""
    app_state = app_state or CityFixApp(load_config())
    notices: list[str] = []

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            await app_state.load()
        except BulkLoadError as exc:
            logger.error("Initial load failed: %s", exc)
            notices.append("Could not load issues from the map server.")
        yield
        await app_state.aclose()

    app = FastAPI(title="CityFix", version="1.0.0", lifespan=lifespan)

    @app.exception_handler(WorkflowStateError)
    async def _state_error(_: Request, exc: WorkflowStateError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(FilterError)
    @app.exception_handler(DraftValidationError)
    async def _validation_error(_: Request, exc: Exception):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    # ── Map & Filters ──────────────────────────────────────────────

    @app.get("/api/map")
    async def map_view():
        view = app_state.map_view()
        view["notices"] = list(notices)
        return view

    @app.get("/api/issues")
    async def visible_issues():
        return app_state.visible_geojson()

    @app.get("/api/filters")
    async def filters():
        return app_state.filters.state.as_dict()

    @app.post("/api/filters/{dimension}/{tag}")
    async def toggle_filter(dimension: str, tag: str, body: ToggleBody):
        flips = app_state.filters.toggle(dimension, tag, body.enabled)
        return {"filters": app_state.filters.state.as_dict(), "changed": flips}

    # ── Reporting ──────────────────────────────────────────────────

    @app.get("/api/report")
    async def report_state():
        return app_state.workflow.snapshot()

    @app.post("/api/report/arm")
    async def arm():
        app_state.workflow.arm()
        return app_state.workflow.snapshot()

    @app.post("/api/report/location")
    async def pick_location(body: LocationBody):
        accepted = app_state.workflow.pick_location(body.lat, body.lon)
        return {"accepted": accepted, **app_state.workflow.snapshot()}

    @app.patch("/api/report/draft")
    async def update_draft(body: DraftBody):
        app_state.workflow.update_draft(
            category=body.category,
            severity=body.severity,
            description=body.description,
        )
        return app_state.workflow.snapshot()

    @app.post("/api/report/submit")
    async def submit():
        result = await app_state.workflow.submit()
        if isinstance(result, SubmissionSuccess):
            return {
                "ok": True,
                "message": result.message,
                "issue_id": result.issue.id if result.issue else None,
                **app_state.workflow.snapshot(),
            }
        return JSONResponse(
            status_code=502,
            content={
                "ok": False,
                "message": result.message,
                "transport": result.transport,
                **app_state.workflow.snapshot(),
            },
        )

    @app.post("/api/report/cancel")
    async def cancel():
        app_state.workflow.cancel()
        return app_state.workflow.snapshot()

    return app


def run(host: str = "127.0.0.1", port: int = 8000) -> None:
    """CLI entry point."""
    import uvicorn

    uvicorn.run(
        "cityfix.web.server:create_app",
        factory=True,
        host=host,
        port=port,
        log_level="info",
    )
