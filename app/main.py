# app/main.py

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import init_db
from app.llm import get_text_generator
from app.logging_config import configure_logging, request_id_var
from app.routers import API_PREFIX, LEGACY_PREFIX, reddit_router
from app.services.reddit_analytics import build_analytics_service
from app.services.reddit_sources.errors import AnalyticsError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(json_format=settings.LOG_JSON, level=settings.LOG_LEVEL)
    init_db()

    # Tests may install a service before startup
    if getattr(app.state, "analytics_service", None) is None:
        app.state.analytics_service = build_analytics_service(settings)
    # One client for the process; None disables insights
    app.state.insight_generator = get_text_generator()
    logger.info(f"Reddit analytics API started ({settings.ENVIRONMENT})")
    try:
        yield
    finally:
        await app.state.analytics_service.aggregator.fetcher.close()


app = FastAPI(title="Reddit Analytics Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(reddit_router, prefix=API_PREFIX)
app.include_router(reddit_router, prefix=LEGACY_PREFIX, include_in_schema=False)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, **exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request body", "code": "INVALID_INPUT"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "code": "API_ERROR"},
    )


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    token = request_id_var.set(request.headers.get("X-Request-ID"))
    try:
        return await call_next(request)
    finally:
        request_id_var.reset(token)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "reddit-analytics-backend"}
