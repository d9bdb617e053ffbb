"""
JD Roaster API — Main Application

POST /api/analyze-text     — Analyze a job description, return the Report
POST /api/debug-sentences  — Normalization + segmentation only
GET  /api/rules            — List the loaded rule catalog
GET  /health               — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jdroaster import __version__
from jdroaster.analyzer import Analyzer
from jdroaster.catalog import load_catalog
from jdroaster.config import settings
from jdroaster.logging import get_logger, setup_logging
from jdroaster.normalize import normalize
from jdroaster.report import REPORT_VERSION
from jdroaster.schemas.analyze import (
    AnalyzeRequest,
    AnalyzeResponse,
    DebugSentencesResponse,
    HealthResponse,
    RulesResponse,
    RuleSummary,
)
from jdroaster.sentences import segment

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the rule catalog once. A bad catalog aborts startup."""
    setup_logging()

    catalog = load_catalog(settings.CATALOG_PATH)
    app.state.analyzer = Analyzer(catalog)

    logger.info("JD Roaster API starting",
                extra={"catalog_version": catalog.version, "rule_count": len(catalog)})
    yield
    logger.info("JD Roaster API shutting down")


app = FastAPI(
    title="JD Roaster API",
    description="Deterministic, receipt-backed job description analysis",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
)


def _analyzer(request: Request) -> Analyzer:
    return request.app.state.analyzer


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors, reported in the {ok, error} envelope."""
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        return _error(400, "Invalid JSON body")
    return _error(400, "Invalid request body")


@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Anything else is a server fault. Log it in full, answer with the envelope only."""
    logger.error(
        "Request failed",
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )
    return _error(500, "Internal server error. The analysis could not be completed.")


# ============================================================
# ROUTES
# ============================================================

@app.post("/api/analyze-text", response_model=AnalyzeResponse)
def analyze_text(body: AnalyzeRequest, request: Request):
    """Analyze job-description text."""
    raw_text = body.raw_text
    if len(raw_text.strip()) < settings.MIN_TEXT_LENGTH:
        return _error(400, f"rawText must be at least {settings.MIN_TEXT_LENGTH} characters")

    start = time.time()
    report = _analyzer(request).analyze(raw_text)
    report = report.stamped(datetime.now(timezone.utc).isoformat())

    logger.info(
        f"Analysis complete: {len(report.insights)} insights, {len(report.green_flags)} green flags",
        extra={
            "sentences_count": len(report.sentences),
            "insights_count": len(report.insights),
            "green_flags_count": len(report.green_flags),
            "duration_ms": int((time.time() - start) * 1000),
        },
    )
    return {"ok": True, "report": report}


@app.post("/api/debug-sentences", response_model=DebugSentencesResponse)
def debug_sentences(body: AnalyzeRequest):
    """Show how text is normalized and segmented. No length minimum."""
    normalized_text = normalize(body.raw_text)
    return {
        "ok": True,
        "normalized_text": normalized_text,
        "sentences": segment(normalized_text),
    }


@app.get("/api/rules", response_model=RulesResponse)
async def get_rules(request: Request):
    """Return every rule in the loaded catalog."""
    catalog = _analyzer(request).catalog
    rules = [
        RuleSummary(
            id=r.id,
            group=r.group,
            kind=r.kind,
            type=r.type,
            title=r.title,
            severity=r.severity,
            mode=r.mode,
            priority=r.priority,
            contradicts=list(r.contradicts),
        )
        for r in catalog.rules
    ]
    return {"catalog_version": catalog.version, "total": len(rules), "rules": rules}


@app.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Health check."""
    analyzer = getattr(request.app.state, "analyzer", None)
    catalog = analyzer.catalog if analyzer else None
    return {
        "status": "operational",
        "version": __version__,
        "report_version": REPORT_VERSION,
        "catalog_version": catalog.version if catalog else None,
        "rules_loaded": len(catalog) if catalog else 0,
    }


# ============================================================
# MIDDLEWARE
# ============================================================

def _declared_length(request: Request) -> Optional[int]:
    value = request.headers.get("content-length")
    if value is None or not value.isdigit():
        return None
    return int(value)


@app.middleware("http")
async def stamp_headers(request: Request, call_next):
    """Version and security headers on every response."""
    response = await call_next(request)
    headers = response.headers
    headers["X-JDRoaster-Version"] = __version__
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is not None:
        headers["X-Catalog-Version"] = analyzer.catalog.version
    headers["X-Content-Type-Options"] = "nosniff"
    headers["X-Frame-Options"] = "DENY"
    headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """413 for bodies over MAX_BODY_BYTES, whether declared or streamed."""
    limit = settings.MAX_BODY_BYTES
    declared = _declared_length(request)
    if declared is not None and declared > limit:
        return _error(413, "Request body too large.")
    if request.method == "POST" and len(await request.body()) > limit:
        return _error(413, "Request body too large.")
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One log line per API call. Health checks are not logged."""
    if request.url.path == "/health":
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

    logger.info(
        f"{request.method} {request.url.path} {response.status_code} ({elapsed_ms}ms)",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
        },
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
