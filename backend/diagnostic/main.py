"""
Adaptive Diagnostic Service - FastAPI application.

Wires together logging, the database, error responses and the three
routers (diagnostic attempts, practice sessions, question ingestion).
Request handling order:

- the request ID middleware tags the request and logs start/finish
- a router handler calls into services/, which raise DiagnosticError
  subclasses on failure
- the exception handlers below render those as JSON bodies
"""

import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diagnostic.logging_config import (
    setup_logging, get_logger, log_with_context, request_id_var, generate_request_id
)
from diagnostic.config import DATABASE_URL
from diagnostic.database import IS_SQLITE, create_tables
from diagnostic.errors import DiagnosticError
from diagnostic.routes import attempts, practice, ingest

# Register all models with Base.metadata
from diagnostic import models  # noqa: F401

# Logging must be configured before the first entry is emitted
setup_logging()
logger = get_logger("http")

if IS_SQLITE:
    log_with_context(logger, "INFO", "SQLite database: creating tables on startup",
                     extra_data={"database_url": DATABASE_URL})
    create_tables()

app = FastAPI(
    title="Adaptive Diagnostic Service",
    description=(
        "Adaptive diagnostic testing: serves questions that track the learner's "
        "running performance, scores answers per learning fundamental, and "
        "generates practice sessions for weak fundamentals."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# A caller-supplied X-Request-ID is kept so log entries can be joined
# across services; otherwise a UUID is generated. Either way it is echoed
# back in the response header.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or generate_request_id()
    token = request_id_var.set(req_id)
    started = time.perf_counter()
    method, path = request.method, request.url.path

    log_with_context(logger, "DEBUG", f"{method} {path} received",
        extra_data={
            "client": request.client.host if request.client else None,
            "params": dict(request.query_params),
        })

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = req_id
        log_with_context(logger, "INFO", f"{method} {path} {response.status_code}",
            extra_data={
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "status_code": response.status_code,
            })
        return response
    finally:
        request_id_var.reset(token)


# ──────────────────────────────────────────────────────────────
# Error responses
#
# Domain errors carry their own status code and kind; request bodies that
# fail schema validation are reported as invalid_input.
# ──────────────────────────────────────────────────────────────
@app.exception_handler(DiagnosticError)
async def diagnostic_error_handler(request: Request, exc: DiagnosticError):
    level = "ERROR" if exc.status_code >= 500 else "WARNING"
    log_with_context(logger, level,
        f"{exc.kind}: {exc.message}",
        context=exc.context,
        extra_data={"path": request.url.path, "status_code": exc.status_code})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message, "context": exc.context}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    log_with_context(logger, "WARNING",
        "Malformed request body",
        extra_data={"path": request.url.path, "errors": len(exc.errors())})
    return JSONResponse(
        status_code=422,
        content={"error": "invalid_input", "detail": jsonable_encoder(exc.errors())}
    )


# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(attempts.router, tags=["Diagnostic"])
app.include_router(practice.router, tags=["Practice"])
app.include_router(ingest.router, tags=["Questions"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "adaptive-diagnostic-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Adaptive Diagnostic Service",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "start_attempt": "POST /api/diagnostic/attempts",
            "latest_attempt": "GET /api/diagnostic/attempts/latest?learner_id=",
            "attempt_detail": "GET /api/diagnostic/attempts/{id}",
            "next_question": "POST /api/diagnostic/attempts/{id}/next-question",
            "submit_answer": "POST /api/diagnostic/attempts/{id}/answers",
            "complete": "POST /api/diagnostic/attempts/{id}/complete",
            "practice_generate": "POST /api/practice/generate",
            "practice_sessions": "GET /api/practice/sessions?learner_id=",
            "practice_session": "GET|PATCH /api/practice/sessions/{id}",
            "ingest_questions": "POST /api/ingest/questions",
            "question": "GET /api/questions/{id}"
        }
    }
