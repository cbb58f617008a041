"""
main.py — vnpit HTTP service.

Run locally:
    uvicorn vnpit.main:app --reload --port 8000

Every endpoint is a pure computation over its request body. Errors of any
kind leave the service in one envelope:

    {"error": {"code": "...", "message": "...", "details": [{"field", "issue"}]}}
"""
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vnpit.config import settings
from vnpit.engine.schemas import ErrorBody, ErrorDetail, ErrorResponse

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Semantic codes for framework-level HTTP errors
HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Bracket tables are validated on import of vnpit.engine.brackets; the
    # routers below import it, so a broken table never reaches this point.
    logger.info(
        "vnpit v%s ready (default region %d, debug=%s)",
        settings.app_version, settings.default_region, settings.debug,
    )
    yield
    logger.info("vnpit stopped")


app = FastAPI(
    title="vnpit API",
    version=settings.app_version,
    description=(
        "Vietnamese personal income tax engine: 7-bracket vs 5-bracket law, "
        "insurance caps, gross/net conversion and annual settlement across "
        "the 01/07/2026 law change."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Iterable[ErrorDetail] = (),
) -> JSONResponse:
    envelope = ErrorResponse(error=ErrorBody(code=code, message=message, details=list(details)))
    return JSONResponse(status_code=status_code, content=envelope.model_dump())


def violations_from(exc: ValueError) -> Optional[list[ErrorDetail]]:
    """
    Business-rule validators raise ValueError(json.dumps([{field, issue}, ...])).
    Any other ValueError message yields None.
    """
    try:
        payload: Any = json.loads(str(exc))
    except ValueError:
        return None
    if not isinstance(payload, list) or not payload:
        return None
    if not all(isinstance(item, dict) and "issue" in item for item in payload):
        return None
    return [ErrorDetail(field=item.get("field"), issue=item["issue"]) for item in payload]


def _field_path(loc: Iterable[Any]) -> Optional[str]:
    """('body', 'monthly_income', 3, 'bonus') → 'monthly_income.3.bonus'"""
    path = ".".join(str(part) for part in loc if part != "body")
    return path or None


@app.exception_handler(RequestValidationError)
async def on_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [ErrorDetail(field=_field_path(e["loc"]), issue=e["msg"]) for e in exc.errors()]
    return error_response(422, "VALIDATION_ERROR", "Request validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    return error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(ValueError)
async def on_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Data problems found past schema validation are still the caller's: 422."""
    violations = violations_from(exc)
    if violations is None:
        return error_response(422, "VALIDATION_ERROR", str(exc))

    logger.info("%s rejected: %d business-rule violation(s)", request.url.path, len(violations))
    return error_response(422, "VALIDATION_ERROR", "Input validation failed", violations)


@app.exception_handler(Exception)
async def on_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if not settings.debug:
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")
    return error_response(
        500,
        "INTERNAL_ERROR",
        "An unexpected error occurred (debug details included)",
        [ErrorDetail(issue=f"{type(exc).__name__}: {exc}")],
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/api/health", tags=["System"])
async def health() -> dict:
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from vnpit.engine.routes import router as engine_router  # noqa: E402
from vnpit.calculators.routes import router as calculators_router  # noqa: E402

app.include_router(engine_router)
app.include_router(calculators_router)
