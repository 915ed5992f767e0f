"""ThreadClear HTTP API: parsing, analysis intake, taxonomy admin and dashboards."""

from __future__ import annotations

import os
import sqlite3
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from threadclear.api.routes import insights, parse, taxonomy
from threadclear.api.routes.health import router as health_router
from threadclear.config import APP_ENV, APP_VERSION
from threadclear.infrastructure.database import init_database, validate_schema
from threadclear.insights.service import InsightService
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter, log_event
from threadclear.taxonomy.service import TaxonomyService

load_dotenv()

logger = get_logger(__name__)

_DEV_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
)


def _allowed_origins() -> list[str]:
    origins = [o.strip() for o in os.getenv("THREADCLEAR_ALLOWED_ORIGINS", "").split(",") if o.strip()]
    if APP_ENV == "development":
        origins.extend(o for o in _DEV_ORIGINS if o not in origins)
    return origins


def _prepare_database() -> None:
    """Create missing tables before any route can touch them."""
    logger.info("Preparing insight store")
    try:
        init_database()
    except sqlite3.OperationalError as e:
        logger.critical("Could not create insight tables (locked or corrupt?): %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e
    except OSError as e:
        logger.critical("Insight store path is not writable: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e


def _wire_services() -> None:
    """Hand the shared services to the routers. The analyzer is left to the deployment."""
    taxonomy_service = TaxonomyService.from_config()
    insight_service = InsightService(taxonomy_service)

    taxonomy.set_taxonomy_service(taxonomy_service)
    insights.set_insight_service(insight_service)
    parse.set_insight_service(insight_service)


ALLOWED_ORIGINS = _allowed_origins()

app = FastAPI(title="ThreadClear API", version=APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    422 that names the offending fields and nothing else.

    Conversation text must never be echoed back, so pydantic's input values
    are dropped and only field locations are logged.
    """
    errors = exc.errors()
    fields = [str(err["loc"][-1]) for err in errors]
    logger.warning("Rejected request to %s; invalid fields %s", request.url.path, fields)
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Request body or parameters failed validation.",
            "error_count": len(errors),
            "invalid_fields": fields,
        },
    )


_prepare_database()
_wire_services()

for router in (health_router, parse.router, taxonomy.router, insights.router):
    app.include_router(router)

log_event("api.startup", service="threadclear", version=APP_VERSION, origins=len(ALLOWED_ORIGINS))


@app.on_event("startup")
async def check_schema() -> None:
    """Refuse to serve if the insight tables are missing columns."""
    try:
        validate_schema()
    except ValueError as e:
        logger.critical("Insight schema check failed: %s", e)
        raise RuntimeError(f"Database schema validation failed: {e}") from e
    logger.info("Insight schema check passed")


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "ThreadClear API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "parse": "/api/parse",
            "analyze": "/api/analyze",
            "industries": "/api/taxonomy/industries",
            "org_taxonomy": "/api/organizations/{org_id}/taxonomy",
            "store_insight": "/api/insights/store",
            "summary": "/api/organizations/{org_id}/insights/summary",
            "trends": "/api/organizations/{org_id}/insights/trends",
            "topics": "/api/organizations/{org_id}/insights/topics",
        },
    }


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "threadclear.api.app:app",
        host=os.getenv("THREADCLEAR_HOST", "127.0.0.1"),
        port=int(os.getenv("THREADCLEAR_PORT", "8000")),
    )
