"""FastAPI application factory."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import date
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from clinicdash.api.routes import charts, dashboard, doctors, health, weekly
from clinicdash.demo.sample_data import seed_store
from clinicdash.logging import configure_logging, correlation_id_var, get_logger, new_correlation_id
from clinicdash.settings import Settings
from clinicdash.storage.appointment_store import (
    DoctorNotFound,
    InMemoryAppointmentStore,
    PostgresAppointmentStore,
    StoreError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

__all__ = ["create_app"]

logger = logging.getLogger(__name__)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    404: "NOT_FOUND",
    503: "STORE_UNAVAILABLE",
}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Inject correlation_id and record request metrics."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        cid = request.headers.get("x-correlation-id") or new_correlation_id()
        correlation_id_var.set(cid)
        request.state.request_id = cid

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        response.headers["x-correlation-id"] = cid
        response.headers["x-request-duration-ms"] = f"{duration * 1000:.1f}"

        health.record_request(response.status_code)

        return response


def _resolve_request_id(request: Request) -> str:
    state_request_id = getattr(request.state, "request_id", "")
    if state_request_id:
        return state_request_id
    header_request_id = request.headers.get("x-correlation-id", "")
    if header_request_id:
        request.state.request_id = header_request_id
        return header_request_id
    generated = new_correlation_id()
    request.state.request_id = generated
    return generated


def _error_payload(error_code: str, message: str, request_id: str, *, details: Any = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "error_code": error_code,
        "message": message,
        "request_id": request_id,
    }
    if details is not None:
        payload["details"] = details
    return payload


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    request_id = _resolve_request_id(request)
    status_code = exc.status_code

    if status_code in _ERROR_CODE_BY_STATUS:
        error_code = _ERROR_CODE_BY_STATUS[status_code]
    elif 400 <= status_code < 500:
        error_code = "INVALID_REQUEST"
    else:
        error_code = "INTERNAL_ERROR"

    if isinstance(exc.detail, str):
        message = exc.detail
    else:
        message = "Request failed"

    return JSONResponse(
        status_code=status_code,
        content=_error_payload(error_code, message, request_id),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = _resolve_request_id(request)
    return JSONResponse(
        status_code=422,
        content=_error_payload(
            "INVALID_REQUEST",
            "Request validation failed",
            request_id,
            details=jsonable_errors(exc),
        ),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Validation errors without the non-serialisable ``ctx`` objects."""
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


async def _doctor_not_found_handler(request: Request, exc: DoctorNotFound) -> JSONResponse:
    request_id = _resolve_request_id(request)
    return JSONResponse(
        status_code=404,
        content=_error_payload("NOT_FOUND", str(exc), request_id),
    )


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    request_id = _resolve_request_id(request)
    logger.error("Appointment store failure: %s", exc)
    health.record_store_error()
    return JSONResponse(
        status_code=503,
        content=_error_payload("STORE_UNAVAILABLE", "Appointment store unavailable", request_id),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = _resolve_request_id(request)
    logger.exception("Unhandled application exception", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=_error_payload("INTERNAL_ERROR", "Internal server error", request_id),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Startup
    settings = Settings()
    configure_logging(json_output=settings.log_json, level=settings.log_level)

    conn = None
    if settings.pg_dsn:
        from clinicdash.storage.postgres import ensure_schema, get_connection

        conn = get_connection(settings.pg_dsn)
        ensure_schema(conn)
        store: Any = PostgresAppointmentStore(conn)
    else:
        store = InMemoryAppointmentStore()
        if settings.seed_demo:
            seed_store(store, today=date.today(), weekly_target=settings.default_weekly_target)

    app.state.settings = settings
    app.state.store = store
    get_logger(component="api").info(
        "clinicdash_started",
        environment=settings.environment,
        store=type(store).__name__,
    )

    yield

    # Shutdown
    if conn is not None:
        conn.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Clinic Appointments Dashboard",
        version="0.1.0",
        description="Weekly appointment counts per doctor, YTD aggregates and chart series.",
        lifespan=lifespan,
    )
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(DoctorNotFound, _doctor_not_found_handler)
    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
    app.add_middleware(ObservabilityMiddleware)
    app.include_router(health.router, tags=["health"])
    app.include_router(doctors.router, tags=["doctors"])
    app.include_router(weekly.router, tags=["data-entry"])
    app.include_router(charts.router, tags=["charts"])
    app.include_router(dashboard.router, tags=["dashboard"])
    return app


app = create_app()
