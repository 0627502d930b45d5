"""FastAPI application factory for the token service."""

from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable
from typing import Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRouter
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from pydantic import BaseModel
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from .config import AppConfig, load_config
from .constants import CORRELATION_HEADER
from .errors import (
    DetailedHTTPException,
    ErrorCode,
    default_message,
    error_response,
    map_status_to_code,
    redact_sensitive,
    validation_errors_to_details,
)
from .logging import DEFAULT_LOG_LEVEL, bind_context, clear_context, get_logger, setup_logging
from .routes import auth as auth_routes
from .routes import dashboard as dashboard_routes

_REQUEST_COUNT = Counter(
    "tokencore_http_requests_total",
    "Total HTTP requests processed by the token service.",
    ("method", "route", "status_code"),
)
_REQUEST_LATENCY = Histogram(
    "tokencore_http_request_duration_seconds",
    "Latency of HTTP requests handled by the token service.",
    ("method", "route", "status_code"),
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str
    version: str
    uptimeSeconds: float


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach correlation IDs and request metadata to the log context."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = get_logger(__name__)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER, str(uuid.uuid4()))
        request.state.correlation_id = correlation_id
        method = request.method.upper()
        bind_context(
            correlation_id=correlation_id,
            http_method=method,
            http_path=str(request.url.path),
        )
        start = time.perf_counter()
        self._logger.info("request.start")
        status_code: int | None = None

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            self._logger.exception("request.error", durationMs=duration_ms)
            raise
        else:
            duration_ms = (time.perf_counter() - start) * 1000
            response.headers[CORRELATION_HEADER] = correlation_id
            self._logger.info(
                "request.complete", status_code=response.status_code, durationMs=duration_ms
            )
            return response
        finally:
            route = _resolve_route_template(request)
            status_value = str(status_code or status.HTTP_500_INTERNAL_SERVER_ERROR)
            _REQUEST_LATENCY.labels(method=method, route=route, status_code=status_value).observe(
                time.perf_counter() - start
            )
            _REQUEST_COUNT.labels(method=method, route=route, status_code=status_value).inc()
            clear_context("correlation_id", "http_method", "http_path")


def _resolve_route_template(request: Request) -> str:
    """Normalise the request path to the FastAPI route template to limit cardinality."""
    route = request.scope.get("route")
    if route is not None:
        template = getattr(route, "path", None)
        if template:
            return template
    return str(request.url.path)


def create_app(config: AppConfig | None = None, log_level: str | None = None) -> FastAPI:
    """Create the FastAPI application."""
    if config is None:
        config = load_config()

    setup_logging(log_level or config.log_level or DEFAULT_LOG_LEVEL, config.log_format)
    logger = get_logger(__name__)

    # Raises ConfigError outside development when no secret is configured.
    token_secret = config.signing_secret()

    app = FastAPI(title="Token Service", version=config.service_version)
    app.state.config = config
    app.state.token_secret = token_secret
    app.state.started_at = time.monotonic()
    app.add_middleware(RequestContextMiddleware)

    router = APIRouter()

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException) -> Response:
        correlation_id = getattr(request.state, "correlation_id", str(uuid.uuid4()))
        message = str(exc.detail) if exc.detail else default_message(exc.status_code)
        message = redact_sensitive(message)

        error_code = map_status_to_code(exc.status_code)
        details = None
        if isinstance(exc, DetailedHTTPException):
            if exc.error_code:
                error_code = exc.error_code
            details = exc.error_details or None

        logger.warning(
            "http.error",
            status_code=exc.status_code,
            message=message,
            correlationId=correlation_id,
        )
        return error_response(
            code=error_code,
            message=message,
            correlation_id=correlation_id,
            status_code=exc.status_code,
            details=details,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
        correlation_id = getattr(request.state, "correlation_id", str(uuid.uuid4()))
        details = validation_errors_to_details(exc.errors())
        message = details[0].issue if details else "Validation failed"
        logger.warning("http.validation_error", message=message, correlationId=correlation_id)
        return error_response(
            code=ErrorCode.INVALID_INPUT,
            message=message,
            correlation_id=correlation_id,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> Response:
        correlation_id = getattr(request.state, "correlation_id", str(uuid.uuid4()))
        logger.exception("http.unhandled_error", correlationId=correlation_id)
        return error_response(
            code=ErrorCode.INTERNAL_ERROR,
            message="Internal server error",
            correlation_id=correlation_id,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @router.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(request: Request) -> HealthResponse:
        uptime_seconds = time.monotonic() - app.state.started_at
        logger.info("health.ok", uptimeSeconds=uptime_seconds)
        return HealthResponse(
            uptimeSeconds=uptime_seconds,
            service=config.service_name,
            version=config.service_version,
        )

    @router.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(payload, media_type=CONTENT_TYPE_LATEST, headers={"Cache-Control": "no-store"})

    app.include_router(router)
    app.include_router(auth_routes.router)
    app.include_router(dashboard_routes.router)

    logger.info(
        "application.configured",
        service=config.service_name,
        version=config.service_version,
        algorithm=config.token_algorithm,
        environment=config.environment,
    )
    return app
