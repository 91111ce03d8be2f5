"""FastAPI application exposing the reconciliation and classification triggers.

Handlers are plain ``def`` functions: the adapters drive their own event loop
through ``asyncio.run`` and therefore must run in the worker thread pool.
"""

from __future__ import annotations

import secrets
from logging import getLogger
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict
from starlette.exceptions import HTTPException as StarletteHTTPException

from trackersync.app import build_classification_gateway, build_reconciliation_engine
from trackersync.config import ConfigurationError, get_trigger_config
from trackersync.domain.errors import AuthError, TrackerError, ValidationError
from trackersync.domain.record import isoformat_utc, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable

    from trackersync.config import TriggerConfig
    from trackersync.domain.classification import ClassificationGateway
    from trackersync.domain.reconciliation import ReconciliationEngine

log = getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class MonitorRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    article: str | None = None


def _bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def check_trigger_secret(request: Request, config: TriggerConfig) -> None:
    """Raise ``AuthError`` unless the request carries the configured secret."""

    if config.cron_secret is None:
        return
    candidates = (
        _bearer_token(request.headers.get("authorization")),
        request.headers.get("x-cron-secret"),
    )
    for candidate in candidates:
        if candidate and secrets.compare_digest(candidate, config.cron_secret):
            return
    raise AuthError("Unauthorized")


def _timestamp() -> str:
    return isoformat_utc(utcnow())


def _build_update_router(
    settings_loader: Callable[[], TriggerConfig],
    engine_factory: Callable[[], ReconciliationEngine],
) -> APIRouter:
    router = APIRouter()

    @router.api_route("/api/update", methods=["GET", "POST"])
    def trigger_update(request: Request) -> JSONResponse:
        try:
            check_trigger_secret(request, settings_loader())
        except AuthError as exc:
            log.warning(f"Rejected reconciliation trigger from {request.client}")
            return JSONResponse({"success": False, "error": str(exc)}, status_code=401)

        try:
            engine = engine_factory()
        except (ConfigurationError, TrackerError) as exc:
            log.error(f"Reconciliation could not start: {exc}")
            return JSONResponse(
                {"success": False, "error": str(exc), "timestamp": _timestamp()},
                status_code=500,
            )

        try:
            result = engine.reconcile()
        except TrackerError as exc:
            log.exception("Reconciliation cycle failed")
            return JSONResponse(
                {"success": False, "error": str(exc), "timestamp": _timestamp()},
                status_code=500,
            )
        return JSONResponse({"success": True, "timestamp": _timestamp(), **result.to_dict()})

    return router


def _build_monitor_router(
    gateway_factory: Callable[[], ClassificationGateway],
) -> APIRouter:
    router = APIRouter()

    @router.options("/api/monitor")
    def monitor_preflight() -> Response:
        return Response(status_code=200, headers=CORS_HEADERS)

    @router.post("/api/monitor")
    def monitor(payload: MonitorRequest) -> JSONResponse:
        try:
            gateway = gateway_factory()
        except (ConfigurationError, TrackerError) as exc:
            log.error(f"Classification could not start: {exc}")
            return JSONResponse({"error": str(exc)}, status_code=500, headers=CORS_HEADERS)

        if not payload.type or not payload.article:
            return JSONResponse(
                {"error": "Missing type or article"}, status_code=400, headers=CORS_HEADERS
            )

        try:
            result = gateway.classify(payload.type, payload.article)
        except ValidationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400, headers=CORS_HEADERS)
        except TrackerError as exc:
            log.exception(f"Classification of {payload.type!r} failed")
            return JSONResponse({"error": str(exc)}, status_code=500, headers=CORS_HEADERS)
        return JSONResponse(result, headers=CORS_HEADERS)

    return router


async def _http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


async def _request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info(f"Rejected malformed request body: {exc.errors()}")
    return JSONResponse({"error": "Invalid request body"}, status_code=400, headers=CORS_HEADERS)


def create_app(
    *,
    settings_loader: Callable[[], TriggerConfig] = get_trigger_config,
    engine_factory: Callable[[], ReconciliationEngine] = build_reconciliation_engine,
    gateway_factory: Callable[[], ClassificationGateway] = build_classification_gateway,
) -> FastAPI:
    app = FastAPI(
        title="trackersync",
        description="Reconciliation and classification triggers for the accountability tracker",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(_build_update_router(settings_loader, engine_factory))
    app.include_router(_build_monitor_router(gateway_factory))
    return app
