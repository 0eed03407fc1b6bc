from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable, Sequence

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .api_models import MEDIA_TYPE, Changes, EndpointModel
from .errors import LandbSyncError
from .logs import child_logger
from .provider import LandbProvider


def create_app(
    provider: LandbProvider,
    logger: logging.Logger | None = None,
    on_shutdown: Sequence[Callable[[], None]] = (),
) -> FastAPI:
    """ExternalDNS webhook API backed by ``provider``.

    Routes follow the webhook provider protocol: negotiation on ``/``, record
    listing and plan application on ``/records``, ``/adjustendpoints`` and a
    liveness probe on ``/healthz``. Callables in ``on_shutdown`` run when the
    app stops.
    """
    log = logger or child_logger(None, "webhook")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for close in on_shutdown:
            close()

    app = FastAPI(title="LanDB alias ExternalDNS webhook", lifespan=lifespan)
    app.state.provider = provider

    @app.exception_handler(LandbSyncError)
    def _sync_error(request: Request, exc: LandbSyncError) -> PlainTextResponse:
        log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.get("/")
    def negotiate(request: Request) -> JSONResponse:
        log.info("Received request for Negotiate from %s", _client(request))
        return JSONResponse(provider.negotiate().model_dump(), media_type=MEDIA_TYPE)

    @app.get("/records")
    def records(request: Request) -> JSONResponse:
        log.info("Received request for Records from %s", _client(request))
        endpoints = provider.records(provider.new_deadline())
        return JSONResponse([EndpointModel.from_endpoint(ep).wire() for ep in endpoints], media_type=MEDIA_TYPE)

    @app.post("/records")
    def apply_changes(changes: Changes, request: Request) -> Response:
        log.info(
            "Received request for ApplyChanges from %s: %d create, %d update, %d delete",
            _client(request),
            len(changes.create),
            len(changes.update_new),
            len(changes.delete),
        )
        provider.apply_changes(changes, provider.new_deadline())
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/adjustendpoints")
    def adjust_endpoints(endpoints: list[EndpointModel], request: Request) -> JSONResponse:
        log.info("Received request for AdjustEndpoints from %s", _client(request))
        adjusted = provider.adjust_endpoints([m.to_endpoint() for m in endpoints])
        return JSONResponse([EndpointModel.from_endpoint(ep).wire() for ep in adjusted], media_type=MEDIA_TYPE)

    @app.get("/healthz")
    def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    return app


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"
