"""FastAPI application entrypoint for ContentDeck."""

from __future__ import annotations

from time import perf_counter
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from contentdeck.accounts.router import router as accounts_router
from contentdeck.api.context import AppContext, build_context
from contentdeck.auth.dependencies import REQUEST_ID_STATE_KEY, USER_ID_HEADER
from contentdeck.billing.router import router as billing_router
from contentdeck.captions.router import router as captions_router
from contentdeck.core.errors import ContentDeckError
from contentdeck.core.logger import bind_request_context, bind_user_context, clear_request_context, get_logger
from contentdeck.core.metrics import record_http_request, render_prometheus_metrics
from contentdeck.storage.db import test_connection as test_db_connection
from contentdeck.storage.redis_client import test_connection as test_redis_connection
from contentdeck.videos.router import router as videos_router


logger = get_logger("contentdeck.api")


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    context = context or build_context()
    settings = context.settings

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.context = context

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        started_at = perf_counter()
        request_id = request.headers.get("x-request-id", str(uuid4()))
        setattr(request.state, REQUEST_ID_STATE_KEY, request_id)
        bind_request_context(request_id=request_id)
        raw_user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
        if raw_user_id.isdigit():
            bind_user_context(int(raw_user_id))

        status_code = 500
        try:
            response = await call_next(request)
            status_code = int(response.status_code)
        finally:
            duration = perf_counter() - started_at
            if settings.metrics_enabled:
                record_http_request(
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    duration_seconds=duration,
                )
            clear_request_context()

        response.headers["x-request-id"] = request_id
        return response

    @app.exception_handler(ContentDeckError)
    async def domain_error_handler(request: Request, exc: ContentDeckError) -> JSONResponse:
        log = logger.warning if exc.status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            method=request.method,
            error=exc.kind,
            status_code=exc.status_code,
            message=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.on_event("startup")
    def on_startup() -> None:
        logger.info(
            "application_startup",
            env=settings.env,
            version=settings.app_version,
            storage_backend=settings.storage_backend,
            lock_backend=settings.lock_backend,
            caption_provider=context.captions.provider_name,
            quota_enforcement_enabled=settings.quota_enforcement_enabled,
            metrics_enabled=settings.metrics_enabled,
        )

    @app.get("/health")
    def health() -> JSONResponse:
        services = {}
        if context.engine is not None:
            db_ok, db_error = test_db_connection(context.engine)
            services["database"] = {"ok": db_ok, "error": db_error}
        if context.redis_client is not None:
            redis_ok, redis_error = test_redis_connection(context.redis_client)
            services["redis"] = {"ok": redis_ok, "error": redis_error}

        healthy = all(item["ok"] for item in services.values())
        payload = {
            "status": "ok" if healthy else "degraded",
            "env": settings.env,
            "services": services,
        }
        return JSONResponse(content=payload, status_code=200 if healthy else 503)

    @app.get("/version")
    def version() -> dict[str, str]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "env": settings.env,
        }

    @app.get("/metrics")
    def metrics() -> PlainTextResponse:
        if not settings.metrics_enabled:
            return PlainTextResponse("metrics disabled\n", status_code=404)

        payload = render_prometheus_metrics(
            app_name=settings.app_name,
            app_version=settings.app_version,
            env=settings.env,
        )
        return PlainTextResponse(
            payload,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    app.include_router(accounts_router)
    app.include_router(billing_router)
    app.include_router(videos_router)
    app.include_router(captions_router)
    return app
