"""HTTP Server Bootstrapper — FastAPI app wired with the toolkit's ambient stack.

Invariants:
    - Routes and middleware registered explicitly in create_app
    - Request bodies larger than body_limit_mb are rejected with 413 before routing
    - Shutdown closes the Service (HTTP client, timers, pool)
    - app.state carries the Service and RequestContextHelper for handlers

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Session cookie signed with server_secret and named after the service
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import JSONResponse

from mediaserve_common.api.error_handlers import register_error_handlers
from mediaserve_common.api.request_context import RequestContextHelper
from mediaserve_common.api.routes import health
from mediaserve_common.config import Settings
from mediaserve_common.infrastructure.observability import setup_logging
from mediaserve_common.service import Service

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Rejects requests whose declared Content-Length exceeds max_bytes."""

    def __init__(self, app: Callable[..., Any], max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        length = dict(scope.get("headers") or []).get(b"content-length")
        if length is not None and length.isdigit() and int(length) > self.max_bytes:
            response = JSONResponse(
                status_code=413,
                content={
                    "error": {
                        "code": "PAYLOAD_TOO_LARGE",
                        "message": f"Request body exceeds {self.max_bytes} bytes",
                        "category": "validation",
                        "severity": "error",
                    },
                },
            )
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)


def create_app(service: Service, settings: Settings | None = None) -> FastAPI:
    settings = settings or service.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        logger.info(f"{settings.server_name} started")
        yield
        logger.info(f"{settings.server_name} shutting down")
        await service.aclose()

    app = FastAPI(title=settings.server_name, lifespan=lifespan)
    app.state.service = service
    app.state.request_context = RequestContextHelper(service.logger, service.namespace)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.server_secret,
        session_cookie=settings.server_name,
    )
    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.body_limit_bytes)

    register_error_handlers(app)
    app.include_router(health.router)
    return app


class Server:
    """Owns the FastAPI app for one Service and serves it with uvicorn."""

    def __init__(self, service: Service, settings: Settings | None = None):
        self.service = service
        self.settings = settings or service.settings
        self.app = create_app(service, self.settings)
        self.context: RequestContextHelper = self.app.state.request_context

    async def serve(self) -> None:
        config = uvicorn.Config(
            self.app,
            host=self.settings.server_address,
            port=self.settings.server_port,
            log_config=None,
        )
        await uvicorn.Server(config).serve()
