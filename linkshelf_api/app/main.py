"""
Main entrypoint for the LinkShelf API.

``create_app`` builds the FastAPI application: logging, the database
(connection pool plus migrations run at startup), CORS, the request
logger and the JSON error format.  An instance is created at import
time as ``app`` so the service can be started with::

    uvicorn linkshelf_api.app.main:app

Every error response has the shape ``{"ok": false, "error": "..."}``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .api.v1.router import diagnostics_router, router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import Database
from .core.errors import ServiceError, Unauthorized
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("linkshelf_api.access")


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message}, headers=headers)


class OpenPreflightMiddleware:
    """Answer every CORS preflight with 200.

    ``CORSMiddleware`` rejects preflights it will not allow (unlisted
    origin, method or header) with a 400.  This wrapper sits outside it
    and turns those rejections into an empty 200 without any
    ``Access-Control-Allow-*`` headers, so the browser still blocks the
    real request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] != "OPTIONS":
            await self.app(scope, receive, send)
            return
        headers = Headers(scope=scope)
        if "origin" not in headers or "access-control-request-method" not in headers:
            await self.app(scope, receive, send)
            return

        rejected = False

        async def send_open(message: Message) -> None:
            nonlocal rejected
            if message["type"] == "http.response.start" and message["status"] == status.HTTP_400_BAD_REQUEST:
                rejected = True
                access_logger.info("OPTIONS %s -> 200 (origin %s not allowed)", scope["path"], headers["origin"])
                message = {
                    "type": "http.response.start",
                    "status": status.HTTP_200_OK,
                    "headers": [(b"content-length", b"0")],
                }
            elif message["type"] == "http.response.body" and rejected:
                if message.get("more_body", False):
                    return
                message = {"type": "http.response.body", "body": b"", "more_body": False}
            await send(message)

        await self.app(scope, receive, send_open)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return _error(exc.status_code, exc.message, headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "invalid request"
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = f"invalid request: {location}" if location else message
        return _error(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "server error")


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    config : Optional[Settings]
        Settings to use instead of the process-wide ones read from the
        environment.

    Returns
    -------
    FastAPI
        A configured application.  The database pool is created here;
        migrations run when the application starts.
    """
    config = config or default_settings
    setup_logging(config.log_level, config.log_file)

    db = Database.from_settings(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # A failing migration aborts startup.
        version = db.init_db()
        logger.info("Database %s at schema version %s", db.path, version)
        try:
            db.ping()
            logger.info("DB connection OK")
        except ServiceError as exc:
            logger.error("DB connection error: %s", exc)
        try:
            yield
        finally:
            db.close()

    app = FastAPI(
        title=config.project_name,
        version=config.api_version,
        debug=config.debug,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.db = db

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # CORS preflights never reach this point; any other OPTIONS
        # request gets an empty 200.
        if request.method == "OPTIONS":
            response = Response(status_code=status.HTTP_200_OK)
        else:
            response = await call_next(request)
        access_logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(OpenPreflightMiddleware)

    register_error_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(diagnostics_router, tags=["diagnostics"])

    return app


app = create_app()
