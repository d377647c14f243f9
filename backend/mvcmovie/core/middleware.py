"""
ASGI middleware stages of the request pipeline.

Each class wraps the next application. Stages that produce a response on their
own (static files, error pages, the dev-link endpoint) short-circuit; everything
else is passed on unchanged.
"""
import html
import logging
import traceback
from pathlib import Path
from typing import Sequence

from starlette.exceptions import HTTPException
from starlette.responses import HTMLResponse, JSONResponse
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from tortoise import exceptions as orm_exceptions

logger = logging.getLogger(__name__)

DATABASE_ERRORS = (
    orm_exceptions.OperationalError,
    orm_exceptions.DBConnectionError,
    orm_exceptions.ConfigurationError,
)

DEV_LINK_PATH = "/_devlink"


class DatabaseErrorPageMiddleware:
    """
    Development only: turns ORM connection/schema errors into a diagnostic page
    that points at migrations. Other exceptions propagate.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except DATABASE_ERRORS as exc:
            if response_started:
                raise
            logger.exception("[db] database error while handling %s", scope.get("path"))
            await HTMLResponse(self.render(exc), status_code=500)(scope, receive, send)

    @staticmethod
    def render(exc: BaseException) -> str:
        detail = html.escape("".join(traceback.format_exception_only(type(exc), exc)))
        return (
            "<html><head><title>Database error</title></head><body>"
            "<h1>A database operation failed while processing the request.</h1>"
            f"<pre>{detail}</pre>"
            "<p>Pending migrations may be the cause. Apply them with "
            "<code>aerich upgrade</code>, or set <code>Database:GenerateSchemas</code> "
            "to create the schema on startup.</p>"
            "</body></html>"
        )


class DevLinkMiddleware:
    """Development only: serves environment and pipeline details at /_devlink."""

    def __init__(self, app: ASGIApp, environment: str, stages: Sequence[str]):
        self.app = app
        self.environment = environment
        self.stages = stages

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] == DEV_LINK_PATH:
            response = JSONResponse({
                "success": True,
                "data": {"environment": self.environment, "pipeline": list(self.stages)},
            })
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)


class ExceptionHandlerMiddleware:
    """
    Non-development error handling: an unhandled exception re-executes the request
    as GET ``error_path`` through the rest of the pipeline, answered with status 500.
    """

    def __init__(self, app: ASGIApp, error_path: str):
        self.app = app
        self.error_path = error_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception:
            logger.exception("[pipeline] unhandled exception for %s %s",
                             scope.get("method"), scope.get("path"))
            if response_started:
                raise
            await self._reexecute(scope, receive, send)

    async def _reexecute(self, scope: Scope, receive: Receive, send: Send) -> None:
        error_scope = dict(scope)
        error_scope.update(
            path=self.error_path,
            raw_path=self.error_path.encode("latin-1"),
            method="GET",
            query_string=b"",
        )
        error_scope["original_path"] = scope.get("path")

        async def _send_500(message: Message) -> None:
            if message["type"] == "http.response.start":
                message = dict(message, status=500)
            await send(message)

        await self.app(error_scope, receive, _send_500)


class StaticFilesMiddleware:
    """
    Serves files under ``directory`` for GET/HEAD through Starlette's StaticFiles.
    A request with no matching file falls through to the next stage.
    """

    def __init__(self, app: ASGIApp, directory: Path):
        self.app = app
        self.files = StaticFiles(directory=directory, check_dir=False)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] in ("GET", "HEAD"):
            try:
                response = await self.files.get_response(self.files.get_path(scope), scope)
            except HTTPException as exc:
                if exc.status_code != 404:
                    raise
            except ValueError:
                pass  # Not a usable file path (e.g. embedded NUL byte)
            else:
                await response(scope, receive, send)
                return
        await self.app(scope, receive, send)
