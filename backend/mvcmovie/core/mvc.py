"""
MVC options, global filters and the controller dispatcher behind the default route.

Per request: match the route template, resolve controller and action, run the
global filters, enforce the action's authorization, then invoke the action.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol
from urllib.parse import urlencode

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from mvcmovie.controllers.base import BindingError, Controller
from mvcmovie.core.authorization import AuthorizationOptions
from mvcmovie.core.routing import RouteTemplate
from mvcmovie.identity.options import CookieOptions

logger = logging.getLogger(__name__)


class ActionFilter(Protocol):
    async def on_authorization(self, request: Request) -> Response | None: ...


class RequireHttpsFilter:
    """
    Redirects GET/HEAD requests made over plain HTTP to HTTPS on ``ssl_port``;
    other methods are refused with 403 since they cannot be replayed safely.
    """

    def __init__(self, ssl_port: int | None = None):
        self.ssl_port = ssl_port

    async def on_authorization(self, request: Request) -> Response | None:
        if request.url.scheme == "https":
            return None
        if request.method not in ("GET", "HEAD"):
            return JSONResponse(
                {"success": False, "error": {"code": "HTTPS_REQUIRED",
                                             "message": "HTTPS is required"}},
                status_code=403,
            )
        host = request.url.hostname or "localhost"
        port = "" if self.ssl_port in (None, 443) else f":{self.ssl_port}"
        return RedirectResponse(str(request.url.replace(scheme="https", netloc=f"{host}{port}")),
                                status_code=302)


@dataclass
class MvcOptions:
    ssl_port: int | None = None
    filters: list[ActionFilter] = field(default_factory=list)


def _envelope(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": {"code": code, "message": message}},
                        status_code=status_code)


class ControllerDispatcher:
    def __init__(
        self,
        route: RouteTemplate,
        controllers: Iterable[type[Controller]],
        mvc: MvcOptions,
        authorization: AuthorizationOptions,
        cookies: CookieOptions,
    ):
        self.route = route
        self.controllers = {c.name.lower(): c for c in controllers}
        self.mvc = mvc
        self.authorization = authorization
        self.cookies = cookies

    def _redirect_with_return_url(self, request: Request, path: str) -> RedirectResponse:
        return_url = request.url.path
        if request.url.query:
            return_url += "?" + request.url.query
        query = urlencode({self.cookies.return_url_parameter: return_url})
        return RedirectResponse(f"{path}?{query}", status_code=302)

    def challenge(self, request: Request) -> Response:
        if self.cookies.automatic_challenge:
            return self._redirect_with_return_url(request, self.cookies.login_path)
        return _envelope("AUTH_REQUIRED", "Authentication required", 401)

    def forbid(self, request: Request) -> Response:
        if self.cookies.automatic_challenge:
            return self._redirect_with_return_url(request, self.cookies.access_denied_path)
        return _envelope("FORBIDDEN", "Access denied", 403)

    async def dispatch(self, request: Request) -> Response:
        values = self.route.match(request.url.path)
        if values is None:
            return _envelope("NOT_FOUND", "No route matches the request", 404)
        controller_cls = self.controllers.get(values.get("controller", "").lower())
        if controller_cls is None:
            return _envelope("NOT_FOUND", f"Unknown controller {values.get('controller')!r}", 404)

        action_name = values.get("action", "")
        method = "GET" if request.method == "HEAD" else request.method
        found = controller_cls.find_action(action_name, method)
        if found is None:
            if controller_cls.has_action(action_name):
                return _envelope("METHOD_NOT_ALLOWED", f"{request.method} is not allowed", 405)
            return _envelope("NOT_FOUND", f"Unknown action {action_name!r}", 404)
        attr, descriptor = found

        for action_filter in self.mvc.filters:
            short_circuit = await action_filter.on_authorization(request)
            if short_circuit is not None:
                return short_circuit

        if descriptor.requires_authorization:
            user = request.user
            if not user.is_authenticated:
                return self.challenge(request)
            if descriptor.policy and not self.authorization.authorize(user, descriptor.policy):
                logger.info("[mvc] %s denied by policy %s", user.display_name, descriptor.policy)
                return self.forbid(request)

        controller = controller_cls(request, request.app.state.container)
        try:
            result = await getattr(controller, attr)(values.get("id"))
        except BindingError as exc:
            return _envelope("BAD_REQUEST", str(exc), 400)
        except ValidationError as exc:
            return JSONResponse(
                {"success": False, "error": {
                    "code": "BAD_REQUEST",
                    "message": "Request body failed validation",
                    "fields": [".".join(str(p) for p in e["loc"]) for e in exc.errors()],
                }},
                status_code=400,
            )
        if isinstance(result, Response):
            return result
        return JSONResponse(result)
