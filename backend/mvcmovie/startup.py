"""
Application startup: configuration, service registration and pipeline assembly.

    startup = Startup(HostingEnvironment.from_environ())
    app = startup.configure(startup.configure_services())

Seeding (movies, then roles) runs in the application lifespan, after the
pipeline is assembled and before the server accepts requests.
"""
import datetime as dt
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Mapping

from fastapi import FastAPI
from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.errors import ServerErrorMiddleware

from mvcmovie.config import HostingEnvironment, build_configuration
from mvcmovie.container import ServiceContainer
from mvcmovie.controllers import CONTROLLERS
from mvcmovie.core.authentication import CookieAuthenticationBackend
from mvcmovie.core.authorization import ADMIN_ONLY_POLICY, ADMINISTRATOR_ROLE, AuthorizationOptions
from mvcmovie.core.bootstrap import DEFAULT_ROLE_NAMES, create_roles, seed_movies
from mvcmovie.core.db import Database
from mvcmovie.core.external_auth import (
    ExternalAuthenticationMiddleware,
    facebook_options,
    google_options,
)
from mvcmovie.core.logging_config import configure_logging
from mvcmovie.core.middleware import (
    DatabaseErrorPageMiddleware,
    DevLinkMiddleware,
    ExceptionHandlerMiddleware,
    StaticFilesMiddleware,
)
from mvcmovie.core.mvc import ControllerDispatcher, MvcOptions, RequireHttpsFilter
from mvcmovie.core.routing import DEFAULT_ROUTE_NAME, DEFAULT_ROUTE_TEMPLATE, RouteTemplate
from mvcmovie.core.security import DEFAULT_SIGNING_KEY
from mvcmovie.identity.options import (
    CookieOptions,
    IdentityOptions,
    LockoutOptions,
    PasswordOptions,
    UserOptions,
)
from mvcmovie.identity.tokens import default_token_providers
from mvcmovie.services.messaging import AuthMessageSender

logger = logging.getLogger(__name__)

APP_NAME = "MvcMovie"
SSL_PORT = 44321
ERROR_PATH = "/Home/Error"
DISPATCH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def configure_identity_options() -> IdentityOptions:
    return IdentityOptions(
        password=PasswordOptions(
            require_digit=True,
            required_length=8,
            require_non_alphanumeric=False,
            require_uppercase=True,
            require_lowercase=False,
        ),
        lockout=LockoutOptions(
            default_lockout_timespan=dt.timedelta(minutes=30),
            max_failed_access_attempts=5,
        ),
        cookies=CookieOptions(
            expire_timespan=dt.timedelta(days=150),
            login_path="/Account/LogIn",
            logout_path="/Account/LogOff",
            access_denied_path="/Account/Forbidden/",
            automatic_authenticate=True,
            automatic_challenge=True,
            authentication_scheme="Cookie",
        ),
        user=UserOptions(require_unique_email=True),
    )


class PipelineBuilder:
    """Ordered middleware stages; the first stage added is the outermost."""

    def __init__(self):
        self.names: list[str] = []
        self.middleware: list[Middleware] = []

    def use(self, name: str, middleware_class, **options) -> "PipelineBuilder":
        self.names.append(name)
        self.middleware.append(Middleware(middleware_class, **options))
        return self


class Startup:
    def __init__(
        self,
        env: HostingEnvironment,
        *,
        environ: Mapping[str, str] | None = None,
        user_secrets_path: Path | str | None = None,
    ):
        self.env = env
        # Malformed configuration raises ConfigurationError here, before any registration
        self.configuration = build_configuration(
            env, environ=environ, user_secrets_path=user_secrets_path
        )
        # Sinks go up first so warnings from service registration reach them
        self.logging_sinks = configure_logging(self.configuration.get_section("Logging"))

    def configure_services(self) -> ServiceContainer:
        config = self.configuration

        # 1) Authorization policies
        authorization = AuthorizationOptions()
        authorization.add_policy(ADMIN_ONLY_POLICY, require_roles=(ADMINISTRATOR_ROLE,))

        # 2) Persistence context (not connected until the lifespan starts)
        database = Database(
            config.get_connection_string("DefaultConnection"),
            generate_schemas=config.get_bool("Database:GenerateSchemas"),
        )

        # 3) Identity options
        identity_options = configure_identity_options()

        # 4) Identity subsystem: signing key + default token providers
        signing_key = config.get("Authentication:Cookie:SigningKey") or DEFAULT_SIGNING_KEY
        if signing_key == DEFAULT_SIGNING_KEY and not self.env.is_development:
            logger.warning("[startup] Authentication:Cookie:SigningKey not set; using the development key")
        token_providers = default_token_providers(signing_key, identity_options.tokens.token_lifespan)

        # 5) MVC: every action requires HTTPS on the fixed SSL port
        mvc = MvcOptions(ssl_port=SSL_PORT, filters=[RequireHttpsFilter(SSL_PORT)])

        # 6) Application services (transient: one sender per call)
        return ServiceContainer(
            configuration=config,
            authorization=authorization,
            database=database,
            identity_options=identity_options,
            token_providers=token_providers,
            signing_key=signing_key,
            mvc=mvc,
            email_sender=AuthMessageSender,
            sms_sender=AuthMessageSender,
        )

    def configure(self, services: ServiceContainer) -> FastAPI:
        config = self.configuration

        pipeline = PipelineBuilder()
        if self.env.is_development:
            pipeline.use("developer_exception_page", ServerErrorMiddleware, debug=True)
            pipeline.use("database_error_page", DatabaseErrorPageMiddleware)
            pipeline.use("dev_link", DevLinkMiddleware, environment=self.env.name, stages=pipeline.names)
        else:
            pipeline.use("exception_handler", ExceptionHandlerMiddleware, error_path=ERROR_PATH)

        pipeline.use("static_files", StaticFilesMiddleware, directory=self.env.web_root)

        cookies = services.identity_options.cookies
        pipeline.use("identity", AuthenticationMiddleware,
                     backend=CookieAuthenticationBackend(cookies, services.signing_key))

        for provider in (facebook_options(config), google_options(config)):
            if provider.missing_credentials:
                logger.warning("[startup] %s login mounted without %s; external logins will fail",
                               provider.name, ", ".join(provider.missing_credentials))
            pipeline.use(f"external:{provider.name.lower()}", ExternalAuthenticationMiddleware,
                         provider=provider)

        route = RouteTemplate.parse(DEFAULT_ROUTE_TEMPLATE)
        dispatcher = ControllerDispatcher(
            route, CONTROLLERS, services.mvc, services.authorization, cookies
        )

        env_name = self.env.name

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            await services.database.init()
            try:
                await seed_movies()
                await create_roles(services.role_manager(), DEFAULT_ROLE_NAMES)
                logger.info("[startup] %s ready (%s)", APP_NAME, env_name)
                yield
            finally:
                await services.database.close()

        app = FastAPI(
            title=APP_NAME,
            middleware=pipeline.middleware,
            lifespan=lifespan,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        app.state.container = services
        app.state.environment = self.env
        app.state.pipeline = tuple(pipeline.names)
        app.state.logging_sinks = tuple(self.logging_sinks)
        app.state.route = route
        app.add_route("/{path:path}", dispatcher.dispatch, methods=DISPATCH_METHODS,
                      name=DEFAULT_ROUTE_NAME, include_in_schema=False)

        # Instantiate every stage now so a broken stage fails startup, not the first request
        app.middleware_stack = app.build_middleware_stack()
        return app


def create_app(
    env: HostingEnvironment | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    user_secrets_path: Path | str | None = None,
) -> FastAPI:
    env = env or HostingEnvironment.from_environ(environ)
    startup = Startup(env, environ=environ, user_secrets_path=user_secrets_path)
    return startup.configure(startup.configure_services())
