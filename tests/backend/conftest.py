import json
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from mvcmovie.config import HostingEnvironment
from mvcmovie.core.db import tortoise_config
from mvcmovie.startup import create_app


TEST_DB_URL = "sqlite://:memory:"

TEST_SETTINGS = {
    "ConnectionStrings": {"DefaultConnection": TEST_DB_URL},
    "Database": {"GenerateSchemas": True},
    "Authentication": {
        "Cookie": {"SigningKey": "test-signing-key"},
        "Google": {"ClientId": "test-google-id", "ClientSecret": "test-google-secret"},
    },
}


def write_settings(content_root, settings: dict, name: str = "appsettings.json") -> None:
    (content_root / name).write_text(json.dumps(settings), encoding="utf-8")


@pytest.fixture
def content_root(tmp_path):
    """
    Content root with appsettings.json (in-memory SQLite, schemas generated on
    startup, Google configured, Facebook not) and a wwwroot with one stylesheet.
    """
    write_settings(tmp_path, TEST_SETTINGS)
    css = tmp_path / "wwwroot" / "css"
    css.mkdir(parents=True)
    (css / "site.css").write_text("body { padding-top: 50px; }\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def make_app(content_root):
    """
    Factory building the application for a given environment name.
    Process environment variables and real user secrets are never read.
    """

    def _make_app(environment: str = "Production", environ: dict | None = None):
        env = HostingEnvironment(name=environment, content_root=content_root)
        return create_app(env, environ=environ or {}, user_secrets_path=content_root / "secrets.env")

    return _make_app


@pytest_asyncio.fixture
async def app(make_app):
    """
    Production application with its lifespan running (database connected,
    movies and roles seeded).
    """
    application = make_app()
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app):
    """
    Provide an HTTPX AsyncClient bound to the running app over https.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def db():
    """
    Bare in-memory database for tests that drive managers directly.
    """
    await Tortoise.init(config=tortoise_config(TEST_DB_URL))
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user(app):
    """
    Factory fixture creating users through the user manager, optionally in roles.
    """

    async def _create_user(password: str = "UserPass123", roles: tuple[str, ...] = ("Customer",)):
        users = app.state.container.user_manager()
        user_name = f"user-{uuid.uuid4().hex[:6]}"
        result, user = await users.create(
            user_name, email=f"{user_name}@example.com", password=password
        )
        assert result.succeeded, str(result)
        for role in roles:
            assert (await users.add_to_role(user, role)).succeeded
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def login(client):
    """
    Helper fixture logging in through /Account/LogIn; the identity cookie
    stays in the client's cookie jar.
    """

    async def _login(user_name: str, password: str):
        resp = await client.post(
            "/Account/LogIn", json={"userName": user_name, "password": password}
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["success"] is True, resp.text
        return resp

    return _login


class RecordingSender:
    """Captures outgoing email and SMS instead of logging them."""

    def __init__(self):
        self.emails: list[tuple[str, str, str]] = []
        self.sms: list[tuple[str, str]] = []

    async def send_email(self, email: str, subject: str, message: str) -> None:
        self.emails.append((email, subject, message))

    async def send_sms(self, number: str, message: str) -> None:
        self.sms.append((number, message))


@pytest.fixture
def outbox(app):
    """Route the app's email/SMS senders to a single recorder."""
    sender = RecordingSender()
    container = app.state.container
    container.email_sender = lambda: sender
    container.sms_sender = lambda: sender
    return sender
