"""
Unit tests for service registration (Startup.configure_services).
Registration only records configuration; nothing connects or sends.
"""
import datetime as dt
import json

import pytest
from pydantic import ValidationError
from starlette.authentication import UnauthenticatedUser

from mvcmovie.config import ConfigurationError, HostingEnvironment
from mvcmovie.core.authentication import IdentityPrincipal
from mvcmovie.core.authorization import ADMIN_ONLY_POLICY, AuthorizationOptions
from mvcmovie.core.db import Database
from mvcmovie.core.mvc import RequireHttpsFilter
from mvcmovie.core.security import DEFAULT_SIGNING_KEY
from mvcmovie.services.messaging import AuthMessageSender
from mvcmovie.startup import SSL_PORT, Startup


@pytest.fixture
def services(tmp_path):
    settings = {"ConnectionStrings": {"DefaultConnection": "sqlite://movies.db"}}
    (tmp_path / "appsettings.json").write_text(json.dumps(settings), encoding="utf-8")
    startup = Startup(HostingEnvironment("Production", tmp_path), environ={})
    return startup.configure_services()


class TestAuthorization:
    def test_admin_only_requires_administrator(self, services):
        policy = services.authorization.get_policy(ADMIN_ONLY_POLICY)
        assert policy.required_roles == ("Administrator",)

    def test_admin_only_evaluation(self, services):
        admin = IdentityPrincipal("1", "root", ("Administrator",))
        customer = IdentityPrincipal("2", "carol", ("Customer",))
        assert services.authorization.authorize(admin, ADMIN_ONLY_POLICY)
        assert not services.authorization.authorize(customer, ADMIN_ONLY_POLICY)
        assert not services.authorization.authorize(UnauthenticatedUser(), ADMIN_ONLY_POLICY)

    def test_policy_names_are_unique(self):
        options = AuthorizationOptions()
        options.add_policy("AdminOnly", require_roles=("Administrator",))
        with pytest.raises(ValueError):
            options.add_policy("AdminOnly")

    def test_unknown_policy(self, services):
        with pytest.raises(LookupError):
            services.authorization.get_policy("Nope")


class TestIdentityOptions:
    def test_password_rules(self, services):
        password = services.identity_options.password
        assert password.require_digit is True
        assert password.required_length == 8
        assert password.require_non_alphanumeric is False
        assert password.require_uppercase is True
        assert password.require_lowercase is False

    def test_lockout(self, services):
        lockout = services.identity_options.lockout
        assert lockout.default_lockout_timespan == dt.timedelta(minutes=30)
        assert lockout.max_failed_access_attempts == 5

    def test_cookies(self, services):
        cookies = services.identity_options.cookies
        assert cookies.expire_timespan == dt.timedelta(days=150)
        assert cookies.login_path == "/Account/LogIn"
        assert cookies.logout_path == "/Account/LogOff"
        assert cookies.access_denied_path == "/Account/Forbidden/"
        assert cookies.automatic_authenticate and cookies.automatic_challenge
        assert cookies.authentication_scheme == "Cookie"
        assert cookies.cookie_name == ".MvcMovie.Cookie"

    def test_unique_email(self, services):
        assert services.identity_options.user.require_unique_email is True

    def test_options_are_immutable(self, services):
        with pytest.raises(ValidationError):
            services.identity_options.password.required_length = 4


class TestRegistrations:
    def test_database_uses_default_connection(self, services):
        assert services.database.connection_string == "sqlite://movies.db"
        assert services.database.generate_schemas is False

    def test_mvc_requires_https_on_fixed_port(self, services):
        assert services.mvc.ssl_port == SSL_PORT == 44321
        assert any(isinstance(f, RequireHttpsFilter) for f in services.mvc.filters)

    def test_default_token_provider(self, services):
        assert set(services.token_providers) == {"Default"}

    def test_senders_are_transient(self, services):
        first, second = services.email_sender(), services.email_sender()
        assert isinstance(first, AuthMessageSender)
        assert first is not second
        assert isinstance(services.sms_sender(), AuthMessageSender)

    def test_managers_are_built_per_call(self, services):
        assert services.user_manager() is not services.user_manager()
        assert services.sign_in_manager().users.options is services.identity_options

    def test_signing_key_falls_back_to_development_key(self, services):
        assert services.signing_key == DEFAULT_SIGNING_KEY

    def test_signing_key_from_configuration(self, tmp_path):
        startup = Startup(HostingEnvironment("Production", tmp_path),
                          environ={"Authentication__Cookie__SigningKey": "k"})
        assert startup.configure_services().signing_key == "k"


def test_missing_connection_string_surfaces_on_use():
    database = Database(None)
    with pytest.raises(ConfigurationError):
        database.config
