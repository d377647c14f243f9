"""
External OAuth providers (Facebook, Google).

Each provider is mounted as its own pipeline stage which publishes the provider
to downstream handlers through ``scope["external_providers"]``. Credentials are
read from configuration at mount time but only checked when a login challenge
is issued, so a missing secret surfaces on the first external login attempt.

Only the challenge (redirect to the provider's authorize endpoint) is produced
here; the callback/token exchange leg is not handled by this application.
"""
from dataclasses import dataclass, field
from urllib.parse import urlencode

from starlette.types import ASGIApp, Receive, Scope, Send

from mvcmovie.config import Configuration

SCOPE_KEY = "external_providers"


class ExternalProviderNotConfigured(RuntimeError):
    def __init__(self, provider: str, missing: list[str]):
        self.provider = provider
        self.missing = missing
        super().__init__(
            f"External login provider {provider} is missing configuration: {', '.join(missing)}"
        )


@dataclass(frozen=True)
class ExternalProviderOptions:
    name: str
    authorization_endpoint: str
    callback_path: str
    client_id_key: str
    client_secret_key: str
    client_id: str | None = None
    client_secret: str | None = field(default=None, repr=False)
    scopes: tuple[str, ...] = ()

    @property
    def missing_credentials(self) -> list[str]:
        missing = []
        if not self.client_id:
            missing.append(self.client_id_key)
        if not self.client_secret:
            missing.append(self.client_secret_key)
        return missing

    def challenge_url(self, base_url: str, state: str) -> str:
        """Authorize URL the browser is redirected to; raises when credentials are absent."""
        missing = self.missing_credentials
        if missing:
            raise ExternalProviderNotConfigured(self.name, missing)
        query = {
            "client_id": self.client_id,
            "redirect_uri": base_url.rstrip("/") + self.callback_path,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{self.authorization_endpoint}?{urlencode(query)}"


def facebook_options(configuration: Configuration) -> ExternalProviderOptions:
    id_key, secret_key = "Authentication:Facebook:AppId", "Authentication:Facebook:AppSecret"
    return ExternalProviderOptions(
        name="Facebook",
        authorization_endpoint="https://www.facebook.com/v2.6/dialog/oauth",
        callback_path="/signin-facebook",
        client_id_key=id_key,
        client_secret_key=secret_key,
        client_id=configuration.get(id_key) or None,
        client_secret=configuration.get(secret_key) or None,
        scopes=("email",),
    )


def google_options(configuration: Configuration) -> ExternalProviderOptions:
    id_key, secret_key = "Authentication:Google:ClientId", "Authentication:Google:ClientSecret"
    return ExternalProviderOptions(
        name="Google",
        authorization_endpoint="https://accounts.google.com/o/oauth2/auth",
        callback_path="/signin-google",
        client_id_key=id_key,
        client_secret_key=secret_key,
        client_id=configuration.get(id_key) or None,
        client_secret=configuration.get(secret_key) or None,
        scopes=("openid", "profile", "email"),
    )


class ExternalAuthenticationMiddleware:
    def __init__(self, app: ASGIApp, provider: ExternalProviderOptions):
        self.app = app
        self.provider = provider

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            providers = dict(scope.get(SCOPE_KEY) or {})
            providers[self.provider.name.lower()] = self.provider
            scope[SCOPE_KEY] = providers
        await self.app(scope, receive, send)
