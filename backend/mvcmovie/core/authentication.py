"""
Cookie authentication for the identity middleware stage.

The backend plugs into Starlette's AuthenticationMiddleware: a valid identity
cookie becomes ``request.user`` (an IdentityPrincipal); anything else leaves the
request anonymous.
"""
import logging

import jwt
from starlette.authentication import AuthCredentials, AuthenticationBackend, BaseUser
from starlette.requests import HTTPConnection

from mvcmovie.core.security import decode_cookie_token
from mvcmovie.identity.options import CookieOptions

logger = logging.getLogger(__name__)


class IdentityPrincipal(BaseUser):
    def __init__(self, user_id: str, user_name: str, roles: tuple[str, ...] = ()):
        self.id = user_id
        self.user_name = user_name
        self.roles = tuple(roles)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.user_name

    @property
    def identity(self) -> str:
        return self.id

    def is_in_role(self, role: str) -> bool:
        return role in self.roles


class CookieAuthenticationBackend(AuthenticationBackend):
    def __init__(self, options: CookieOptions, signing_key: str):
        self.options = options
        self._signing_key = signing_key

    async def authenticate(self, conn: HTTPConnection):
        if not self.options.automatic_authenticate:
            return None
        token = conn.cookies.get(self.options.cookie_name)
        if not token:
            return None
        try:
            payload = decode_cookie_token(token, self._signing_key)
        except jwt.InvalidTokenError as exc:
            logger.info("[auth] ignoring identity cookie: %s", exc)
            return None
        roles = tuple(payload.get("roles") or ())
        principal = IdentityPrincipal(str(payload.get("sub")), str(payload.get("name", "")), roles)
        return AuthCredentials(["authenticated", *roles]), principal
