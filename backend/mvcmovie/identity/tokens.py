"""Default token providers used for password reset and email confirmation."""
import datetime as dt
import logging
from typing import Callable

import jwt

from mvcmovie.core.security import create_purpose_token, decode_purpose_token, utc_now
from mvcmovie.models.user import User

logger = logging.getLogger(__name__)

RESET_PASSWORD_PURPOSE = "ResetPassword"
CONFIRM_EMAIL_PURPOSE = "EmailConfirmation"


class DataProtectorTokenProvider:
    """
    Signed, expiring tokens bound to (user id, purpose, security stamp).

    Rotating a user's security stamp invalidates every token issued before.
    """

    def __init__(
        self,
        signing_key: str,
        token_lifespan: dt.timedelta = dt.timedelta(days=1),
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self._signing_key = signing_key
        self.token_lifespan = token_lifespan
        self._clock = clock

    def generate(self, purpose: str, user: User) -> str:
        return create_purpose_token(
            str(user.id), purpose, user.security_stamp,
            self._signing_key, self.token_lifespan, now=self._clock(),
        )

    def validate(self, purpose: str, token: str, user: User) -> bool:
        try:
            payload = decode_purpose_token(token, self._signing_key)
        except jwt.InvalidTokenError as exc:
            logger.info("[tokens] rejected %s token for user %s: %s", purpose, user.id, exc)
            return False
        return (
            payload.get("sub") == str(user.id)
            and payload.get("purpose") == purpose
            and payload.get("stamp") == user.security_stamp
        )


def default_token_providers(
    signing_key: str, token_lifespan: dt.timedelta
) -> dict[str, DataProtectorTokenProvider]:
    return {"Default": DataProtectorTokenProvider(signing_key, token_lifespan)}
