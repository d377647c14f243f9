"""
Identity option objects.

All option models are frozen: they are written once during service registration
and read by the identity subsystem for the lifetime of the process.
"""
import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

ALLOWED_USER_NAME_CHARACTERS = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-._@+"
)


class _Options(BaseModel):
    model_config = ConfigDict(frozen=True)


class PasswordOptions(_Options):
    required_length: int = Field(default=6, ge=1)
    required_unique_chars: int = Field(default=1, ge=0)
    require_non_alphanumeric: bool = True
    require_lowercase: bool = True
    require_uppercase: bool = True
    require_digit: bool = True


class LockoutOptions(_Options):
    default_lockout_timespan: dt.timedelta = dt.timedelta(minutes=5)
    max_failed_access_attempts: int = Field(default=5, ge=1)
    allowed_for_new_users: bool = True


class CookieOptions(_Options):
    authentication_scheme: str = "Identity.Application"
    expire_timespan: dt.timedelta = dt.timedelta(days=14)
    login_path: str = "/Account/Login"
    logout_path: str = "/Account/Logout"
    access_denied_path: str = "/Account/AccessDenied"
    return_url_parameter: str = "ReturnUrl"
    automatic_authenticate: bool = True
    automatic_challenge: bool = True
    secure: bool = True
    http_only: bool = True
    same_site: str = "lax"

    @property
    def cookie_name(self) -> str:
        return f".MvcMovie.{self.authentication_scheme}"


class UserOptions(_Options):
    allowed_user_name_characters: str = ALLOWED_USER_NAME_CHARACTERS
    require_unique_email: bool = False


class TokenOptions(_Options):
    password_reset_token_provider: str = "Default"
    email_confirmation_token_provider: str = "Default"
    token_lifespan: dt.timedelta = dt.timedelta(days=1)


class IdentityOptions(_Options):
    password: PasswordOptions = PasswordOptions()
    lockout: LockoutOptions = LockoutOptions()
    cookies: CookieOptions = CookieOptions()
    user: UserOptions = UserOptions()
    tokens: TokenOptions = TokenOptions()
