"""
Identity subsystem: user accounts, roles, password rules, lockout,
identity cookie and purpose tokens, backed by the Tortoise models in
mvcmovie.models.user.
"""
from .managers import RoleManager, SignInManager, UserManager
from .options import (
    CookieOptions,
    IdentityOptions,
    LockoutOptions,
    PasswordOptions,
    TokenOptions,
    UserOptions,
)
from .results import IdentityError, IdentityResult, SignInResult
from .tokens import DataProtectorTokenProvider, default_token_providers
from .validators import PasswordValidator, UserValidator

__all__ = [
    "CookieOptions",
    "DataProtectorTokenProvider",
    "IdentityError",
    "IdentityOptions",
    "IdentityResult",
    "LockoutOptions",
    "PasswordOptions",
    "PasswordValidator",
    "RoleManager",
    "SignInManager",
    "SignInResult",
    "TokenOptions",
    "UserManager",
    "UserOptions",
    "UserValidator",
    "default_token_providers",
]
