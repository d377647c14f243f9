from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from mvcmovie.config import Configuration
from mvcmovie.core.authorization import AuthorizationOptions
from mvcmovie.core.db import Database
from mvcmovie.core.mvc import MvcOptions
from mvcmovie.identity.managers import RoleManager, SignInManager, UserManager
from mvcmovie.identity.options import IdentityOptions
from mvcmovie.identity.tokens import DataProtectorTokenProvider
from mvcmovie.services.messaging import EmailSender, SmsSender


@dataclass
class ServiceContainer:
    """
    Everything the request pipeline needs, wired explicitly at startup.

    Managers and senders are exposed as factories: each call returns a fresh
    instance, so nothing request-specific is shared between requests.
    """
    configuration: Configuration
    authorization: AuthorizationOptions
    database: Database
    identity_options: IdentityOptions
    token_providers: dict[str, DataProtectorTokenProvider]
    signing_key: str
    mvc: MvcOptions
    email_sender: Callable[[], EmailSender]
    sms_sender: Callable[[], SmsSender]

    def user_manager(self) -> UserManager:
        return UserManager(self.identity_options, self.token_providers)

    def role_manager(self) -> RoleManager:
        return RoleManager()

    def sign_in_manager(self) -> SignInManager:
        return SignInManager(self.user_manager(), self.identity_options, self.signing_key)
