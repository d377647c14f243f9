"""
Identity managers: users, roles and password sign-in.

Managers are cheap and hold no per-request state; the service container builds
a new one whenever a request handler or startup step asks for it.
"""
import datetime as dt
import logging
import uuid
from typing import Callable

from starlette.responses import Response

from mvcmovie.core.security import create_cookie_token, hash_password, utc_now, verify_password
from mvcmovie.identity.options import IdentityOptions
from mvcmovie.identity.results import IdentityError, IdentityResult, SignInResult
from mvcmovie.identity.tokens import (
    CONFIRM_EMAIL_PURPOSE,
    RESET_PASSWORD_PURPOSE,
    DataProtectorTokenProvider,
)
from mvcmovie.identity.validators import PasswordValidator, UserValidator
from mvcmovie.models.user import Role, User

logger = logging.getLogger(__name__)

Clock = Callable[[], dt.datetime]


def normalize(value: str | None) -> str | None:
    """Lookup key for names and emails (case-insensitive uniqueness)."""
    return value.upper() if value else value


class UserManager:
    def __init__(
        self,
        options: IdentityOptions,
        token_providers: dict[str, DataProtectorTokenProvider],
        clock: Clock = utc_now,
    ):
        self.options = options
        self.password_validator = PasswordValidator(options.password)
        self.user_validator = UserValidator(options.user)
        self.token_providers = token_providers
        self._clock = clock

    # -------- lookup --------
    async def find_by_name(self, user_name: str | None) -> User | None:
        if not user_name:
            return None
        return await User.get_or_none(normalized_user_name=normalize(user_name))

    async def find_by_email(self, email: str | None) -> User | None:
        if not email:
            return None
        return await User.filter(normalized_email=normalize(email)).first()

    async def find_by_id(self, user_id: str | None) -> User | None:
        try:
            parsed = uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await User.get_or_none(id=parsed)

    # -------- create --------
    async def _validate_user(self, user_name: str | None, email: str | None) -> IdentityResult:
        name_taken = bool(user_name) and await User.filter(
            normalized_user_name=normalize(user_name)
        ).exists()
        email_taken = False
        if self.options.user.require_unique_email and email:
            email_taken = await User.filter(normalized_email=normalize(email)).exists()
        return self.user_validator.validate(
            user_name, email, user_name_taken=name_taken, email_taken=email_taken
        )

    async def create(
        self,
        user_name: str,
        email: str | None = None,
        password: str | None = None,
        phone_number: str | None = None,
    ) -> tuple[IdentityResult, User | None]:
        """
        Validate and store a new user.

        Returns the result and the created user (None when validation failed).
        User and password errors are reported together.
        """
        errors = list((await self._validate_user(user_name, email)).errors)
        if password is not None:
            errors.extend(self.password_validator.validate(password).errors)
        if errors:
            return IdentityResult.failed(*errors), None

        user = await User.create(
            user_name=user_name,
            normalized_user_name=normalize(user_name),
            email=email or None,
            normalized_email=normalize(email) or None,
            phone_number=phone_number or None,
            password_hash=hash_password(password) if password is not None else None,
            lockout_enabled=self.options.lockout.allowed_for_new_users,
        )
        logger.info("[identity] created user %s (%s)", user.user_name, user.id)
        return IdentityResult.success(), user

    # -------- password --------
    def check_password(self, user: User, password: str) -> bool:
        return verify_password(password, user.password_hash)

    async def update_security_stamp(self, user: User) -> None:
        user.security_stamp = uuid.uuid4().hex
        await user.save(update_fields=["security_stamp"])

    # -------- roles --------
    async def add_to_role(self, user: User, role_name: str) -> IdentityResult:
        role = await Role.get_or_none(normalized_name=normalize(role_name))
        if role is None:
            return IdentityResult.failed(
                IdentityError("RoleNotFound", f"Role {role_name} does not exist.")
            )
        if await user.roles.filter(id=role.id).exists():
            return IdentityResult.failed(
                IdentityError("UserAlreadyInRole", f"User already in role '{role_name}'.")
            )
        await user.roles.add(role)
        return IdentityResult.success()

    async def get_roles(self, user: User) -> list[str]:
        return [role.name for role in await user.roles.all().order_by("name")]

    async def is_in_role(self, user: User, role_name: str) -> bool:
        return await user.roles.filter(normalized_name=normalize(role_name)).exists()

    # -------- lockout --------
    def is_locked_out(self, user: User) -> bool:
        if not user.lockout_enabled or user.lockout_end is None:
            return False
        return user.lockout_end > self._clock()

    async def access_failed(self, user: User) -> None:
        """
        Record a failed access attempt. Reaching the configured maximum locks the
        account for the lockout timespan counted from now and resets the counter.
        """
        lockout = self.options.lockout
        user.access_failed_count += 1
        if user.access_failed_count >= lockout.max_failed_access_attempts:
            user.lockout_end = self._clock() + lockout.default_lockout_timespan
            user.access_failed_count = 0
            logger.warning("[identity] user %s locked out until %s",
                           user.user_name, user.lockout_end.isoformat())
        await user.save(update_fields=["access_failed_count", "lockout_end"])

    async def reset_access_failed_count(self, user: User) -> None:
        if user.access_failed_count:
            user.access_failed_count = 0
            await user.save(update_fields=["access_failed_count"])

    # -------- tokens --------
    def _provider(self, name: str) -> DataProtectorTokenProvider:
        try:
            return self.token_providers[name]
        except KeyError:
            raise LookupError(f"No token provider named {name!r} is registered") from None

    def generate_password_reset_token(self, user: User) -> str:
        provider = self._provider(self.options.tokens.password_reset_token_provider)
        return provider.generate(RESET_PASSWORD_PURPOSE, user)

    def generate_email_confirmation_token(self, user: User) -> str:
        provider = self._provider(self.options.tokens.email_confirmation_token_provider)
        return provider.generate(CONFIRM_EMAIL_PURPOSE, user)

    async def reset_password(self, user: User, token: str, new_password: str) -> IdentityResult:
        provider = self._provider(self.options.tokens.password_reset_token_provider)
        if not provider.validate(RESET_PASSWORD_PURPOSE, token, user):
            return IdentityResult.failed(IdentityError("InvalidToken", "Invalid token."))
        result = self.password_validator.validate(new_password)
        if not result.succeeded:
            return result
        user.password_hash = hash_password(new_password)
        user.security_stamp = uuid.uuid4().hex
        await user.save(update_fields=["password_hash", "security_stamp"])
        return IdentityResult.success()

    async def confirm_email(self, user: User, token: str) -> IdentityResult:
        provider = self._provider(self.options.tokens.email_confirmation_token_provider)
        if not provider.validate(CONFIRM_EMAIL_PURPOSE, token, user):
            return IdentityResult.failed(IdentityError("InvalidToken", "Invalid token."))
        user.email_confirmed = True
        await user.save(update_fields=["email_confirmed"])
        return IdentityResult.success()


class RoleManager:
    async def find_by_name(self, role_name: str) -> Role | None:
        return await Role.get_or_none(normalized_name=normalize(role_name))

    async def role_exists(self, role_name: str) -> bool:
        return await Role.filter(normalized_name=normalize(role_name)).exists()

    async def create(self, role_name: str) -> IdentityResult:
        if not role_name:
            return IdentityResult.failed(
                IdentityError("InvalidRoleName", "Role name '' is invalid.")
            )
        if await self.role_exists(role_name):
            return IdentityResult.failed(
                IdentityError("DuplicateRoleName", f"Role name '{role_name}' is already taken.")
            )
        await Role.create(name=role_name, normalized_name=normalize(role_name))
        logger.info("[identity] created role %s", role_name)
        return IdentityResult.success()


class SignInManager:
    """Password checks with lockout accounting, plus issuing/clearing the identity cookie."""

    def __init__(self, user_manager: UserManager, options: IdentityOptions, signing_key: str):
        self.users = user_manager
        self.options = options
        self._signing_key = signing_key

    async def check_password_sign_in(
        self, user: User, password: str, lockout_on_failure: bool = True
    ) -> SignInResult:
        if self.users.is_locked_out(user):
            logger.warning("[identity] user %s is currently locked out", user.user_name)
            return SignInResult.LOCKED_OUT
        if self.users.check_password(user, password):
            await self.users.reset_access_failed_count(user)
            return SignInResult.SUCCEEDED
        if lockout_on_failure:
            await self.users.access_failed(user)
            if self.users.is_locked_out(user):
                return SignInResult.LOCKED_OUT
        return SignInResult.FAILED

    async def password_sign_in(
        self,
        response: Response,
        user_name: str,
        password: str,
        is_persistent: bool = False,
        lockout_on_failure: bool = True,
    ) -> SignInResult:
        user = await self.users.find_by_name(user_name)
        if user is None:
            return SignInResult.FAILED
        result = await self.check_password_sign_in(user, password, lockout_on_failure)
        if result is SignInResult.SUCCEEDED:
            await self.sign_in(response, user, is_persistent)
        return result

    async def sign_in(self, response: Response, user: User, is_persistent: bool = False) -> None:
        cookies = self.options.cookies
        roles = await self.users.get_roles(user)
        token = create_cookie_token(
            str(user.id), user.user_name, roles, self._signing_key, cookies.expire_timespan
        )
        response.set_cookie(
            cookies.cookie_name,
            token,
            max_age=int(cookies.expire_timespan.total_seconds()) if is_persistent else None,
            path="/",
            secure=cookies.secure,
            httponly=cookies.http_only,
            samesite=cookies.same_site,
        )

    def sign_out(self, response: Response) -> None:
        cookies = self.options.cookies
        response.delete_cookie(
            cookies.cookie_name,
            path="/",
            secure=cookies.secure,
            httponly=cookies.http_only,
            samesite=cookies.same_site,
        )
