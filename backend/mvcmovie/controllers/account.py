# mvcmovie/controllers/account.py
import logging
import secrets
from urllib.parse import urlencode

from mvcmovie.controllers.base import Controller, action
from mvcmovie.core.authorization import CUSTOMER_ROLE
from mvcmovie.core.external_auth import SCOPE_KEY
from mvcmovie.identity.results import SignInResult
from mvcmovie.schemas.account import ForgotPasswordIn, LoginIn, RegisterIn, ResetPasswordIn

logger = logging.getLogger(__name__)


def _errors(result) -> list[dict]:
    return [e.to_dict() for e in result.errors]


class AccountController(Controller):
    @action("LogIn")
    async def log_in_form(self, id=None):
        """Login page stand-in: echoes where the user will be sent after logging in."""
        return self.ok({"returnUrl": self.request.query_params.get("ReturnUrl")})

    @action("LogIn", methods=["POST"])
    async def log_in(self, id=None):
        """
        Authenticate with user name and password.

        Failed attempts count towards lockout. On success the identity cookie is set
        on the response; rememberMe makes it persistent for the cookie lifetime.

        Error codes:
            - AUTH_INVALID_CREDENTIALS: Unknown user or wrong password
            - ACCOUNT_LOCKED_OUT: Too many failed attempts; retry after lockoutEnd
        """
        body = await self.bind(LoginIn)
        sign_in = self.container.sign_in_manager()
        response = self.ok({"userName": body.userName,
                            "returnUrl": self.request.query_params.get("ReturnUrl") or "/"})
        result = await sign_in.password_sign_in(
            response, body.userName, body.password, is_persistent=body.rememberMe
        )
        if result is SignInResult.LOCKED_OUT:
            user = await sign_in.users.find_by_name(body.userName)
            return self.fail("ACCOUNT_LOCKED_OUT", "This account has been locked out, please try again later.",
                             lockoutEnd=user.lockout_end.isoformat() if user and user.lockout_end else None)
        if result is not SignInResult.SUCCEEDED:
            return self.fail("AUTH_INVALID_CREDENTIALS", "Invalid login attempt.")

        logger.info("[account] %s logged in", body.userName)
        return response

    @action("Register", methods=["POST"])
    async def register(self, id=None):
        """
        Create an account in the Customer role and send the email confirmation link.

        Error codes:
            - REGISTRATION_FAILED: error list carries the individual identity errors
              (PasswordTooShort, PasswordRequiresDigit, DuplicateEmail, ...)
        """
        body = await self.bind(RegisterIn)
        users = self.container.user_manager()
        result, user = await users.create(
            body.userName, email=body.email, password=body.password, phone_number=body.phoneNumber
        )
        if not result.succeeded:
            return self.fail("REGISTRATION_FAILED", "Registration failed", errors=_errors(result))

        role_result = await users.add_to_role(user, CUSTOMER_ROLE)
        if not role_result.succeeded:
            logger.warning("[account] %s not added to %s: %s", user.user_name, CUSTOMER_ROLE, role_result)

        code = users.generate_email_confirmation_token(user)
        link = f"{str(self.request.base_url).rstrip('/')}/Account/ConfirmEmail?" + urlencode(
            {"userId": str(user.id), "code": code}
        )
        await self.container.email_sender().send_email(
            user.email, "Confirm your account",
            f"Please confirm your account by clicking this link: {link}",
        )
        if user.phone_number:
            await self.container.sms_sender().send_sms(
                user.phone_number, f"Welcome to MvcMovie, {user.user_name}!"
            )
        return self.ok({"id": str(user.id), "userName": user.user_name, "email": user.email})

    @action("ConfirmEmail")
    async def confirm_email(self, id=None):
        params = self.request.query_params
        users = self.container.user_manager()
        user = await users.find_by_id(params.get("userId"))
        if user is None or not params.get("code"):
            return self.fail("INVALID_CONFIRMATION", "Invalid confirmation link")
        result = await users.confirm_email(user, params["code"])
        if not result.succeeded:
            return self.fail("INVALID_CONFIRMATION", "Invalid confirmation link", errors=_errors(result))
        return self.ok({"emailConfirmed": True})

    @action("LogOff", methods=["POST"])
    async def log_off(self, id=None):
        response = self.ok(None)
        self.container.sign_in_manager().sign_out(response)
        return response

    @action("Forbidden")
    async def forbidden(self, id=None):
        return self.fail("FORBIDDEN", "You do not have access to this resource.",
                         returnUrl=self.request.query_params.get("ReturnUrl"))

    @action("ForgotPassword", methods=["POST"])
    async def forgot_password(self, id=None):
        """Always reports success so the response does not reveal whether the email exists."""
        body = await self.bind(ForgotPasswordIn)
        users = self.container.user_manager()
        user = await users.find_by_email(body.email)
        if user is not None:
            code = users.generate_password_reset_token(user)
            await self.container.email_sender().send_email(
                user.email, "Reset Password",
                f"Please reset your password with this code: {code}",
            )
        return self.ok({"sent": True})

    @action("ResetPassword", methods=["POST"])
    async def reset_password(self, id=None):
        body = await self.bind(ResetPasswordIn)
        users = self.container.user_manager()
        user = await users.find_by_email(body.email)
        if user is None:
            # Don't reveal that the user does not exist
            return self.ok({"reset": True})
        result = await users.reset_password(user, body.code, body.password)
        if not result.succeeded:
            return self.fail("RESET_FAILED", "Password reset failed", errors=_errors(result))
        return self.ok({"reset": True})

    @action("ExternalLogin")
    async def external_login(self, id=None):
        """Redirect to the external provider named by the id segment (e.g. /Account/ExternalLogin/Google)."""
        providers = self.request.scope.get(SCOPE_KEY) or {}
        provider = providers.get((id or "").lower())
        if provider is None:
            return self.fail("UNKNOWN_PROVIDER", f"Unknown external login provider {id!r}", status_code=404)
        url = provider.challenge_url(str(self.request.base_url), secrets.token_urlsafe(16))
        return self.redirect(url)
