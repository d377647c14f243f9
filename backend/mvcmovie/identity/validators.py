"""
Password and user validation rules.

Character classes are ASCII only: a non-ASCII letter never satisfies the
lowercase/uppercase/digit rules but does count as non-alphanumeric.
"""
from mvcmovie.identity.options import PasswordOptions, UserOptions
from mvcmovie.identity.results import IdentityError, IdentityResult


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_lower(c: str) -> bool:
    return "a" <= c <= "z"


def _is_upper(c: str) -> bool:
    return "A" <= c <= "Z"


def _is_letter_or_digit(c: str) -> bool:
    return _is_upper(c) or _is_lower(c) or _is_digit(c)


class PasswordValidator:
    def __init__(self, options: PasswordOptions):
        self.options = options

    def validate(self, password: str | None) -> IdentityResult:
        """Check ``password`` against every configured rule and report all failures."""
        opts = self.options
        password = password or ""
        errors: list[IdentityError] = []

        if len(password) < opts.required_length:
            errors.append(IdentityError(
                "PasswordTooShort",
                f"Passwords must be at least {opts.required_length} characters.",
            ))
        if opts.require_non_alphanumeric and all(_is_letter_or_digit(c) for c in password):
            errors.append(IdentityError(
                "PasswordRequiresNonAlphanumeric",
                "Passwords must have at least one non alphanumeric character.",
            ))
        if opts.require_digit and not any(_is_digit(c) for c in password):
            errors.append(IdentityError(
                "PasswordRequiresDigit", "Passwords must have at least one digit ('0'-'9')."
            ))
        if opts.require_lowercase and not any(_is_lower(c) for c in password):
            errors.append(IdentityError(
                "PasswordRequiresLower", "Passwords must have at least one lowercase ('a'-'z')."
            ))
        if opts.require_uppercase and not any(_is_upper(c) for c in password):
            errors.append(IdentityError(
                "PasswordRequiresUpper", "Passwords must have at least one uppercase ('A'-'Z')."
            ))
        if opts.required_unique_chars >= 1 and len(set(password)) < opts.required_unique_chars:
            errors.append(IdentityError(
                "PasswordRequiresUniqueChars",
                f"Passwords must use at least {opts.required_unique_chars} different characters.",
            ))

        if errors:
            return IdentityResult.failed(*errors)
        return IdentityResult.success()


def is_valid_email(email: str) -> bool:
    # One "@" with something on both sides
    return email.count("@") == 1 and not email.startswith("@") and not email.endswith("@")


class UserValidator:
    """
    Stateless checks on user name and email shape. Uniqueness needs the store
    and is checked by the UserManager, which passes the clashing flags in.
    """

    def __init__(self, options: UserOptions):
        self.options = options

    def validate(
        self,
        user_name: str | None,
        email: str | None,
        *,
        user_name_taken: bool = False,
        email_taken: bool = False,
    ) -> IdentityResult:
        errors: list[IdentityError] = []
        allowed = self.options.allowed_user_name_characters

        if not user_name or (allowed and any(c not in allowed for c in user_name)):
            errors.append(IdentityError(
                "InvalidUserName",
                f"User name '{user_name or ''}' is invalid, can only contain letters or digits.",
            ))
        elif user_name_taken:
            errors.append(IdentityError(
                "DuplicateUserName", f"User name '{user_name}' is already taken."
            ))

        if self.options.require_unique_email:
            if not email or not is_valid_email(email):
                errors.append(IdentityError("InvalidEmail", f"Email '{email or ''}' is invalid."))
            elif email_taken:
                errors.append(IdentityError("DuplicateEmail", f"Email '{email}' is already taken."))

        if errors:
            return IdentityResult.failed(*errors)
        return IdentityResult.success()
