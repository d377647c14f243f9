"""
Unit tests for password and user validation under the application's identity options.
"""
import pytest

from mvcmovie.identity.options import PasswordOptions, UserOptions
from mvcmovie.identity.validators import PasswordValidator, UserValidator, is_valid_email
from mvcmovie.startup import configure_identity_options


def codes(result) -> set[str]:
    return {error.code for error in result.errors}


@pytest.fixture
def validator():
    return PasswordValidator(configure_identity_options().password)


class TestPasswordRules:
    """Digit and uppercase required, minimum length 8, lowercase and symbols optional."""

    @pytest.mark.parametrize("password", ["Password1", "PASSWORD1", "Abcdefg1", "ZZZZZZZ9"])
    def test_accepts(self, validator, password):
        assert validator.validate(password).succeeded

    def test_rejects_missing_digit(self, validator):
        assert codes(validator.validate("Password")) == {"PasswordRequiresDigit"}

    def test_rejects_missing_uppercase(self, validator):
        assert codes(validator.validate("password1")) == {"PasswordRequiresUpper"}

    def test_rejects_short(self, validator):
        assert codes(validator.validate("Pass1")) == {"PasswordTooShort"}

    def test_reports_every_failure(self, validator):
        assert codes(validator.validate("")) == {
            "PasswordTooShort",
            "PasswordRequiresDigit",
            "PasswordRequiresUpper",
            "PasswordRequiresUniqueChars",
        }

    def test_non_ascii_letters_do_not_count(self, validator):
        assert codes(validator.validate("ÄBCDEFG1x")) == set()
        assert codes(validator.validate("ÄÖÜäöüß1")) == {"PasswordRequiresUpper"}

    def test_library_defaults_are_stricter(self):
        result = PasswordValidator(PasswordOptions()).validate("PASSWORD1")
        assert codes(result) == {"PasswordRequiresLower", "PasswordRequiresNonAlphanumeric"}


class TestUserRules:
    @pytest.fixture
    def users(self):
        return UserValidator(UserOptions(require_unique_email=True))

    def test_valid_user(self, users):
        assert users.validate("alice", "alice@example.com").succeeded

    def test_user_name_characters(self, users):
        assert codes(users.validate("bad name", "a@example.com")) == {"InvalidUserName"}
        assert codes(users.validate("", "a@example.com")) == {"InvalidUserName"}

    def test_duplicates(self, users):
        result = users.validate("alice", "alice@example.com", user_name_taken=True, email_taken=True)
        assert codes(result) == {"DuplicateUserName", "DuplicateEmail"}

    def test_email_required_when_unique(self, users):
        assert codes(users.validate("alice", None)) == {"InvalidEmail"}
        assert codes(users.validate("alice", "not-an-email")) == {"InvalidEmail"}

    def test_email_not_checked_when_uniqueness_is_off(self):
        users = UserValidator(UserOptions())
        assert users.validate("alice", None, email_taken=True).succeeded


@pytest.mark.parametrize(
    "email,valid",
    [("a@example.com", True), ("first.last@sub.example.org", True),
     ("no-at-sign", False), ("two@@example.com", False), ("a@", False)],
)
def test_is_valid_email(email, valid):
    assert is_valid_email(email) is valid
