"""
Security module for authentication.
Handles password hashing and the signed JWT payloads carried by the identity
cookie and by purpose tokens (password reset, email confirmation).
"""
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

DEFAULT_SIGNING_KEY = "dev-secret"  # Use a strong secret outside development
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)


def utc_now() -> dt.datetime:
    """Current UTC datetime with timezone information."""
    return dt.datetime.now(dt.timezone.utc)


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Never store plain text passwords. Always use this function before saving.
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Verify a plain text password against a stored hash (False when no hash is stored)."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_cookie_token(
    user_id: str,
    user_name: str,
    roles: list[str],
    signing_key: str,
    expires_in: dt.timedelta,
    now: dt.datetime | None = None,
) -> str:
    """
    Create the signed value stored in the identity cookie.

    The roles are embedded so authorization policies can be evaluated without a
    database query on every request.

    Token payload includes:
        - sub: Subject (user ID)
        - name: User name
        - roles: Role names at sign-in time
        - iat / exp: Issued at / expiration timestamps
    """
    now = now or utc_now()
    payload = {
        "sub": user_id,
        "name": user_name,
        "roles": list(roles),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, signing_key, algorithm=JWT_ALG)


def decode_cookie_token(token: str, signing_key: str) -> dict:
    """
    Decode and validate an identity cookie value.

    Raises:
        jwt.ExpiredSignatureError: If the cookie has expired
        jwt.InvalidTokenError: If it is invalid or malformed
    """
    return jwt.decode(token, signing_key, algorithms=[JWT_ALG])


def create_purpose_token(
    user_id: str,
    purpose: str,
    security_stamp: str,
    signing_key: str,
    expires_in: dt.timedelta,
    now: dt.datetime | None = None,
) -> str:
    """Sign a single-purpose token bound to the user's current security stamp."""
    now = now or utc_now()
    payload = {
        "sub": user_id,
        "purpose": purpose,
        "stamp": security_stamp,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, signing_key, algorithm=JWT_ALG)


def decode_purpose_token(token: str, signing_key: str) -> dict:
    return jwt.decode(token, signing_key, algorithms=[JWT_ALG])
