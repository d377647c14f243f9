"""
Pydantic schemas for the account endpoints.
Field names follow the camelCase JSON the frontend sends.
"""
from pydantic import BaseModel


class LoginIn(BaseModel):
    userName: str
    password: str
    rememberMe: bool = False


class RegisterIn(BaseModel):
    userName: str
    email: str
    password: str
    phoneNumber: str | None = None  # Optional; a welcome SMS is sent when present


class ForgotPasswordIn(BaseModel):
    email: str


class ResetPasswordIn(BaseModel):
    email: str
    code: str  # Token from the reset email
    password: str
