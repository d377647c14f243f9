# mvcmovie/models/user.py
"""
Database models for the identity store.
Users, roles and the user/role membership table.
"""
import uuid
from tortoise import fields, models


class Role(models.Model):
    """
    Named authorization group (e.g. "Administrator", "Customer").
    The normalized (upper-cased) name is unique.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=256)
    normalized_name = fields.CharField(max_length=256, unique=True, index=True)
    concurrency_stamp = fields.CharField(max_length=64, default=lambda: uuid.uuid4().hex)

    class Meta:
        table = "roles"


class User(models.Model):
    """
    User database model.

    Security:
    - Password is stored as a hash (never store plain text passwords)
    - User name (normalized) must be unique across all users
    - security_stamp changes whenever credentials change; tokens bound to an old stamp stop validating
    - Lockout is tracked with access_failed_count / lockout_end
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    user_name = fields.CharField(max_length=256)
    normalized_user_name = fields.CharField(max_length=256, unique=True, index=True)
    email = fields.CharField(max_length=256, null=True)
    normalized_email = fields.CharField(max_length=256, null=True, index=True)
    email_confirmed = fields.BooleanField(default=False)
    phone_number = fields.CharField(max_length=32, null=True)
    password_hash = fields.CharField(max_length=255, null=True)  # argon2 hash, never plain text
    security_stamp = fields.CharField(max_length=64, default=lambda: uuid.uuid4().hex)
    lockout_enabled = fields.BooleanField(default=True)
    lockout_end = fields.DatetimeField(null=True)  # Locked out until this instant (UTC)
    access_failed_count = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)

    roles = fields.ManyToManyField(
        "models.Role", related_name="users", through="user_roles"
    )

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
