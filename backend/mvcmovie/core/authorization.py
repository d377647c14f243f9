"""
Named authorization policies.

A policy is referenced by name from controller actions; evaluating it only needs
the current principal (roles come from the identity cookie).
"""
from dataclasses import dataclass

from starlette.authentication import BaseUser

ADMIN_ONLY_POLICY = "AdminOnly"
ADMINISTRATOR_ROLE = "Administrator"
CUSTOMER_ROLE = "Customer"


@dataclass(frozen=True)
class AuthorizationPolicy:
    name: str
    required_roles: tuple[str, ...] = ()

    def evaluate(self, user: BaseUser) -> bool:
        """Authenticated, and in at least one required role (when any are given)."""
        if not user.is_authenticated:
            return False
        if not self.required_roles:
            return True
        roles = getattr(user, "roles", ())
        return any(role in roles for role in self.required_roles)


class AuthorizationOptions:
    """Policy table; filled during service registration and only read afterwards."""

    def __init__(self):
        self._policies: dict[str, AuthorizationPolicy] = {}

    def add_policy(self, name: str, *, require_roles: tuple[str, ...] = ()) -> AuthorizationPolicy:
        if name in self._policies:
            raise ValueError(f"Authorization policy {name!r} is already defined")
        policy = AuthorizationPolicy(name=name, required_roles=tuple(require_roles))
        self._policies[name] = policy
        return policy

    def get_policy(self, name: str) -> AuthorizationPolicy:
        try:
            return self._policies[name]
        except KeyError:
            raise LookupError(f"No authorization policy named {name!r}") from None

    @property
    def policies(self) -> dict[str, AuthorizationPolicy]:
        return dict(self._policies)

    def authorize(self, user: BaseUser, policy_name: str) -> bool:
        return self.get_policy(policy_name).evaluate(user)
