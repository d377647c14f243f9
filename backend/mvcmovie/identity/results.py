from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class IdentityError:
    code: str
    description: str

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.description}


@dataclass(frozen=True)
class IdentityResult:
    succeeded: bool
    errors: tuple[IdentityError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> "IdentityResult":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, *errors: IdentityError) -> "IdentityResult":
        return cls(succeeded=False, errors=tuple(errors))

    def __str__(self) -> str:
        if self.succeeded:
            return "Succeeded"
        return "Failed : " + ",".join(e.code for e in self.errors)


class SignInResult(str, Enum):
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    LOCKED_OUT = "LockedOut"
    NOT_ALLOWED = "NotAllowed"
