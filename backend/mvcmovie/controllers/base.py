"""
Controller base class and the ``action`` decorator.

Actions are looked up by (name, HTTP method), case-insensitively:

    class MoviesController(Controller):
        @action("Details")
        async def details(self, id=None): ...

The class name minus the "Controller" suffix is the controller's route name.
"""
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse

T = TypeVar("T", bound=BaseModel)


class BindingError(ValueError):
    """Request body could not be read as JSON."""


@dataclass(frozen=True)
class ActionDescriptor:
    name: str
    methods: tuple[str, ...]
    policy: str | None = None
    authorize: bool = False

    @property
    def requires_authorization(self) -> bool:
        return self.authorize or self.policy is not None


def action(name: str | None = None, *, methods=("GET",), policy: str | None = None,
           authorize: bool = False):
    def decorator(func):
        func.__action__ = ActionDescriptor(
            name=name or func.__name__,
            methods=tuple(m.upper() for m in methods),
            policy=policy,
            authorize=authorize,
        )
        return func
    return decorator


class Controller:
    name: ClassVar[str] = ""
    actions: ClassVar[dict[tuple[str, str], tuple[str, ActionDescriptor]]] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.name = cls.__name__.removesuffix("Controller")
        table = {}
        for attr, member in vars(cls).items():
            descriptor = getattr(member, "__action__", None)
            if descriptor is None:
                continue
            for method in descriptor.methods:
                table[(descriptor.name.lower(), method)] = (attr, descriptor)
        cls.actions = table

    def __init__(self, request: Request, container):
        self.request = request
        self.container = container

    @classmethod
    def find_action(cls, name: str, method: str) -> tuple[str, ActionDescriptor] | None:
        return cls.actions.get((name.lower(), method.upper()))

    @classmethod
    def has_action(cls, name: str) -> bool:
        return any(key[0] == name.lower() for key in cls.actions)

    @property
    def user(self):
        return self.request.user

    # -------- results --------
    @staticmethod
    def ok(data: Any = None, status_code: int = 200) -> JSONResponse:
        return JSONResponse({"success": True, "data": data}, status_code=status_code)

    @staticmethod
    def fail(code: str, message: str, status_code: int = 200, **extra: Any) -> JSONResponse:
        error = {"code": code, "message": message, **extra}
        return JSONResponse({"success": False, "error": error}, status_code=status_code)

    @staticmethod
    def redirect(url: str) -> RedirectResponse:
        return RedirectResponse(url, status_code=302)

    async def bind(self, schema: type[T]) -> T:
        """Validate the JSON body against ``schema`` (pydantic ValidationError on mismatch)."""
        try:
            payload = await self.request.json()
        except ValueError as exc:
            raise BindingError("Request body must be valid JSON") from exc
        return schema.model_validate(payload)
