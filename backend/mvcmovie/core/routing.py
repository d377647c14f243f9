"""
Conventional route templates, e.g. ``{controller=Home}/{action=Index}/{id?}``.

Segments are literals or ``{name}`` parameters; a parameter may carry a default
(``{name=Value}``) or be optional (``{name?}``, last segment only). Matching is
case-insensitive for literals and returns the route values as a dict.
"""
import re
from dataclasses import dataclass
from urllib.parse import unquote

DEFAULT_ROUTE_NAME = "default"
DEFAULT_ROUTE_TEMPLATE = "{controller=Home}/{action=Index}/{id?}"

_PARAMETER = re.compile(
    r"^\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?P<optional>\?)?(?:=(?P<default>[^{}]*))?\}$"
)


@dataclass(frozen=True)
class RouteSegment:
    literal: str | None = None
    name: str | None = None
    default: str | None = None
    optional: bool = False

    @property
    def is_parameter(self) -> bool:
        return self.name is not None


class RouteTemplate:
    def __init__(self, template: str, segments: list[RouteSegment]):
        self.template = template
        self.segments = tuple(segments)

    def __repr__(self) -> str:
        return f"RouteTemplate({self.template!r})"

    @classmethod
    def parse(cls, template: str) -> "RouteTemplate":
        """Parse ``template``; an invalid template raises ValueError."""
        segments: list[RouteSegment] = []
        names: set[str] = set()
        parts = template.strip("/").split("/") if template.strip("/") else []
        for index, part in enumerate(parts):
            if not part:
                raise ValueError(f"Route template {template!r} contains an empty segment")
            if "{" not in part and "}" not in part:
                segments.append(RouteSegment(literal=part))
                continue
            m = _PARAMETER.match(part)
            if not m:
                raise ValueError(f"Invalid route segment {part!r} in {template!r}")
            name = m.group("name")
            optional = m.group("optional") is not None
            default = m.group("default")
            if optional and default is not None:
                raise ValueError(f"Parameter {name!r} cannot be optional and have a default")
            if optional and index != len(parts) - 1:
                raise ValueError(f"Optional parameter {name!r} must be the last segment")
            if name.lower() in names:
                raise ValueError(f"Parameter {name!r} appears more than once in {template!r}")
            names.add(name.lower())
            segments.append(RouteSegment(name=name, default=default, optional=optional))
        return cls(template, segments)

    def match(self, path: str) -> dict[str, str] | None:
        """Route values for ``path``, or None when the path does not fit the template."""
        stripped = path.strip("/")
        parts = stripped.split("/") if stripped else []
        if len(parts) > len(self.segments) or any(not p for p in parts):
            return None

        values: dict[str, str] = {}
        for index, segment in enumerate(self.segments):
            if index < len(parts):
                part = unquote(parts[index])
                if segment.is_parameter:
                    values[segment.name] = part
                elif part.lower() != segment.literal.lower():
                    return None
            elif segment.is_parameter and segment.default is not None:
                values[segment.name] = segment.default
            elif not (segment.is_parameter and segment.optional):
                return None
        return values
