# mvcmovie/config.py
"""
Layered application configuration.

Sources are applied in order and later sources override earlier keys:
  1) appsettings.json                      (optional)
  2) appsettings.{Environment}.json        (optional)
  3) developer secrets (.env style file)   (Development only, optional)
  4) process environment variables         (highest precedence)

Keys are hierarchical, separated by ":" (e.g. "ConnectionStrings:DefaultConnection")
and case-insensitive. In environment variables and dotenv files "__" stands for ":".
The result is an immutable snapshot that is passed explicitly to every startup step.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from dotenv import dotenv_values

KEY_DELIMITER = ":"
ENV_KEY_DELIMITER = "__"

ENVIRONMENT_VARIABLE = "MVCMOVIE_ENVIRONMENT"
CONTENT_ROOT_VARIABLE = "MVCMOVIE_CONTENTROOT"
USER_SECRETS_VARIABLE = "MVCMOVIE_USER_SECRETS"


class ConfigurationError(Exception):
    """Raised when configuration content cannot be loaded. Always fatal at startup."""


class EnvironmentKind(str, Enum):
    DEVELOPMENT = "Development"
    PRODUCTION = "Production"


@dataclass(frozen=True)
class HostingEnvironment:
    """Environment name plus the directory configuration files and wwwroot live in."""
    name: str = "Production"
    content_root: Path = field(default_factory=Path.cwd)

    @property
    def kind(self) -> EnvironmentKind:
        if self.name.lower() == EnvironmentKind.DEVELOPMENT.value.lower():
            return EnvironmentKind.DEVELOPMENT
        return EnvironmentKind.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.kind is EnvironmentKind.DEVELOPMENT

    @property
    def web_root(self) -> Path:
        return Path(self.content_root) / "wwwroot"

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "HostingEnvironment":
        environ = os.environ if environ is None else environ
        root = environ.get(CONTENT_ROOT_VARIABLE)
        return cls(
            name=environ.get(ENVIRONMENT_VARIABLE) or EnvironmentKind.PRODUCTION.value,
            content_root=Path(root) if root else Path.cwd(),
        )


def _normalize_key(key: str) -> str:
    return key.replace(ENV_KEY_DELIMITER, KEY_DELIMITER)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(value: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _flatten(child, f"{prefix}{KEY_DELIMITER}{key}" if prefix else str(key))
    elif isinstance(value, list):
        for index, child in enumerate(value):
            yield from _flatten(child, f"{prefix}{KEY_DELIMITER}{index}" if prefix else str(index))
    else:
        yield prefix, _stringify(value)


class Configuration(Mapping[str, str]):
    """
    Read-only, case-insensitive key/value snapshot.

    Iteration yields keys with the casing of the source that last set them.
    """

    def __init__(self, values: Mapping[str, str] | None = None):
        entries: dict[str, tuple[str, str]] = {}
        for key, value in (values or {}).items():
            entries[key.lower()] = (key, value)
        self._entries = MappingProxyType(entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key.lower()][1]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Configuration({len(self)} keys)"

    def get_section(self, name: str) -> "Configuration":
        """Return the sub-tree under ``name`` with the prefix stripped (empty if absent)."""
        prefix = name.lower() + KEY_DELIMITER
        return Configuration({
            original[len(prefix):]: value
            for lowered, (original, value) in self._entries.items()
            if lowered.startswith(prefix)
        })

    def get_connection_string(self, name: str) -> str | None:
        return self.get(f"ConnectionStrings{KEY_DELIMITER}{name}") or None

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self.get(key)
        if raw is None or raw == "":
            return default
        return raw.strip().lower() in ("true", "1", "yes")

    def get_int(self, key: str, default: int) -> int:
        raw = self.get(key)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Configuration value {key}={raw!r} is not an integer") from exc


ConfigurationSource = Callable[[], Mapping[str, str]]


class ConfigurationBuilder:
    """Collects sources in precedence order and merges them into a Configuration."""

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path is not None else Path.cwd()
        self._sources: list[ConfigurationSource] = []

    @property
    def sources(self) -> list[ConfigurationSource]:
        return list(self._sources)

    def add_json_file(self, path: Path | str, optional: bool = True) -> "ConfigurationBuilder":
        resolved = self.base_path / path

        def _load() -> Mapping[str, str]:
            if not resolved.is_file():
                if optional:
                    return {}
                raise ConfigurationError(f"Configuration file not found: {resolved}")
            try:
                raw = json.loads(resolved.read_text(encoding="utf-8") or "{}")
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise ConfigurationError(f"Malformed configuration file {resolved}: {exc}") from exc
            if not isinstance(raw, dict):
                raise ConfigurationError(f"Configuration file {resolved} must contain a JSON object")
            return dict(_flatten(raw))

        self._sources.append(_load)
        return self

    def add_user_secrets(self, path: Path | str) -> "ConfigurationBuilder":
        secrets_path = Path(path).expanduser()

        def _load() -> Mapping[str, str]:
            if not secrets_path.is_file():
                return {}
            return {
                _normalize_key(key): value or ""
                for key, value in dotenv_values(secrets_path).items()
            }

        self._sources.append(_load)
        return self

    def add_environment_variables(
        self, environ: Mapping[str, str] | None = None, prefix: str = ""
    ) -> "ConfigurationBuilder":
        def _load() -> Mapping[str, str]:
            source = os.environ if environ is None else environ
            lowered = prefix.lower()
            return {
                _normalize_key(key[len(prefix):]): value
                for key, value in source.items()
                if key.lower().startswith(lowered)
            }

        self._sources.append(_load)
        return self

    def add_in_memory(self, values: Mapping[str, Any]) -> "ConfigurationBuilder":
        snapshot = dict(_flatten(dict(values)))
        self._sources.append(lambda: snapshot)
        return self

    def build(self) -> Configuration:
        merged: dict[str, str] = {}
        casing: dict[str, str] = {}
        for source in self._sources:
            for key, value in source().items():
                lowered = key.lower()
                if lowered in casing:
                    del merged[casing[lowered]]
                casing[lowered] = key
                merged[key] = value
        return Configuration(merged)


def default_user_secrets_path(environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    explicit = environ.get(USER_SECRETS_VARIABLE)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".mvcmovie" / "secrets.env"


def build_configuration(
    env: HostingEnvironment,
    *,
    environ: Mapping[str, str] | None = None,
    user_secrets_path: Path | str | None = None,
) -> Configuration:
    """Build the layered configuration snapshot for ``env``."""
    builder = ConfigurationBuilder(base_path=env.content_root)
    builder.add_json_file("appsettings.json", optional=True)
    builder.add_json_file(f"appsettings.{env.name}.json", optional=True)
    if env.is_development:
        builder.add_user_secrets(user_secrets_path or default_user_secrets_path(environ))
    builder.add_environment_variables(environ)
    return builder.build()
