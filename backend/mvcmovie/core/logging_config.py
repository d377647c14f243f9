"""
Logging sinks configured from the "Logging" configuration section.

    "Logging": {"LogLevel": {"Default": "Information", "tortoise": "Warning"}}

"Default" sets the root level; every other key is a logger name. Level names may
be given in Python form (INFO) or in the Trace/Debug/Information/... form.
"""
import logging
import sys
from typing import Mapping

CONSOLE_SINK = "console"
DEBUG_SINK = "debug"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVEL_ALIASES = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "none": logging.CRITICAL + 10,
}


def parse_level(name: str) -> int:
    try:
        return _LEVEL_ALIASES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level {name!r}") from None


def debugger_attached() -> bool:
    return sys.gettrace() is not None


def _replace_handler(root: logging.Logger, handler: logging.Handler) -> None:
    for existing in list(root.handlers):
        if existing.get_name() == handler.get_name():
            root.removeHandler(existing)
    root.addHandler(handler)


def configure_logging(section: Mapping[str, str], attach_debug: bool | None = None) -> list[str]:
    """
    Attach the console sink (always) and the debug sink (only while a debugger
    or tracer is attached) to the root logger, then apply LogLevel settings.

    Safe to call repeatedly; sinks are replaced, not duplicated.
    Returns the names of the attached sinks.
    """
    root = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)
    sinks = []

    console = logging.StreamHandler(sys.stdout)
    console.set_name(CONSOLE_SINK)
    console.setFormatter(formatter)
    _replace_handler(root, console)
    sinks.append(CONSOLE_SINK)

    if attach_debug is None:
        attach_debug = debugger_attached()
    if attach_debug:
        debug = logging.StreamHandler(sys.stderr)
        debug.set_name(DEBUG_SINK)
        debug.setLevel(logging.DEBUG)
        debug.setFormatter(formatter)
        _replace_handler(root, debug)
        sinks.append(DEBUG_SINK)
    else:
        for existing in list(root.handlers):
            if existing.get_name() == DEBUG_SINK:
                root.removeHandler(existing)

    levels = {key.split(":", 1)[1]: value for key, value in section.items()
              if key.lower().startswith("loglevel:")}
    for category, level in levels.items():
        if category.lower() == "default":
            root.setLevel(parse_level(level))
        else:
            logging.getLogger(category).setLevel(parse_level(level))
    return sinks
