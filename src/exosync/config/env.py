"""Typed reads of ``os.environ``; blank values count as unset."""

from __future__ import annotations

import os

from .errors import ConfigurationError

_FLAGS = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}


def _read(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def optional_env_var(name: str, default: str) -> str:
    value = _read(name)
    return default if value is None else value


def env_flag(name: str, *, default: bool = False) -> bool:
    """Read a boolean switch such as ``AUTO_START_SYNC=true``."""

    value = _read(name)
    if value is None:
        return default
    try:
        return _FLAGS[value.lower()]
    except KeyError:
        raise ConfigurationError(f"Invalid boolean value for {name}: {value!r}") from None
