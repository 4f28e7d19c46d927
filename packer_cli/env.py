"""Centralized environment variable access for packer_cli."""

from __future__ import annotations

import os
from collections.abc import Mapping

from dotenv import dotenv_values, find_dotenv, load_dotenv

_DOTENV_VALUES: dict[str, str | None] = {}
_FORCE_ENV_OVERRIDE = False


def _find_env_path() -> str:
    """Nearest .env walking up from the working directory, or "" when none exists."""
    return find_dotenv(usecwd=True)


def _compute_force_override(values: Mapping[str, str | None]) -> bool:
    raw = (values.get("PACKER_CLI_FORCE_ENV_OVERRIDE") or "false").strip().lower()
    return raw == "true"


def reload_env(dotenv_mapping: Mapping[str, str | None] | None = None) -> None:
    """Reload .env values and recompute override semantics.

    Args:
        dotenv_mapping: Optional mapping used instead of reading the .env file.
            Intended for tests; when provided, load_dotenv is not invoked.
    """

    global _DOTENV_VALUES, _FORCE_ENV_OVERRIDE

    if dotenv_mapping is not None:
        _DOTENV_VALUES = dict(dotenv_mapping)
        _FORCE_ENV_OVERRIDE = _compute_force_override(_DOTENV_VALUES)
        return

    env_path = _find_env_path()
    _DOTENV_VALUES = dict(dotenv_values(env_path)) if env_path else {}
    _FORCE_ENV_OVERRIDE = _compute_force_override(_DOTENV_VALUES)

    if env_path:
        load_dotenv(dotenv_path=env_path, override=_FORCE_ENV_OVERRIDE)


reload_env()


def env_override_enabled() -> bool:
    """Return True when PACKER_CLI_FORCE_ENV_OVERRIDE is enabled via the .env file."""

    return _FORCE_ENV_OVERRIDE


def get_env(key: str, default: str | None = None) -> str | None:
    """Retrieve environment variables respecting PACKER_CLI_FORCE_ENV_OVERRIDE."""

    if env_override_enabled():
        if key in _DOTENV_VALUES:
            value = _DOTENV_VALUES[key]
            return value if value is not None else default
        return default

    return os.getenv(key, default)
