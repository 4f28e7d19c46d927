"""Load client configuration from disk and the environment."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from packer_cli.constants import CONFIG_ENV_VAR, EXECUTABLE_ENV_VAR, TIMEOUT_ENV_VAR, USER_CONFIG_PATH
from packer_cli.models import PackerClientConfig
from packer_cli.env import get_env

logger = logging.getLogger("packer_cli.config")


class ConfigLoadError(RuntimeError):
    """Raised when a configuration file is unreadable or not a JSON object."""


def load_client_config(path: str | Path | None = None) -> PackerClientConfig:
    """Build the client configuration.

    Sources, later ones winning: built-in defaults, the JSON file at ``path``
    (or ``$PACKER_CLIENT_CONFIG_PATH``, or ``~/.packer_cli/config.json``),
    then the ``PACKER_EXECUTABLE`` and ``PACKER_EXECUTION_TIMEOUT``
    environment variables.
    """

    data: dict[str, Any] = {}
    config_path = _resolve_config_path(path)
    if config_path is not None:
        data.update(_read_config_file(config_path))

    executable = get_env(EXECUTABLE_ENV_VAR)
    if executable:
        data["executable_path"] = executable
    timeout = get_env(TIMEOUT_ENV_VAR)
    if timeout:
        data["execution_timeout"] = timeout.strip()

    return PackerClientConfig.model_validate(data)


def _resolve_config_path(path: str | Path | None) -> Path | None:
    if path is not None:
        return Path(path).expanduser()

    env_path_raw = get_env(CONFIG_ENV_VAR)
    if env_path_raw:
        return Path(env_path_raw).expanduser()

    if USER_CONFIG_PATH.is_file():
        return USER_CONFIG_PATH

    logger.debug("No configuration file found; using defaults")
    return None


def _read_config_file(config_path: Path) -> dict[str, Any]:
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Unable to read configuration file {config_path}: {exc}") from exc

    if not text.strip():
        logger.debug("Skipping empty configuration file: %s", config_path)
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigLoadError(f"Invalid JSON in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Configuration in {config_path} must be a JSON object")

    working_dir = data.get("working_dir")
    if isinstance(working_dir, str) and working_dir and not Path(working_dir).is_absolute():
        data["working_dir"] = str((config_path.parent / working_dir).resolve())

    logger.debug("Loaded packer client configuration from %s", config_path)
    return data
