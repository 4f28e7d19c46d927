"""Internal defaults and constants for packer_cli."""

from __future__ import annotations

import sys
from pathlib import Path

DEFAULT_EXECUTION_TIMEOUT = 7200  # 2 hours
DEFAULT_EXECUTABLE = "packer.exe" if sys.platform == "win32" else "packer"
DEFAULT_STREAM_LIMIT = 10 * 1024 * 1024  # 10MB per line

USER_CONFIG_PATH = Path.home() / ".packer_cli" / "config.json"

CONFIG_ENV_VAR = "PACKER_CLIENT_CONFIG_PATH"
EXECUTABLE_ENV_VAR = "PACKER_EXECUTABLE"
TIMEOUT_ENV_VAR = "PACKER_EXECUTION_TIMEOUT"

MACHINE_READABLE_FLAG = "-machine-readable"

# Wire format
FIELD_DELIMITER = ","
ESCAPED_COMMA = "%!(PACKER_COMMA)"

UNKNOWN_VERSION = "unknown"

# Messages kept per target by aggregators; state folded from older ones is kept.
DEFAULT_HISTORY_LIMIT = 1000
