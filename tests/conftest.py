"""
Pytest configuration for packer_cli tests
"""

import sys
from pathlib import Path

import pytest

# Ensure the parent directory is in the Python path for imports
parent_dir = Path(__file__).resolve().parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import packer_cli.env as env_config  # noqa: E402

# Ensure tests operate with runtime environment rather than .env overrides during imports
env_config.reload_env({"PACKER_CLI_FORCE_ENV_OVERRIDE": "false"})


@pytest.fixture(autouse=True)
def clean_packer_env(monkeypatch):
    """Keep a developer's Packer settings out of the tests."""
    for var in ("PACKER_CLIENT_CONFIG_PATH", "PACKER_EXECUTABLE", "PACKER_EXECUTION_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
