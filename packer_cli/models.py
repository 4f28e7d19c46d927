"""Pydantic models for packer_cli configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, PositiveInt, field_validator

from packer_cli.constants import DEFAULT_EXECUTABLE, DEFAULT_EXECUTION_TIMEOUT


class PackerClientConfig(BaseModel):
    """How to locate and run the Packer executable."""

    executable_path: str = Field(
        default=DEFAULT_EXECUTABLE,
        description="Path to the Packer executable, or a name resolved through PATH.",
    )
    execution_timeout: PositiveInt = Field(
        default=DEFAULT_EXECUTION_TIMEOUT,
        description="Seconds Packer may run before it is killed.",
    )
    working_dir: Path | None = None
    env: dict[str, str] = Field(default_factory=dict)
    extra_args: list[str] = Field(
        default_factory=list,
        description="Arguments inserted after the subcommand on every invocation.",
    )

    @field_validator("extra_args", mode="before")
    @classmethod
    def _ensure_args_list(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        if isinstance(value, str):
            return [value]
        raise TypeError("extra_args must be a list of strings or a single string")
