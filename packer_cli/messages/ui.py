"""Human-oriented ``ui`` and ``error`` records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .base import Message, field_at

UI_LEVEL_ERROR = "error"


@dataclass(frozen=True)
class UiMessage(Message):
    """Text Packer would have printed to a terminal: ``ui,<level>,<text>``."""

    level: str = ""
    text: str = ""

    type_tag = "ui"

    @property
    def is_error(self) -> bool:
        return self.level == UI_LEVEL_ERROR

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {"level": field_at(data, 0), "text": ",".join(data[1:])}


@dataclass(frozen=True)
class ErrorMessage(Message):
    """A structured ``error,<text>`` record."""

    text: str = ""

    type_tag = "error"

    @property
    def is_error(self) -> bool:
        return True

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {"text": ",".join(data)}
