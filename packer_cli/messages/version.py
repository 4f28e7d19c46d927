"""Records produced by ``packer version``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .base import Message, field_at


@dataclass(frozen=True)
class VersionMessage(Message):
    value: str = ""

    type_tag = "version"

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {"value": field_at(data, 0)}


@dataclass(frozen=True)
class VersionPrereleaseMessage(VersionMessage):
    # Packer has always spelled this tag without the second "re".
    type_tag = "version-prelease"


@dataclass(frozen=True)
class VersionCommitMessage(VersionMessage):
    type_tag = "version-commit"
