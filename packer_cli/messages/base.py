"""Base message type shared by every machine-readable record."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar


def field_at(data: Sequence[str], index: int) -> str:
    """Return ``data[index]`` or an empty string when the field is missing."""

    if 0 <= index < len(data):
        return data[index]
    return ""


def parse_int(value: str) -> int | None:
    """Parse a decimal field, returning None when it is empty or malformed."""

    try:
        return int(value.strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class Message:
    """One decoded machine-readable line.

    Used directly for tags without a registered variant so unknown records
    keep their payload verbatim.
    """

    timestamp: int | None
    target: str
    type: str
    data: tuple[str, ...]

    type_tag: ClassVar[str] = ""

    @property
    def is_global(self) -> bool:
        return not self.target

    @classmethod
    def from_fields(cls, fields: Sequence[str]) -> Message:
        data = tuple(fields[3:])
        return cls(
            timestamp=parse_int(field_at(fields, 0)),
            target=field_at(fields, 1),
            type=field_at(fields, 2),
            data=data,
            **cls.parse_payload(data),
        )

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        """Map payload fields onto the variant's own attributes."""

        return {}
