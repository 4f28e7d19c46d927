"""Line codec for Packer's ``-machine-readable`` output.

Every line is a comma separated record::

    timestamp,target,type,data...

Packer never emits a raw comma inside a field; commas are written as
``%!(PACKER_COMMA)`` and line breaks as ``\\n``/``\\r`` so that multi-line
payloads survive single-line transport. A literal backslash is written as
``\\\\``.
"""

from __future__ import annotations

from collections.abc import Sequence

from packer_cli.constants import ESCAPED_COMMA, FIELD_DELIMITER

_UNESCAPES = {
    "n": "\n",
    "r": "\r",
    "\\": "\\",
}


class LineDecodeError(ValueError):
    """Raised when a raw line contains a malformed escape sequence."""

    def __init__(self, message: str, *, line: str, field_index: int) -> None:
        super().__init__(message)
        self.line = line
        self.field_index = field_index


def decode_line(line: str) -> list[str]:
    """Split ``line`` into its unescaped fields.

    The trailing line terminator, if any, is ignored. The number of fields is
    not checked here; interpreting them is the message registry's job.
    """

    stripped = line.rstrip("\r\n")
    raw_fields = stripped.split(FIELD_DELIMITER)
    return [_unescape_field(field, line=line, index=index) for index, field in enumerate(raw_fields)]


def encode_fields(fields: Sequence[str]) -> str:
    """Inverse of :func:`decode_line` for a sequence of field values."""

    return FIELD_DELIMITER.join(_escape_field(str(field)) for field in fields)


def _unescape_field(field: str, *, line: str, index: int) -> str:
    value = field.replace(ESCAPED_COMMA, FIELD_DELIMITER)
    if "\\" not in value:
        return value

    chars: list[str] = []
    position = 0
    length = len(value)
    while position < length:
        char = value[position]
        if char != "\\":
            chars.append(char)
            position += 1
            continue
        if position + 1 >= length:
            raise LineDecodeError(
                f"Unterminated escape sequence at end of field {index}",
                line=line,
                field_index=index,
            )
        follower = value[position + 1]
        # Unknown escapes are kept verbatim so Windows paths survive.
        chars.append(_UNESCAPES.get(follower, char + follower))
        position += 2
    return "".join(chars)


def _escape_field(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")
    return escaped.replace(FIELD_DELIMITER, ESCAPED_COMMA)
