"""Records emitted while builds run: artifacts and completion markers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .base import Message, field_at, parse_int

# Sub-keys Packer uses when describing an artifact one attribute per line.
ARTIFACT_KEY_BUILDER_ID = "builder-id"
ARTIFACT_KEY_ID = "id"
ARTIFACT_KEY_STRING = "string"
ARTIFACT_KEY_FILES_COUNT = "files-count"
ARTIFACT_KEY_FILE = "file"
ARTIFACT_KEY_END = "end"
ARTIFACT_KEY_NIL = "nil"

ARTIFACT_KEYS = frozenset(
    {
        ARTIFACT_KEY_BUILDER_ID,
        ARTIFACT_KEY_ID,
        ARTIFACT_KEY_STRING,
        ARTIFACT_KEY_FILES_COUNT,
        ARTIFACT_KEY_FILE,
        ARTIFACT_KEY_END,
        ARTIFACT_KEY_NIL,
    }
)


@dataclass(frozen=True)
class ArtifactMessage(Message):
    """``artifact,<index>,...`` in either of two shapes.

    Packer itself describes an artifact over several lines, one attribute
    each (``artifact,0,id,<id>``, ``artifact,0,file,0,<path>``, ...,
    ``artifact,0,end``); ``key`` holds the attribute name and ``values`` the
    rest. The compact shape ``artifact,<index>,<id>,<file>...`` carries a
    whole artifact on one line and is reported with an empty ``key``.
    """

    index: int | None = None
    key: str = ""
    values: tuple[str, ...] = ()

    type_tag = "artifact"

    @property
    def is_compact(self) -> bool:
        return not self.key

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        index = parse_int(field_at(data, 0))
        key = field_at(data, 1)
        if key in ARTIFACT_KEYS:
            return {"index": index, "key": key, "values": tuple(data[2:])}
        return {"index": index, "key": "", "values": tuple(data[1:])}


@dataclass(frozen=True)
class ArtifactCountMessage(Message):
    """Number of artifacts a builder is about to report."""

    count: int | None = None

    type_tag = "artifact-count"

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {"count": parse_int(field_at(data, 0))}


@dataclass(frozen=True)
class EndBuildsMessage(Message):
    """Marker emitted once every build has finished."""

    type_tag = "end-builds"
