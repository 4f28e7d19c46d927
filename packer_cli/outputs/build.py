"""Aggregation for ``packer build``."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from packer_cli.messages import (
    ArtifactCountMessage,
    ArtifactMessage,
    EndBuildsMessage,
    ErrorMessage,
    Message,
    UiMessage,
)
from packer_cli.messages.base import field_at, parse_int
from packer_cli.messages.build import (
    ARTIFACT_KEY_BUILDER_ID,
    ARTIFACT_KEY_END,
    ARTIFACT_KEY_FILE,
    ARTIFACT_KEY_ID,
    ARTIFACT_KEY_NIL,
    ARTIFACT_KEY_STRING,
)

from .base import BaseAggregator, ErrorEntry, Output


class Artifact(BaseModel):
    """One artifact produced by a builder."""

    model_config = ConfigDict(frozen=True)

    index: int | None = None
    builder_id: str = ""
    id: str = ""
    description: str = ""
    files: tuple[str, ...] = ()
    metadata: dict[str, str] = Field(default_factory=dict)
    nil: bool = False


class BuildOutput(Output):
    """Artifacts per build plus the errors and log text seen along the way."""

    artifacts: dict[str, tuple[Artifact, ...]] = Field(default_factory=dict)
    artifact_counts: dict[str, int] = Field(default_factory=dict)
    build_names: tuple[str, ...] = ()
    errors: tuple[ErrorEntry, ...] = ()
    log: tuple[str, ...] = ()
    builds_finished: bool = False

    def artifacts_for(self, target: str) -> tuple[Artifact, ...]:
        return self.artifacts.get(target, ())

    def target_succeeded(self, target: str) -> bool:
        if target not in self.build_names or self.exit_status != 0 or self.timed_out:
            return False
        return not any(error.target == target for error in self.errors)


@dataclass
class _PendingArtifact:
    index: int | None
    builder_id: str = ""
    id: str = ""
    description: str = ""
    files: dict[int, str] = field(default_factory=dict)
    extra_files: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    nil: bool = False
    ended: bool = False

    def apply(self, key: str, values: tuple[str, ...]) -> None:
        if key == ARTIFACT_KEY_FILE:
            position = parse_int(field_at(values, 0))
            path = ",".join(values[1:])
            if position is None:
                self.extra_files.append(path)
            else:
                self.files[position] = path
            return
        if key == ARTIFACT_KEY_END:
            self.ended = True
            return
        if key == ARTIFACT_KEY_NIL:
            self.nil = True
            return

        value = ",".join(values)
        if key == ARTIFACT_KEY_BUILDER_ID:
            self.builder_id = value
        elif key == ARTIFACT_KEY_ID:
            self.id = value
        elif key == ARTIFACT_KEY_STRING:
            self.description = value
        self.metadata[key] = value

    def freeze(self) -> Artifact:
        files = tuple(self.files[position] for position in sorted(self.files)) + tuple(self.extra_files)
        return Artifact(
            index=self.index,
            builder_id=self.builder_id,
            id=self.id,
            description=self.description,
            files=files,
            metadata=dict(self.metadata),
            nil=self.nil,
        )


class BuildAggregator(BaseAggregator):
    """Track artifacts per target while parallel builders interleave."""

    command = "build"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        # Per target: artifacts in first-seen order. Incremental artifacts are
        # also indexed so later attribute lines find them.
        self._artifacts: dict[str, list[_PendingArtifact]] = {}
        self._open: dict[str, dict[int | None, _PendingArtifact]] = {}
        self._counts: dict[str, int] = {}
        self._errors: list[ErrorEntry] = []
        self._log: deque[str] = deque(maxlen=self._history_limit)
        self._finished = False

    def _fold(self, message: Message) -> None:
        if isinstance(message, ArtifactMessage):
            self._fold_artifact(message)
        elif isinstance(message, ArtifactCountMessage):
            if message.count is not None:
                self._counts[message.target] = message.count
        elif isinstance(message, ErrorMessage):
            self._errors.append(ErrorEntry(target=message.target, message=message.text))
        elif isinstance(message, UiMessage):
            if message.is_error:
                self._errors.append(ErrorEntry(target=message.target, message=message.text))
            else:
                self._log.append(message.text)
        elif isinstance(message, EndBuildsMessage):
            self._finished = True

    def _fold_artifact(self, message: ArtifactMessage) -> None:
        target_artifacts = self._artifacts.setdefault(message.target, [])
        if message.is_compact:
            pending = _PendingArtifact(
                index=message.index,
                id=field_at(message.values, 0),
                extra_files=list(message.values[1:]),
                ended=True,
            )
            target_artifacts.append(pending)
            return

        open_artifacts = self._open.setdefault(message.target, {})
        pending = open_artifacts.get(message.index)
        if pending is None:
            pending = _PendingArtifact(index=message.index)
            open_artifacts[message.index] = pending
            target_artifacts.append(pending)
        pending.apply(message.key, message.values)
        if pending.ended:
            del open_artifacts[message.index]

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> BuildOutput:
        unfinished = sum(len(open_artifacts) for open_artifacts in self._open.values())
        if unfinished:
            self._logger.debug("Reporting %d artifact(s) that never saw an 'end' record", unfinished)

        artifacts = {
            target: tuple(pending.freeze() for pending in pendings) for target, pendings in self._artifacts.items()
        }
        build_names = tuple(target for target in self.demux.targets() if target)
        return BuildOutput(
            success=exited_cleanly and not self._errors,
            artifacts=artifacts,
            artifact_counts=dict(self._counts),
            build_names=build_names,
            errors=tuple(self._errors),
            log=tuple(self._log),
            builds_finished=self._finished,
            **common,
        )
