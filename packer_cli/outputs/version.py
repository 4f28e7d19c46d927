"""Aggregation for ``packer version``."""

from __future__ import annotations

from typing import Any

from packer_cli.constants import UNKNOWN_VERSION
from packer_cli.messages import Message, VersionCommitMessage, VersionMessage, VersionPrereleaseMessage

from .base import BaseAggregator, Output


class VersionOutput(Output):
    version: str = UNKNOWN_VERSION
    prerelease: str | None = None
    commit: str | None = None


class VersionAggregator(BaseAggregator):
    command = "version"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._version: str | None = None
        self._prerelease: str | None = None
        self._commit: str | None = None

    def _fold(self, message: Message) -> None:
        # Subclasses of VersionMessage first.
        if isinstance(message, VersionPrereleaseMessage):
            self._prerelease = message.value or None
        elif isinstance(message, VersionCommitMessage):
            self._commit = message.value or None
        elif isinstance(message, VersionMessage):
            if self._version is not None:
                self._logger.debug("Ignoring extra version record '%s'; keeping '%s'", message.value, self._version)
                return
            self._version = message.value or None

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> VersionOutput:
        return VersionOutput(
            success=exited_cleanly,
            version=self._version or UNKNOWN_VERSION,
            prerelease=self._prerelease,
            commit=self._commit,
            **common,
        )
