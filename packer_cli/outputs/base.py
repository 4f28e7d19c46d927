"""Fold a machine-readable message stream into an immutable command output."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from packer_cli.constants import DEFAULT_HISTORY_LIMIT
from packer_cli.demux import TargetDemultiplexer
from packer_cli.messages import Message, decode_message
from packer_cli.wire import LineDecodeError, decode_line

LineSink = Callable[[str], Any]

NOT_MACHINE_READABLE = "not a machine-readable line"
MISSING_TYPE = "missing message type"


class AggregatorClosedError(RuntimeError):
    """Raised when a line is fed after the output has been finalized."""


class DecodeFailure(BaseModel):
    """A raw line that could not be turned into a structured message."""

    model_config = ConfigDict(frozen=True)

    line: str
    reason: str


class ErrorEntry(BaseModel):
    """An error reported by Packer, attributed to a build or global (empty target)."""

    model_config = ConfigDict(frozen=True)

    target: str = ""
    message: str


class Output(BaseModel):
    """Result of one Packer invocation, built once the process has exited."""

    model_config = ConfigDict(frozen=True)

    command: str
    exit_status: int
    raw_output: str = ""
    success: bool
    timed_out: bool = False
    line_count: int = Field(default=0, description="Non-blank lines fed to the aggregator.")
    decode_failures: tuple[DecodeFailure, ...] = ()

    @property
    def empty(self) -> bool:
        """True when no line ever arrived before the process exited."""
        return self.line_count == 0


class BaseAggregator:
    """Consume raw lines one at a time and produce an :class:`Output`.

    Subclasses implement ``_fold`` for every decoded message and
    ``_build_output`` for the terminal snapshot. A line that cannot be
    decoded is recorded on the output and never stops aggregation.
    """

    command: str = "base"

    def __init__(self, *, history_limit: int | None = DEFAULT_HISTORY_LIMIT) -> None:
        self.demux = TargetDemultiplexer(history_limit)
        self._history_limit = history_limit
        self._decode_failures: list[DecodeFailure] = []
        self._line_count = 0
        self._output: Output | None = None
        self._logger = logging.getLogger(f"packer_cli.outputs.{self.command}")

    @property
    def finalized(self) -> bool:
        return self._output is not None

    def feed(self, raw_line: str, sink: LineSink | None = None) -> None:
        """Process one line, then hand it verbatim to ``sink`` if given."""

        if self._output is not None:
            raise AggregatorClosedError(f"'{self.command}' output was already finalized")

        if raw_line.strip():
            self._line_count += 1
            self._consume(raw_line)

        if sink is not None:
            self._forward(sink, raw_line)

    def finalize(self, exit_status: int, raw_combined_output: str = "", *, timed_out: bool = False) -> Output:
        """Build the output; later calls return the same instance."""

        if self._output is not None:
            return self._output

        exited_cleanly = exit_status == 0 and not timed_out
        common = {
            "command": self.command,
            "exit_status": exit_status,
            "raw_output": raw_combined_output,
            "timed_out": timed_out,
            "line_count": self._line_count,
            "decode_failures": tuple(self._decode_failures),
        }
        self._output = self._build_output(common, exited_cleanly)
        self._logger.debug(
            "Finalized '%s' output: exit=%s success=%s lines=%d failures=%d",
            self.command,
            exit_status,
            self._output.success,
            self._line_count,
            len(self._decode_failures),
        )
        return self._output

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def _fold(self, message: Message) -> None:
        """Fold one decoded message into the running state."""

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> Output:
        return Output(success=exited_cleanly, **common)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _consume(self, raw_line: str) -> None:
        message = self._decode(raw_line)
        if message is None:
            return
        self.demux.file(message)
        self._fold(message)

    def _decode(self, raw_line: str) -> Message | None:
        try:
            fields = decode_line(raw_line)
        except LineDecodeError as exc:
            self._record_failure(raw_line, str(exc))
            return None

        if len(fields) < 3:
            self._record_failure(raw_line, NOT_MACHINE_READABLE)
            return None
        if not fields[2]:
            self._record_failure(raw_line, MISSING_TYPE)
            return None
        return decode_message(fields)

    def _record_failure(self, raw_line: str, reason: str) -> None:
        self._logger.debug("Dropping line from structured output (%s): %r", reason, raw_line)
        self._decode_failures.append(DecodeFailure(line=raw_line.rstrip("\r\n"), reason=reason))

    def _forward(self, sink: LineSink, raw_line: str) -> None:
        try:
            sink(raw_line)
        except (OSError, ValueError) as exc:
            self._logger.warning("Live output sink failed: %s", exc)
