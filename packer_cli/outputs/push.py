"""Aggregation for ``packer push``."""

from __future__ import annotations

from collections import deque
from typing import Any

from packer_cli.messages import ErrorMessage, Message, UiMessage

from .base import BaseAggregator, ErrorEntry, Output


class PushOutput(Output):
    messages: tuple[str, ...] = ()
    errors: tuple[ErrorEntry, ...] = ()

    @property
    def error_text(self) -> str:
        return "\n".join(error.message for error in self.errors)


class PushAggregator(BaseAggregator):
    """Keep upload progress text and any surfaced errors."""

    command = "push"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._messages: deque[str] = deque(maxlen=self._history_limit)
        self._errors: list[ErrorEntry] = []

    def _fold(self, message: Message) -> None:
        if isinstance(message, ErrorMessage):
            self._errors.append(ErrorEntry(target=message.target, message=message.text))
        elif isinstance(message, UiMessage):
            if message.is_error:
                self._errors.append(ErrorEntry(target=message.target, message=message.text))
            else:
                self._messages.append(message.text)

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> PushOutput:
        return PushOutput(
            success=exited_cleanly and not self._errors,
            messages=tuple(self._messages),
            errors=tuple(self._errors),
            **common,
        )
