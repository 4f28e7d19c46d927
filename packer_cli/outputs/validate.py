"""Aggregation for ``packer validate``."""

from __future__ import annotations

from typing import Any

from packer_cli.messages import ErrorMessage, Message, UiMessage

from .base import BaseAggregator, ErrorEntry, Output


class ValidateOutput(Output):
    errors: tuple[ErrorEntry, ...] = ()

    @property
    def error_messages(self) -> list[str]:
        return [error.message for error in self.errors]


class ValidateAggregator(BaseAggregator):
    """Collect every error Packer reports while checking a template."""

    command = "validate"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._errors: list[ErrorEntry] = []

    def _fold(self, message: Message) -> None:
        if isinstance(message, ErrorMessage) or (isinstance(message, UiMessage) and message.is_error):
            self._errors.append(ErrorEntry(target=message.target, message=message.text))

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> ValidateOutput:
        return ValidateOutput(
            success=exited_cleanly and not self._errors,
            errors=tuple(self._errors),
            **common,
        )
