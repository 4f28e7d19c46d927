"""Aggregation for ``packer fix``.

``fix`` prints the rewritten template as plain text rather than
machine-readable records, so lines are buffered verbatim, terminators
included.
"""

from __future__ import annotations

from typing import Any

from .base import BaseAggregator, LineSink, Output


class FixOutput(Output):
    fixed_template: str | None = None
    error_text: str | None = None


class FixAggregator(BaseAggregator):
    command = "fix"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._lines: list[str] = []

    def feed(self, raw_line: str, sink: LineSink | None = None) -> None:
        # Blank lines are part of the template text.
        if not raw_line.strip() and self._output is None:
            self._lines.append(raw_line)
        super().feed(raw_line, sink)

    def _consume(self, raw_line: str) -> None:
        self._lines.append(raw_line)

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> FixOutput:
        # Only fed lines are template text; raw output also carries stderr.
        fed_text = "".join(self._lines)
        if exited_cleanly:
            return FixOutput(success=True, fixed_template=fed_text, **common)
        error_text = common["raw_output"] or fed_text
        return FixOutput(success=False, error_text=error_text.strip(), **common)
