"""Aggregator factory for Packer commands."""

from __future__ import annotations

from typing import Any

from .base import AggregatorClosedError, BaseAggregator, DecodeFailure, ErrorEntry, LineSink, Output
from .build import Artifact, BuildAggregator, BuildOutput
from .fix import FixAggregator, FixOutput
from .inspect import InspectAggregator, InspectOutput
from .push import PushAggregator, PushOutput
from .validate import ValidateAggregator, ValidateOutput
from .version import VersionAggregator, VersionOutput

_AGGREGATORS: dict[str, type[BaseAggregator]] = {
    BuildAggregator.command: BuildAggregator,
    ValidateAggregator.command: ValidateAggregator,
    PushAggregator.command: PushAggregator,
    FixAggregator.command: FixAggregator,
    InspectAggregator.command: InspectAggregator,
    VersionAggregator.command: VersionAggregator,
}


def create_aggregator(command: str, **kwargs: Any) -> BaseAggregator:
    key = (command or "").lower()
    if key not in _AGGREGATORS:
        available = ", ".join(sorted(_AGGREGATORS))
        raise KeyError(f"No aggregator registered for command '{command}'. Available commands: {available}")
    return _AGGREGATORS[key](**kwargs)


__all__ = [
    "AggregatorClosedError",
    "Artifact",
    "BaseAggregator",
    "BuildAggregator",
    "BuildOutput",
    "DecodeFailure",
    "ErrorEntry",
    "FixAggregator",
    "FixOutput",
    "InspectAggregator",
    "InspectOutput",
    "LineSink",
    "Output",
    "PushAggregator",
    "PushOutput",
    "ValidateAggregator",
    "ValidateOutput",
    "VersionAggregator",
    "VersionOutput",
    "create_aggregator",
]
