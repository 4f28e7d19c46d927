"""Aggregation for ``packer inspect``."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from packer_cli.messages import Message, TemplateBuilder, TemplateProvisioner, TemplateVariable

from .base import BaseAggregator, Output


class InspectOutput(Output):
    """Components a template declares, in declaration order."""

    variables: tuple[str, ...] = ()
    variable_defaults: dict[str, str] = Field(default_factory=dict)
    required_variables: tuple[str, ...] = ()
    builders: tuple[str, ...] = ()
    builder_types: dict[str, str] = Field(default_factory=dict)
    provisioners: tuple[str, ...] = ()


class InspectAggregator(BaseAggregator):
    command = "inspect"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._variables: list[TemplateVariable] = []
        self._builders: list[TemplateBuilder] = []
        self._provisioners: list[str] = []

    def _fold(self, message: Message) -> None:
        if isinstance(message, TemplateVariable):
            self._variables.append(message)
        elif isinstance(message, TemplateBuilder):
            self._builders.append(message)
        elif isinstance(message, TemplateProvisioner):
            self._provisioners.append(message.name)

    def _build_output(self, common: dict[str, Any], exited_cleanly: bool) -> InspectOutput:
        return InspectOutput(
            success=exited_cleanly,
            variables=tuple(variable.name for variable in self._variables),
            variable_defaults={variable.name: variable.default for variable in self._variables},
            required_variables=tuple(variable.name for variable in self._variables if variable.required),
            builders=tuple(builder.name for builder in self._builders),
            builder_types={builder.name: builder.builder_type for builder in self._builders},
            provisioners=tuple(self._provisioners),
            **common,
        )
