"""Structural records produced by ``packer inspect``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .base import Message, field_at

_TRUTHY = frozenset({"1", "true", "yes"})


@dataclass(frozen=True)
class TemplateProvisioner(Message):
    """A provisioner declared by the template."""

    name: str = ""

    type_tag = "template-provisioner"

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {"name": field_at(data, 0)}


@dataclass(frozen=True)
class TemplateBuilder(Message):
    """A builder declared by the template: ``template-builder,<name>,<type>``."""

    name: str = ""
    builder_type: str = ""

    type_tag = "template-builder"

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {"name": field_at(data, 0), "builder_type": field_at(data, 1)}


@dataclass(frozen=True)
class TemplateVariable(Message):
    """A user variable: ``template-variable,<name>,<default>,<required>``."""

    name: str = ""
    default: str = ""
    required: bool = False

    type_tag = "template-variable"

    @classmethod
    def parse_payload(cls, data: tuple[str, ...]) -> dict[str, Any]:
        return {
            "name": field_at(data, 0),
            "default": field_at(data, 1),
            "required": field_at(data, 2).strip().lower() in _TRUTHY,
        }
