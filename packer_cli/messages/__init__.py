"""Message registry for Packer's machine-readable output."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .base import Message, field_at
from .build import ArtifactCountMessage, ArtifactMessage, EndBuildsMessage
from .template import TemplateBuilder, TemplateProvisioner, TemplateVariable
from .ui import ErrorMessage, UiMessage
from .version import VersionCommitMessage, VersionMessage, VersionPrereleaseMessage

logger = logging.getLogger("packer_cli.messages")

_MESSAGE_CLASSES: dict[str, type[Message]] = {
    UiMessage.type_tag: UiMessage,
    ErrorMessage.type_tag: ErrorMessage,
    ArtifactMessage.type_tag: ArtifactMessage,
    ArtifactCountMessage.type_tag: ArtifactCountMessage,
    EndBuildsMessage.type_tag: EndBuildsMessage,
    TemplateProvisioner.type_tag: TemplateProvisioner,
    TemplateBuilder.type_tag: TemplateBuilder,
    TemplateVariable.type_tag: TemplateVariable,
    VersionMessage.type_tag: VersionMessage,
    VersionPrereleaseMessage.type_tag: VersionPrereleaseMessage,
    "version-prerelease": VersionPrereleaseMessage,
    VersionCommitMessage.type_tag: VersionCommitMessage,
}


def register_message(message_cls: type[Message], *, tag: str | None = None) -> None:
    """Register ``message_cls`` for ``tag`` (defaults to its ``type_tag``)."""

    key = (tag or message_cls.type_tag).lower()
    if not key:
        raise ValueError(f"{message_cls.__name__} does not declare a type tag")
    if key in _MESSAGE_CLASSES:
        logger.info("Overriding message class for '%s' with %s", key, message_cls.__name__)
    _MESSAGE_CLASSES[key] = message_cls


def get_message_class(tag: str) -> type[Message]:
    """Return the variant registered for ``tag``, or the generic :class:`Message`."""

    return _MESSAGE_CLASSES.get((tag or "").lower(), Message)


def decode_message(fields: Sequence[str]) -> Message:
    """Build a typed message from decoded line fields.

    Unknown tags never fail; they decode to a generic :class:`Message` that
    keeps the payload as-is.
    """

    tag = field_at(fields, 2)
    message_cls = get_message_class(tag)
    if message_cls is Message:
        logger.debug("No message class registered for '%s'; keeping payload verbatim", tag)
    return message_cls.from_fields(fields)


__all__ = [
    "ArtifactCountMessage",
    "ArtifactMessage",
    "EndBuildsMessage",
    "ErrorMessage",
    "Message",
    "TemplateBuilder",
    "TemplateProvisioner",
    "TemplateVariable",
    "UiMessage",
    "VersionCommitMessage",
    "VersionMessage",
    "VersionPrereleaseMessage",
    "decode_message",
    "get_message_class",
    "register_message",
]
