"""Group messages by the builder that emitted them."""

from __future__ import annotations

from collections import deque

from packer_cli.messages import Message


class TargetDemultiplexer:
    """File messages under their target while keeping arrival order.

    Packer runs builders in parallel and their lines interleave; each
    target's sub-sequence is kept in the order it was received. The empty
    target holds global messages.

    With ``history_limit`` set, only the most recent ``history_limit``
    messages are retained per target and overall; targets are never
    forgotten.
    """

    def __init__(self, history_limit: int | None = None) -> None:
        if history_limit is not None and history_limit < 1:
            raise ValueError("history_limit must be a positive integer or None")
        self._history_limit = history_limit
        self._by_target: dict[str, deque[Message]] = {}
        self._messages: deque[Message] = deque(maxlen=history_limit)
        self._filed = 0

    def file(self, message: Message) -> None:
        self._filed += 1
        self._messages.append(message)
        bucket = self._by_target.get(message.target)
        if bucket is None:
            bucket = self._by_target[message.target] = deque(maxlen=self._history_limit)
        bucket.append(message)

    def for_target(self, target: str) -> tuple[Message, ...]:
        return tuple(self._by_target.get(target, ()))

    def targets(self) -> list[str]:
        """Targets in first-seen order, including ``""`` once a global message arrived."""
        return list(self._by_target.keys())

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def filed_count(self) -> int:
        """Total messages filed, including any no longer retained."""
        return self._filed

    def __len__(self) -> int:
        return len(self._messages)
