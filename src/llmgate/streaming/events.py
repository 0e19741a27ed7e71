"""Normalized stream events.

Every provider stream is translated into the same sequence:

    TextStart(0), TextDelta(0, "Hel"), TextDelta(0, "lo"), ..., Done(message)

or ends with a single ErrorEvent instead of Done. A cancelled stream ends
without either.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Union

from ..errors import ErrorCode


def estimate_tokens(text: str) -> int:
    """Rough token count (4 characters per token)."""
    return math.ceil(len(text) / 4)


@dataclass(frozen=True)
class TextPart:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class Usage:
    """Token usage. Web endpoints report none, so values are estimates."""

    input: int = 0
    output: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input + self.output

    @classmethod
    def estimate(cls, prompt: str, output: str) -> Usage:
        return cls(input=estimate_tokens(prompt), output=estimate_tokens(output))


@dataclass(frozen=True)
class AssistantMessage:
    """Final assistant message assembled when a stream completes."""

    provider: str
    model: str
    api: str
    content: tuple[TextPart, ...] = ()
    usage: Usage = field(default_factory=Usage)
    stop_reason: str = "stop"
    timestamp: float = field(default_factory=time.time)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content)


@dataclass(frozen=True)
class TextStart:
    part_index: int
    type: str = "text_start"


@dataclass(frozen=True)
class TextDelta:
    part_index: int
    delta: str
    type: str = "text_delta"


@dataclass(frozen=True)
class Done:
    message: AssistantMessage
    type: str = "done"


@dataclass(frozen=True)
class ErrorEvent:
    code: ErrorCode
    message: str
    type: str = "error"


NormalizedEvent = Union[TextStart, TextDelta, Done, ErrorEvent]


class TextPartAccumulator:
    """Tracks output text parts and emits start/delta events.

    ``TextStart`` is produced the first time a non-empty delta is appended
    to a part index; empty deltas produce nothing.
    """

    def __init__(self) -> None:
        self._parts: dict[int, str] = {}

    def append(self, part_index: int, delta: str) -> list[NormalizedEvent]:
        if not delta:
            return []
        events: list[NormalizedEvent] = []
        if part_index not in self._parts:
            self._parts[part_index] = ""
            events.append(TextStart(part_index))
        self._parts[part_index] += delta
        events.append(TextDelta(part_index, delta))
        return events

    @property
    def text(self) -> str:
        return "".join(self._parts[i] for i in sorted(self._parts))

    def parts(self) -> tuple[TextPart, ...]:
        return tuple(TextPart(self._parts[i]) for i in sorted(self._parts))


__all__ = [
    "estimate_tokens",
    "TextPart",
    "Usage",
    "AssistantMessage",
    "TextStart",
    "TextDelta",
    "Done",
    "ErrorEvent",
    "NormalizedEvent",
    "TextPartAccumulator",
]
