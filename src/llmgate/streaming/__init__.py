"""Streaming module - Provider responses as normalized events.

- events: TextStart / TextDelta / Done / ErrorEvent, AssistantMessage
- parsers: line-delimited, snapshot and binary frame parsing
- continuity: ConversationRef and the per-session ContinuityStore
- transport: direct HTTP and in-browser requests
- protocols/: per-provider wire formats
- adapter: StreamAdapter state machine
"""

from .abort import AbortSignal
from .adapter import CompletionRequest, InvocationState, StreamAdapter
from .continuity import ContinuityStore, ConversationRef
from .events import (
    AssistantMessage,
    Done,
    ErrorEvent,
    NormalizedEvent,
    TextPart,
    TextStart,
    TextDelta,
    Usage,
)
from .parsers import BinaryFrameParser, LineDelimitedParser, SnapshotDiffer, encode_frame
from .transport import BrowserTransport, HttpTransport, TransportRequest

__all__ = [
    "AbortSignal",
    "CompletionRequest",
    "InvocationState",
    "StreamAdapter",
    "ContinuityStore",
    "ConversationRef",
    "AssistantMessage",
    "Done",
    "ErrorEvent",
    "NormalizedEvent",
    "TextPart",
    "TextStart",
    "TextDelta",
    "Usage",
    "BinaryFrameParser",
    "LineDelimitedParser",
    "SnapshotDiffer",
    "encode_frame",
    "BrowserTransport",
    "HttpTransport",
    "TransportRequest",
]
