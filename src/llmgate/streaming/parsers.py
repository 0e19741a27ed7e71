"""Raw-frame parsers.

Three response shapes are handled:

- LineDelimitedParser: ``data: <json>`` lines (SSE) or bare JSON lines
  (NDJSON), ending with a ``[DONE]`` sentinel or end of stream.
- SnapshotDiffer: providers that resend the whole answer on every update;
  turns each snapshot into the new suffix.
- BinaryFrameParser: ``[flags:1][length:4 BE][json]`` envelopes (Connect
  streaming).

Parsers are incremental: ``feed`` accepts arbitrary chunk boundaries and
returns the payloads completed by that chunk.
"""

from __future__ import annotations

import codecs
import json
import logging
import struct
from typing import Any, Optional, Protocol, Union

FRAME_HEADER = struct.Struct(">BI")
END_STREAM_FLAG = 0x02


class FrameParser(Protocol):
    """Incremental parser yielding JSON object payloads."""

    finished: bool

    def feed(self, chunk: bytes) -> list[dict[str, Any]]: ...

    def flush(self) -> list[dict[str, Any]]: ...


class LineDelimitedParser:
    """Incremental parser for line-delimited event text.

    A trailing incomplete line stays buffered until the rest arrives.
    Malformed lines are skipped without ending the stream.

    Args:
        require_data_prefix: Only parse lines starting with ``data:``
            (SSE). When False, bare JSON lines are accepted as well.
        done_sentinel: Payload marking the end of the stream
    """

    def __init__(self, *, require_data_prefix: bool = True, done_sentinel: str = "[DONE]"):
        self.require_data_prefix = require_data_prefix
        self.done_sentinel = done_sentinel
        self.finished = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: Union[bytes, str]) -> list[dict[str, Any]]:
        if self.finished:
            return []
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        self._buffer += text
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._parse_lines(lines)

    def flush(self) -> list[dict[str, Any]]:
        """Parse whatever is left once the transport is exhausted."""
        if self.finished:
            return []
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._parse_lines(remainder.split("\n"))

    def _parse_lines(self, lines: list[str]) -> list[dict[str, Any]]:
        payloads = []
        for line in lines:
            payload = self._parse_line(line)
            if payload is not None:
                payloads.append(payload)
            if self.finished:
                break
        return payloads

    def _parse_line(self, line: str) -> Optional[dict[str, Any]]:
        line = line.strip()
        if not line:
            return None
        if line.startswith("data:"):
            data = line[len("data:"):].strip()
        elif self.require_data_prefix:
            # event:, id:, retry: and comment lines
            return None
        else:
            data = line
        if not data:
            return None
        if data == self.done_sentinel:
            self.finished = True
            return None
        try:
            payload = json.loads(data)
        except ValueError:
            logging.debug("[llmgate.parsers] Skipping malformed line: %.80s", data)
            return None
        if not isinstance(payload, dict):
            return None
        return payload


class SnapshotDiffer:
    """Turns full-buffer snapshots into incremental deltas.

    Only characters beyond what was already delivered are emitted. A
    snapshot that does not grow yields no delta; a longer snapshot that
    diverged from the delivered text still yields only the characters past
    the delivered length.
    """

    def __init__(self) -> None:
        self._delivered = 0

    @property
    def delivered(self) -> int:
        return self._delivered

    def diff(self, snapshot: str) -> str:
        if len(snapshot) <= self._delivered:
            return ""
        delta = snapshot[self._delivered:]
        self._delivered = len(snapshot)
        return delta


class BinaryFrameParser:
    """Incremental parser for length-prefixed binary frames.

    Each frame is a 1-byte flags field, a 4-byte big-endian payload length
    and a JSON payload. Partial headers and payloads are buffered across
    reads. A payload carrying a truthy ``done`` or an ``error`` field, or a
    frame with the end-of-stream flag, ends parsing and discards anything
    still buffered.
    """

    def __init__(self, terminal_fields: tuple[str, ...] = ("done", "error")):
        self.terminal_fields = terminal_fields
        self.finished = False
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> list[dict[str, Any]]:
        if self.finished:
            return []
        self._buffer.extend(chunk)
        payloads = []
        while len(self._buffer) >= FRAME_HEADER.size:
            flags, length = FRAME_HEADER.unpack_from(self._buffer, 0)
            end = FRAME_HEADER.size + length
            if len(self._buffer) < end:
                break
            raw = bytes(self._buffer[FRAME_HEADER.size:end])
            del self._buffer[:end]

            payload = self._decode(raw)
            if payload is not None and (payload or not flags & END_STREAM_FLAG):
                payloads.append(payload)
            if flags & END_STREAM_FLAG or (payload is not None and self._is_terminal(payload)):
                self.finished = True
                self._buffer.clear()
                break
        return payloads

    def flush(self) -> list[dict[str, Any]]:
        if self._buffer and not self.finished:
            logging.debug("[llmgate.parsers] Dropping %d bytes of incomplete frame", len(self._buffer))
        self._buffer.clear()
        return []

    def _is_terminal(self, payload: dict[str, Any]) -> bool:
        for name in self.terminal_fields:
            if payload.get(name):
                return True
        return False

    @staticmethod
    def _decode(raw: bytes) -> Optional[dict[str, Any]]:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            logging.debug("[llmgate.parsers] Skipping undecodable frame (%d bytes)", len(raw))
            return None
        return payload if isinstance(payload, dict) else None


def encode_frame(payload: dict[str, Any], flags: int = 0) -> bytes:
    """Wrap a JSON payload in a length-prefixed frame."""
    data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    return FRAME_HEADER.pack(flags, len(data)) + data


__all__ = [
    "FRAME_HEADER",
    "END_STREAM_FLAG",
    "FrameParser",
    "LineDelimitedParser",
    "SnapshotDiffer",
    "BinaryFrameParser",
    "encode_frame",
]
