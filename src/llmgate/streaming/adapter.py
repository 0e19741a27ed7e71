"""Stream adapter - turns one provider response into normalized events.

A StreamAdapter runs a single invocation:

    idle -> sending -> streaming -> done | error

(or ``cancelled`` when the abort signal fires or the consumer stops
iterating). The adapter is not restartable; build a new one per turn and
share the ContinuityStore between them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Iterator, Optional

from opentelemetry import trace

from ..auth.web import parse_web_auth
from ..catalog.types import ProviderConfig
from ..errors import ErrorCode, StreamError
from .abort import AbortSignal
from .continuity import ContinuityStore, ConversationRef
from .events import (
    AssistantMessage,
    Done,
    ErrorEvent,
    NormalizedEvent,
    TextPartAccumulator,
    Usage,
)
from .parsers import SnapshotDiffer
from .protocols.base import SNAPSHOT, InvocationContext, ProviderProtocol, extract_prompt
from .transport import Transport

tracer = trace.get_tracer(__name__)


class InvocationState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"


TERMINAL_STATES = (InvocationState.DONE, InvocationState.ERROR, InvocationState.CANCELLED)


@dataclass
class CompletionRequest:
    """One streamed completion.

    Attributes:
        provider: Provider id
        model: Model id
        config: Resolved provider configuration
        messages: Conversation messages (``{"role": ..., "content": ...}``)
        session_key: Continuity key; turns sharing it continue one conversation
        secret: Literal secret for the provider (already dereferenced)
    """

    provider: str
    model: str
    config: ProviderConfig
    messages: list[dict[str, Any]] = field(default_factory=list)
    session_key: str = "default"
    secret: str = ""


def _first_wins(current: Optional[ConversationRef], found: Optional[ConversationRef]) -> Optional[ConversationRef]:
    """Fill fields of ``current`` that are still unset from ``found``."""
    if found is None or found.empty:
        return current
    if current is None:
        return found
    return ConversationRef(
        conversation_id=current.conversation_id or found.conversation_id,
        parent_turn_id=current.parent_turn_id or found.parent_turn_id,
    )


async def _read_chunks(chunks: AsyncIterator[bytes], abort: Optional[AbortSignal]) -> AsyncIterator[bytes]:
    """Yield response chunks until the body ends or ``abort`` fires.

    A read still pending when the signal fires is cancelled, so a stalled
    provider cannot keep the invocation open.
    """
    if abort is None:
        async for chunk in chunks:
            yield chunk
        return

    aborted = asyncio.ensure_future(abort.wait())
    read: Optional[asyncio.Future] = None
    try:
        while not aborted.done():
            read = asyncio.ensure_future(chunks.__anext__())
            await asyncio.wait({read, aborted}, return_when=asyncio.FIRST_COMPLETED)
            if not read.done():
                read.cancel()
                await asyncio.gather(read, return_exceptions=True)
                return
            try:
                chunk = read.result()
            except StopAsyncIteration:
                return
            yield chunk
    finally:
        aborted.cancel()
        if read is not None and not read.done():
            read.cancel()


class StreamAdapter:
    """Drives a ProviderProtocol over a Transport.

    Args:
        protocol: Wire format of the provider
        transport: HTTP or browser transport
        continuity: Store holding conversation ids per session key
    """

    def __init__(self, protocol: ProviderProtocol, transport: Transport, continuity: ContinuityStore):
        self.protocol = protocol
        self.transport = transport
        self.continuity = continuity
        self.state = InvocationState.IDLE

    def _advance(self, state: InvocationState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"invocation already {self.state.value}")
        self.state = state

    def _cancel(self, request: CompletionRequest, abort: AbortSignal) -> None:
        logging.info(
            "[llmgate.stream] %s/%s cancelled: %s", request.provider, request.model, abort.reason
        )
        self._advance(InvocationState.CANCELLED)

    async def stream(
        self,
        request: CompletionRequest,
        abort: Optional[AbortSignal] = None,
    ) -> AsyncIterator[NormalizedEvent]:
        """Run the invocation and yield normalized events.

        Yields zero or more TextStart/TextDelta events followed by exactly
        one Done or ErrorEvent. A cancelled invocation yields neither.

        Raises:
            RuntimeError: If this adapter has already been started
        """
        if self.state is not InvocationState.IDLE:
            raise RuntimeError(f"StreamAdapter cannot be restarted (state: {self.state.value})")

        prompt = extract_prompt(request.messages)
        if not prompt.strip():
            self.state = InvocationState.ERROR
            yield ErrorEvent(ErrorCode.EMPTY_PROMPT, "no user message text to send")
            return

        span = tracer.start_span(
            "llmgate.stream",
            attributes={
                "llmgate.provider": request.provider,
                "llmgate.model": request.model,
                "llmgate.api": self.protocol.api,
                "llmgate.session": request.session_key,
                "llmgate.prompt.length": len(prompt),
            },
        )
        events = self._run(request, prompt, abort)
        try:
            async with self.continuity.lock(request.session_key):
                while True:
                    # The span is current only while the invocation runs, never across a yield
                    with trace.use_span(span, end_on_exit=False):
                        try:
                            event = await events.__anext__()
                        except StopAsyncIteration:
                            break
                    if isinstance(event, ErrorEvent):
                        span.set_status(trace.Status(trace.StatusCode.ERROR, event.code.value))
                        span.set_attribute("llmgate.error", event.message)
                    elif isinstance(event, Done):
                        span.set_attribute("llmgate.response.length", len(event.message.text))
                        span.set_status(trace.Status(trace.StatusCode.OK))
                    yield event
        finally:
            # Releases the transport when the consumer stops early
            await events.aclose()
            if self.state not in TERMINAL_STATES:
                self.state = InvocationState.CANCELLED
            span.set_attribute("llmgate.state", self.state.value)
            span.end()

    async def _run(
        self,
        request: CompletionRequest,
        prompt: str,
        abort: Optional[AbortSignal],
    ) -> AsyncIterator[NormalizedEvent]:
        prior = self.continuity.get(request.session_key) or ConversationRef()
        ctx = InvocationContext(
            provider=request.provider,
            model=request.model,
            config=request.config,
            prompt=prompt,
            messages=request.messages,
            secret=request.secret,
            auth=parse_web_auth(request.secret),
            ref=None if prior.empty else prior,
            transport=self.transport,
        )
        turn = _Turn(self.protocol, staged=None)

        try:
            self._advance(InvocationState.SENDING)
            if abort is not None and abort.is_aborted():
                self._cancel(request, abort)
                return

            turn.staged = await self.protocol.prepare(ctx)
            http_request = self.protocol.build_request(ctx)

            async with self.transport.open(http_request) as response:
                if not 200 <= response.status < 300:
                    body = await response.read_text()
                    raise self.protocol.classify_status(response.status, body)

                self._advance(InvocationState.STREAMING)
                parser = self.protocol.new_parser()
                received = False

                chunks = _read_chunks(response.aiter_bytes(), abort)
                try:
                    async for chunk in chunks:
                        if abort is not None and abort.is_aborted():
                            self._cancel(request, abort)
                            return
                        if not chunk:
                            continue
                        received = True
                        for event in turn.consume(parser.feed(chunk)):
                            if abort is not None and abort.is_aborted():
                                self._cancel(request, abort)
                                return
                            yield event
                        if turn.done or parser.finished:
                            break
                finally:
                    await chunks.aclose()

                if abort is not None and abort.is_aborted():
                    self._cancel(request, abort)
                    return

                if not turn.done and not parser.finished:
                    for event in turn.consume(parser.flush()):
                        yield event

            if abort is not None and abort.is_aborted():
                self._cancel(request, abort)
                return
            if not received:
                raise StreamError(
                    ErrorCode.NO_RESPONSE_BODY,
                    f"{request.provider}: response had no body",
                )

            message = AssistantMessage(
                provider=request.provider,
                model=request.model,
                api=self.protocol.api,
                content=turn.accumulator.parts(),
                usage=Usage.estimate(prompt, turn.accumulator.text),
            )
            self.continuity.set(request.session_key, prior.merged(turn.staged))
            self._advance(InvocationState.DONE)
            yield Done(message)

        except StreamError as e:
            logging.warning("[llmgate.stream] %s/%s failed: %s", request.provider, request.model, e.message)
            self._advance(InvocationState.ERROR)
            yield ErrorEvent(e.code, e.message)
        except Exception as e:
            logging.warning(
                "[llmgate.stream] %s/%s transport failure: %s", request.provider, request.model, e
            )
            self._advance(InvocationState.ERROR)
            yield ErrorEvent(ErrorCode.PROTOCOL_ERROR, f"{request.provider}: {e}")


class _Turn:
    """Per-invocation accumulation of text and continuity ids."""

    def __init__(self, protocol: ProviderProtocol, staged: Optional[ConversationRef]):
        self.protocol = protocol
        self.staged = staged
        self.done = False
        self.accumulator = TextPartAccumulator()
        self.differ = SnapshotDiffer() if protocol.text_mode == SNAPSHOT else None

    def consume(self, payloads: list[dict[str, Any]]) -> Iterator[NormalizedEvent]:
        """Yield events for parsed payloads; raises StreamError on in-band errors."""
        for payload in payloads:
            error = self.protocol.check_payload(payload)
            if error is not None:
                raise error
            self.staged = _first_wins(self.staged, self.protocol.extract_ref(payload))
            text = self.protocol.extract_text(payload)
            if text:
                delta = self.differ.diff(text) if self.differ is not None else text
                yield from self.accumulator.append(0, delta)
            if self.protocol.is_done(payload):
                self.done = True
                return


__all__ = ["InvocationState", "CompletionRequest", "StreamAdapter"]
