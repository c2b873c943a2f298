"""
Consumption modes for the chat event stream.

``EventStream`` is the single decoding primitive: it reads one chat response
and yields ``StreamEvent`` objects lazily. ``collect_messages`` and
``dispatch_events`` are built on top of it.

Example:
    ```python
    async with client.chat.stream_chat(messages, options) as events:
        async for event in events:
            if event.kind is StreamEventKind.TEXT:
                print(event.content, end="")
    ```
"""

import inspect
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Callable, Optional, Union

import httpx

from .models import ChatMessage, ConversationState, Role, StreamEvent, StreamEventKind
from .protocol import FrameDecoder, LegacyFormat

logger = logging.getLogger(__name__)

SESSION_HEADER = "Agent-Session-Id"

Handler = Callable[..., Any]
HandlerTable = Mapping[Union[StreamEventKind, str], Handler]
ResponseOpener = Callable[[], AbstractAsyncContextManager[httpx.Response]]


@asynccontextmanager
async def _owned(response: httpx.Response) -> AsyncIterator[httpx.Response]:
    try:
        yield response
    finally:
        await response.aclose()


class EventStream:
    """
    Lazy, single-pass sequence of events decoded from one chat response.

    The request is sent when iteration starts. The response is released when
    the stream ends, when an error is raised, or when ``aclose()`` is called;
    use ``async with`` to guarantee release when leaving a loop early.

    An instance serves exactly one request and must not be iterated from
    two places at once.
    """

    def __init__(
        self,
        opener: ResponseOpener,
        legacy: Optional[LegacyFormat] = LegacyFormat(),
    ):
        """
        Initialize the stream.

        Args:
            opener: Returns an async context manager yielding a successful response
            legacy: Legacy ``data:`` fallback rules, or None to disable it
        """
        self._opener = opener
        self._legacy = legacy
        self._events: Optional[AsyncIterator[StreamEvent]] = None
        self._closed = False
        self.session_id: Optional[str] = None
        self.headers: Optional[httpx.Headers] = None

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        legacy: Optional[LegacyFormat] = LegacyFormat(),
    ) -> "EventStream":
        """Wrap an already-open, already-validated streaming response."""
        return cls(lambda: _owned(response), legacy=legacy)

    async def _decode(self) -> AsyncIterator[StreamEvent]:
        async with self._opener() as response:
            self.headers = response.headers
            self.session_id = response.headers.get(SESSION_HEADER)
            decoder = FrameDecoder(self._legacy)
            async for chunk in response.aiter_text():
                for event in decoder.feed(chunk):
                    yield event
                if decoder.done:
                    break
            decoder.close()

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> StreamEvent:
        if self._closed:
            raise StopAsyncIteration
        if self._events is None:
            self._events = self._decode()
        return await self._events.__anext__()

    async def aclose(self) -> None:
        """Stop the stream and release the underlying response."""
        self._closed = True
        if self._events is not None:
            await self._events.aclose()

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def _as_messages(messages: Iterable[Union[ChatMessage, dict[str, Any]]]) -> list[ChatMessage]:
    return [m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m) for m in messages]


async def collect_messages(
    events: EventStream,
    messages: Iterable[Union[ChatMessage, dict[str, Any]]],
) -> ConversationState:
    """
    Drain ``events`` and append the assembled assistant reply.

    Only text events contribute to the reply. The input messages are not
    modified; a failure from the stream propagates and nothing is appended.

    Args:
        events: The stream to consume
        messages: Conversation history sent with the request

    Returns:
        New conversation state with the reply appended and the session id
    """
    history = _as_messages(messages)
    parts: list[str] = []
    async with events:
        async for event in events:
            if event.kind is StreamEventKind.TEXT:
                parts.append(event.content)

    reply = ChatMessage(role=Role.ASSISTANT.value, content="".join(parts))
    return ConversationState(messages=(*history, reply), session_id=events.session_id)


def normalize_handlers(handlers: Optional[HandlerTable]) -> dict[StreamEventKind, Handler]:
    """
    Key a handler table by ``StreamEventKind``.

    Raises:
        ValueError: If a key is not a known event kind
    """
    table: dict[StreamEventKind, Handler] = {}
    for key, handler in (handlers or {}).items():
        try:
            kind = StreamEventKind(key)
        except ValueError:
            raise ValueError(f"Unknown stream event kind: {key!r}") from None
        table[kind] = handler
    return table


def describe_error(error: BaseException) -> str:
    return str(error) or type(error).__name__


async def _invoke(handler: Optional[Handler], *args: Any) -> None:
    if handler is None:
        return
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


async def dispatch_events(
    events: EventStream,
    handlers: Optional[HandlerTable] = None,
    on_finish: Optional[Handler] = None,
    on_error: Optional[Handler] = None,
) -> None:
    """
    Drain ``events``, calling the handler registered for each event kind.

    Handlers may be plain functions or coroutine functions and receive the
    event content. Kinds without a handler are skipped. ``on_finish`` runs
    after the stream ends normally. If the stream itself fails, ``on_error``
    receives a description of the failure and the exception is re-raised.
    Exceptions raised by handlers propagate unchanged.

    Args:
        events: The stream to consume
        handlers: Mapping from event kind (enum or its string value) to handler
        on_finish: Called with no arguments after a normal end of stream
        on_error: Called with an error description if the stream fails
    """
    table = normalize_handlers(handlers)
    async with events:
        while True:
            try:
                event = await events.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                logger.error(f"[dispatch] stream failed: {e}")
                await _invoke(on_error, describe_error(e))
                raise
            await _invoke(table.get(event.kind), event.content)
    await _invoke(on_finish)
