"""
Chat client.

Sends conversations to an agent and exposes the streamed answer in three
ways: as an async iterator of events, collected into the message history,
or dispatched to per-kind callbacks.
"""

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional, Union

import httpx

from .base import BaseClient, raise_for_status
from .models import ChatMessage, ChatRequestOptions, ConversationState
from .protocol import LegacyFormat
from .streaming import (
    SESSION_HEADER,
    EventStream,
    Handler,
    HandlerTable,
    collect_messages,
    dispatch_events,
)

logger = logging.getLogger(__name__)

CHAT_ENDPOINT = "/api/chat/"

Messages = Iterable[Union[ChatMessage, dict[str, Any]]]
Options = Union[ChatRequestOptions, dict[str, Any]]


def _coerce_options(options: Options) -> ChatRequestOptions:
    if not isinstance(options, ChatRequestOptions):
        options = ChatRequestOptions.model_validate(options or {})
    if not options.agent_id:
        raise ValueError("agent_id is required in ChatRequestOptions")
    return options


def _serialize_messages(messages: Messages) -> list[dict[str, Any]]:
    return [
        (m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m)).to_payload()
        for m in messages
    ]


class ChatClient(BaseClient):
    """
    Client for the agent chat endpoint.

    Example:
        ```python
        client = AgentBuilderClient(api_key="...", database_id_hash="...")
        options = ChatRequestOptions(agent_id="agent_001")

        # Iterate over events
        async with client.chat.stream_chat(messages, options) as events:
            async for event in events:
                if event.kind is StreamEventKind.TEXT:
                    print(event.content, end="")

        # Collect the reply into the conversation
        state = await client.chat.collect_messages(messages, options)
        print(state.last_message.content, state.session_id)

        # Callbacks per event kind
        await client.chat.stream_chat_with_callbacks(
            messages,
            options,
            handlers={"text": lambda t: print(t, end="")},
            on_finish=lambda: print(),
        )
        ```
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        database_id_hash: str,
        legacy: Optional[LegacyFormat] = LegacyFormat(),
    ):
        super().__init__(http_client, api_key, database_id_hash)
        self.legacy = legacy

    def _chat_headers(self, options: ChatRequestOptions) -> httpx.Headers:
        now = datetime.now().astimezone()
        headers = httpx.Headers(
            {
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "Database-Id-Hash": self._database_id_hash,
                "Agent-Id": options.agent_id,
                "Current-Datetime-Iso": now.isoformat(),
                "Current-Datetime": now.strftime("%m/%d/%Y, %I:%M:%S %p"),
                "Current-Timezone": now.tzname() or "UTC",
            }
        )
        if options.session_id:
            headers[SESSION_HEADER] = options.session_id
        # Header names are case-insensitive; caller values replace ours
        headers.update(options.headers)
        return headers

    @staticmethod
    def _chat_body(messages: Messages, options: ChatRequestOptions) -> dict[str, Any]:
        body: dict[str, Any] = {"messages": _serialize_messages(messages)}
        if options.attachments:
            body["experimental_attachments"] = [a.to_payload() for a in options.attachments]
        return body

    @asynccontextmanager
    async def chat(self, messages: Messages, options: Options) -> AsyncIterator[httpx.Response]:
        """
        Send messages to an agent and open the streamed response.

        The response body is usually the chat stream protocol; it is left
        unread so the caller decides how to consume it.

        Args:
            messages: Conversation history, oldest first
            options: Agent id, optional session id, headers and attachments

        Yields:
            The open response (status already checked)

        Raises:
            ValueError: If no agent id is given
            APIError: On a non-2xx response
        """
        options = _coerce_options(options)
        body = self._chat_body(messages, options)
        logger.debug(
            f"[chat] agent_id={options.agent_id}, session_id={options.session_id}, "
            f"messages={len(body['messages'])}"
        )

        async with self._client.stream(
            "POST",
            CHAT_ENDPOINT,
            json=body,
            headers=self._chat_headers(options),
        ) as response:
            await raise_for_status(response)
            yield response

    def stream_chat(self, messages: Messages, options: Options) -> EventStream:
        """
        Stream the agent's answer as typed events.

        Args:
            messages: Conversation history, oldest first
            options: Agent id, optional session id, headers and attachments

        Returns:
            A lazy ``EventStream``; the request is sent when iteration starts

        Note:
            Use the stream as ``async with`` (or wrap it in
            ``contextlib.aclosing``) to release the response when leaving the
            loop early. A bare ``async for`` that breaks out keeps the
            connection open until the stream is garbage collected.
        """
        options = _coerce_options(options)
        messages = list(messages)
        return EventStream(lambda: self.chat(messages, options), legacy=self.legacy)

    async def collect_messages(self, messages: Messages, options: Options) -> ConversationState:
        """
        Send messages and wait for the full answer.

        Args:
            messages: Conversation history, oldest first
            options: Agent id, optional session id, headers and attachments

        Returns:
            The history with the assistant reply appended, plus the session id
            the server assigned (None if it sent none)
        """
        messages = list(messages)
        return await collect_messages(self.stream_chat(messages, options), messages)

    async def stream_chat_with_callbacks(
        self,
        messages: Messages,
        options: Options,
        handlers: Optional[HandlerTable] = None,
        on_finish: Optional[Handler] = None,
        on_error: Optional[Handler] = None,
    ) -> None:
        """
        Stream the answer, invoking the handler registered for each event kind.

        Args:
            messages: Conversation history, oldest first
            options: Agent id, optional session id, headers and attachments
            handlers: Mapping from event kind to a callable taking the content
            on_finish: Called after the stream ends normally
            on_error: Called with an error description before a failure is re-raised
        """
        await dispatch_events(
            self.stream_chat(messages, options),
            handlers=handlers,
            on_finish=on_finish,
            on_error=on_error,
        )
