"""
Python SDK for the agent builder platform.

This SDK provides:

- Typed clients for agents, keys, attachments, sessions, products, orders,
  calendar events, audit logs, usage stats and memory stores
- A chat client that decodes the streamed answer into typed events
- A mock chat server for offline development (``agentbuilder_sdk.mock_server``,
  requires the ``mock`` extra)

Quick Start:
    ```python
    from agentbuilder_sdk import AgentBuilderClient, StreamEventKind

    async with AgentBuilderClient(api_key="...", database_id_hash="...") as client:
        messages = [{"role": "user", "content": "What is the capital of France?"}]

        async with client.chat.stream_chat(messages, {"agent_id": "agent_001"}) as events:
            async for event in events:
                if event.kind is StreamEventKind.TEXT:
                    print(event.content, end="")
    ```

Keeping the conversation going:
    ```python
    state = await client.chat.collect_messages(messages, {"agent_id": "agent_001"})
    messages = [*state.messages, {"role": "user", "content": "And of Spain?"}]
    state = await client.chat.collect_messages(
        messages, {"agent_id": "agent_001", "session_id": state.session_id}
    )
    ```
"""

from .base import AgentBuilderError, APIError, BaseClient
from .chat import ChatClient
from .client import (
    AgentBuilderClient,
    AgentClient,
    AttachmentClient,
    AuditClient,
    CalendarClient,
    KeysClient,
    MemoryClient,
    OrderClient,
    ProductClient,
    ResultClient,
    SessionClient,
    StatsClient,
)
from .config import ClientSettings
from .models import (
    Address,
    Agent,
    AggregatedStats,
    Attachment,
    Audit,
    CalendarEvent,
    ChatAttachment,
    ChatMessage,
    ChatRequestOptions,
    ConversationState,
    Customer,
    Key,
    Order,
    OrderItem,
    OrderNote,
    OrderStatus,
    OrderStatusChange,
    Price,
    Product,
    ProductAttribute,
    ProductImage,
    ProductVariant,
    Result,
    Role,
    Session,
    Stat,
    StatsPeriod,
    StreamEvent,
    StreamEventKind,
    VectorStoreEntry,
)
from .protocol import (
    TAG_KINDS,
    FrameDecoder,
    LegacyFormat,
    StreamFrame,
    format_event,
    format_frame,
    split_frames,
)
from .streaming import SESSION_HEADER, EventStream, collect_messages, dispatch_events

__version__ = "0.1.0"

__all__ = [
    # Client
    "AgentBuilderClient",
    "AgentBuilderError",
    "APIError",
    "BaseClient",
    "ClientSettings",
    "AgentClient",
    "KeysClient",
    "AttachmentClient",
    "StatsClient",
    "AuditClient",
    "ResultClient",
    "SessionClient",
    "CalendarClient",
    "ProductClient",
    "OrderClient",
    "MemoryClient",
    "ChatClient",
    # Chat stream
    "EventStream",
    "FrameDecoder",
    "LegacyFormat",
    "StreamFrame",
    "SESSION_HEADER",
    "TAG_KINDS",
    "collect_messages",
    "dispatch_events",
    "format_event",
    "format_frame",
    "split_frames",
    # Chat models
    "ChatAttachment",
    "ChatMessage",
    "ChatRequestOptions",
    "ConversationState",
    "Role",
    "StreamEvent",
    "StreamEventKind",
    # Resource models
    "Address",
    "Agent",
    "AggregatedStats",
    "Attachment",
    "Audit",
    "CalendarEvent",
    "Customer",
    "Key",
    "Order",
    "OrderItem",
    "OrderNote",
    "OrderStatus",
    "OrderStatusChange",
    "Price",
    "Product",
    "ProductAttribute",
    "ProductImage",
    "ProductVariant",
    "Result",
    "Session",
    "Stat",
    "StatsPeriod",
    "VectorStoreEntry",
]
