"""
API client for the agent builder platform.

This module provides clients for:
- Agents, keys and attachments
- Sessions, results, calendar events and audit logs
- Products and orders
- Usage statistics
- Memory (vector stores)
- Chat (see ``chat.py``)
"""

import logging
from typing import Any, Optional

import httpx

from .base import APIError, BaseClient, Params, Payload, error_message
from .chat import ChatClient
from .config import DEFAULT_BASE_URL, ClientSettings
from .models import AggregatedStats, VectorStoreEntry
from .protocol import LegacyFormat

logger = logging.getLogger(__name__)


class AgentClient(BaseClient):
    """
    Client for agent definitions.

    Example:
        ```python
        agents = await client.agent.list_agents()
        await client.agent.upsert_agent(Agent(display_name="Support bot"))
        ```
    """

    async def list_agents(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/agent", params=params)

    async def upsert_agent(self, agent: Payload) -> Any:
        return await self._request("PUT", "/api/agent", agent)

    async def delete_agent(self, agent_id: str) -> Any:
        return await self._request("DELETE", f"/api/agent/{agent_id}")


class KeysClient(BaseClient):
    """Client for API keys."""

    async def list_keys(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/keys", params=params)

    async def upsert_key(self, key: Payload) -> Any:
        return await self._request("PUT", "/api/keys", key)

    async def delete_key(self, key_locator_hash: str) -> Any:
        return await self._request("DELETE", f"/api/keys/{key_locator_hash}")


class AttachmentClient(BaseClient):
    """Client for attachments (uploaded files and their extracted content)."""

    async def list_attachments(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/attachment")

    async def query_attachments(self, params: Params) -> Any:
        return await self._request("GET", "/api/attachment/query", params=params)

    async def upsert_attachment(self, attachment: Payload) -> Any:
        return await self._request("PUT", "/api/attachment", attachment)

    async def delete_attachment(self, storage_key: str) -> Any:
        return await self._request("DELETE", f"/api/attachment/{storage_key}")

    async def export_attachments(self) -> bytes:
        """
        Download all attachments as one archive.

        Returns:
            Raw archive bytes
        """
        response = await self._client.get(
            "/api/attachment/export",
            headers=self._auth_headers(),
        )
        if not response.is_success:
            raise APIError(response.status_code, error_message(response))
        return response.content


class StatsClient(BaseClient):
    """Client for token usage statistics."""

    async def put_stats(self, stats: Payload) -> Any:
        return await self._request("PUT", "/api/stats", stats)

    async def get_aggregated_stats(self) -> AggregatedStats:
        """Usage totals for today, this month and last month."""
        data = await self._request("GET", "/api/stats/aggregated")
        return AggregatedStats.model_validate(data.get("data") or {})


class AuditClient(BaseClient):
    """Client for the audit log."""

    async def list_audit(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/audit", params=params)

    async def create_audit_log(self, audit: Payload) -> Any:
        return await self._request("PUT", "/api/audit", audit)


class ResultClient(BaseClient):
    """Client for session results."""

    async def list_results(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/result", params=params)

    async def delete_result(self, session_id: str) -> Any:
        return await self._request("DELETE", f"/api/result/{session_id}")


class SessionClient(BaseClient):
    """
    Client for chat sessions.

    Example:
        ```python
        sessions = await client.session.list_sessions({"agentId": "agent_001"})
        for session in sessions:
            print(session["id"], session.get("userEmail"))
        ```
    """

    async def list_sessions(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/session", params=params)

    async def delete_session(self, session_id: str) -> Any:
        return await self._request("DELETE", f"/api/session/{session_id}")


class CalendarClient(BaseClient):
    """Client for calendar events."""

    async def list_events(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/calendar", params=params)

    async def upsert_event(self, event: Payload) -> Any:
        return await self._request("PUT", "/api/calendar", event)

    async def delete_event(self, event_id: str) -> Any:
        return await self._request("DELETE", f"/api/calendar/{event_id}")


class ProductClient(BaseClient):
    """Client for the product catalog."""

    async def list_products(self, params: Params = None) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/product", params=params)

    async def upsert_product(self, product: Payload) -> Any:
        return await self._request("PUT", "/api/product", product)

    async def delete_product(self, product_id: str) -> Any:
        return await self._request("DELETE", f"/api/product/{product_id}")


class OrderClient(BaseClient):
    """Client for orders."""

    async def list_orders(self, params: Params = None) -> Any:
        return await self._request("GET", "/api/order", params=params)

    async def upsert_order(self, order: Payload) -> Any:
        return await self._request("PUT", "/api/order", order)

    async def delete_order(self, order_id: str) -> Any:
        return await self._request("DELETE", f"/api/order/{order_id}")


class MemoryClient(BaseClient):
    """
    Client for memory stores (vector stores the agents can search).

    Example:
        ```python
        await client.memory.create_store("faq")
        embedding = await client.memory.generate_embeddings("How do I reset my password?")
        await client.memory.create_record(
            "faq",
            VectorStoreEntry(id="1", content="...", embedding=embedding["embedding"]),
        )
        ```
    """

    async def create_store(self, store_name: str) -> dict[str, Any]:
        return await self._request("POST", "/api/memory/create", {"storeName": store_name})

    async def list_stores(self, params: Params = None) -> dict[str, Any]:
        """Paginated store metadata (``files``, ``limit``, ``offset``, ``hasMore``, ``total``)."""
        return await self._request("GET", "/api/memory/query", params=params)

    async def get_store(self, filename: str) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/memory/{filename}")

    async def delete_store(self, filename: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/api/memory/{filename}")

    async def list_records(self, filename: str, params: Params = None) -> dict[str, Any]:
        """
        List or search records of a store.

        Args:
            filename: Store file name
            params: ``limit``, ``offset``, ``embeddingSearch`` and ``topK``

        Returns:
            Paginated records (``rows``, ``total``, ``vectorSearchQuery``)
        """
        return await self._request("GET", f"/api/memory/{filename}/records", params=params)

    async def create_record(self, filename: str, record: VectorStoreEntry) -> dict[str, Any]:
        return await self._request("POST", f"/api/memory/{filename}/records", record)

    async def delete_record(self, filename: str, record_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/api/memory/{filename}/records/{record_id}")

    async def generate_embeddings(self, content: str) -> dict[str, Any]:
        return await self._request("POST", "/api/memory/embeddings", {"content": content})


class AgentBuilderClient:
    """
    Main client for the agent builder API.

    This client provides access to all services through sub-clients:
    ``agent``, ``keys``, ``attachment``, ``stats``, ``audit``, ``result``,
    ``session``, ``calendar``, ``product``, ``order``, ``memory`` and ``chat``.

    Example:
        ```python
        async with AgentBuilderClient.from_env() as client:
            products = await client.product.list_products()

            state = await client.chat.collect_messages(
                [{"role": "user", "content": "Hello"}],
                {"agent_id": "agent_001"},
            )
            print(state.last_message.content)
        ```
    """

    def __init__(
        self,
        api_key: str,
        database_id_hash: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 300.0,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        legacy: Optional[LegacyFormat] = LegacyFormat(),
    ):
        """
        Initialize the client.

        Args:
            api_key: API key, sent as a bearer token
            database_id_hash: Database the key belongs to
            base_url: API root URL
            timeout: HTTP timeout in seconds
            http_client: Pre-configured client to use instead of creating one
            transport: Custom transport for the created client (ignored with http_client)
            legacy: Legacy ``data:`` fallback rules for chat streams, or None
        """
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

        args = (self._client, api_key, database_id_hash)
        self.agent = AgentClient(*args)
        self.keys = KeysClient(*args)
        self.attachment = AttachmentClient(*args)
        self.stats = StatsClient(*args)
        self.audit = AuditClient(*args)
        self.result = ResultClient(*args)
        self.session = SessionClient(*args)
        self.calendar = CalendarClient(*args)
        self.product = ProductClient(*args)
        self.order = OrderClient(*args)
        self.memory = MemoryClient(*args)
        self.chat = ChatClient(*args, legacy=legacy)

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "AgentBuilderClient":
        return cls(
            api_key=settings.api_key,
            database_id_hash=settings.database_id_hash,
            base_url=settings.base_url,
            timeout=settings.timeout,
            **kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AgentBuilderClient":
        """Build a client from ``OAB_*`` environment variables."""
        return cls.from_settings(ClientSettings.from_env(), **kwargs)

    async def close(self) -> None:
        """Close the HTTP client (only if this client created it)."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AgentBuilderClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
