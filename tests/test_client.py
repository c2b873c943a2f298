import json

import httpx
import pytest

from agentbuilder_sdk import (
    Agent,
    AgentBuilderClient,
    APIError,
    ChatAttachment,
    ChatMessage,
    ChatRequestOptions,
    ClientSettings,
    Order,
    OrderItem,
    OrderStatus,
    Price,
    VectorStoreEntry,
)

from .conftest import API_KEY, BASE_URL, DATABASE_ID_HASH


class TestRequestPlumbing:
    async def test_auth_headers(self, client, api):
        api.respond_json([])
        await client.agent.list_agents()
        request = api.last_request
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"
        assert request.headers["database-id-hash"] == DATABASE_ID_HASH

    async def test_query_params_are_stringified(self, client, api):
        api.respond_json([])
        await client.session.list_sessions({"agentId": "a1", "limit": 10})
        assert api.last_request.url == httpx.URL(f"{BASE_URL}/api/session?agentId=a1&limit=10")

    async def test_get_has_no_body(self, client, api):
        api.respond_json([])
        await client.attachment.list_attachments()
        assert api.last_request.method == "GET"
        assert api.last_request.content == b""

    async def test_model_payload_uses_aliases_and_drops_none(self, client, api):
        api.respond_json({"status": 200})
        await client.agent.upsert_agent(Agent(display_name="Support", safety_rules="be nice"))
        assert api.last_request.method == "PUT"
        assert api.last_request.headers["Content-Type"] == "application/json"
        assert api.last_json() == {"displayName": "Support", "safetyRules": "be nice"}

    async def test_dict_payload_is_sent_as_is(self, client, api):
        api.respond_json({"status": 200})
        await client.calendar.upsert_event({"id": "e1", "title": "Call", "agentId": "a1"})
        assert api.last_json() == {"id": "e1", "title": "Call", "agentId": "a1"}

    async def test_empty_body_decodes_to_empty_dict(self, client, api):
        api.handler = lambda request: httpx.Response(200)
        assert await client.product.delete_product("p1") == {}

    async def test_error_message_from_json(self, client, api):
        api.respond_json({"message": "Invalid key"}, status_code=403)
        with pytest.raises(APIError) as exc_info:
            await client.keys.list_keys()
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Invalid key"

    async def test_error_falls_back_to_reason_phrase(self, client, api):
        api.handler = lambda request: httpx.Response(500, text="oops")
        with pytest.raises(APIError, match=r"Error \(500\): Internal Server Error"):
            await client.audit.list_audit()

    async def test_connection_errors_propagate(self, client, api):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        api.handler = refuse
        with pytest.raises(httpx.ConnectError):
            await client.order.list_orders()


class TestResources:
    @pytest.mark.parametrize(
        "call,method,path",
        [
            (lambda c: c.agent.list_agents(), "GET", "/api/agent"),
            (lambda c: c.agent.delete_agent("a1"), "DELETE", "/api/agent/a1"),
            (lambda c: c.keys.upsert_key({"displayName": "k"}), "PUT", "/api/keys"),
            (lambda c: c.keys.delete_key("loc"), "DELETE", "/api/keys/loc"),
            (lambda c: c.attachment.query_attachments({"limit": 5}), "GET", "/api/attachment/query"),
            (lambda c: c.attachment.upsert_attachment({"storageKey": "s"}), "PUT", "/api/attachment"),
            (lambda c: c.attachment.delete_attachment("s1"), "DELETE", "/api/attachment/s1"),
            (lambda c: c.stats.put_stats({"eventName": "chat"}), "PUT", "/api/stats"),
            (lambda c: c.audit.create_audit_log({"eventName": "x"}), "PUT", "/api/audit"),
            (lambda c: c.result.list_results(), "GET", "/api/result"),
            (lambda c: c.result.delete_result("s1"), "DELETE", "/api/result/s1"),
            (lambda c: c.session.delete_session("s1"), "DELETE", "/api/session/s1"),
            (lambda c: c.calendar.list_events(), "GET", "/api/calendar"),
            (lambda c: c.calendar.delete_event("e1"), "DELETE", "/api/calendar/e1"),
            (lambda c: c.product.list_products(), "GET", "/api/product"),
            (lambda c: c.product.upsert_product({"sku": "A"}), "PUT", "/api/product"),
            (lambda c: c.order.upsert_order({"id": "o1"}), "PUT", "/api/order"),
            (lambda c: c.order.delete_order("o1"), "DELETE", "/api/order/o1"),
            (lambda c: c.memory.list_stores({"limit": 10}), "GET", "/api/memory/query"),
            (lambda c: c.memory.get_store("faq"), "GET", "/api/memory/faq"),
            (lambda c: c.memory.delete_store("faq"), "DELETE", "/api/memory/faq"),
            (lambda c: c.memory.list_records("faq", {"topK": 3}), "GET", "/api/memory/faq/records"),
            (lambda c: c.memory.delete_record("faq", "r1"), "DELETE", "/api/memory/faq/records/r1"),
        ],
    )
    async def test_endpoint_mapping(self, client, api, call, method, path):
        api.respond_json({})
        await call(client)
        assert api.last_request.method == method
        assert api.last_request.url.path == path

    async def test_list_returns_decoded_json(self, client, api):
        api.respond_json([{"id": "p1", "sku": "A", "name": "Mug"}])
        assert await client.product.list_products() == [{"id": "p1", "sku": "A", "name": "Mug"}]

    async def test_order_payload(self, client, api):
        api.respond_json({"status": 200})
        order = Order(
            id="o1",
            items=[OrderItem(id="i1", price=Price(value=9.5, currency="EUR"), quantity=2)],
        )
        await client.order.upsert_order(order)
        assert api.last_json() == {
            "id": "o1",
            "status": "shopping_cart",
            "items": [{"id": "i1", "price": {"value": 9.5, "currency": "EUR"}, "quantity": 2}],
        }
        assert order.status is OrderStatus.SHOPPING_CART

    async def test_aggregated_stats(self, client, api):
        api.respond_json(
            {
                "message": "ok",
                "status": 200,
                "data": {
                    "thisMonth": {"overallTokens": 30, "promptTokens": 10,
                                  "completionTokens": 20, "overalUSD": 0.5, "requests": 3},
                    "today": {"overallTokens": 3, "requests": 1},
                },
            }
        )
        stats = await client.stats.get_aggregated_stats()
        assert stats.this_month.overall_tokens == 30
        assert stats.this_month.overall_usd == 0.5
        assert stats.today.requests == 1
        assert stats.last_month.requests == 0

    async def test_export_attachments_returns_bytes(self, client, api):
        api.handler = lambda request: httpx.Response(200, content=b"PK\x03\x04zip")
        assert await client.attachment.export_attachments() == b"PK\x03\x04zip"
        assert api.last_request.url.path == "/api/attachment/export"

    async def test_export_attachments_error(self, client, api):
        api.respond_json({"message": "nothing to export"}, status_code=404)
        with pytest.raises(APIError, match="nothing to export"):
            await client.attachment.export_attachments()

    async def test_memory_create_and_embeddings(self, client, api):
        api.respond_json({"message": "created"})
        await client.memory.create_store("faq")
        assert api.last_request.method == "POST"
        assert api.last_json() == {"storeName": "faq"}

        api.respond_json({"embedding": [0.1, 0.2]})
        assert await client.memory.generate_embeddings("hi") == {"embedding": [0.1, 0.2]}
        assert api.last_json() == {"content": "hi"}

        api.respond_json({"success": True})
        await client.memory.create_record(
            "faq", VectorStoreEntry(id="r1", content="hi", embedding=[0.1], metadata={"a": 1})
        )
        assert api.last_request.url.path == "/api/memory/faq/records"
        assert api.last_json() == {
            "id": "r1", "content": "hi", "embedding": [0.1], "metadata": {"a": 1}
        }


class TestChatRequest:
    async def test_headers_and_body(self, client, api):
        api.respond_stream('0:"ok"\n')
        options = ChatRequestOptions(
            agent_id="agent-1",
            session_id="sess-1",
            headers={"Current-Timezone": "Europe/Warsaw", "X-Trace": "t1"},
            attachments=[ChatAttachment(name="a.png", content_type="image/png",
                                        url="https://files.test/a.png")],
        )
        await client.chat.collect_messages([ChatMessage(role="user", content="hi")], options)

        request = api.last_request
        assert request.method == "POST"
        assert request.url.path == "/api/chat/"
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"
        assert request.headers["Database-Id-Hash"] == DATABASE_ID_HASH
        assert request.headers["Agent-Id"] == "agent-1"
        assert request.headers["Agent-Session-Id"] == "sess-1"
        assert request.headers["Current-Timezone"] == "Europe/Warsaw"
        assert request.headers["X-Trace"] == "t1"
        assert "Current-Datetime-Iso" in request.headers
        assert "Current-Datetime" in request.headers
        assert json.loads(request.content) == {
            "messages": [{"role": "user", "content": "hi"}],
            "experimental_attachments": [
                {"name": "a.png", "contentType": "image/png", "url": "https://files.test/a.png"}
            ],
        }

    async def test_caller_headers_replace_defaults_case_insensitively(self, client, api):
        api.respond_stream('0:"ok"\n')
        options = {
            "agent_id": "agent-1",
            "headers": {"agent-id": "agent-2", "authorization": "Bearer other"},
        }
        await client.chat.collect_messages([{"role": "user", "content": "hi"}], options)
        request = api.last_request
        assert request.headers.get_list("agent-id") == ["agent-2"]
        assert request.headers.get_list("authorization") == ["Bearer other"]

    async def test_no_session_header_without_session(self, client, api):
        api.respond_stream('0:"ok"\n')
        await client.chat.collect_messages([{"role": "user", "content": "hi"}], {"agent_id": "a"})
        assert "Agent-Session-Id" not in api.last_request.headers
        assert "experimental_attachments" not in api.last_json()

    @pytest.mark.parametrize("options", [{}, {"agent_id": ""}])
    async def test_agent_id_is_required(self, client, api, options):
        with pytest.raises(ValueError):
            client.chat.stream_chat([{"role": "user", "content": "hi"}], options)
        assert api.requests == []

    async def test_chat_yields_the_raw_response(self, client, api):
        api.respond_stream('0:"raw"\n', session_id="s9")
        async with client.chat.chat([{"role": "user", "content": "hi"}], {"agent_id": "a"}) as resp:
            assert resp.headers["Agent-Session-Id"] == "s9"
            assert (await resp.aread()) == b'0:"raw"\n'


class TestClientLifecycle:
    async def test_from_settings(self):
        settings = ClientSettings(
            api_key="k", database_id_hash="d", base_url="https://example.test/", timeout=5
        )
        async with AgentBuilderClient.from_settings(settings) as client:
            assert client._client.base_url.host == "example.test"
            assert client._client.timeout.read == 5

    async def test_injected_http_client_is_not_closed(self):
        http_client = httpx.AsyncClient(base_url=BASE_URL)
        async with AgentBuilderClient(api_key="k", database_id_hash="d", http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()
