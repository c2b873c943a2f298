import json
from collections.abc import AsyncIterator, Callable
from typing import Any, Optional

import httpx
import pytest

from agentbuilder_sdk import AgentBuilderClient

API_KEY = "test-key"
DATABASE_ID_HASH = "db-hash"
BASE_URL = "https://oab.test"


class RecordingStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks; records when it is closed."""

    def __init__(self, chunks: list[bytes], fail_after: Optional[int] = None):
        self.chunks = chunks
        self.fail_after = fail_after
        self.reads = 0
        self.closed = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            if self.fail_after is not None and self.reads >= self.fail_after:
                raise httpx.ReadError("connection reset")
            self.reads += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed += 1


def chunked(text: str, size: int) -> list[bytes]:
    data = text.encode("utf-8")
    return [data[i : i + size] for i in range(0, len(data), size)]


class FakeAPI:
    """Records requests and answers them with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.streams: list[RecordingStream] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)

    def respond_json(self, data: Any, status_code: int = 200) -> None:
        self.handler = lambda request: httpx.Response(status_code, json=data)

    def respond_stream(
        self,
        text: str,
        chunk_size: Optional[int] = None,
        session_id: Optional[str] = None,
        fail_after: Optional[int] = None,
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            chunks = chunked(text, chunk_size) if chunk_size else [text.encode("utf-8")]
            stream = RecordingStream(chunks, fail_after=fail_after)
            self.streams.append(stream)
            headers = {"Agent-Session-Id": session_id} if session_id else {}
            return httpx.Response(200, headers=headers, stream=stream)

        self.handler = handler


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
async def client(api: FakeAPI) -> AsyncIterator[AgentBuilderClient]:
    client = AgentBuilderClient(
        api_key=API_KEY,
        database_id_hash=DATABASE_ID_HASH,
        base_url=BASE_URL,
        transport=httpx.MockTransport(api),
    )
    yield client
    await client.close()
