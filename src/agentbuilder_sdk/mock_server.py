"""
Mock chat server for local development and tests.

Serves ``POST /api/chat/`` with a scripted chat stream in the same wire
format as the real platform, so the client can be exercised offline:

    ```python
    server = MockChatServer()          # echoes the last user message
    server.run(port=8000)
    ```

or in-process with ``httpx.ASGITransport(app=server.create_app())``.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .models import StreamEvent, StreamEventKind
from .protocol import format_event
from .streaming import SESSION_HEADER

logger = logging.getLogger(__name__)

Frame = Union[StreamEvent, str]
Script = Callable[[dict[str, Any]], Iterable[Frame]]


def echo_script(body: dict[str, Any]) -> list[Frame]:
    """Answer with the last user message, one word per text event."""
    user_messages = [m for m in body.get("messages", []) if m.get("role") == "user"]
    text = user_messages[-1]["content"] if user_messages else ""
    message_id = f"msg-{uuid.uuid4().hex[:8]}"

    frames: list[Frame] = [
        StreamEvent(kind=StreamEventKind.STEP_START, content={"messageId": message_id})
    ]
    words = text.split(" ")
    for i, word in enumerate(words):
        token = word if i == len(words) - 1 else word + " "
        frames.append(StreamEvent(kind=StreamEventKind.TEXT, content=token))
    usage = {"promptTokens": len(text.split()), "completionTokens": len(words)}
    frames.append(
        StreamEvent(
            kind=StreamEventKind.STEP_FINISH,
            content={"finishReason": "stop", "usage": usage, "isContinued": False},
        )
    )
    frames.append(
        StreamEvent(
            kind=StreamEventKind.MESSAGE_FINISH,
            content={"finishReason": "stop", "usage": usage},
        )
    )
    return frames


class MockChatServer:
    """
    Scripted stand-in for the platform's chat endpoint.

    Every request is recorded in ``requests`` (headers and JSON body) so
    tests can assert on what the client sent.
    """

    def __init__(
        self,
        script: Union[Script, Iterable[Frame], None] = None,
        session_id: Optional[str] = None,
        chunk_size: Optional[int] = None,
        delay_ms: int = 0,
        status_code: int = 200,
        error_message: Optional[str] = None,
    ):
        """
        Initialize the mock server.

        Args:
            script: Callable building the frames from the request body, or a
                fixed list of frames; defaults to echoing the user
            session_id: Session id to answer with when the request has none
            chunk_size: Re-chunk the body into pieces of this many characters
            delay_ms: Delay between chunks in milliseconds
            status_code: Status for every chat request (non-2xx sends a JSON error)
            error_message: ``message`` field of the JSON error body
        """
        if script is None:
            script = echo_script
        elif not callable(script):
            frames = list(script)
            script = lambda body: frames  # noqa: E731
        self.script = script
        self.session_id = session_id
        self.chunk_size = chunk_size
        self.delay_ms = delay_ms
        self.status_code = status_code
        self.error_message = error_message
        self.requests: list[dict[str, Any]] = []
        self._app: Optional[FastAPI] = None

    def render(self, body: dict[str, Any]) -> str:
        """Render the scripted frames for a request body as one string."""
        return "".join(
            format_event(frame) if isinstance(frame, StreamEvent) else frame
            for frame in self.script(body)
        )

    async def _stream(self, text: str) -> AsyncIterator[str]:
        size = self.chunk_size or len(text) or 1
        for i in range(0, len(text), size):
            yield text[i : i + size]
            if self.delay_ms > 0:
                await asyncio.sleep(self.delay_ms / 1000.0)

    def create_app(self) -> FastAPI:
        """
        Create the FastAPI application.

        Returns:
            Configured FastAPI application
        """
        if self._app is not None:
            return self._app

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            logger.info("Mock chat server starting up...")
            yield
            logger.info("Mock chat server shutting down...")

        app = FastAPI(title="Mock Agent Builder", lifespan=lifespan)

        @app.get("/health")
        async def health_check():
            return {"status": "healthy"}

        @app.post("/api/chat/")
        async def chat_handler(request: Request):
            body = await request.json()
            self.requests.append({"headers": dict(request.headers), "body": body})

            agent_id = request.headers.get("Agent-Id")
            if not agent_id:
                return JSONResponse({"message": "Agent-Id header is required"}, status_code=400)
            if self.status_code >= 400:
                content = {"message": self.error_message} if self.error_message else {}
                return JSONResponse(content, status_code=self.status_code)

            session_id = (
                request.headers.get(SESSION_HEADER) or self.session_id or uuid.uuid4().hex
            )
            logger.info(f"[chat] agent_id={agent_id}, session_id={session_id}")

            return StreamingResponse(
                self._stream(self.render(body)),
                media_type="text/plain; charset=utf-8",
                headers={
                    SESSION_HEADER: session_id,
                    "Cache-Control": "no-cache",
                    "X-Vercel-AI-Data-Stream": "v1",
                },
            )

        self._app = app
        return app

    def run(
        self,
        host: str = "127.0.0.1",
        port: int = 8000,
        log_level: str = "info",
        **kwargs: Any,
    ) -> None:
        """
        Run the mock server.

        Args:
            host: Host to bind to
            port: Port to listen on
            log_level: Logging level
            **kwargs: Additional uvicorn arguments
        """
        import uvicorn

        uvicorn.run(self.create_app(), host=host, port=port, log_level=log_level, **kwargs)


def create_mock_app(
    script: Union[Script, Iterable[Frame], None] = None, **kwargs: Any
) -> FastAPI:
    """
    Create a mock chat app serving ``script``.

    Args:
        script: Frames to answer with, or a callable building them from the
            request body; defaults to echoing the user
        **kwargs: Further ``MockChatServer`` options (session_id, chunk_size, ...)

    Returns:
        Configured FastAPI application
    """
    return MockChatServer(script=script, **kwargs).create_app()


def run() -> None:
    """Run the echo mock server on port 8000."""
    MockChatServer().run(port=8000)


if __name__ == "__main__":
    run()
