"""
Chat examples for the agent builder SDK.

Configure with environment variables (or a .env file):

    OAB_API_KEY=...
    OAB_DATABASE_ID_HASH=...
    OAB_AGENT_ID=...

Run against a local mock server instead of the platform with:

    agentbuilder-mock-server &
    OAB_BASE_URL=http://127.0.0.1:8000 OAB_API_KEY=x OAB_DATABASE_ID_HASH=x \
        OAB_AGENT_ID=echo python examples/chat_example.py
"""

import asyncio
import logging

from agentbuilder_sdk import AgentBuilderClient, ClientSettings, StreamEventKind


async def stream_example(client: AgentBuilderClient, agent_id: str) -> None:
    """Print text tokens as they arrive, other events as they are."""
    messages = [{"role": "user", "content": "What is the capital of France?"}]

    async with client.chat.stream_chat(messages, {"agent_id": agent_id}) as events:
        async for event in events:
            if event.kind is StreamEventKind.TEXT:
                print(event.content, end="", flush=True)
            else:
                print(f"\n[{event.type}] {event.content}")
    print()


async def conversation_example(client: AgentBuilderClient, agent_id: str) -> None:
    """Keep the history and session id across turns."""
    state = await client.chat.collect_messages(
        [{"role": "user", "content": "Let's talk about artificial intelligence."}],
        {"agent_id": agent_id},
    )

    for question in (
        "What are the main types of machine learning?",
        "Can you explain deep learning?",
    ):
        state = await client.chat.collect_messages(
            [*state.messages, {"role": "user", "content": question}],
            {"agent_id": agent_id, "session_id": state.session_id},
        )

    print("=" * 60)
    print(f"Conversation (session {state.session_id}):")
    for i, message in enumerate(state.messages, start=1):
        print(f"\n{i}. {message.role.upper()}:\n{message.content}")
    print("=" * 60)


async def callbacks_example(client: AgentBuilderClient, agent_id: str) -> None:
    """React to each kind of stream part with its own handler."""
    await client.chat.stream_chat_with_callbacks(
        [{"role": "user", "content": "Tell me a short story about a robot."}],
        {"agent_id": agent_id},
        handlers={
            StreamEventKind.TEXT: lambda text: print(text, end="", flush=True),
            StreamEventKind.REASONING: lambda text: print(f"\n[thinking] {text}"),
            StreamEventKind.TOOL_CALL: lambda call: print(f"\n[tool] {call.get('toolName')}"),
            StreamEventKind.ERROR: lambda error: print(f"\n[agent error] {error}"),
        },
        on_finish=lambda: print("\n[finished]"),
        on_error=lambda error: print(f"\n[failed] {error}"),
    )


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = ClientSettings.from_env()
    if not settings.agent_id:
        raise SystemExit("Missing required environment variable: OAB_AGENT_ID")

    async with AgentBuilderClient.from_settings(settings) as client:
        print("Running stream example...")
        await stream_example(client, settings.agent_id)

        print("Running conversation example...")
        await conversation_example(client, settings.agent_id)

        print("Running callbacks example...")
        await callbacks_example(client, settings.agent_id)


if __name__ == "__main__":
    asyncio.run(main())
