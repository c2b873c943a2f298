import os

import pytest
from pydantic import ValidationError

from agentbuilder_sdk import AgentBuilderClient, ClientSettings
from agentbuilder_sdk.config import DEFAULT_BASE_URL


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OAB_BASE_URL", "OAB_DATABASE_ID_HASH", "OAB_API_KEY", "OAB_TIMEOUT", "OAB_AGENT_ID"):
        monkeypatch.delenv(name, raising=False)


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("OAB_API_KEY", "key-1")
    monkeypatch.setenv("OAB_DATABASE_ID_HASH", "hash-1")
    monkeypatch.setenv("OAB_TIMEOUT", "12.5")
    monkeypatch.setenv("OAB_AGENT_ID", "agent-7")

    settings = ClientSettings.from_env(env_file=None)

    assert settings.api_key == "key-1"
    assert settings.database_id_hash == "hash-1"
    assert settings.timeout == 12.5
    assert settings.agent_id == "agent-7"
    assert settings.base_url == DEFAULT_BASE_URL


def test_reads_dotenv_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "OAB_API_KEY=from-file\nOAB_DATABASE_ID_HASH=hash-file\nOAB_BASE_URL=https://self.hosted\n"
    )
    try:
        settings = ClientSettings.from_env(env_file=str(env_file))
    finally:
        # load_dotenv exports into the process environment
        for name in ("OAB_API_KEY", "OAB_DATABASE_ID_HASH", "OAB_BASE_URL"):
            os.environ.pop(name, None)
    assert settings.api_key == "from-file"
    assert settings.base_url == "https://self.hosted"


def test_missing_required_values():
    with pytest.raises(ValidationError):
        ClientSettings.from_env(env_file=None)


async def test_client_from_env(monkeypatch):
    monkeypatch.setenv("OAB_API_KEY", "key-1")
    monkeypatch.setenv("OAB_DATABASE_ID_HASH", "hash-1")
    monkeypatch.setenv("OAB_BASE_URL", "https://self.hosted")
    async with AgentBuilderClient.from_env() as client:
        assert client._client.base_url.host == "self.hosted"
        assert client.chat._api_key == "key-1"
