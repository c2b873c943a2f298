"""
Client configuration.

Settings are read from ``OAB_*`` environment variables, with a ``.env`` file
in the working directory loaded first if one exists.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://app.openagentsbuilder.com"


class ClientSettings(BaseSettings):
    """Connection settings for the agent builder API."""

    model_config = SettingsConfigDict(
        env_prefix="OAB_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root URL")
    database_id_hash: str = Field(..., description="Database the key belongs to")
    api_key: str = Field(..., description="API key sent as a bearer token")
    timeout: float = Field(default=300.0, description="HTTP timeout in seconds")
    agent_id: Optional[str] = Field(
        default=None, description="Default agent used by chat helpers"
    )

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "ClientSettings":
        """Load settings from the environment (and ``env_file`` if present)."""
        if env_file:
            load_dotenv(env_file)
        return cls()
