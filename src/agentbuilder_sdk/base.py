"""
Shared HTTP plumbing for the API clients.
"""

import json
import logging
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Params = Optional[dict[str, Union[str, int, float]]]
Payload = Union[BaseModel, dict[str, Any], None]


class AgentBuilderError(Exception):
    """Base exception for SDK errors."""


class APIError(AgentBuilderError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Error ({status_code}): {message}")


def parse_json(response: httpx.Response) -> Any:
    """Decode a JSON body; empty or non-JSON bodies decode to ``{}``."""
    if not response.content:
        return {}
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}


def error_message(response: httpx.Response, data: Any = None) -> str:
    """Best-effort error message: the body's ``message`` field, else the reason phrase."""
    if data is None:
        data = parse_json(response)
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


async def raise_for_status(response: httpx.Response) -> None:
    """
    Raise ``APIError`` for a non-2xx response.

    Works for streamed responses too: the body is read before parsing.
    """
    if response.is_success:
        return
    await response.aread()
    raise APIError(response.status_code, error_message(response))


def to_payload(data: Payload) -> Optional[dict[str, Any]]:
    if data is None:
        return None
    if isinstance(data, BaseModel):
        if hasattr(data, "to_payload"):
            return data.to_payload()
        return data.model_dump(by_alias=True, exclude_none=True, mode="json")
    return dict(data)


class BaseClient:
    """
    Base class for the resource clients.

    Every request carries the bearer API key and the database id hash.
    Sub-clients share one ``httpx.AsyncClient`` owned by ``AgentBuilderClient``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        database_id_hash: str,
    ):
        self._client = http_client
        self._api_key = api_key
        self._database_id_hash = database_id_hash

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "database-id-hash": self._database_id_hash,
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        body: Payload = None,
        params: Params = None,
    ) -> Any:
        """
        Send a JSON request and decode the JSON response.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL
            body: Request body, ignored for GET
            params: Query parameters

        Returns:
            Decoded JSON body ({} if the body is empty or not JSON)

        Raises:
            APIError: On a non-2xx response
        """
        query = {k: str(v) for k, v in params.items()} if params else None
        payload = to_payload(body) if method != "GET" else None

        logger.debug(f"[request] {method} {endpoint} params={query}")
        response = await self._client.request(
            method,
            endpoint,
            params=query,
            json=payload,
            headers=self._auth_headers(),
        )
        data = parse_json(response)
        if not response.is_success:
            raise APIError(response.status_code, error_message(response, data))
        return data
