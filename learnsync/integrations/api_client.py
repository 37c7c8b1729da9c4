"""
Shared HTTP plumbing for the backend service clients.

All three services (content, identity, progress) speak plain JSON over HTTP
against one base URL. Non-2xx responses raise ApiError; transport errors
propagate as httpx.RequestError so callers can tell "absent" from
"unreachable".
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from learnsync.core.errors import ApiError


class ApiClient:
    """Base class: lazily created httpx.AsyncClient plus JSON helpers."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Service base URL
            api_key: Optional key sent as X-API-Key
            timeout: Request timeout in seconds (None keeps the httpx default)
            client: Pre-built AsyncClient, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    async def __aenter__(self) -> ApiClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["X-API-Key"] = self.api_key

            options: dict[str, Any] = {
                "base_url": self.base_url,
                "headers": headers,
                "follow_redirects": True,
            }
            if self.timeout is not None:
                options["timeout"] = httpx.Timeout(self.timeout)
            self._client = httpx.AsyncClient(**options)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Issue a request and decode the JSON body.

        Raises:
            ApiError: On a non-2xx response or a body that is not JSON
            httpx.RequestError: On connection failure
        """
        client = await self._ensure_client()
        logger.debug("{} {}", method, endpoint)
        response = await client.request(method, endpoint, json=json, params=params)

        if response.status_code >= 400:
            raise ApiError(
                response.status_code,
                f"API call failed: {method} {endpoint} -> {response.status_code} {response.reason_phrase}",
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                response.status_code,
                f"API call returned a non-JSON body: {method} {endpoint} -> {e}",
            ) from e

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        return await self._request("POST", endpoint, json=payload)

    async def _patch(self, endpoint: str, payload: dict[str, Any]) -> Any:
        return await self._request("PATCH", endpoint, json=payload)
