"""
httpx plumbing shared by the explorer backends.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from btcapi.errors import ExternalRequestError, ResponseDecodeError


class HttpBackend:
    """Base for collaborators reached over HTTP.

    Transport errors and unexpected status codes are wrapped into
    ExternalRequestError; undecodable bodies into ResponseDecodeError.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        content: str | None = None,
        allowed_status: tuple[int, ...] = (),
    ) -> httpx.Response:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        try:
            response = await self.client.request(method, url, params=params, content=content)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} API call failed: {endpoint} - {e}")
            raise ExternalRequestError(f"{self.name}: {e}") from e

        if response.is_error and response.status_code not in allowed_status:
            logger.error(
                f"{self.name} API call failed: {endpoint} - HTTP {response.status_code}"
            )
            raise ExternalRequestError(
                f"{self.name}: HTTP {response.status_code}: {response.text[:200]}"
            )

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ResponseDecodeError(f"{e}") from e

    async def close(self) -> None:
        """Close backend connection"""
        await self.client.aclose()
