"""HTTP adapter for integration server API operations."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

# Nothing reached the server, so sending again cannot deploy twice.
CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class HTTPAPIClient:
    """
    HTTP client adapter for the Martini ``esbapi``.

    Implements ITransport protocol. Responses are returned as-is whatever
    their status code; callers decide what a status means. Uploads are
    only re-sent when the connection could not be opened; GETs retry any
    request error up to ``max_retries`` times unless the caller passes
    its own ``retries``.
    """

    retry_backoff = 0.5

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: int = 3,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._max_retries = max(1, max_retries)
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Authorization": f"Bearer {self._token}"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")
        return self._client

    async def post_file(
        self,
        endpoint: str,
        path: Path,
        field: str = "file",
        params: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        client = self._require_client()
        path = Path(path)

        for attempt in range(self._max_retries):
            try:
                with path.open("rb") as handle:
                    files = {field: (path.name, handle, "application/zip")}
                    return await client.post(endpoint, params=params, files=files)
            except CONNECT_ERRORS as exc:
                if attempt < self._max_retries - 1:
                    logger.warning(f"POST {endpoint} could not connect ({exc}), retrying")
                    await asyncio.sleep(self.retry_backoff * (attempt + 1))
                    continue
                raise

        raise RuntimeError(f"Failed to POST {endpoint} after {self._max_retries} attempts")

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        retries: Optional[int] = None,
    ) -> httpx.Response:
        client = self._require_client()
        tries = self._max_retries if retries is None else max(1, retries)

        for attempt in range(tries):
            try:
                return await client.get(
                    endpoint,
                    params=params,
                    headers={"accept": "application/json"},
                )
            except httpx.RequestError as exc:
                if attempt < tries - 1:
                    logger.debug(f"GET {endpoint} failed ({exc}), retrying")
                    await asyncio.sleep(self.retry_backoff * (attempt + 1))
                    continue
                raise

        raise RuntimeError(f"Failed to GET {endpoint} after {tries} attempts")
