"""Signed one-shot HTTP transport."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from ...auth.signing import Signer
from ...config import RESTConfig
from ...core.exceptions import (
    APIError,
    CredentialsError,
    ProviderError,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(getattr(value, "value", value))


class RESTTransport:
    """Async HTTP wrapper that signs private calls with the shared ``Signer``."""

    def __init__(
        self,
        config: RESTConfig | None = None,
        signer: Signer | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._conf = config or RESTConfig()
        self.signer = signer
        self.timeout = aiohttp.ClientTimeout(total=self._conf.timeout)
        self._session = session

    @property
    def base_url(self) -> str:
        return self._conf.base_url

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def send_signed_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | list[Any] | str | None = None,
        *,
        signed: bool = False,
    ) -> Any:
        """Perform one request and return the decoded JSON response.

        Raises:
            CredentialsError: ``signed`` without credentials (before any I/O)
            RateLimitError: HTTP 429
            APIError: The exchange returned a ``{"code", "msg"}`` error body
            ProviderError: Any other HTTP error status or undecodable body
            TransportError: The request never produced a response
        """
        method = method.upper()
        if signed and self.signer is None:
            raise CredentialsError(f"API credentials required for {method} {path}")

        if body is None or isinstance(body, str):
            body_text = body
        else:
            body_text = json.dumps(body, separators=(",", ":"))

        query = {k: _query_value(v) for k, v in (params or {}).items() if v is not None}
        headers = {"Accept": "application/json"}
        if body_text is not None:
            headers["Content-Type"] = "application/json"
        if signed:
            headers.update(
                self.signer.request_headers(method, body_text, window=self._conf.window_ms)
            )

        url = f"{self._conf.base_url}{path}"
        logger.debug(f"{method} {url} params={query or None} signed={signed}")
        try:
            async with self.session.request(
                method, url, params=query or None, data=body_text, headers=headers
            ) as response:
                status = response.status
                text = await response.text()
                retry_after = response.headers.get("Retry-After")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"{method} {path} failed: {e}", url=url) from e

        return self._decode(method, path, status, text, retry_after)

    def _decode(
        self, method: str, path: str, status: int, text: str, retry_after: str | None
    ) -> Any:
        if status == 429:
            wait = int(retry_after) if retry_after and retry_after.isdigit() else 60
            raise RateLimitError(f"Rate limit exceeded on {method} {path}", retry_after=wait)

        data: Any = None
        if text:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                if status >= 400:
                    raise ProviderError(
                        f"{method} {path} returned HTTP {status}: {text[:200]}",
                        status_code=status,
                    ) from e
                # Some endpoints answer with a bare string
                return text

        if isinstance(data, dict) and "code" in data and "msg" in data:
            raise APIError(
                f"{method} {path}: {data['msg']}", code=data["code"], status_code=status
            )

        if status >= 400:
            message = data.get("message", text) if isinstance(data, dict) else text
            raise ProviderError(
                f"{method} {path} returned HTTP {status}: {message}", status_code=status
            )

        return data

    async def get(self, path: str, params: dict[str, Any] | None = None, *, signed: bool = False) -> Any:
        return await self.send_signed_request("GET", path, params=params, signed=signed)

    async def post(self, path: str, body: Any = None, *, signed: bool = True) -> Any:
        return await self.send_signed_request("POST", path, body=body, signed=signed)

    async def delete(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
        *,
        signed: bool = True,
    ) -> Any:
        return await self.send_signed_request(
            "DELETE", path, params=params, body=body, signed=signed
        )

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> RESTTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
