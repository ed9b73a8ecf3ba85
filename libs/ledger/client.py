"""httpx client for a ledger gateway exposing raw key/value endpoints."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from libs.core.config import get_settings
from libs.core.exceptions import NetworkFailureError, UserRejectedError
from libs.core.models import LedgerReceipt

logger = logging.getLogger(__name__)

# Gateway answers 403 when the account holder declines to sign the write
USER_REJECTED_STATUS = 403


class HttpLedgerClient:
    """Async HTTP client for the ledger gateway.

    Endpoints:
        GET /health        -> 200 when the backend is ready
        GET /data/{key}    -> raw bytes, 404 when absent
        PUT /data/{key}    -> raw bytes body, JSON confirmation
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings().ledger
        self.base_url = base_url or settings.url
        self.timeout = httpx.Timeout(timeout or settings.timeout, connect=settings.connect_timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def is_available(self) -> bool:
        """Check if the ledger backend is ready."""
        try:
            client = await self._get_client()
            response = await client.get("/health")
            return response.status_code == 200
        except httpx.RequestError as e:
            logger.warning(f"[HttpLedger] Health check failed: {e}")
            return False

    async def get_data(self, key: str) -> bytes:
        """
        Read the raw value stored under ``key``.

        Returns:
            Stored bytes, or b"" when the key is absent

        Raises:
            NetworkFailureError: On transport or HTTP errors
        """
        client = await self._get_client()
        try:
            response = await client.get(f"/data/{quote(key, safe='')}")
            if response.status_code == 404:
                return b""
            response.raise_for_status()
            return response.content

        except httpx.HTTPStatusError as e:
            raise NetworkFailureError(
                f"HTTP {e.response.status_code} reading {key}",
                context={"key": key, "status": e.response.status_code},
            ) from e

        except httpx.RequestError as e:
            raise NetworkFailureError(f"Request error reading {key}: {e}", context={"key": key}) from e

    async def set_data(self, key: str, value: bytes) -> LedgerReceipt:
        """
        Write ``value`` under ``key`` and wait for confirmation.

        Raises:
            UserRejectedError: The account holder declined the write
            NetworkFailureError: On transport or other HTTP errors
        """
        client = await self._get_client()
        try:
            response = await client.put(
                f"/data/{quote(key, safe='')}",
                content=value,
                headers={"Content-Type": "application/octet-stream"},
            )
            if response.status_code == USER_REJECTED_STATUS:
                raise UserRejectedError("user rejected transaction", context={"key": key})
            response.raise_for_status()

            try:
                data = response.json() if response.content else {}
            except ValueError:
                data = {}
            if not isinstance(data, dict):
                data = {}
            logger.info(f"[HttpLedger] Wrote {key} ({len(value)} bytes)")
            return LedgerReceipt(
                key=key,
                confirmed=bool(data.get("confirmed", True)),
                reference=data.get("reference"),
            )

        except httpx.HTTPStatusError as e:
            raise NetworkFailureError(
                f"HTTP {e.response.status_code} writing {key}",
                context={"key": key, "status": e.response.status_code},
            ) from e

        except httpx.RequestError as e:
            raise NetworkFailureError(f"Request error writing {key}: {e}", context={"key": key}) from e
