"""
HTTPS client for the SolarEdge cloud monitoring API.

Fetches the site overview and the current power-flow snapshot. Each request
carries a fixed timeout and is never retried within the same run: the
external scheduler's fixed-interval re-invocation is the only retry
mechanism, which keeps request volume under the API's daily quota.

The API key travels as the ``api_key`` query parameter. It is never written
to logs or exception messages; diagnostics use :func:`mask_api_key`.

Operations:
- fetch_overview(): GET /site/{siteId}/overview.json
- fetch_power_flow(): GET /site/{siteId}/currentPowerFlow.json

CHANGELOG:
- 2026-03-06: Scrub the API key from transport error messages
- 2026-03-03: Initial creation (STORY-104)

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from collector.src.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0
_BODY_EXCERPT_CHARS = 200


def mask_api_key(api_key: str | None) -> str:
    """Return a short prefix of the API key suitable for logging."""
    if not api_key:
        return "not set"
    return f"{api_key[:4]}..."


class MonitoringClient:
    """Async client for the SolarEdge monitoring API of a single site.

    Args:
        base_url: API base URL, e.g. ``https://monitoringapi.solaredge.com``.
        site_id: SolarEdge site identifier.
        api_key: Monitoring API key.
        timeout_s: Timeout per request in seconds (default 15).
        transport: Optional httpx transport, used by tests to stub the API.

    Usage::

        async with MonitoringClient(base_url, site_id, api_key) as client:
            payload = await client.fetch_overview()
    """

    def __init__(
        self,
        base_url: str,
        site_id: str,
        api_key: str,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._site_id = site_id
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> MonitoringClient:
        """Enter async context manager: open the HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._timeout_s,
            verify=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager: close the HTTP client."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_overview(self) -> dict[str, Any]:
        """Return the decoded ``overview.json`` payload.

        Raises:
            TransportError: On timeout, connection failure, non-2xx status
                or an empty / non-JSON body.
        """
        return await self._get(f"/site/{self._site_id}/overview.json")

    async def fetch_power_flow(self) -> dict[str, Any]:
        """Return the decoded ``currentPowerFlow.json`` payload.

        Raises:
            TransportError: On timeout, connection failure, non-2xx status
                or an empty / non-JSON body.
        """
        return await self._get(f"/site/{self._site_id}/currentPowerFlow.json")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str) -> dict[str, Any]:
        """GET *path* with the API key and decode the JSON object body."""
        assert self._client is not None, "Client not opened. Use async with."
        url = f"{self._base_url}{path}"

        try:
            response = await self._client.get(url, params={"api_key": self._api_key})
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"GET {url} timed out after {self._timeout_s}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"GET {url} failed: {self._scrub(str(exc)) or type(exc).__name__}"
            ) from exc

        if not response.is_success:
            raise TransportError(
                f"GET {url} returned HTTP {response.status_code}: "
                f"{self._scrub(response.text[:_BODY_EXCERPT_CHARS])}",
                status_code=response.status_code,
            )

        if not response.content:
            raise TransportError(
                f"GET {url} returned an empty body",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                f"GET {url} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict):
            raise TransportError(
                f"GET {url} returned a JSON {type(payload).__name__}, expected an object",
                status_code=response.status_code,
            )

        logger.debug("GET %s -> HTTP %d", url, response.status_code)
        return payload

    def _scrub(self, text: str) -> str:
        """Replace every occurrence of the API key in *text* by its mask."""
        if self._api_key:
            return text.replace(self._api_key, mask_api_key(self._api_key))
        return text
