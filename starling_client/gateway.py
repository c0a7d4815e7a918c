"""
HTTP gateway module for the Starling editor client.

Contains the Gateway class, which performs one JSON request/response exchange
with the local Starling server and reports the outcome as a GatewayResult.
"""

import asyncio
import json
import time
from typing import Any

import httpx
import structlog

from .models import FailureKind, GatewayResult, Severity

logger = structlog.get_logger(__name__)


class Gateway:
    """Async JSON gateway to the Starling server.

    ``request`` never raises: every transport, status, and decoding problem is
    turned into a failed GatewayResult carrying a severity for the editor.
    """

    def __init__(
        self,
        base_url: str,
        connect_timeout: float = 1.0,
        request_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.request_timeout = request_timeout
        # Per-phase limits; request_timeout also bounds the whole exchange in _exchange
        self.timeout = httpx.Timeout(request_timeout, connect=connect_timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def request(self, method: str, path: str, body: Any = None) -> GatewayResult:
        """Make a request to the Starling server.

        Args:
            method: HTTP method (the server reads bodies on GET too)
            path: Endpoint path, e.g. "/nodes"
            body: JSON-serializable request body, ``{}`` when omitted

        Returns:
            A successful result holding the decoded JSON body, or a failure
        """
        start_time = time.time()
        result = await self._exchange(method, path, {} if body is None else body)
        duration_ms = round((time.time() - start_time) * 1000, 2)

        if result.ok:
            logger.debug("gateway_request", method=method, path=path, duration_ms=duration_ms)
        else:
            logger.warning(
                "gateway_request_failed",
                method=method,
                path=path,
                kind=result.kind.value,
                error=result.error,
                duration_ms=duration_ms,
            )
        return result

    async def _exchange(self, method: str, path: str, body: Any) -> GatewayResult:
        try:
            request = self.client.build_request(method, path, content=json.dumps(body))
        except (TypeError, ValueError, httpx.InvalidURL) as e:
            return GatewayResult.failure(
                FailureKind.SPAWN_FAILURE,
                f"Failed to make Starling request, couldn't start request: {e}",
                Severity.ERROR,
            )

        # send() reads the whole body and releases the connection on every path
        try:
            response = await asyncio.wait_for(self.client.send(request), self.request_timeout)
        except (httpx.ConnectError, httpx.ConnectTimeout):
            return GatewayResult.failure(
                FailureKind.UNREACHABLE,
                "Failed to make Starling request, server not running",
                Severity.WARNING,
            )
        except httpx.HTTPError as e:
            return GatewayResult.failure(
                FailureKind.TRANSPORT_FAILURE,
                f"Failed to make Starling request, request failed with code: {type(e).__name__}",
                Severity.WARNING,
            )
        except asyncio.TimeoutError:
            return GatewayResult.failure(
                FailureKind.TRANSPORT_FAILURE,
                f"Failed to make Starling request, no complete response within {self.request_timeout}s",
                Severity.WARNING,
            )
        except RuntimeError as e:
            # Raised by httpx when the client has already been closed
            return GatewayResult.failure(
                FailureKind.SPAWN_FAILURE,
                f"Failed to make Starling request, couldn't start request: {e}",
                Severity.ERROR,
            )

        if response.status_code >= 400:
            return GatewayResult.failure(
                FailureKind.TRANSPORT_FAILURE,
                f"Failed to make Starling request, server responded with code: {response.status_code}",
                Severity.WARNING,
            )

        if not response.content.strip():
            return GatewayResult.failure(
                FailureKind.EMPTY_RESPONSE,
                "Starling server returned an empty response",
                Severity.WARNING,
            )

        try:
            data = json.loads(response.content)
        except ValueError as e:
            return GatewayResult.failure(
                FailureKind.PARSE_FAILURE,
                f"Error parsing Starling response: {e}",
                Severity.ERROR,
            )

        return GatewayResult.success(data)
