"""HTTP telemetry adapter.

Implements TelemetryPort by POSTing events to a collector endpoint.
Delivery is best-effort: failures are logged and never raised.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from gallery.core.models import User
from gallery.core.ports import TelemetryPort

logger = logging.getLogger(__name__)


class HttpTelemetryAdapter(TelemetryPort):
    """Sends telemetry events as JSON to an HTTP collector."""

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP telemetry adapter.

        Args:
            endpoint: Collector URL events are POSTed to.
            api_key: Optional bearer token.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (used by tests).
        """
        if not endpoint:
            raise ValueError("endpoint must be a non-empty URL")
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def track_account_deletion_completed(
        self, deleted_user: User, deleted_by: User, success: bool
    ) -> None:
        await self._send(
            "AccountDeletionCompleted",
            {
                "account": deleted_user.username,
                "is_organization": deleted_user.is_organization,
                "deleted_by": deleted_by.username,
                "success": success,
            },
        )

    async def _send(self, event: str, properties: dict[str, Any]) -> None:
        payload = {
            "event": event,
            "timestamp": datetime.now(UTC).isoformat(),
            "properties": properties,
        }
        try:
            client = await self._get_client()
            response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Telemetry collector rejected {event}: {e.response.status_code}",
                extra={"event": event, "status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Failed to send telemetry event {event}: {e}",
                extra={"event": event},
            )
