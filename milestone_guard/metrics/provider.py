# milestone_guard/metrics/provider.py
"""
Live metrics providers.

A MetricsProvider returns the current metric map for a milestone. It is
the only suspension point during validation; callers wrap it with
fetch_live_metrics() for timeout and fallback handling.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from milestone_guard.errors import MetricsUnavailableError
from milestone_guard.models.milestone import Milestone

logger = logging.getLogger(__name__)


class MetricsProvider(ABC):
    """Source of live metrics for a milestone."""

    @abstractmethod
    async def fetch(self, milestone: Milestone) -> dict[str, float]:
        """
        Fetch current metrics for a milestone.

        Raises:
            MetricsUnavailableError: If the source cannot answer
            ConnectionError: On transient transport failures (retried)
        """


class StaticMetricsProvider(MetricsProvider):
    """
    Serves metrics from a fixed map keyed by milestone id.

    Milestones without an entry get an empty map, which leaves their own
    stored metrics in effect.
    """

    def __init__(self, metrics: dict[str, dict[str, float]] | None = None) -> None:
        self._metrics = {key: dict(value) for key, value in (metrics or {}).items()}

    async def fetch(self, milestone: Milestone) -> dict[str, float]:
        return dict(self._metrics.get(milestone.id, {}))


class HttpMetricsProvider(MetricsProvider):
    """
    Fetches metrics from a monitoring endpoint.

    POSTs {"milestoneId", "streamType", "timeframe"} and expects a JSON
    body with a "metrics" object of numeric values.
    """

    def __init__(
        self,
        endpoint: str,
        timeframe: str = "24h",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            endpoint: Monitoring URL
            timeframe: Aggregation window sent with each request
            timeout: Per-request HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.endpoint = endpoint
        self.timeframe = timeframe
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, milestone: Milestone) -> dict[str, float]:
        payload = {
            "milestoneId": milestone.id,
            "streamType": milestone.stream_type.value,
            "timeframe": self.timeframe,
        }
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout), transport=self._transport
            ) as http:
                response = await http.post(self.endpoint, json=payload)
        except (httpx.ConnectError, httpx.ReadError) as e:
            raise ConnectionError(f"Monitoring endpoint unreachable: {e}") from e
        except httpx.HTTPError as e:
            raise MetricsUnavailableError(f"Metrics request failed: {e}") from e

        if response.status_code in (502, 503, 504):
            raise ConnectionError(f"Monitoring endpoint returned {response.status_code}")
        if response.status_code != 200:
            raise MetricsUnavailableError(
                f"Monitoring endpoint returned {response.status_code}"
            )

        try:
            metrics = response.json().get("metrics") or {}
            return {str(k): float(v) for k, v in metrics.items()}
        except (ValueError, TypeError, AttributeError) as e:
            raise MetricsUnavailableError(f"Malformed metrics response: {e}") from e
