# tests/unit/test_metrics.py
"""
Unit tests for metrics providers and the timed, retried metrics fetch.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from milestone_guard.errors import MetricsUnavailableError
from milestone_guard.metrics.fetch import fetch_live_metrics
from milestone_guard.metrics.provider import (
    HttpMetricsProvider,
    MetricsProvider,
    StaticMetricsProvider,
)
from milestone_guard.models.milestone import Milestone, StreamType

ENDPOINT = "http://monitoring.test/metrics"
START = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _make_milestone(milestone_id="ms-1") -> Milestone:
    return Milestone(
        id=milestone_id,
        stream_type=StreamType.REALTIME_FEATURES,
        estimated_start_date=START,
        estimated_end_date=START + timedelta(days=30),
    )


def _provider(responses):
    """HttpMetricsProvider over a MockTransport replaying ``responses`` in order."""
    requests = []
    replies = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return next(replies)

    provider = HttpMetricsProvider(ENDPOINT, timeframe="1h", transport=httpx.MockTransport(handler))
    return provider, requests


class TestStaticMetricsProvider:
    @pytest.mark.asyncio
    async def test_known_and_unknown_ids(self):
        provider = StaticMetricsProvider({"ms-1": {"latency": 80}})

        assert await provider.fetch(_make_milestone("ms-1")) == {"latency": 80}
        assert await provider.fetch(_make_milestone("ms-2")) == {}

    @pytest.mark.asyncio
    async def test_returns_copies(self):
        provider = StaticMetricsProvider({"ms-1": {"latency": 80}})

        first = await provider.fetch(_make_milestone())
        first["latency"] = 1

        assert await provider.fetch(_make_milestone()) == {"latency": 80}


class TestHttpMetricsProvider:
    @pytest.mark.asyncio
    async def test_success(self):
        provider, requests = _provider(
            [httpx.Response(200, json={"metrics": {"latency": 42, "uptime": "99.95"}})]
        )

        metrics = await provider.fetch(_make_milestone())

        assert metrics == {"latency": 42.0, "uptime": 99.95}
        body = json.loads(requests[0].content)
        assert body == {"milestoneId": "ms-1", "streamType": "realtime_features", "timeframe": "1h"}

    @pytest.mark.asyncio
    async def test_missing_metrics_key_is_empty(self):
        provider, _ = _provider([httpx.Response(200, json={})])

        assert await provider.fetch(_make_milestone()) == {}

    @pytest.mark.asyncio
    async def test_gateway_errors_are_transient(self):
        provider, _ = _provider([httpx.Response(503)])

        with pytest.raises(ConnectionError):
            await provider.fetch(_make_milestone())

    @pytest.mark.asyncio
    async def test_client_errors_are_unavailable(self):
        provider, _ = _provider([httpx.Response(404)])

        with pytest.raises(MetricsUnavailableError, match="404"):
            await provider.fetch(_make_milestone())

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        provider, _ = _provider([httpx.Response(200, json={"metrics": {"latency": "fast"}})])

        with pytest.raises(MetricsUnavailableError, match="Malformed"):
            await provider.fetch(_make_milestone())


class TestFetchLiveMetrics:
    @pytest.mark.asyncio
    async def test_no_provider(self):
        assert await fetch_live_metrics(None, _make_milestone(), timeout=1.0) == {}

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self):
        provider, requests = _provider(
            [httpx.Response(503), httpx.Response(200, json={"metrics": {"latency": 50}})]
        )

        metrics = await fetch_live_metrics(provider, _make_milestone(), timeout=5.0)

        assert metrics == {"latency": 50.0}
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self):
        provider, requests = _provider([httpx.Response(502)] * 3)

        metrics = await fetch_live_metrics(provider, _make_milestone(), timeout=5.0)

        assert metrics == {}
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_unavailable_is_not_retried(self):
        provider, requests = _provider([httpx.Response(500)])

        assert await fetch_live_metrics(provider, _make_milestone(), timeout=5.0) == {}
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self):
        class HangingProvider(MetricsProvider):
            async def fetch(self, milestone):
                await asyncio.sleep(10)
                return {"latency": 1}

        assert await fetch_live_metrics(HangingProvider(), _make_milestone(), timeout=0.05) == {}

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self):
        class BrokenProvider(MetricsProvider):
            async def fetch(self, milestone):
                raise KeyError("metrics")

        assert await fetch_live_metrics(BrokenProvider(), _make_milestone(), timeout=1.0) == {}
