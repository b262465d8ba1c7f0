# milestone_guard/metrics/fetch.py
"""Timed metrics retrieval with retry and worst-case fallback."""

import asyncio
import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from milestone_guard.errors import MetricsUnavailableError
from milestone_guard.metrics.provider import MetricsProvider
from milestone_guard.models.milestone import Milestone

logger = logging.getLogger(__name__)


# Transient transport failures only; anything else goes straight to fallback
metrics_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    retry=retry_if_exception_type(ConnectionError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


@metrics_retry
async def _fetch_with_retry(provider: MetricsProvider, milestone: Milestone) -> dict[str, float]:
    return await provider.fetch(milestone)


async def fetch_live_metrics(
    provider: MetricsProvider | None,
    milestone: Milestone,
    timeout: float,
) -> dict[str, float]:
    """
    Fetch live metrics, never raising and never waiting past ``timeout``.

    Returns an empty map when no provider is configured, when the fetch
    times out, or when it fails. An empty live map means thresholds fall
    back to the milestone's stored metrics; thresholds with neither fail.
    """
    if provider is None:
        return {}

    try:
        return await asyncio.wait_for(_fetch_with_retry(provider, milestone), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            f"Metrics fetch for milestone {milestone.id} timed out after {timeout}s; "
            "using fallback"
        )
    except MetricsUnavailableError as e:
        logger.warning(f"Metrics unavailable for milestone {milestone.id}: {e}; using fallback")
    except Exception as e:
        logger.warning(f"Metrics fetch for milestone {milestone.id} failed: {e}; using fallback")
    return {}
