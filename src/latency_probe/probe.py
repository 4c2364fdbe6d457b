"""One-shot latency check, usable as a go/no-go deployment gate."""

import logging

from pydantic import BaseModel

from latency_probe.ingestion.base import DataSource
from latency_probe.latency import compute_latency_ms, now_ms
from latency_probe.monitor import Clock

logger = logging.getLogger(__name__)

DEFAULT_MAX_LATENCY_MS = 500


class NoTradesError(RuntimeError):
    """The source returned no trades to measure."""


class ProbeResult(BaseModel):
    """Latency of the first trade returned by a single fetch."""

    model_config = {"frozen": True}

    symbol: str
    event_time_ms: int
    observed_at_ms: int
    latency_ms: int
    max_latency_ms: int

    @property
    def passed(self) -> bool:
        return self.latency_ms < self.max_latency_ms


def probe_once(
    source: DataSource,
    symbol: str,
    max_latency_ms: int = DEFAULT_MAX_LATENCY_MS,
    clock: Clock = now_ms,
) -> ProbeResult:
    """Fetch recent trades once and measure the latency of the first one.

    Raises:
        NoTradesError: If the fetch yields nothing, e.g. the network is down.
    """
    trades = source.fetch_recent_trades(symbol)
    if not trades:
        raise NoTradesError(f"{source.name} returned no trades for {symbol}")

    trade = trades[0]
    observed_at_ms = clock()
    result = ProbeResult(
        symbol=symbol,
        event_time_ms=trade.event_time_ms,
        observed_at_ms=observed_at_ms,
        latency_ms=compute_latency_ms(trade.event_time_ms, observed_at_ms),
        max_latency_ms=max_latency_ms,
    )
    logger.info(
        "Probe %s: %d ms (limit %d ms) — %s",
        symbol,
        result.latency_ms,
        max_latency_ms,
        "pass" if result.passed else "FAIL",
    )
    return result
