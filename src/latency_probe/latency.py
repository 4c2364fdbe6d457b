"""Latency measurement and risk tier classification.

Latency is local observation time minus the exchange-reported event time,
both in epoch milliseconds. A negative value only appears when the local
clock lags the exchange's; it is reported as-is, never clamped.
"""

import time as time_mod

from latency_probe.config import LatencyThresholds
from latency_probe.ingestion.models import RiskTier, Trade, TradeAnalysis


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time_mod.time_ns() // 1_000_000


def compute_latency_ms(event_time_ms: int, observed_at_ms: int) -> int:
    return observed_at_ms - event_time_ms


def classify_latency(latency_ms: int, warning_ms: int, critical_ms: int) -> RiskTier:
    """Map a latency to its risk tier.

    Comparisons are strict: a latency equal to a threshold falls into the
    lower tier. Assumes ``warning_ms < critical_ms``.
    """
    if latency_ms > critical_ms:
        return RiskTier.CRITICAL
    if latency_ms > warning_ms:
        return RiskTier.WARNING
    return RiskTier.NORMAL


def analyze_trade(
    trade: Trade,
    observed_at_ms: int,
    thresholds: LatencyThresholds,
) -> TradeAnalysis:
    """Measure and classify the latency of one observed trade."""
    latency_ms = compute_latency_ms(trade.event_time_ms, observed_at_ms)
    tier = classify_latency(latency_ms, thresholds.warning_ms, thresholds.critical_ms)
    return TradeAnalysis(
        trade=trade,
        tier=tier,
        latency_ms=latency_ms,
        observed_at_ms=observed_at_ms,
    )
