"""Monitor loop — poll recent trades, classify their latency, report anomalies.

One cycle fetches the latest trades for a symbol, measures and classifies
the latency of each one in the order received, and reports it through the
logging system at a level matching its tier. Cycles repeat after a fixed
delay until stopped.
"""

import logging
import signal
import time as time_mod
from collections.abc import Callable
from typing import Protocol

from latency_probe.config import ProbeConfig
from latency_probe.ingestion.base import DataSource
from latency_probe.ingestion.models import RiskTier, TradeAnalysis
from latency_probe.latency import analyze_trade, now_ms

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Reporter = Callable[[TradeAnalysis], None]


class StopToken(Protocol):
    """Anything with ``threading.Event.wait`` semantics."""

    def wait(self, timeout: float | None = None) -> bool: ...


class GracefulShutdown:
    """Catches SIGINT/SIGTERM and sets a flag for clean exit.

    The handler only assigns ``should_stop``; ``wait`` polls the flag in
    short steps. Setting a ``threading.Event`` from the handler would take
    a lock the interrupted main thread may already hold.
    """

    POLL_STEP = 0.1  # seconds

    def __init__(self) -> None:
        self.should_stop = False
        signal.signal(signal.SIGINT, self._handle)
        signal.signal(signal.SIGTERM, self._handle)

    def _handle(self, signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s — stopping after the current cycle...", sig_name)
        self.should_stop = True

    def wait(self, timeout: float | None = None) -> bool:
        """Sleep up to ``timeout`` seconds; return True once a signal arrived."""
        deadline = None if timeout is None else time_mod.monotonic() + timeout
        while not self.should_stop:
            step = self.POLL_STEP
            if deadline is not None:
                remaining = deadline - time_mod.monotonic()
                if remaining <= 0:
                    return False
                step = min(step, remaining)
            time_mod.sleep(step)
        return True


def report_analysis(analysis: TradeAnalysis) -> None:
    """Log an analysis at a level matching its tier.

    NORMAL goes to DEBUG so healthy operation stays quiet at the default
    INFO level.
    """
    if analysis.tier is RiskTier.CRITICAL:
        logger.error(
            "HIGH LATENCY: %d ms | %s | Event time: %d | Observed: %d",
            analysis.latency_ms,
            analysis.trade.symbol,
            analysis.trade.event_time_ms,
            analysis.observed_at_ms,
        )
    elif analysis.tier is RiskTier.WARNING:
        logger.warning("Network lag: %d ms | %s", analysis.latency_ms, analysis.trade.symbol)
    else:
        logger.debug("Stable connection: %d ms | %s", analysis.latency_ms, analysis.trade.symbol)


def run_cycle(
    source: DataSource,
    config: ProbeConfig,
    clock: Clock = now_ms,
    reporter: Reporter = report_analysis,
) -> list[TradeAnalysis]:
    """Run one fetch → classify → report cycle.

    The clock is read once per trade, at the moment that trade is
    processed.

    Returns:
        The analyses produced, in the order the trades were received.
    """
    trades = source.fetch_recent_trades(config.api.default_symbol)

    analyses: list[TradeAnalysis] = []
    for trade in trades:
        analysis = analyze_trade(trade, clock(), config.latency)
        reporter(analysis)
        analyses.append(analysis)
    return analyses


def run_monitor(
    source: DataSource,
    config: ProbeConfig,
    stop: StopToken | None = None,
    clock: Clock = now_ms,
    reporter: Reporter = report_analysis,
) -> int:
    """Poll until stopped.

    The stop token is only checked while waiting between cycles; an
    in-flight request always completes. An error escaping a cycle is
    logged and the next cycle runs as usual.

    Args:
        source: Where trades come from.
        config: Symbol, thresholds and poll interval.
        stop: Token whose ``wait`` ends the loop by returning True, e.g. a
            ``threading.Event``. None installs SIGINT/SIGTERM
            handlers via ``GracefulShutdown``.
        clock: Source of the observation time in epoch milliseconds.
        reporter: Receives every analysis.

    Returns:
        Number of cycles run.
    """
    if stop is None:
        stop = GracefulShutdown()

    symbol = config.api.default_symbol
    interval = config.monitor.poll_interval

    logger.info("Monitoring %s latency via %s", symbol, source.name)
    logger.info(
        "Thresholds: warning > %d ms | critical > %d ms | poll every %.1fs",
        config.latency.warning_ms,
        config.latency.critical_ms,
        interval,
    )

    cycle = 0
    while True:
        cycle += 1
        try:
            run_cycle(source, config, clock=clock, reporter=reporter)
        except Exception:
            logger.exception("Cycle %d failed. Will retry next cycle.", cycle)

        if stop.wait(interval):
            logger.info("Monitor interrupted — shutting down")
            break

    logger.info("Monitor stopped after %d cycles for %s", cycle, symbol)
    return cycle
