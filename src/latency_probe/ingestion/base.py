"""Abstract base class for recent-trade sources."""

from abc import ABC, abstractmethod

from latency_probe.ingestion.models import Trade


class DataSource(ABC):
    """Interface that all exchange data sources must implement."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier for this source, e.g. 'binance'."""
        ...

    @abstractmethod
    def fetch_recent_trades(self, symbol: str, limit: int | None = None) -> list[Trade]:
        """Fetch the most recent trades for a symbol in a single request.

        Implementations must not raise on network or exchange-side failures:
        a failed request yields an empty list so that polling callers can
        simply try again on their next cycle.

        Args:
            symbol: Instrument symbol, e.g. 'BTCUSDT'. Must already be
                URL-safe; it is not encoded.
            limit: Number of trades to request. None means the source's
                configured default.

        Returns:
            Trades in the order the exchange returned them, each tagged
            with ``symbol``. Empty on any failure.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the source."""
