"""Binance public REST client for recent trade executions.

Uses the unauthenticated trade-history endpoint:
  GET /api/v3/trades?limit={limit}&symbol={symbol}

Each element of the JSON array looks like:
  {"id": 28457, "price": "4.00000100", "qty": "12.00000000",
   "quoteQty": "48.000012", "time": 1499865549590,
   "isBuyerMaker": true, "isBestMatch": true}

The payload carries no symbol, so trades are tagged with the requested
one after parsing. Public endpoints throttle by request count (HTTP 429);
callers are expected to pace their own polling.
"""

import logging
import time as time_mod

import httpx
from pydantic import TypeAdapter

from latency_probe.config import ApiConfig
from latency_probe.ingestion.base import DataSource
from latency_probe.ingestion.models import Trade

logger = logging.getLogger(__name__)

_TRADE_LIST = TypeAdapter(list[Trade])


class BinanceSource(DataSource):
    """Fetches recent trades from the Binance public API.

    Failures never propagate: a non-200 status, a transport error, an
    invalid URL or a body that does not parse into trades is logged and
    turned into an empty list. There is no retry and no backoff; the
    polling loop's fixed delay is the only throttle.

    Pass ``client`` to supply a preconfigured ``httpx.Client`` (e.g. one
    with a mock transport); the source takes ownership and closes it.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config or ApiConfig()
        if client is None:
            client = httpx.Client(timeout=self._config.timeout)
        self._client = client

    @property
    def name(self) -> str:
        return "binance"

    def build_url(self, symbol: str, limit: int | None = None) -> str:
        """Concatenate base URL, endpoint and query string (symbol is not encoded)."""
        cfg = self._config
        limit = cfg.trade_limit if limit is None else limit
        return f"{cfg.base_url}{cfg.trade_endpoint}?limit={limit}&symbol={symbol}"

    def _parse_trades(self, payload: object, symbol: str) -> list[Trade]:
        """Validate a raw JSON array and tag each trade with the symbol."""
        trades = _TRADE_LIST.validate_python(payload)
        return [trade.with_symbol(symbol) for trade in trades]

    def fetch_recent_trades(self, symbol: str, limit: int | None = None) -> list[Trade]:
        """Fetch the most recent trades for a symbol (single API call).

        Args:
            symbol: Instrument symbol, e.g. 'BTCUSDT'.
            limit: Trades to request. None uses ``ApiConfig.trade_limit``.

        Returns:
            Trades in exchange order, or an empty list on any failure.
        """
        url = self.build_url(symbol, limit)
        logger.debug("Sending request to %s", url)

        try:
            start = time_mod.monotonic()
            response = self._client.get(url)
            duration_ms = (time_mod.monotonic() - start) * 1000

            if response.status_code != httpx.codes.OK:
                logger.error(
                    "API error for %s: status %d | response: %s",
                    symbol,
                    response.status_code,
                    response.text,
                )
                return []

            trades = self._parse_trades(response.json(), symbol)
        except Exception:
            logger.exception("Failed to fetch trades for %s from %s", symbol, url)
            return []

        logger.info(
            "API response received in %.0f ms (%d trades for %s)",
            duration_ms,
            len(trades),
            symbol,
        )
        return trades

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BinanceSource":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
