"""Trade data models."""

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field


class Trade(BaseModel):
    """A single executed trade as reported by the exchange.

    The raw trade payload carries no symbol; sources tag each trade with
    the requested symbol after deserialization (see ``with_symbol``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    symbol: str = Field(default="", description="Instrument symbol, e.g. 'BTCUSDT'")
    price: float = Field(gt=0, description="Execution price in quote currency")
    quantity: float = Field(gt=0, alias="qty", description="Executed size in base currency")
    maker_is_buyer: bool = Field(
        alias="isBuyerMaker", description="True when the buyer posted the resting order"
    )
    event_time_ms: int = Field(alias="time", description="Match time, epoch milliseconds")

    @property
    def side(self) -> str:
        """Taker side: 'SELL' when the buyer was the maker, 'BUY' otherwise.

        If the buyer provided liquidity, the aggressor hitting it was a
        seller, and vice versa.
        """
        return "SELL" if self.maker_is_buyer else "BUY"

    @property
    def notional(self) -> float:
        """Price * quantity — the quote-currency value of this trade."""
        return self.price * self.quantity

    def with_symbol(self, symbol: str) -> "Trade":
        return self.model_copy(update={"symbol": symbol})

    def __str__(self) -> str:
        return (
            f"[{self.symbol}] Price: {self.price:.2f} | "
            f"Qty: {self.quantity:.4f} | Side: {self.side}"
        )


class RiskTier(IntEnum):
    """Latency severity, ordered NORMAL < WARNING < CRITICAL."""

    NORMAL = 0
    WARNING = 1
    CRITICAL = 2


class TradeAnalysis(BaseModel):
    """Latency classification of one observed trade.

    ``latency_ms`` is the observation delay; ``total_value`` is the trade's
    notional volume. The two are never stored in the same slot.
    """

    model_config = ConfigDict(frozen=True)

    trade: Trade
    tier: RiskTier
    latency_ms: int = Field(description="observed_at_ms - trade.event_time_ms")
    observed_at_ms: int = Field(description="Local wall-clock time of observation")

    @property
    def total_value(self) -> float:
        return self.trade.notional

    def __str__(self) -> str:
        return (
            f"[{self.tier.name}] {self.trade.symbol} | Latency: {self.latency_ms} ms | "
            f"Volume: ${self.total_value:,.2f}"
        )
