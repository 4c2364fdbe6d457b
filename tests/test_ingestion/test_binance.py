"""Tests for the Binance public trades client."""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

from latency_probe.config import ApiConfig
from latency_probe.ingestion.binance import BinanceSource

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

Handler = Callable[[httpx.Request], httpx.Response]


def _load_fixture() -> list[dict]:
    return json.loads((FIXTURES_DIR / "sample_binance_trades_response.json").read_text())


def _make_source(handler: Handler, config: ApiConfig | None = None) -> BinanceSource:
    """BinanceSource whose HTTP client is served by ``handler``."""
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return BinanceSource(config, client=client)


def _respond(status_code: int = 200, **kwargs) -> Handler:
    return lambda request: httpx.Response(status_code, **kwargs)


def _raise(exc: Exception) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return handler


class TestBuildUrl:
    def test_default_config(self):
        with BinanceSource() as source:
            assert (
                source.build_url("BTCUSDT")
                == "https://api.binance.com/api/v3/trades?limit=10&symbol=BTCUSDT"
            )

    def test_custom_config_and_limit_override(self):
        cfg = ApiConfig(base_url="http://localhost:8080", trade_endpoint="/trades", trade_limit=50)
        with BinanceSource(cfg) as source:
            assert source.build_url("ETHUSDT") == "http://localhost:8080/trades?limit=50&symbol=ETHUSDT"
            assert (
                source.build_url("ETHUSDT", limit=5)
                == "http://localhost:8080/trades?limit=5&symbol=ETHUSDT"
            )


class TestFetchRecentTrades:
    def test_name(self):
        with _make_source(_respond(json=[])) as source:
            assert source.name == "binance"

    def test_returns_all_trades_tagged_with_symbol(self):
        fixture = _load_fixture()

        with _make_source(_respond(json=fixture)) as source:
            trades = source.fetch_recent_trades("BTCUSDT")

        assert len(trades) == len(fixture) == 10
        assert all(t.symbol == "BTCUSDT" for t in trades)

    def test_preserves_exchange_order(self):
        fixture = list(reversed(_load_fixture()))

        with _make_source(_respond(json=fixture)) as source:
            trades = source.fetch_recent_trades("BTCUSDT")

        assert [t.event_time_ms for t in trades] == [raw["time"] for raw in fixture]

    def test_parses_fields(self):
        with _make_source(_respond(json=_load_fixture()[:1])) as source:
            trade = source.fetch_recent_trades("BTCUSDT")[0]

        assert trade.price == pytest.approx(67245.1)
        assert trade.quantity == pytest.approx(0.0015)
        assert trade.maker_is_buyer is True
        assert trade.side == "SELL"
        assert trade.event_time_ms == 1760868000120

    def test_requests_concatenated_url(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        with _make_source(handler) as source:
            source.fetch_recent_trades("SOLUSDT", limit=3)

        [request] = seen
        assert request.method == "GET"
        assert str(request.url) == "https://api.binance.com/api/v3/trades?limit=3&symbol=SOLUSDT"
        assert "authorization" not in request.headers

    def test_empty_array(self):
        with _make_source(_respond(json=[])) as source:
            assert source.fetch_recent_trades("BTCUSDT") == []

    @pytest.mark.parametrize("status_code", [429, 500, 418])
    def test_error_status_returns_empty(self, status_code, caplog):
        body = {"code": -1003, "msg": "Too many requests"}

        with _make_source(_respond(status_code, json=body)) as source:
            with caplog.at_level(logging.ERROR, logger="latency_probe.ingestion.binance"):
                trades = source.fetch_recent_trades("BTCUSDT")

        assert trades == []
        assert str(status_code) in caplog.text
        assert "Too many requests" in caplog.text

    def test_connection_error_returns_empty(self, caplog):
        handler = _raise(httpx.ConnectError("Name or service not known"))

        with _make_source(handler) as source:
            with caplog.at_level(logging.ERROR, logger="latency_probe.ingestion.binance"):
                trades = source.fetch_recent_trades("BTCUSDT")

        assert trades == []
        assert "Failed to fetch trades for BTCUSDT" in caplog.text

    def test_timeout_returns_empty(self):
        with _make_source(_raise(httpx.ReadTimeout("timed out"))) as source:
            assert source.fetch_recent_trades("BTCUSDT") == []

    def test_invalid_url_returns_empty(self, caplog):
        cfg = ApiConfig(base_url="https://api.binance.com:notaport")

        with _make_source(_respond(json=_load_fixture()), cfg) as source:
            with caplog.at_level(logging.ERROR, logger="latency_probe.ingestion.binance"):
                trades = source.fetch_recent_trades("BTCUSDT")

        assert trades == []
        assert "Failed to fetch trades" in caplog.text

    def test_malformed_json_returns_empty(self):
        with _make_source(_respond(content=b"<html>gateway error</html>")) as source:
            assert source.fetch_recent_trades("BTCUSDT") == []

    def test_deeply_nested_json_returns_empty(self):
        body = b"[" * 100_000 + b"]" * 100_000

        with _make_source(_respond(content=body)) as source:
            assert source.fetch_recent_trades("BTCUSDT") == []

    def test_non_array_payload_returns_empty(self):
        with _make_source(_respond(json={"code": 0, "msg": "ok"})) as source:
            assert source.fetch_recent_trades("BTCUSDT") == []

    def test_invalid_trade_returns_empty(self):
        raw = _load_fixture()[:2]
        del raw[1]["time"]

        with _make_source(_respond(json=raw)) as source:
            assert source.fetch_recent_trades("BTCUSDT") == []

    def test_logs_round_trip_on_success(self, caplog):
        with _make_source(_respond(json=_load_fixture())) as source:
            with caplog.at_level(logging.DEBUG, logger="latency_probe.ingestion.binance"):
                source.fetch_recent_trades("BTCUSDT")

        records = [r for r in caplog.records if r.name == "latency_probe.ingestion.binance"]
        assert [r.levelno for r in records] == [logging.DEBUG, logging.INFO]
        assert "API response received" in records[1].getMessage()

    def test_context_manager_closes_client(self):
        client = MagicMock(spec=httpx.Client)

        with BinanceSource(client=client):
            pass

        client.close.assert_called_once()
