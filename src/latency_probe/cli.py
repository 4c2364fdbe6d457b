"""Latency Probe CLI — command-line interface for the trade latency monitor."""

from __future__ import annotations

import logging
import sys

import click

from latency_probe.config import PROPERTY_KEYS, ProbeConfig
from latency_probe.ingestion.binance import BinanceSource
from latency_probe.latency import classify_latency
from latency_probe.monitor import run_monitor
from latency_probe.probe import DEFAULT_MAX_LATENCY_MS, NoTradesError, probe_once

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _setup_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _get_config(ctx: click.Context) -> ProbeConfig:
    return ctx.obj["config"]


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    help="Set logging verbosity. NORMAL-tier trades are only shown at DEBUG.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to a latency_probe.toml or .properties config file.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, config_path: str | None) -> None:
    """Latency Probe - exchange trade feed latency monitor.

    \b
    Quick start:
      1. latency-probe probe BTCUSDT      One-shot go/no-go latency check
      2. latency-probe watch BTCUSDT      Poll continuously, alert on lag
      3. latency-probe config show        Print the effective configuration

    \b
    Configuration:
      --config PATH > LATENCY_PROBE_CONFIG env var > ./latency_probe.toml
      Command options override values from the file.
    """
    _setup_logging(log_level)
    ctx.ensure_object(dict)
    try:
        config = ProbeConfig.find_and_load(config_path)
    except (OSError, ValueError, KeyError) as exc:
        click.echo(f"Invalid configuration: {exc}", err=True)
        raise SystemExit(1)
    ctx.obj["config"] = config or ProbeConfig()


# --- Monitoring commands ---


@cli.command()
@click.argument("symbol", required=False)
@click.option(
    "--interval",
    default=None,
    type=float,
    help="Seconds between poll cycles (default: 2.0).",
)
@click.option("--warning", "warning_ms", default=None, type=int, help="Warning threshold in ms.")
@click.option("--critical", "critical_ms", default=None, type=int, help="Critical threshold in ms.")
@click.option("--limit", default=None, type=int, help="Trades requested per poll.")
@click.pass_context
def watch(
    ctx: click.Context,
    symbol: str | None,
    interval: float | None,
    warning_ms: int | None,
    critical_ms: int | None,
    limit: int | None,
) -> None:
    """Continuously monitor trade latency for SYMBOL.

    Polls the exchange every --interval seconds and logs each trade's
    latency: ERROR above the critical threshold, WARNING above the
    warning threshold, DEBUG otherwise.

    \b
    Examples:
      latency-probe watch BTCUSDT
      latency-probe --log-level DEBUG watch ETHUSDT --interval 5
      latency-probe watch BTCUSDT --warning 100 --critical 300
    """
    try:
        config = _get_config(ctx).with_overrides(
            api={"default_symbol": symbol, "trade_limit": limit},
            latency={"warning_ms": warning_ms, "critical_ms": critical_ms},
            monitor={"poll_interval": interval},
        )
    except ValueError as exc:
        raise click.UsageError(str(exc))

    click.echo(
        f"Watching {config.api.default_symbol} "
        f"(poll every {config.monitor.poll_interval}s)..."
    )
    click.echo("Press Ctrl+C to stop.")

    with BinanceSource(config.api) as source:
        cycles = run_monitor(source, config)

    click.echo(f"Stopped after {cycles} cycles.")


@cli.command()
@click.argument("symbol", required=False)
@click.option(
    "--max-latency",
    default=DEFAULT_MAX_LATENCY_MS,
    type=int,
    show_default=True,
    help="Fail if latency in ms reaches this value.",
)
@click.pass_context
def probe(ctx: click.Context, symbol: str | None, max_latency: int) -> None:
    """Measure the latency of the latest trade once.

    Exits with status 1 if no trades could be fetched or the latency is
    at or above --max-latency, so it can gate a deployment.

    \b
    Examples:
      latency-probe probe
      latency-probe probe ETHUSDT --max-latency 1000
    """
    config = _get_config(ctx)
    symbol = symbol or config.api.default_symbol

    try:
        with BinanceSource(config.api) as source:
            result = probe_once(source, symbol, max_latency_ms=max_latency)
    except NoTradesError as exc:
        click.echo(f"Error: {exc}. Check network connection.", err=True)
        raise SystemExit(1)

    rule = "-" * 50
    click.echo(rule)
    click.echo("LATENCY BENCHMARK RESULT")
    click.echo(rule)
    click.echo(f"Symbol       : {result.symbol}")
    click.echo(f"Event Time   : {result.event_time_ms}")
    click.echo(f"Process Time : {result.observed_at_ms}")
    click.echo(f"Latency      : {result.latency_ms} ms")
    click.echo(f"Threshold    : {result.max_latency_ms} ms")
    click.echo(rule)

    if not result.passed:
        click.echo(
            f"PERFORMANCE FAILURE: latency ({result.latency_ms} ms) exceeded "
            f"the limit of {result.max_latency_ms} ms",
            err=True,
        )
        raise SystemExit(1)


@cli.command()
@click.argument("latency_ms", type=int)
@click.pass_context
def classify(ctx: click.Context, latency_ms: int) -> None:
    """Print the risk tier for LATENCY_MS under the configured thresholds.

    \b
    Examples:
      latency-probe classify 350
      latency-probe classify -- -20
    """
    thresholds = _get_config(ctx).latency
    tier = classify_latency(latency_ms, thresholds.warning_ms, thresholds.critical_ms)
    click.echo(tier.name)


# --- Config commands ---


@cli.group("config")
def config_group() -> None:
    """Inspect configuration."""
    pass


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective configuration as flat keys."""
    config = _get_config(ctx)
    for key in PROPERTY_KEYS:
        click.echo(f"{key}={config.get(key)}")
