"""Configuration for Latency Probe."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LATENCY_PROBE_CONFIG"
DEFAULT_CONFIG_FILE = "latency_probe.toml"


class ApiConfig(BaseModel):
    """Exchange REST endpoint settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://api.binance.com"
    trade_endpoint: str = "/api/v3/trades"
    trade_limit: int = Field(default=10, ge=1)
    default_symbol: str = Field(default="BTCUSDT", min_length=1)
    timeout: float = Field(default=10.0, gt=0)


class LatencyThresholds(BaseModel):
    """Risk tier boundaries in milliseconds."""

    model_config = ConfigDict(frozen=True)

    warning_ms: int = 200
    critical_ms: int = 500

    @model_validator(mode="after")
    def _check_ordering(self) -> LatencyThresholds:
        if self.critical_ms <= self.warning_ms:
            raise ValueError(
                f"critical threshold ({self.critical_ms} ms) must exceed "
                f"warning threshold ({self.warning_ms} ms)"
            )
        return self


class MonitorConfig(BaseModel):
    """Polling loop settings."""

    model_config = ConfigDict(frozen=True)

    poll_interval: float = Field(default=2.0, gt=0, description="Seconds between cycles")


# Flat key/value surface → (section, field)
PROPERTY_KEYS: dict[str, tuple[str, str]] = {
    "api.default.symbol": ("api", "default_symbol"),
    "api.base.url": ("api", "base_url"),
    "api.trade.endpoint": ("api", "trade_endpoint"),
    "api.trade.limit": ("api", "trade_limit"),
    "latency.threshold.warning": ("latency", "warning_ms"),
    "latency.threshold.critical": ("latency", "critical_ms"),
    "monitor.poll.interval": ("monitor", "poll_interval"),
}


class ProbeConfig(BaseModel):
    """Top-level configuration snapshot, immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    api: ApiConfig = Field(default_factory=ApiConfig)
    latency: LatencyThresholds = Field(default_factory=LatencyThresholds)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)

    def get(self, key: str) -> object:
        """Resolve a flat key such as 'latency.threshold.warning'."""
        if key not in PROPERTY_KEYS:
            raise KeyError(key)
        section, field = PROPERTY_KEYS[key]
        return getattr(getattr(self, section), field)

    def with_overrides(self, **sections: Mapping[str, object]) -> ProbeConfig:
        """Return a validated copy with some section fields replaced.

        None values are skipped, so CLI options that were not given leave
        the loaded value in place.
        """
        data = self.model_dump()
        for section, values in sections.items():
            data[section].update({k: v for k, v in values.items() if v is not None})
        return type(self).model_validate(data)

    @classmethod
    def from_properties(cls, properties: Mapping[str, object]) -> ProbeConfig:
        """Build a config from flat dotted keys.

        Raises:
            KeyError: If a key is not part of the configuration surface.
        """
        data: dict[str, dict[str, object]] = {}
        for key, value in properties.items():
            if key not in PROPERTY_KEYS:
                raise KeyError(f"Unknown configuration key: {key}")
            section, field = PROPERTY_KEYS[key]
            data.setdefault(section, {})[field] = value
        return cls.model_validate(data)

    @classmethod
    def from_properties_file(cls, path: Path | str) -> ProbeConfig:
        """Load configuration from a Java-style ``key=value`` properties file."""
        properties: dict[str, str] = {}
        for raw_line in Path(path).read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith(("#", "!")):
                continue
            sep = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
            if sep < 0:
                raise ValueError(f"Malformed properties line: {raw_line!r}")
            properties[line[:sep].strip()] = line[sep + 1 :].strip()
        return cls.from_properties(properties)

    @classmethod
    def from_toml(cls, path: Path | str) -> ProbeConfig:
        """Load configuration from a TOML file."""
        path = Path(path)
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path | str) -> ProbeConfig:
        """Load from TOML or, for a ``.properties`` suffix, a properties file."""
        if Path(path).suffix == ".properties":
            return cls.from_properties_file(path)
        return cls.from_toml(path)

    @classmethod
    def find_and_load(cls, explicit_path: str | None = None) -> ProbeConfig | None:
        """Find and load config: explicit path > LATENCY_PROBE_CONFIG env > latency_probe.toml in cwd.

        Returns None if no config file is found.
        """
        if explicit_path:
            logger.info("Loading config from %s", explicit_path)
            return cls.load(explicit_path)
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            logger.info("Loading config from %s=%s", CONFIG_ENV_VAR, env_path)
            return cls.load(env_path)
        default = Path(DEFAULT_CONFIG_FILE)
        if default.exists():
            logger.info("Loading config from %s", default)
            return cls.from_toml(default)
        return None
