"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import DEFAULT_HEARTBEAT_SECONDS, DEFAULT_STALENESS_MULTIPLE

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    address: str = "nfr-engine"
    staleness_multiple: int = DEFAULT_STALENESS_MULTIPLE


@dataclass(frozen=True)
class NfrTokenConfig:
    symbol: str = "NFR"
    address: str = "nfr"


@dataclass(frozen=True)
class CollateralConfig:
    symbol: str = ""
    address: str = ""
    feed_id: str = ""
    heartbeat_seconds: int = DEFAULT_HEARTBEAT_SECONDS


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    timeout: int = 10


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    nfr: NfrTokenConfig = field(default_factory=NfrTokenConfig)
    collateral: tuple[CollateralConfig, ...] = ()
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        address=raw.get("address", EngineConfig.address),
        staleness_multiple=int(
            raw.get("staleness_multiple", DEFAULT_STALENESS_MULTIPLE)
        ),
    )


def _build_nfr(raw: dict[str, Any]) -> NfrTokenConfig:
    return NfrTokenConfig(
        symbol=raw.get("symbol", NfrTokenConfig.symbol),
        address=raw.get("address", NfrTokenConfig.address),
    )


def _build_collateral(raw: list[dict[str, Any]]) -> tuple[CollateralConfig, ...]:
    collateral: list[CollateralConfig] = []
    for c in raw:
        collateral.append(
            CollateralConfig(
                symbol=c.get("symbol", ""),
                address=c.get("address", ""),
                feed_id=c.get("feed_id", ""),
                heartbeat_seconds=int(
                    c.get("heartbeat_seconds", DEFAULT_HEARTBEAT_SECONDS)
                ),
            )
        )
    return tuple(collateral)


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            timeout=int(pyth_raw.get("timeout", PythConfig.timeout)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        nfr=_build_nfr(raw.get("nfr", {})),
        collateral=_build_collateral(raw.get("collateral", [])),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.collateral:
        raise ValueError("At least one collateral asset must be configured")

    if cfg.engine.staleness_multiple <= 0:
        raise ValueError("staleness_multiple must be positive")

    if cfg.price_oracle.pyth.timeout <= 0:
        raise ValueError("price_oracle.pyth.timeout must be positive")

    seen: set[str] = set()
    for c in cfg.collateral:
        if not c.address:
            raise ValueError(f"Collateral '{c.symbol}' has no address")
        if not c.feed_id:
            raise ValueError(f"Collateral '{c.symbol}' has no feed_id")
        if c.heartbeat_seconds <= 0:
            raise ValueError(f"Collateral '{c.symbol}' has a non-positive heartbeat")
        if c.address in seen:
            raise ValueError(f"Duplicate collateral address '{c.address}'")
        seen.add(c.address)
