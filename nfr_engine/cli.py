"""Command-line interface for the NFR engine."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from .config import AppConfig, load_config
from .constants import MAX_HEALTH_FACTOR, PRECISION
from .engine import NFREngine
from .errors import EngineError
from .logging_setup import configure_logging
from .oracles import PythHermesClient, PythPriceFeed
from .tokens import InMemoryToken, SyntheticNfrToken

logger = logging.getLogger(__name__)

# enough digits for any uint256 amount at 18 decimals
_DECIMAL_PREC = 96


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="nfr-engine",
        description="NFR collateralized debt position engine",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("prices", help="Show validated collateral prices")

    health_parser = sub.add_parser(
        "health", help="Health factor of a hypothetical position"
    )
    health_parser.add_argument(
        "--collateral",
        action="append",
        default=[],
        metavar="SYMBOL=AMOUNT",
        help="Collateral held, in whole tokens (repeatable)",
    )
    health_parser.add_argument(
        "--debt",
        default="0",
        help="NFR minted, in whole tokens (default: 0)",
    )

    return parser


# ---------------------------------------------------------------------------
# Fixed-point helpers
# ---------------------------------------------------------------------------


def parse_amount(text: str) -> int:
    """Convert a decimal string to an 18-decimal integer, truncating."""
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {text!r}") from e
    if not value.is_finite():
        raise ValueError(f"Not a number: {text!r}")
    if value < 0:
        raise ValueError(f"Amount must not be negative: {text!r}")
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PREC
        return int((value * PRECISION).to_integral_value(rounding=ROUND_DOWN))


def format_amount(value: int, places: int = 4) -> str:
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PREC
        quantum = Decimal(1).scaleb(-places)
        whole = (Decimal(value) / PRECISION).quantize(quantum, rounding=ROUND_DOWN)
    return f"{whole:,}"


def format_health_factor(value: int) -> str:
    if value == MAX_HEALTH_FACTOR:
        return "∞"
    return format_amount(value)


def parse_collateral(items: list[str]) -> dict[str, int]:
    holdings: dict[str, int] = {}
    for item in items:
        symbol, sep, amount = item.partition("=")
        if not sep or not symbol:
            raise ValueError(f"Expected SYMBOL=AMOUNT, got {item!r}")
        holdings[symbol.upper()] = holdings.get(symbol.upper(), 0) + parse_amount(amount)
    return holdings


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def build_engine(config: AppConfig) -> tuple[NFREngine, list[PythPriceFeed]]:
    """Engine over in-memory tokens, priced by (not yet refreshed) Pyth feeds."""
    tokens = [InMemoryToken(c.symbol, c.address) for c in config.collateral]
    feeds = [PythPriceFeed(c.feed_id) for c in config.collateral]
    nfr = SyntheticNfrToken(
        owner=config.engine.address,
        symbol=config.nfr.symbol,
        address=config.nfr.address,
    )
    engine = NFREngine(
        tokens,
        feeds,
        nfr,
        address=config.engine.address,
        heartbeats=[c.heartbeat_seconds for c in config.collateral],
        staleness_multiple=config.engine.staleness_multiple,
    )
    return engine, feeds


def _show_prices(config: AppConfig, engine: NFREngine) -> None:
    for c in config.collateral:
        try:
            price = engine.get_usd_value(c.address, PRECISION)
        except EngineError as e:
            print(f"  {c.symbol:<8} unavailable ({e})")
            continue
        print(f"  {c.symbol:<8} ${format_amount(price)}")


def _show_health(
    config: AppConfig, engine: NFREngine, collateral: list[str], debt: str
) -> None:
    holdings = parse_collateral(collateral)
    by_symbol = {c.symbol.upper(): c for c in config.collateral}

    total_value = 0
    for symbol, amount in holdings.items():
        if symbol not in by_symbol:
            raise ValueError(f"Unknown collateral symbol '{symbol}'")
        value = engine.get_usd_value(by_symbol[symbol].address, amount)
        total_value += value
        print(f"  {symbol:<8} {format_amount(amount)} = ${format_amount(value)}")

    total_minted = parse_amount(debt)
    health_factor = engine.calculate_health_factor(total_minted, total_value)
    status = "safe" if health_factor >= engine.min_health_factor else "LIQUIDATABLE"

    print(f"  Collateral value: ${format_amount(total_value)}")
    print(f"  Debt:             {format_amount(total_minted)} {config.nfr.symbol}")
    print(f"  Health factor:    {format_health_factor(health_factor)} ({status})")


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    engine, feeds = build_engine(config)
    await PythHermesClient(config.price_oracle.pyth).refresh(feeds)

    if args.command == "prices":
        _show_prices(config, engine)
    elif args.command == "health":
        _show_health(config, engine, args.collateral, args.debt)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (EngineError, FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(2)
