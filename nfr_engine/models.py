"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceQuote:
    """Raw answer from a price feed, in the feed's native scale."""

    price: int
    updated_at: int
    decimals: int


@dataclass(frozen=True)
class AccountInformation:
    total_minted: int
    collateral_value_usd: int


@dataclass(frozen=True)
class LiquidationOutcome:
    """What a single liquidation seized and repaid."""

    asset: str
    collateral_seized: int
    debt_repaid: int
    bonus_collateral: int


@dataclass(frozen=True)
class CollateralDeposited:
    user: str
    asset: str
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    redeemed_from: str
    redeemed_to: str
    asset: str
    amount: int
