"""Errors raised by the engine.

Every failure aborts the whole operation; none are retried internally.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base error for all engine failures."""


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------


class NeedsMoreThanZero(EngineError):
    def __init__(self) -> None:
        super().__init__("Amount must be more than zero")


class TokenNotAllowed(EngineError):
    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"Token not allowed as collateral: {asset}")


class TokenAddressesAndPriceFeedAddressesMustBeSameLength(EngineError):
    def __init__(self, tokens: int, feeds: int) -> None:
        self.tokens = tokens
        self.feeds = feeds
        super().__init__(
            f"Got {tokens} token addresses but {feeds} price feeds"
        )


# ---------------------------------------------------------------------------
# Policy violations
# ---------------------------------------------------------------------------


class BreaksHealthFactor(EngineError):
    def __init__(self, health_factor: int) -> None:
        self.health_factor = health_factor
        super().__init__(f"Health factor would be broken: {health_factor}")


class HealthFactorOk(EngineError):
    def __init__(self, health_factor: int) -> None:
        self.health_factor = health_factor
        super().__init__(f"Health factor is not liquidatable: {health_factor}")


class HealthFactorNotImproved(EngineError):
    def __init__(self, before: int, after: int) -> None:
        self.before = before
        self.after = after
        super().__init__(
            f"Liquidation did not improve health factor ({before} -> {after})"
        )


class NotEnoughCollateralToRedeem(EngineError):
    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot redeem {requested}, only {available} deposited"
        )


class NoTokensToBurn(EngineError):
    def __init__(self, requested: int, minted: int) -> None:
        self.requested = requested
        self.minted = minted
        super().__init__(f"Cannot burn {requested}, minted debt is {minted}")


class ReentrantCall(EngineError):
    def __init__(self) -> None:
        super().__init__("Re-entrant call rejected")


# ---------------------------------------------------------------------------
# Dependency failures
# ---------------------------------------------------------------------------


class TransferFailed(EngineError):
    def __init__(self, asset: str, amount: int) -> None:
        self.asset = asset
        self.amount = amount
        super().__init__(f"Transfer of {amount} {asset} failed")


class MintFailed(EngineError):
    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(f"Mint of {amount} failed")


class StalePrice(EngineError):
    def __init__(self, asset: str, age: float, max_age: float) -> None:
        self.asset = asset
        self.age = age
        self.max_age = max_age
        super().__init__(
            f"Stale price for {asset}: {age:.0f}s old (max {max_age:.0f}s)"
        )


class InvalidPrice(EngineError):
    def __init__(self, asset: str, price: int) -> None:
        self.asset = asset
        self.price = price
        super().__init__(f"Invalid price for {asset}: {price}")


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class LedgerUnderflow(EngineError):
    """A debit or burn exceeded the stored balance."""

    def __init__(self, key: str, requested: int, balance: int) -> None:
        self.key = key
        self.requested = requested
        self.balance = balance
        super().__init__(
            f"Underflow on {key}: requested {requested}, balance {balance}"
        )
