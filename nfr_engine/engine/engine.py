"""Position manager for NFR, the USD-pegged synthetic asset.

Users deposit approved collateral, mint NFR against it, burn NFR and redeem
collateral. Positions whose health factor drops below 1.0 can be liquidated by
anyone for a bonus.

Every public mutating method runs as one unit of work: ledger changes are made
first and checked, external token calls come last, and any error restores the
ledger and reverses the token calls that already went through.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Sequence

from ..constants import (
    ADDITIONAL_FEED_PRECISION,
    DEFAULT_STALENESS_MULTIPLE,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from ..errors import (
    BreaksHealthFactor,
    HealthFactorNotImproved,
    HealthFactorOk,
    MintFailed,
    NeedsMoreThanZero,
    NoTokensToBurn,
    NotEnoughCollateralToRedeem,
    TokenAddressesAndPriceFeedAddressesMustBeSameLength,
    TokenNotAllowed,
    TransferFailed,
)
from ..interfaces.price_feed import PriceFeed
from ..interfaces.token import SyntheticToken, Token
from ..models import (
    AccountInformation,
    CollateralDeposited,
    CollateralRedeemed,
    LiquidationOutcome,
)
from ..oracles.oracle_lib import OracleLib
from . import health
from .atomic import AtomicGuard, UnitOfWork
from .ledger import Ledger

logger = logging.getLogger(__name__)


class NFREngine:
    """Owns every position and the only write access to the ledger."""

    def __init__(
        self,
        token_addresses: Sequence[Token],
        price_feeds: Sequence[PriceFeed],
        nfr: SyntheticToken,
        *,
        address: str = "nfr-engine",
        heartbeats: Sequence[int] | None = None,
        staleness_multiple: int = DEFAULT_STALENESS_MULTIPLE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if len(token_addresses) != len(price_feeds):
            raise TokenAddressesAndPriceFeedAddressesMustBeSameLength(
                len(token_addresses), len(price_feeds)
            )
        if heartbeats is not None and len(heartbeats) != len(token_addresses):
            raise ValueError("heartbeats must have one entry per collateral token")

        self.address = address
        self._nfr = nfr
        self._tokens: dict[str, Token] = {}
        for token in token_addresses:
            if token.address in self._tokens:
                raise ValueError(f"Duplicate collateral token {token.address}")
            self._tokens[token.address] = token
        self._collateral_tokens = tuple(self._tokens)

        self._oracle = OracleLib(
            feeds=dict(zip(self._collateral_tokens, price_feeds)),
            heartbeats=(
                dict(zip(self._collateral_tokens, heartbeats))
                if heartbeats is not None
                else None
            ),
            staleness_multiple=staleness_multiple,
            clock=clock,
        )

        self._ledger = Ledger()
        self._events: list[Any] = []
        self._guard = AtomicGuard(self._ledger, self._events)

    # ------------------------------------------------------------------
    # Guard clauses
    # ------------------------------------------------------------------

    @staticmethod
    def _require_more_than_zero(amount: int) -> None:
        if amount <= 0:
            raise NeedsMoreThanZero()

    def _require_allowed_token(self, asset: str) -> Token:
        token = self._tokens.get(asset)
        if token is None:
            raise TokenNotAllowed(asset)
        return token

    def _revert_if_health_factor_is_broken(self, user: str) -> None:
        health_factor = self._health_factor(user)
        if health_factor < MIN_HEALTH_FACTOR:
            raise BreaksHealthFactor(health_factor)

    # ------------------------------------------------------------------
    # Ledger steps (no external calls)
    # ------------------------------------------------------------------

    def _debit_collateral(self, user: str, asset: str, amount: int) -> None:
        available = self._ledger.collateral_of(user, asset)
        if amount > available:
            raise NotEnoughCollateralToRedeem(amount, available)
        self._ledger.debit(user, asset, amount)

    def _burn_debt(self, user: str, amount: int) -> None:
        minted = self._ledger.debt_of(user)
        if amount <= 0 or amount > minted:
            raise NoTokensToBurn(amount, minted)
        self._ledger.burn_debt(user, amount)

    # ------------------------------------------------------------------
    # External steps, each undone on abort where possible
    # ------------------------------------------------------------------

    def _pull(self, uow: UnitOfWork, token: Token, owner: str, amount: int) -> None:
        """Move ``amount`` from ``owner`` into the engine using its allowance."""
        try:
            ok = token.transfer_from(self.address, owner, self.address, amount)
        except Exception as e:
            raise TransferFailed(token.address, amount) from e
        if not ok:
            raise TransferFailed(token.address, amount)
        uow.on_abort(token.transfer, self.address, owner, amount)

    def _pay(self, token: Token, recipient: str, amount: int) -> None:
        """Send ``amount`` from the engine; always the last external call."""
        try:
            ok = token.transfer(self.address, recipient, amount)
        except Exception as e:
            raise TransferFailed(token.address, amount) from e
        if not ok:
            raise TransferFailed(token.address, amount)

    def _mint(self, recipient: str, amount: int) -> None:
        try:
            ok = self._nfr.mint(self.address, recipient, amount)
        except Exception as e:
            raise MintFailed(amount) from e
        if not ok:
            raise MintFailed(amount)

    def _burn_nfr_from(self, uow: UnitOfWork, nfr_from: str, amount: int) -> None:
        """Collect NFR from ``nfr_from`` and destroy it."""
        self._pull(uow, self._nfr, nfr_from, amount)
        try:
            self._nfr.burn(self.address, amount)
        except Exception as e:
            raise TransferFailed(self._nfr.address, amount) from e
        uow.on_abort(self._nfr.mint, self.address, self.address, amount)

    # ------------------------------------------------------------------
    # Deposits and minting
    # ------------------------------------------------------------------

    def deposit_collateral(self, user: str, asset: str, amount: int) -> None:
        """Lock ``amount`` of ``asset``; the engine must be approved first."""
        self._require_more_than_zero(amount)
        token = self._require_allowed_token(asset)

        with self._guard.atomic("deposit_collateral") as uow:
            self._ledger.credit(user, asset, amount)
            uow.emit(CollateralDeposited(user, asset, amount))
            self._pull(uow, token, user, amount)

        logger.info("%s deposited %d of %s", user, amount, asset)

    def mint_nfr(self, user: str, amount: int) -> None:
        """Mint ``amount`` NFR as debt, if the resulting position stays healthy."""
        self._require_more_than_zero(amount)

        with self._guard.atomic("mint_nfr"):
            self._ledger.mint_debt(user, amount)
            self._revert_if_health_factor_is_broken(user)
            self._mint(user, amount)

        logger.info("%s minted %d NFR", user, amount)

    def deposit_collateral_and_mint_nfr(
        self, user: str, asset: str, collateral_amount: int, amount_to_mint: int
    ) -> None:
        self._require_more_than_zero(collateral_amount)
        self._require_more_than_zero(amount_to_mint)
        token = self._require_allowed_token(asset)

        with self._guard.atomic("deposit_collateral_and_mint_nfr") as uow:
            self._ledger.credit(user, asset, collateral_amount)
            uow.emit(CollateralDeposited(user, asset, collateral_amount))
            self._ledger.mint_debt(user, amount_to_mint)
            self._revert_if_health_factor_is_broken(user)
            self._pull(uow, token, user, collateral_amount)
            self._mint(user, amount_to_mint)

        logger.info(
            "%s deposited %d of %s and minted %d NFR",
            user, collateral_amount, asset, amount_to_mint,
        )

    # ------------------------------------------------------------------
    # Redemption and burning
    # ------------------------------------------------------------------

    def redeem_collateral(self, user: str, asset: str, amount: int) -> None:
        self._require_more_than_zero(amount)
        token = self._require_allowed_token(asset)

        with self._guard.atomic("redeem_collateral") as uow:
            self._debit_collateral(user, asset, amount)
            self._revert_if_health_factor_is_broken(user)
            uow.emit(CollateralRedeemed(user, user, asset, amount))
            self._pay(token, user, amount)

        logger.info("%s redeemed %d of %s", user, amount, asset)

    def burn_nfr(self, user: str, amount: int) -> None:
        """Repay ``amount`` of debt with NFR the engine is approved to pull.

        Repaying only raises the health factor, so no price is read.
        """
        with self._guard.atomic("burn_nfr") as uow:
            self._burn_debt(user, amount)
            self._burn_nfr_from(uow, user, amount)

        logger.info("%s burned %d NFR", user, amount)

    def redeem_collateral_for_nfr(
        self, user: str, asset: str, collateral_amount: int, amount_to_burn: int
    ) -> None:
        """Burn debt and withdraw collateral in one step."""
        self._require_more_than_zero(collateral_amount)
        token = self._require_allowed_token(asset)

        with self._guard.atomic("redeem_collateral_for_nfr") as uow:
            self._burn_debt(user, amount_to_burn)
            self._debit_collateral(user, asset, collateral_amount)
            self._revert_if_health_factor_is_broken(user)
            uow.emit(CollateralRedeemed(user, user, asset, collateral_amount))
            self._burn_nfr_from(uow, user, amount_to_burn)
            self._pay(token, user, collateral_amount)

        logger.info(
            "%s burned %d NFR and redeemed %d of %s",
            user, amount_to_burn, collateral_amount, asset,
        )

    # ------------------------------------------------------------------
    # Liquidation
    # ------------------------------------------------------------------

    def liquidate(
        self, liquidator: str, asset: str, user: str, debt_to_cover: int
    ) -> LiquidationOutcome:
        """Repay ``debt_to_cover`` of an unhealthy ``user`` and seize collateral.

        The liquidator receives the collateral equivalent of the repaid debt
        plus LIQUIDATION_BONUS percent, capped at what ``user`` holds of
        ``asset``. The NFR is pulled from the liquidator's wallet.
        """
        self._require_more_than_zero(debt_to_cover)
        token = self._require_allowed_token(asset)

        with self._guard.atomic("liquidate") as uow:
            starting_health_factor = self._health_factor(user)
            if starting_health_factor >= MIN_HEALTH_FACTOR:
                raise HealthFactorOk(starting_health_factor)

            price = self._oracle.price(asset)
            debt_equivalent = health.token_amount_from_usd(price, debt_to_cover)
            bonus = health.liquidation_bonus(debt_equivalent)
            seized = min(
                debt_equivalent + bonus, self._ledger.collateral_of(user, asset)
            )

            self._burn_debt(user, debt_to_cover)
            self._debit_collateral(user, asset, seized)

            ending_health_factor = self._health_factor(user)
            # a liquidation must strictly improve the target's health factor
            if ending_health_factor <= starting_health_factor:
                raise HealthFactorNotImproved(
                    starting_health_factor, ending_health_factor
                )
            self._revert_if_health_factor_is_broken(liquidator)

            uow.emit(CollateralRedeemed(user, liquidator, asset, seized))
            self._burn_nfr_from(uow, liquidator, debt_to_cover)
            self._pay(token, liquidator, seized)

        outcome = LiquidationOutcome(
            asset=asset,
            collateral_seized=seized,
            debt_repaid=debt_to_cover,
            bonus_collateral=max(seized - debt_equivalent, 0),
        )
        logger.info(
            "%s liquidated %s: repaid %d NFR, seized %d of %s (health factor %d -> %d)",
            liquidator, user, debt_to_cover, seized, asset,
            starting_health_factor, ending_health_factor,
        )
        return outcome

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def _collateral_of(self, user: str, asset: str, committed: bool) -> int:
        if committed:
            return self._ledger.committed_collateral_of(user, asset)
        return self._ledger.collateral_of(user, asset)

    def _debt_of(self, user: str, committed: bool) -> int:
        if committed:
            return self._ledger.committed_debt_of(user)
        return self._ledger.debt_of(user)

    def _collateral_value(self, user: str, committed: bool = False) -> int:
        # zero balances are skipped without reading their price
        total = 0
        for asset in self._collateral_tokens:
            amount = self._collateral_of(user, asset, committed)
            if amount:
                total += health.usd_value(self._oracle.price(asset), amount)
        return total

    def _health_factor(self, user: str, committed: bool = False) -> int:
        total_minted = self._debt_of(user, committed)
        if total_minted == 0:
            return health.calculate_health_factor(0, 0)
        return health.calculate_health_factor(
            total_minted, self._collateral_value(user, committed)
        )

    # ------------------------------------------------------------------
    # Read-only views
    #
    # Views read committed state only. A token callback that queries the
    # engine mid-operation sees the positions as they were before it began.
    # ------------------------------------------------------------------

    def get_health_factor(self, user: str) -> int:
        return self._health_factor(user, committed=True)

    def get_account_information(self, user: str) -> AccountInformation:
        return AccountInformation(
            total_minted=self._debt_of(user, committed=True),
            collateral_value_usd=self._collateral_value(user, committed=True),
        )

    def get_account_collateral_value(self, user: str) -> int:
        """Sum of the USD value of every approved asset ``user`` holds.

        Assets with a zero balance are skipped without reading their price.
        """
        return self._collateral_value(user, committed=True)

    def get_usd_value(self, asset: str, amount: int) -> int:
        self._require_allowed_token(asset)
        return health.usd_value(self._oracle.price(asset), amount)

    def get_token_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        self._require_allowed_token(asset)
        return health.token_amount_from_usd(self._oracle.price(asset), usd_amount)

    @staticmethod
    def calculate_health_factor(total_minted: int, collateral_value_usd: int) -> int:
        return health.calculate_health_factor(total_minted, collateral_value_usd)

    def get_collateral_balance_of_user(self, user: str, asset: str) -> int:
        return self._ledger.committed_collateral_of(user, asset)

    def get_nfr_minted(self, user: str) -> int:
        return self._ledger.committed_debt_of(user)

    def get_collateral_tokens(self) -> tuple[str, ...]:
        return self._collateral_tokens

    def get_collateral_token_price_feed(self, asset: str) -> PriceFeed:
        self._require_allowed_token(asset)
        return self._oracle.feed_for(asset)

    @property
    def nfr(self) -> SyntheticToken:
        return self._nfr

    @property
    def events(self) -> tuple[Any, ...]:
        """Events of committed operations, oldest first."""
        return tuple(self._events)

    # Protocol constants, exposed for integrators.
    precision = PRECISION
    additional_feed_precision = ADDITIONAL_FEED_PRECISION
    liquidation_threshold = LIQUIDATION_THRESHOLD
    liquidation_bonus = LIQUIDATION_BONUS
    liquidation_precision = LIQUIDATION_PRECISION
    min_health_factor = MIN_HEALTH_FACTOR
