"""Pure valuation and health factor math — no I/O, no state.

Each formula multiplies before dividing. All operands are non-negative, so
``//`` truncates toward zero and the protocol keeps the rounding dust:
collateral is valued low and debt-equivalent collateral is computed low.
"""
from __future__ import annotations

from ..constants import (
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    PRECISION,
)


def usd_value(price: int, amount: int) -> int:
    """USD value of ``amount`` at an 18-decimal ``price`` (truncates down)."""
    return price * amount // PRECISION


def token_amount_from_usd(price: int, usd_amount: int) -> int:
    """Inverse of :func:`usd_value` (truncates down)."""
    return usd_amount * PRECISION // price


def liquidation_bonus(collateral_amount: int) -> int:
    return collateral_amount * LIQUIDATION_BONUS // LIQUIDATION_PRECISION


def calculate_health_factor(total_minted: int, collateral_value_usd: int) -> int:
    """Risk-adjusted collateral value over debt, scaled by PRECISION.

    health_factor = collateral * 50 / 100 * 1e18 / debt

    A debt-free position is maximally safe regardless of collateral.
    """
    if total_minted == 0:
        return MAX_HEALTH_FACTOR
    adjusted = collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    return adjusted * PRECISION // total_minted
