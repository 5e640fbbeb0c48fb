"""In-memory ERC-20 style token service."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)

# Called before a transfer settles; used to simulate token callbacks.
TransferHook = Callable[[str, str, int], None]


class InMemoryToken:
    """Fungible token with balances and allowances held in dicts.

    ``fail_next_transfer`` makes the next transfer return ``False`` without
    moving funds, the way a non-reverting ERC-20 reports failure.
    """

    def __init__(self, symbol: str, address: str | None = None) -> None:
        self.symbol = symbol
        self._address = address or symbol.lower()
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)
        self.total_supply = 0
        self.fail_next_transfer = False
        self.on_transfer: TransferHook | None = None

    @property
    def address(self) -> str:
        return self._address

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self._allowances[(owner, spender)] = amount
        logger.debug("%s Approval %s -> %s: %d", self.symbol, owner, spender, amount)
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        return self._move(sender, recipient, amount)

    def transfer_from(
        self, spender: str, sender: str, recipient: str, amount: int
    ) -> bool:
        if self.allowance(sender, spender) < amount:
            logger.debug(
                "%s transfer_from rejected: allowance %d < %d",
                self.symbol, self.allowance(sender, spender), amount,
            )
            return False
        if not self._move(sender, recipient, amount):
            return False
        self._allowances[(sender, spender)] -= amount
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if self.fail_next_transfer:
            self.fail_next_transfer = False
            return False
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        if self.on_transfer is not None:
            self.on_transfer(sender, recipient, amount)
        self._balances[sender] -= amount
        self._balances[recipient] += amount
        logger.debug("%s Transfer %s -> %s: %d", self.symbol, sender, recipient, amount)
        return True

    def mint_to(self, to: str, amount: int) -> None:
        """Faucet for collateral tokens; not part of the engine's interface."""
        self._balances[to] += amount
        self.total_supply += amount


class SyntheticNfrToken(InMemoryToken):
    """Synthetic USD token; only its owner (the engine) may mint or burn."""

    def __init__(self, owner: str, symbol: str = "NFR", address: str | None = None) -> None:
        super().__init__(symbol, address)
        self.owner = owner
        self.fail_next_mint = False

    def transfer_ownership(self, new_owner: str) -> None:
        self.owner = new_owner

    def mint(self, minter: str, to: str, amount: int) -> bool:
        if minter != self.owner:
            raise PermissionError(f"{minter} may not mint {self.symbol}")
        if self.fail_next_mint:
            self.fail_next_mint = False
            return False
        if amount <= 0:
            return False
        self._balances[to] += amount
        self.total_supply += amount
        logger.debug("%s Mint %s: %d", self.symbol, to, amount)
        return True

    def burn(self, holder: str, amount: int) -> None:
        if holder != self.owner:
            raise PermissionError(f"{holder} may not burn {self.symbol}")
        if amount <= 0:
            raise ValueError("Burn amount must be more than zero")
        if self.balance_of(holder) < amount:
            raise ValueError(
                f"Burn amount exceeds balance ({amount} > {self.balance_of(holder)})"
            )
        self._balances[holder] -= amount
        self.total_supply -= amount
        logger.debug("%s Burn %s: %d", self.symbol, holder, amount)
