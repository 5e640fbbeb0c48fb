"""Per-user collateral balances and minted debt."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import LedgerUnderflow

# Journal key: (table name, position key).
_JournalKey = tuple[str, Any]


@dataclass
class Ledger:
    """Owned key-value store of positions.

    Keys are ``(user, asset)`` for collateral and ``user`` for debt. Zero
    balances are kept once written.

    Between ``begin()`` and ``commit()`` / ``rollback()`` the first value each
    written key held is journaled, so a rollback touches only the keys the
    operation changed and ``committed_*`` reads can still see the last
    committed state.
    """

    collateral: dict[tuple[str, str], int] = field(default_factory=dict)
    debt: dict[str, int] = field(default_factory=dict)
    _journal: dict[_JournalKey, int | None] | None = field(
        default=None, init=False, repr=False
    )

    # -- live reads ----------------------------------------------------

    def collateral_of(self, user: str, asset: str) -> int:
        return self.collateral.get((user, asset), 0)

    def debt_of(self, user: str) -> int:
        return self.debt.get(user, 0)

    # -- committed reads -----------------------------------------------

    def committed_collateral_of(self, user: str, asset: str) -> int:
        return self._committed("collateral", (user, asset))

    def committed_debt_of(self, user: str) -> int:
        return self._committed("debt", user)

    def _committed(self, table: str, key: Any) -> int:
        if self._journal is not None and (table, key) in self._journal:
            return self._journal[(table, key)] or 0
        return getattr(self, table).get(key, 0)

    # -- writes --------------------------------------------------------

    def credit(self, user: str, asset: str, amount: int) -> None:
        _check_amount(amount)
        self._write("collateral", (user, asset), self.collateral_of(user, asset) + amount)

    def debit(self, user: str, asset: str, amount: int) -> None:
        _check_amount(amount)
        balance = self.collateral_of(user, asset)
        if amount > balance:
            raise LedgerUnderflow(f"collateral[{user}][{asset}]", amount, balance)
        self._write("collateral", (user, asset), balance - amount)

    def mint_debt(self, user: str, amount: int) -> None:
        _check_amount(amount)
        self._write("debt", user, self.debt_of(user) + amount)

    def burn_debt(self, user: str, amount: int) -> None:
        _check_amount(amount)
        balance = self.debt_of(user)
        if amount > balance:
            raise LedgerUnderflow(f"debt[{user}]", amount, balance)
        self._write("debt", user, balance - amount)

    def _write(self, table: str, key: Any, value: int) -> None:
        store: dict[Any, int] = getattr(self, table)
        if self._journal is not None and (table, key) not in self._journal:
            self._journal[(table, key)] = store.get(key)
        store[key] = value

    # -- transactions --------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._journal is not None

    def begin(self) -> None:
        if self._journal is not None:
            raise RuntimeError("Ledger transaction already open")
        self._journal = {}

    def commit(self) -> None:
        self._journal = None

    def rollback(self) -> None:
        """Put back the value of every key written since ``begin()``."""
        journal, self._journal = self._journal or {}, None
        for (table, key), original in journal.items():
            store: dict[Any, int] = getattr(self, table)
            if original is None:
                store.pop(key, None)
            else:
                store[key] = original


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"Ledger amounts must be non-negative, got {amount}")
