"""Token protocols — fungible token service abstraction."""
from typing import Protocol


class Token(Protocol):
    """Abstract interface for an ERC-20 style collateral token."""

    @property
    def address(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(
        self, spender: str, sender: str, recipient: str, amount: int
    ) -> bool: ...


class SyntheticToken(Token, Protocol):
    """The engine-owned synthetic asset, which can also be minted and burned."""

    def mint(self, minter: str, to: str, amount: int) -> bool: ...

    def burn(self, holder: str, amount: int) -> None: ...
