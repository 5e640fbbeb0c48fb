"""Unit tests for the in-memory token service."""
from __future__ import annotations

import pytest

from nfr_engine.tokens import InMemoryToken, SyntheticNfrToken


@pytest.fixture()
def token() -> InMemoryToken:
    t = InMemoryToken("WETH")
    t.mint_to("alice", 100)
    return t


class TestInMemoryToken:
    def test_address_defaults_to_symbol(self, token: InMemoryToken) -> None:
        assert token.address == "weth"

    def test_transfer(self, token: InMemoryToken) -> None:
        assert token.transfer("alice", "bob", 40) is True
        assert token.balance_of("alice") == 60
        assert token.balance_of("bob") == 40

    def test_transfer_over_balance_fails(self, token: InMemoryToken) -> None:
        assert token.transfer("alice", "bob", 101) is False
        assert token.balance_of("alice") == 100

    def test_transfer_from_needs_allowance(self, token: InMemoryToken) -> None:
        assert token.transfer_from("engine", "alice", "engine", 10) is False
        token.approve("alice", "engine", 10)
        assert token.transfer_from("engine", "alice", "engine", 10) is True
        assert token.allowance("alice", "engine") == 0
        assert token.balance_of("engine") == 10

    def test_fail_next_transfer_is_one_shot(self, token: InMemoryToken) -> None:
        token.fail_next_transfer = True
        assert token.transfer("alice", "bob", 1) is False
        assert token.transfer("alice", "bob", 1) is True

    def test_failed_transfer_from_keeps_allowance(self, token: InMemoryToken) -> None:
        token.approve("alice", "engine", 10)
        token.fail_next_transfer = True
        assert token.transfer_from("engine", "alice", "engine", 10) is False
        assert token.allowance("alice", "engine") == 10

    def test_transfer_hook_runs_before_settlement(self, token: InMemoryToken) -> None:
        seen = []
        token.on_transfer = lambda s, r, a: seen.append((s, r, a, token.balance_of(r)))
        token.transfer("alice", "bob", 5)
        assert seen == [("alice", "bob", 5, 0)]


class TestSyntheticNfrToken:
    def test_mint(self) -> None:
        nfr = SyntheticNfrToken(owner="engine")
        assert nfr.mint("engine", "alice", 50) is True
        assert nfr.balance_of("alice") == 50
        assert nfr.total_supply == 50

    def test_mint_zero_fails(self) -> None:
        assert SyntheticNfrToken(owner="engine").mint("engine", "alice", 0) is False

    def test_mint_by_non_owner_rejected(self) -> None:
        nfr = SyntheticNfrToken(owner="engine")
        with pytest.raises(PermissionError):
            nfr.mint("mallory", "mallory", 10**24)
        assert nfr.balance_of("mallory") == 0
        assert nfr.total_supply == 0

    def test_burn_from_owner(self) -> None:
        nfr = SyntheticNfrToken(owner="engine")
        nfr.mint("engine", "engine", 50)
        nfr.burn("engine", 20)
        assert nfr.balance_of("engine") == 30
        assert nfr.total_supply == 30

    def test_burn_by_non_owner_rejected(self) -> None:
        nfr = SyntheticNfrToken(owner="engine")
        nfr.mint("engine", "alice", 50)
        with pytest.raises(PermissionError):
            nfr.burn("alice", 10)

    def test_burn_over_balance_rejected(self) -> None:
        nfr = SyntheticNfrToken(owner="engine")
        with pytest.raises(ValueError, match="exceeds balance"):
            nfr.burn("engine", 1)

    def test_transfer_ownership(self) -> None:
        nfr = SyntheticNfrToken(owner="deployer")
        nfr.transfer_ownership("engine")
        assert nfr.owner == "engine"
