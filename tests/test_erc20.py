"""
Tests for the ERC20 asset ledger.
"""

import pytest

from cliffvest.core.contracts import ERC20Token
from cliffvest.core.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    TokenError,
    UnauthorizedError,
)
from cliffvest.core.fixed_point import UINT256_MAX

from conftest import OWNER, USER1, USER2, USER3


@pytest.fixture
def erc20():
    token = ERC20Token(name="Test Token", symbol="TST", owner=OWNER)
    token.mint(OWNER, OWNER, 1_000)
    return token


class TestMetadata:
    def test_address_is_derived_and_stable(self):
        first = ERC20Token(name="Test Token", symbol="TST", owner=OWNER)
        second = ERC20Token(name="Test Token", symbol="TST", owner=OWNER)
        assert first.address == second.address
        assert first.address.startswith("0x") and len(first.address) == 42

    def test_explicit_address_is_normalized(self):
        token = ERC20Token(name="T", symbol="T", address="0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed")
        assert token.address == "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"


class TestTransfer:
    def test_transfer_moves_balance(self, erc20):
        assert erc20.transfer(OWNER, USER1, 300)
        assert erc20.balance_of(OWNER) == 700
        assert erc20.balance_of(USER1) == 300
        assert erc20.total_supply == 1_000

        event = erc20.events[-1]
        assert (event.event_type, event.from_address, event.to_address, event.value) == (
            "Transfer", OWNER, USER1, 300,
        )

    def test_transfer_over_balance_fails(self, erc20):
        with pytest.raises(InsufficientBalanceError) as exc_info:
            erc20.transfer(USER1, USER2, 1)
        assert exc_info.value.balance == 0
        assert exc_info.value.needed == 1

    def test_transfer_to_zero_address_fails(self, erc20):
        with pytest.raises(InvalidAddressError):
            erc20.transfer(OWNER, "0x" + "0" * 40, 1)

    @pytest.mark.parametrize("amount", [-1, 1.5, True, UINT256_MAX + 1])
    def test_bad_amount_fails(self, erc20, amount):
        with pytest.raises(TokenError):
            erc20.transfer(OWNER, USER1, amount)


class TestAllowance:
    def test_transfer_from_uses_allowance(self, erc20):
        erc20.approve(OWNER, USER1, 500)
        erc20.transfer_from(USER1, OWNER, USER2, 200)
        assert erc20.allowance(OWNER, USER1) == 300
        assert erc20.balance_of(USER2) == 200

    def test_allowance_is_checked_before_balance(self, erc20):
        erc20.approve(USER3, USER1, 5)
        with pytest.raises(InsufficientAllowanceError):
            erc20.transfer_from(USER1, USER3, USER2, 10)

    def test_balance_shortfall_with_enough_allowance(self, erc20):
        erc20.approve(OWNER, USER1, 5_000)
        with pytest.raises(InsufficientBalanceError):
            erc20.transfer_from(USER1, OWNER, USER2, 2_000)
        assert erc20.allowance(OWNER, USER1) == 5_000

    def test_unlimited_allowance_is_not_decremented(self, erc20):
        erc20.approve(OWNER, USER1, UINT256_MAX)
        erc20.transfer_from(USER1, OWNER, USER2, 100)
        assert erc20.allowance(OWNER, USER1) == UINT256_MAX

    def test_increase_and_decrease(self, erc20):
        erc20.increase_allowance(OWNER, USER1, 10)
        erc20.increase_allowance(OWNER, USER1, 5)
        assert erc20.allowance(OWNER, USER1) == 15
        erc20.decrease_allowance(OWNER, USER1, 15)
        assert erc20.allowance(OWNER, USER1) == 0
        with pytest.raises(TokenError):
            erc20.decrease_allowance(OWNER, USER1, 1)

    def test_lookup_is_case_insensitive(self, erc20):
        checksummed = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
        erc20.transfer(OWNER, checksummed, 7)
        assert erc20.balance_of(checksummed.lower()) == 7


class TestSupply:
    def test_only_owner_can_mint(self, erc20):
        with pytest.raises(UnauthorizedError):
            erc20.mint(USER1, USER1, 1)

    def test_supply_is_capped(self, erc20):
        with pytest.raises(TokenError):
            erc20.mint(OWNER, OWNER, UINT256_MAX)

    def test_burn_reduces_supply(self, erc20):
        erc20.burn(OWNER, 400)
        assert erc20.total_supply == 600
        with pytest.raises(InsufficientBalanceError):
            erc20.burn(OWNER, 601)


def test_state_roundtrip(erc20):
    erc20.approve(OWNER, USER1, 42)
    erc20.transfer(OWNER, USER2, 10)

    restored = ERC20Token.from_dict(erc20.to_dict())
    assert restored.address == erc20.address
    assert restored.balance_of(USER2) == 10
    assert restored.allowance(OWNER, USER1) == 42
    assert restored.total_supply == erc20.total_supply
