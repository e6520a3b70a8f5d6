"""
Tests for CliffAndVesting.reserve.
"""

import pytest

from cliffvest.core.contracts import CliffAndVesting, ReserveEntry, TokensReserved
from cliffvest.core.exceptions import AlreadyStartedError, InvalidConfigError, UnauthorizedError
from cliffvest.core.fixed_point import MAX_TOTAL_RESERVE

from conftest import ONE_ETHER, OWNER, USER1, USER2, USER3


class TestReserve:
    def test_non_owner_is_rejected(self, make_vesting):
        contract = make_vesting()
        with pytest.raises(UnauthorizedError) as exc_info:
            contract.reserve(USER1, [])
        assert exc_info.value.account == USER1

    def test_reserve_after_start_fails(self, make_vesting, start_vesting):
        contract = start_vesting(make_vesting(), [(USER1, 123 * ONE_ETHER)])
        with pytest.raises(AlreadyStartedError):
            contract.reserve(OWNER, [])
        with pytest.raises(AlreadyStartedError):
            contract.reserve(OWNER, [(USER2, 1)])

    def test_zero_address_account_fails(self, make_vesting):
        contract = make_vesting()
        with pytest.raises(InvalidConfigError):
            contract.reserve(OWNER, [("0x" + "0" * 40, 123)])

    def test_zero_amount_fails(self, make_vesting):
        contract = make_vesting()
        with pytest.raises(InvalidConfigError):
            contract.reserve(OWNER, [(USER1, 0)])

    def test_empty_batch_is_a_noop(self, make_vesting):
        contract = make_vesting()
        contract.reserve(OWNER, [])
        assert contract.recipient_count() == 0
        assert contract.events == []

    def test_reserve_sum_over_limit_fails_and_keeps_state(self, make_vesting):
        reserve_1 = 38597363079105398474523661669562635951089994888546854679819
        reserve_2 = 77194726158210796949047323339125271902179989777093709359639
        assert reserve_1 + reserve_2 == MAX_TOTAL_RESERVE + 1

        contract = make_vesting()
        contract.reserve(OWNER, [(USER1, reserve_1)])
        events_before = list(contract.events)

        with pytest.raises(InvalidConfigError):
            contract.reserve(OWNER, [(USER1, reserve_2)])

        assert contract.total_reserved == reserve_1
        assert contract.reserve_of(USER1).reserved_amount == reserve_1
        assert contract.events == events_before

    def test_invalid_entry_rejects_whole_batch(self, make_vesting):
        contract = make_vesting()
        with pytest.raises(InvalidConfigError):
            contract.reserve(OWNER, [(USER1, 10), (USER2, 0)])
        assert contract.recipient_count() == 0
        assert contract.total_reserved == 0
        assert contract.events == []


class TestMultipleReserves:
    RESERVE_1 = 123 * ONE_ETHER
    RESERVE_2 = 234 * ONE_ETHER
    RESERVE_3 = 345 * ONE_ETHER

    @pytest.fixture
    def contract(self, make_vesting):
        contract = make_vesting()
        contract.reserve(OWNER, [(USER3, self.RESERVE_3)])
        contract.reserve(OWNER, [
            ReserveEntry(USER1, self.RESERVE_1),
            ReserveEntry(USER2, self.RESERVE_2),
        ])
        return contract

    def test_saves_all_reserves(self, contract):
        reserve_1 = contract.reserve_of(USER1)
        assert reserve_1.account == USER1
        assert reserve_1.reserved_amount == self.RESERVE_1
        assert reserve_1.claimed_amount == 0
        assert contract.reserve_of(USER2).reserved_amount == self.RESERVE_2

    def test_total_reserved_is_sum(self, contract):
        assert contract.total_reserved == self.RESERVE_1 + self.RESERVE_2 + self.RESERVE_3

    def test_emits_tokens_reserved_per_entry(self, contract):
        assert contract.events[-2:] == [
            TokensReserved(USER1, self.RESERVE_1, self.RESERVE_1),
            TokensReserved(USER2, self.RESERVE_2, self.RESERVE_2),
        ]

    def test_accounts_are_appended_in_order(self, contract):
        assert contract.recipient_count() == 3
        assert contract.recipients() == [USER3, USER1, USER2]
        assert contract.recipient_at(1) == USER1


class TestRepeatedAccount:
    RESERVE_1 = 123 * ONE_ETHER
    RESERVE_2 = 234 * ONE_ETHER

    @pytest.fixture
    def contract(self, make_vesting):
        contract = make_vesting()
        contract.reserve(OWNER, [(USER1, self.RESERVE_1), (USER2, 345 * ONE_ETHER)])
        contract.reserve(OWNER, [(USER1, self.RESERVE_2)])
        return contract

    def test_reserved_amounts_accumulate(self, contract):
        assert contract.reserve_of(USER1).reserved_amount == self.RESERVE_1 + self.RESERVE_2

    def test_event_carries_added_amount_and_new_total(self, contract):
        assert contract.events[-1] == TokensReserved(USER1, self.RESERVE_2, self.RESERVE_1 + self.RESERVE_2)

    def test_recipient_list_is_unchanged(self, contract):
        assert contract.recipient_count() == 2
        assert contract.recipients() == [USER1, USER2]


def test_custom_administrator_predicate(token, clock, make_schedule):
    admins = {OWNER, USER2}
    contract = CliffAndVesting(
        OWNER,
        make_schedule(),
        token,
        time_provider=clock,
        is_administrator=lambda account: account in admins,
    )
    contract.reserve(USER2, [(USER1, 5)])
    assert contract.total_reserved == 5
    with pytest.raises(UnauthorizedError):
        contract.reserve(USER3, [(USER1, 5)])


def test_token_must_match_schedule_asset(token, make_schedule):
    from cliffvest.core.contracts import ERC20Token

    other = ERC20Token(name="Other", symbol="OTH", owner=OWNER)
    with pytest.raises(InvalidConfigError):
        CliffAndVesting(OWNER, make_schedule(), other)
