"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

import pytest

from cliffvest.core.contracts import CliffAndVesting, ERC20Token, ScheduleConfig
from cliffvest.core.fixed_point import SCALE, UINT256_MAX

ONE_ETHER = 10**18
PERIOD_SIZE = 30 * 24 * 60 * 60
START_TIME = 1_700_000_000

OWNER = "0x" + "11" * 20
USER1 = "0x" + "22" * 20
USER2 = "0x" + "33" * 20
USER3 = "0x" + "44" * 20
USER4 = "0x" + "55" * 20


class FakeClock:
    """Deterministic time provider."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token():
    token = ERC20Token(name="ERC20 Mocked", symbol="ERC20M", owner=OWNER)
    token.mint(OWNER, OWNER, UINT256_MAX)
    return token


@pytest.fixture
def make_schedule(token):
    def _make(cliff=0, vesting=1, initial_release_x18=0, period_length=PERIOD_SIZE, label="Test Vesting"):
        return ScheduleConfig.create(label, period_length, cliff, vesting, initial_release_x18, token.address)
    return _make


@pytest.fixture
def make_vesting(token, clock, make_schedule):
    def _make(**schedule_kwargs):
        return CliffAndVesting(OWNER, make_schedule(**schedule_kwargs), token, time_provider=clock)
    return _make


@pytest.fixture
def start_vesting(token):
    """Reserve, approve the reserved total and start."""
    def _start(contract, reserves):
        contract.reserve(OWNER, reserves)
        token.approve(OWNER, contract.address, contract.total_reserved)
        contract.start(OWNER)
        return contract
    return _start
