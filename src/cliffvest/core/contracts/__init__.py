"""
cliffvest contracts.

- ERC20: the fungible token reservations are paid out in
- CliffAndVesting: reservation and cliff-plus-linear release engine
- ScheduleConfig: validated release schedule and its math
- RecipientLedger: append-only recipient list with per-account reserves
"""

from .cliff_vesting import AssetLedger, CliffAndVesting
from .erc20 import ERC20Token, TokenEvent
from .events import TokensClaimed, TokensReserved, VestingStarted
from .recipient_ledger import RecipientLedger, RecipientReserve, ReserveEntry
from .vesting_schedule import (
    ReleaseStep,
    ScheduleConfig,
    decode_vesting_id,
    encode_vesting_id,
)

__all__ = [
    # Token
    "AssetLedger",
    "ERC20Token",
    "TokenEvent",
    # Vesting
    "CliffAndVesting",
    "ScheduleConfig",
    "ReleaseStep",
    "encode_vesting_id",
    "decode_vesting_id",
    "RecipientLedger",
    "RecipientReserve",
    "ReserveEntry",
    # Events
    "TokensReserved",
    "VestingStarted",
    "TokensClaimed",
]
