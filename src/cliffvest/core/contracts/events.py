"""Notifications emitted by the vesting engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class TokensReserved:
    account: str
    amount: int
    total_reserved_for_account: int

    event_type = "TokensReserved"

    def to_dict(self) -> Dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class VestingStarted:
    total_reserve_amount: int
    started_at: int

    event_type = "VestingStarted"

    def to_dict(self) -> Dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class TokensClaimed:
    account: str
    is_batch: bool
    total_claimed: int
    amount: int

    event_type = "TokensClaimed"

    def to_dict(self) -> Dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}
