"""
Append-only recipient ledger.

Accounts are kept in first-reservation order in a list, with a side table
from account to its reserve. The list gives stable positions for range
claims; the table gives constant-time duplicate detection and lookup.
Reservations are staged and validated as a whole before anything is
committed, so a rejected batch leaves the ledger untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

from ..address import is_zero_address, normalize_address
from ..exceptions import InvalidAddressError, InvalidConfigError, ValidationError
from ..fixed_point import MAX_TOTAL_RESERVE, UINT256_MAX


@dataclass
class RecipientReserve:
    account: str
    reserved_amount: int = 0
    claimed_amount: int = 0

    @property
    def unclaimed(self) -> int:
        return self.reserved_amount - self.claimed_amount

    def snapshot(self) -> "RecipientReserve":
        return RecipientReserve(self.account, self.reserved_amount, self.claimed_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "reserved_amount": self.reserved_amount,
            "claimed_amount": self.claimed_amount,
        }


@dataclass(frozen=True)
class ReserveEntry:
    account: str
    amount: int


@dataclass(frozen=True)
class ReservationReceipt:
    """A validated reservation entry, with the account total it leads to."""

    account: str
    amount: int
    new_total: int
    is_new_account: bool


EntryLike = Union[ReserveEntry, Tuple[str, int]]


class RecipientLedger:
    def __init__(self) -> None:
        self._order: List[str] = []
        self._reserves: Dict[str, RecipientReserve] = {}
        self._total_reserved = 0

    # ==================== Queries ====================

    @property
    def total_reserved(self) -> int:
        return self._total_reserved

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, account: object) -> bool:
        if not isinstance(account, str):
            return False
        try:
            return normalize_address(account) in self._reserves
        except InvalidAddressError:
            return False

    def account_at(self, index: int) -> str:
        if index < 0 or index >= len(self._order):
            raise IndexError(f"Recipient index {index} out of range (count {len(self._order)})")
        return self._order[index]

    def accounts(self) -> List[str]:
        return list(self._order)

    def slice(self, start: int, end: int) -> List[str]:
        """Accounts in ``[start, min(end, len))``."""
        if start < 0 or end < 0:
            raise InvalidConfigError("Range bounds cannot be negative")
        return self._order[start:min(end, len(self._order))]

    def get(self, account: str) -> RecipientReserve:
        """Snapshot of an account's reserve; unknown accounts read as zero."""
        account_norm = normalize_address(account)
        reserve = self._reserves.get(account_norm)
        if reserve is None:
            return RecipientReserve(account_norm)
        return reserve.snapshot()

    def reserves(self) -> Iterable[RecipientReserve]:
        for account in self._order:
            yield self._reserves[account].snapshot()

    # ==================== Reservations ====================

    def stage(self, entries: Sequence[EntryLike]) -> List[ReservationReceipt]:
        """
        Validate a reservation batch without mutating the ledger.

        Duplicate accounts accumulate, both within the batch and with what
        is already reserved.

        Raises:
            InvalidConfigError: On a zero/malformed account, a non-positive
                amount, or an aggregate total above MAX_TOTAL_RESERVE
        """
        receipts: List[ReservationReceipt] = []
        pending: Dict[str, int] = {}
        total = self._total_reserved

        for entry in entries:
            account, amount = self._unpack(entry)
            previous = pending.get(account)
            if previous is None:
                existing = self._reserves.get(account)
                previous = existing.reserved_amount if existing else 0
            new_total = previous + amount
            is_new = account not in self._reserves and account not in pending
            pending[account] = new_total
            total += amount
            receipts.append(ReservationReceipt(account, amount, new_total, is_new))

        if total > MAX_TOTAL_RESERVE:
            raise InvalidConfigError(
                "Total reserve amount exceeds limit",
                details={"total_reserved": total, "limit": MAX_TOTAL_RESERVE},
            )
        return receipts

    def apply(self, receipts: Sequence[ReservationReceipt]) -> None:
        """Commit receipts returned by :meth:`stage`."""
        for receipt in receipts:
            reserve = self._reserves.get(receipt.account)
            if reserve is None:
                reserve = RecipientReserve(receipt.account)
                self._reserves[receipt.account] = reserve
                self._order.append(receipt.account)
            reserve.reserved_amount = receipt.new_total
            self._total_reserved += receipt.amount

    @staticmethod
    def _unpack(entry: EntryLike) -> Tuple[str, int]:
        if isinstance(entry, ReserveEntry):
            account, amount = entry.account, entry.amount
        else:
            try:
                account, amount = entry
            except (TypeError, ValueError) as exc:
                raise InvalidConfigError(f"Malformed reserve entry: {entry!r}") from exc

        if not account:
            raise InvalidConfigError("Reserve account is required")
        try:
            account = normalize_address(account)
        except InvalidAddressError as exc:
            raise InvalidConfigError(f"Invalid reserve account: {exc}") from exc
        if is_zero_address(account):
            raise InvalidConfigError("Reserve account is zero address")

        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidConfigError("Reserve amount must be an integer")
        if amount <= 0 or amount > UINT256_MAX:
            raise InvalidConfigError("Reserve amount must be positive and fit in uint256")
        return account, amount

    # ==================== Claims ====================

    def record_claim(self, account: str, amount: int) -> int:
        """Add ``amount`` to the account's claimed total and return the new total."""
        reserve = self._reserves.get(account)
        if reserve is None:
            raise ValidationError(f"No reserve for {account}")
        if amount <= 0 or reserve.claimed_amount + amount > reserve.reserved_amount:
            raise ValidationError(
                "Claim would exceed reserved amount",
                details={
                    "account": account,
                    "amount": amount,
                    "claimed": reserve.claimed_amount,
                    "reserved": reserve.reserved_amount,
                },
            )
        reserve.claimed_amount += amount
        return reserve.claimed_amount

    def revert_claim(self, account: str, amount: int) -> None:
        reserve = self._reserves[account]
        reserve.claimed_amount -= amount

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": list(self._order),
            "reserves": {account: self._reserves[account].to_dict() for account in self._order},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecipientLedger":
        ledger = cls()
        for account in data.get("order", []):
            raw = data["reserves"][account]
            reserve = RecipientReserve(
                account=normalize_address(raw["account"]),
                reserved_amount=int(raw["reserved_amount"]),
                claimed_amount=int(raw["claimed_amount"]),
            )
            if reserve.account in ledger._reserves:
                raise ValidationError(f"Duplicate account in ledger order: {reserve.account}")
            if not 0 <= reserve.claimed_amount <= reserve.reserved_amount:
                raise ValidationError(f"Claimed amount out of range for {reserve.account}")
            ledger._order.append(reserve.account)
            ledger._reserves[reserve.account] = reserve
            ledger._total_reserved += reserve.reserved_amount
        if ledger._total_reserved > MAX_TOTAL_RESERVE:
            raise InvalidConfigError("Total reserve amount exceeds limit")
        return ledger
