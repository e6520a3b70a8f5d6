"""
Cliff and Vesting contract.

An administrator reserves token amounts for recipients, then starts the
vesting once, which pulls the reserved total from the administrator into
the contract. From then on each recipient, or the administrator on their
behalf, can claim whatever has vested under the schedule:

- an initial release available immediately after start
- nothing more during the cliff periods
- the remainder in equal linear steps, one per vesting period

Every public operation runs under a single lock and either completes or
raises with no state change. The vested total is recomputed from the
reservation on every claim, so a recipient's claims sum to the reservation
exactly once the schedule has fully elapsed.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Protocol, Sequence, Tuple, Union

from ..address import derive_address, normalize_address
from ..exceptions import (
    AlreadyStartedError,
    InvalidConfigError,
    NotStartedError,
    TokenError,
    UnauthorizedError,
    get_error_context,
)
from .events import TokensClaimed, TokensReserved, VestingStarted
from .recipient_ledger import EntryLike, RecipientLedger, RecipientReserve
from .vesting_schedule import ScheduleConfig

logger = logging.getLogger(__name__)

VestingEvent = Union[TokensReserved, VestingStarted, TokensClaimed]
EventListener = Callable[[VestingEvent], None]


class AssetLedger(Protocol):
    """The token operations the vesting contract relies on."""

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        ...


class CliffAndVesting:
    """
    Reservation and cliff-plus-linear release engine for a single token.

    Usage:
        vesting = CliffAndVesting(owner, schedule, token)
        vesting.reserve(owner, [(alice, 1_000), (bob, 2_000)])
        token.approve(owner, vesting.address, vesting.total_reserved)
        vesting.start(owner)
        vesting.claim(alice)
    """

    def __init__(
        self,
        owner: str,
        schedule: ScheduleConfig,
        token: AssetLedger,
        time_provider: Callable[[], int] | None = None,
        address: str | None = None,
        is_administrator: Callable[[str], bool] | None = None,
    ) -> None:
        self.owner = normalize_address(owner)
        self.schedule = schedule
        self.token = token

        token_address = getattr(token, "address", None)
        if token_address and normalize_address(token_address) != schedule.asset:
            raise InvalidConfigError(
                "Token does not match the schedule asset",
                details={"token": token_address, "asset": schedule.asset},
            )

        self.address = normalize_address(
            address or derive_address("cliff-and-vesting", self.owner, schedule.vesting_id)
        )
        self._time_provider = time_provider or (lambda: int(time.time()))
        self._is_administrator = is_administrator
        self._ledger = RecipientLedger()
        self._started = False
        self._started_at: int | None = None
        self._lock = threading.RLock()
        self._listeners: List[EventListener] = []
        self.events: List[VestingEvent] = []

        logger.info(
            "Vesting contract created",
            extra={
                "event": "vesting.created",
                "vesting": schedule.label,
                "address": self.address,
                "period_length": schedule.period_length,
                "cliff": schedule.cliff,
                "vesting_periods": schedule.vesting,
                "initial_release_x18": schedule.initial_release_x18,
            }
        )

    # ==================== View Functions ====================

    @property
    def vesting_name(self) -> str:
        return self.schedule.label

    @property
    def started(self) -> bool:
        return self._started

    @property
    def started_at(self) -> int | None:
        return self._started_at

    @property
    def total_reserved(self) -> int:
        with self._lock:
            return self._ledger.total_reserved

    def recipient_count(self) -> int:
        with self._lock:
            return len(self._ledger)

    def recipient_at(self, index: int) -> str:
        with self._lock:
            return self._ledger.account_at(index)

    def recipients(self) -> List[str]:
        with self._lock:
            return self._ledger.accounts()

    def reserve_of(self, account: str) -> RecipientReserve:
        with self._lock:
            return self._ledger.get(account)

    def claimable_amount(self, account: str) -> int:
        """
        Amount ``account`` could claim right now.

        Zero before vesting starts and for accounts without a reservation.
        """
        with self._lock:
            return self._claimable(normalize_address(account), self._now())

    def is_administrator(self, account: str) -> bool:
        account_norm = normalize_address(account)
        if self._is_administrator is not None:
            return bool(self._is_administrator(account_norm))
        return account_norm == self.owner

    # ==================== Administration ====================

    def reserve(self, caller: str, entries: Sequence[EntryLike]) -> None:
        """
        Reserve amounts for recipients (administrator only, before start).

        Entries are ``ReserveEntry`` objects or ``(account, amount)`` tuples.
        Repeated accounts accumulate. The whole batch is rejected if any
        entry is invalid or the total would exceed the reserve cap.

        Raises:
            UnauthorizedError: If caller is not the administrator
            AlreadyStartedError: If vesting already started
            InvalidConfigError: On a bad entry or reserve cap overflow
        """
        with self._lock:
            self._require_admin(caller)
            if self._started:
                raise AlreadyStartedError("Vesting already started")

            receipts = self._ledger.stage(list(entries))
            self._ledger.apply(receipts)

            for receipt in receipts:
                self._emit(TokensReserved(receipt.account, receipt.amount, receipt.new_total))

            logger.info(
                "Tokens reserved",
                extra={
                    "event": "vesting.reserved",
                    "vesting": self.schedule.label,
                    "entries": len(receipts),
                    "new_accounts": sum(1 for r in receipts if r.is_new_account),
                    "total_reserved": self._ledger.total_reserved,
                }
            )

    def start(self, caller: str) -> None:
        """
        Start vesting and pull the reserved total from the caller.

        The caller must have approved the contract for at least
        ``total_reserved``. Token failures propagate unchanged and leave the
        contract unstarted.

        Raises:
            UnauthorizedError: If caller is not the administrator
            AlreadyStartedError: If vesting already started
            InvalidConfigError: If nothing has been reserved
            InsufficientAllowanceError: If the approval is too small
            InsufficientBalanceError: If the caller holds too few tokens
        """
        with self._lock:
            caller_norm = self._require_admin(caller)
            if self._started:
                raise AlreadyStartedError("Vesting already started")

            total = self._ledger.total_reserved
            if total == 0:
                raise InvalidConfigError("Nothing reserved")

            now = self._now()
            try:
                self.token.transfer_from(self.address, caller_norm, self.address, total)
            except TokenError as exc:
                logger.warning(
                    "Vesting start rejected by token",
                    extra={"event": "vesting.start_failed", "vesting": self.schedule.label, **get_error_context(exc)},
                )
                raise

            self._started = True
            self._started_at = now
            self._emit(VestingStarted(total, now))

            logger.info(
                "Vesting started",
                extra={
                    "event": "vesting.started",
                    "vesting": self.schedule.label,
                    "total_reserved": total,
                    "started_at": now,
                    "recipients": len(self._ledger),
                }
            )

    # ==================== Claims ====================

    def claim(self, caller: str, account: str | None = None) -> int:
        """
        Claim vested tokens for the caller, or for ``account`` when the
        caller is the administrator.

        Nothing vested yet is not an error: the call returns 0 without
        transferring or emitting anything.

        Returns:
            Amount transferred

        Raises:
            UnauthorizedError: If claiming for another account without
                being the administrator
            NotStartedError: If vesting has not started
        """
        with self._lock:
            caller_norm = normalize_address(caller)
            target = caller_norm if account is None else normalize_address(account)
            if target != caller_norm:
                self._require_admin(caller_norm)
            self._require_started()
            return self._pay([target], is_batch=False)

    def claim_batch(self, caller: str, accounts: Iterable[str]) -> int:
        """
        Claim for each listed account, in order (administrator only).

        The batch is all-or-nothing: if any payout fails, every claim
        recorded by the batch is undone and transfers already made are
        pulled back before the error propagates.

        Returns:
            Total amount transferred
        """
        with self._lock:
            self._require_admin(caller)
            self._require_started()
            targets = [normalize_address(account) for account in accounts]
            return self._pay(targets, is_batch=True)

    def claim_range(self, caller: str, start: int, end: int) -> int:
        """
        Claim for recipients ``[start, min(end, recipient_count))`` in
        reservation order (administrator only). ``end`` past the last
        recipient is clamped. Failure handling is the same as
        :meth:`claim_batch`.

        Returns:
            Total amount transferred
        """
        with self._lock:
            self._require_admin(caller)
            self._require_started()
            for bound in (start, end):
                if isinstance(bound, bool) or not isinstance(bound, int):
                    raise InvalidConfigError("Range bounds must be integers")
            return self._pay(self._ledger.slice(start, end), is_batch=True)

    def _pay(self, accounts: Sequence[str], is_batch: bool) -> int:
        now = self._now()

        # Record every claim first so repeated accounts see their earlier share
        pending: List[Tuple[str, int, int]] = []
        for account in accounts:
            amount = self._claimable(account, now)
            if amount == 0:
                logger.debug(
                    "Nothing to claim",
                    extra={"event": "vesting.claim_skipped", "account": account[:10]},
                )
                continue
            total_claimed = self._ledger.record_claim(account, amount)
            pending.append((account, amount, total_claimed))

        settled: List[Tuple[str, int]] = []
        try:
            for account, amount, _ in pending:
                self.token.transfer(self.address, account, amount)
                settled.append((account, amount))
        except Exception as exc:
            self._rollback(pending, settled, exc)
            raise

        paid = 0
        for account, amount, total_claimed in pending:
            self._emit(TokensClaimed(account, is_batch, total_claimed, amount))
            logger.info(
                "Tokens claimed",
                extra={
                    "event": "vesting.claimed",
                    "account": account[:10],
                    "amount": amount,
                    "total_claimed": total_claimed,
                    "batch": is_batch,
                }
            )
            paid += amount

        if is_batch:
            logger.info(
                "Batch claim processed",
                extra={
                    "event": "vesting.batch_claimed",
                    "vesting": self.schedule.label,
                    "accounts": len(accounts),
                    "paid_accounts": len(pending),
                    "amount": paid,
                }
            )
        return paid

    def _rollback(
        self,
        pending: Sequence[Tuple[str, int, int]],
        settled: Sequence[Tuple[str, int]],
        exc: Exception,
    ) -> None:
        for account, amount, _ in reversed(pending):
            self._ledger.revert_claim(account, amount)
        for account, amount in reversed(settled):
            self.token.transfer(account, self.address, amount)

        logger.error(
            "Claim transfer failed, claims reverted",
            extra={
                "event": "vesting.claim_failed",
                "accounts": len(pending),
                "reversed_transfers": len(settled),
                **get_error_context(exc),
            },
        )

    def _claimable(self, account: str, now: int) -> int:
        if not self._started:
            return 0
        reserve = self._ledger.get(account)
        if reserve.reserved_amount == 0:
            return 0
        elapsed = self.schedule.elapsed_periods(self._started_at, now)
        vested = self.schedule.vested_amount(reserve.reserved_amount, elapsed)
        # A clock that moved backwards can put vested below claimed
        return max(vested - reserve.claimed_amount, 0)

    # ==================== Events ====================

    def subscribe(self, listener: EventListener) -> None:
        """
        Register a callback invoked after each event is recorded.

        Listener failures are logged and never undo or interrupt the
        operation that emitted the event.
        """
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        self._listeners.remove(listener)

    def _emit(self, event: VestingEvent) -> None:
        self.events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.error(
                    "Vesting event listener failed",
                    extra={
                        "event": "vesting.listener_failed",
                        "event_type": event.event_type,
                        **get_error_context(exc),
                    },
                    exc_info=True,
                )

    # ==================== Helpers ====================

    def _now(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _require_admin(self, caller: str) -> str:
        caller_norm = normalize_address(caller)
        if not self.is_administrator(caller_norm):
            logger.warning(
                "Unauthorized vesting call",
                extra={"event": "vesting.unauthorized", "caller": caller_norm[:10]},
            )
            raise UnauthorizedError(caller_norm)
        return caller_norm

    def _require_started(self) -> None:
        if not self._started:
            raise NotStartedError("Vesting not started")

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "address": self.address,
                "owner": self.owner,
                "schedule": self.schedule.to_dict(),
                "ledger": self._ledger.to_dict(),
                "started": self._started,
                "started_at": self._started_at,
            }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        token: AssetLedger,
        time_provider: Callable[[], int] | None = None,
        is_administrator: Callable[[str], bool] | None = None,
    ) -> "CliffAndVesting":
        contract = cls(
            owner=data["owner"],
            schedule=ScheduleConfig.from_dict(data["schedule"]),
            token=token,
            time_provider=time_provider,
            address=data["address"],
            is_administrator=is_administrator,
        )
        contract._ledger = RecipientLedger.from_dict(data["ledger"])
        contract._started = bool(data.get("started", False))
        contract._started_at = data.get("started_at") if contract._started else None
        if contract._started and contract._started_at is None:
            raise InvalidConfigError("Started vesting is missing its start timestamp")
        return contract
