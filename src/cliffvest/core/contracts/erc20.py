"""
ERC20 Token - the asset ledger the vesting engine moves funds through.

This module provides an in-process fungible token compatible with the
ERC20 standard (EIP-20):
- Basic token operations (transfer, approve, transferFrom)
- Allowance increments/decrements
- Owner-only minting and holder burning
- Events (Transfer, Approval)

Failures raise typed errors (InsufficientBalanceError,
InsufficientAllowanceError, InvalidAddressError) that the vesting engine
surfaces verbatim to its callers.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from ..address import ZERO_ADDRESS, derive_address, is_zero_address, normalize_address
from ..exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    TokenError,
    UnauthorizedError,
)
from ..fixed_point import UINT256_MAX

logger = logging.getLogger(__name__)


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    ERC20 token with owner minting.

    All balances and allowances are stored in-memory; ``to_dict`` /
    ``from_dict`` snapshot them.
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address
    address: str = ""

    # Owner (for minting permissions)
    owner: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: list[TokenEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.address:
            self.address = derive_address("erc20", self.name, self.symbol, self.owner)
        self.address = normalize_address(self.address)
        if self.owner:
            self.owner = normalize_address(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        owner_norm = normalize_address(owner)
        spender_norm = normalize_address(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            InsufficientBalanceError: If sender balance is below amount
        """
        sender_norm = normalize_address(sender)
        recipient_norm = self._require_address(recipient, "recipient")
        self._validate_amount(amount)

        self._move(sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        owner_norm = normalize_address(owner)
        spender_norm = self._require_address(spender, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self._emit("Approval", owner_norm, spender_norm, amount)
        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens using an allowance.

        The allowance is checked before the balance, so a spender with too
        small an allowance sees InsufficientAllowanceError even when the
        holder is also short of funds.

        Args:
            spender: Address executing transfer (msg.sender)
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Raises:
            InsufficientAllowanceError: If allowance is below amount
            InsufficientBalanceError: If holder balance is below amount
        """
        spender_norm = normalize_address(spender)
        from_norm = self._require_address(from_addr, "sender")
        to_norm = self._require_address(to_addr, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowances.get(from_norm, {}).get(spender_norm, 0)
        if current_allowance < amount:
            raise InsufficientAllowanceError(spender_norm, current_allowance, amount)

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise InsufficientBalanceError(from_norm, from_balance, amount)

        # Unlimited allowances are never decremented
        if current_allowance != UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self._move(from_norm, to_norm, amount)
        return True

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        new_allowance = min(self.allowance(owner, spender) + added_value, UINT256_MAX)
        return self.approve(owner, spender, new_allowance)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        current = self.allowance(owner, spender)
        if subtracted_value > current:
            raise TokenError("ERC20: decreased allowance below zero")
        return self.approve(owner, spender, current - subtracted_value)

    # ==================== Minting & Burning ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Raises:
            UnauthorizedError: If minter is not the owner
            TokenError: If total supply would exceed uint256
        """
        if normalize_address(minter) != self.owner:
            raise UnauthorizedError(minter)

        to_norm = self._require_address(to, "recipient")
        self._validate_amount(amount)

        if self.total_supply + amount > UINT256_MAX:
            raise TokenError("ERC20: total supply would exceed uint256")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit("Transfer", ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def burn(self, holder: str, amount: int) -> bool:
        holder_norm = normalize_address(holder)
        self._validate_amount(amount)

        balance = self.balances.get(holder_norm, 0)
        if balance < amount:
            raise InsufficientBalanceError(holder_norm, balance, amount)

        self.balances[holder_norm] = balance - amount
        self.total_supply -= amount
        self._emit("Transfer", holder_norm, ZERO_ADDRESS, amount)
        return True

    # ==================== Helpers ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise InsufficientBalanceError(from_norm, from_balance, amount)

        self.balances[from_norm] = from_balance - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit("Transfer", from_norm, to_norm, amount)

    def _require_address(self, address: str, field_name: str) -> str:
        normalized = normalize_address(address)
        if is_zero_address(normalized):
            raise InvalidAddressError(f"ERC20: {field_name} is zero address")
        return normalized

    def _validate_amount(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise TokenError("ERC20: amount must be an integer")
        if amount < 0:
            raise TokenError("ERC20: amount cannot be negative")
        if amount > UINT256_MAX:
            raise TokenError("ERC20: amount exceeds uint256")

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ERC20Token":
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=data.get("total_supply", 0),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
        )
        token.balances = dict(data.get("balances", {}))
        token.allowances = {
            k: dict(v) for k, v in data.get("allowances", {}).items()
        }
        return token
