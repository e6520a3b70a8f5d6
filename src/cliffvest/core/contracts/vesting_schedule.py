"""
Cliff-plus-linear release schedules.

A schedule releases ``initial_release_x18`` of a reservation as soon as
vesting starts, nothing more during ``cliff`` full periods, then the rest in
``vesting`` equal linear steps, one per elapsed period. All math is integer
floor division at 1e18 scale; the vested total is recomputed from scratch on
every query so partial claims always add up to the reservation exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .. import config
from ..address import is_zero_address, normalize_address
from ..exceptions import InvalidAddressError, InvalidConfigError
from ..fixed_point import SCALE, FixedPointRatio, mul_div

VESTING_ID_SIZE = 32


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigError(f"{field_name} must be an integer", details={field_name: value})
    return value


def encode_vesting_id(label: str) -> bytes:
    """
    Encode a label as a 32-byte short string: one length byte followed by
    the UTF-8 label, zero padded.

    Raises:
        InvalidConfigError: If the label is longer than 31 bytes
    """
    raw = label.encode("utf-8")
    if len(raw) > config.MAX_LABEL_BYTES:
        raise InvalidConfigError(
            f"Vesting name is {len(raw)} bytes, max is {config.MAX_LABEL_BYTES}"
        )
    return bytes([len(raw)]) + raw.ljust(VESTING_ID_SIZE - 1, b"\x00")


def decode_vesting_id(vesting_id: bytes) -> str:
    """
    Decode a 32-byte short string produced by :func:`encode_vesting_id`.

    Raises:
        InvalidConfigError: On a wrong size, a length byte >= 0x20, or
            bytes that are not UTF-8
    """
    if len(vesting_id) != VESTING_ID_SIZE:
        raise InvalidConfigError(f"Vesting id must be {VESTING_ID_SIZE} bytes, got {len(vesting_id)}")
    length = vesting_id[0]
    if length > config.MAX_LABEL_BYTES:
        raise InvalidConfigError(f"Vesting id length byte {length:#04x} is out of range")
    try:
        return vesting_id[1:1 + length].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidConfigError("Vesting id is not valid UTF-8") from exc


@dataclass(frozen=True)
class ReleaseStep:
    """One row of a release table."""

    elapsed_periods: int
    vested_amount: int
    released_amount: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "elapsed_periods": self.elapsed_periods,
            "vested_amount": self.vested_amount,
            "released_amount": self.released_amount,
        }


@dataclass(frozen=True)
class ScheduleConfig:
    """Validated, immutable vesting schedule. Build it with :meth:`create`."""

    label: str
    period_length: int
    cliff: int
    vesting: int
    initial_release_x18: int
    asset: str

    @classmethod
    def create(
        cls,
        label: str,
        period_length: int | None,
        cliff: int,
        vesting: int,
        initial_release_x18: int,
        asset: str,
    ) -> "ScheduleConfig":
        """
        Validate schedule parameters.

        Args:
            label: Human-readable vesting name, at most 31 UTF-8 bytes
            period_length: Seconds per period, in (0, 360 days]; None picks
                the configured default
            cliff: Periods before linear vesting begins
            vesting: Linear vesting periods, at most 120
            initial_release_x18: Immediate release fraction at 1e18 scale
            asset: Address of the token contract

        Raises:
            InvalidConfigError: If any parameter is out of range, or if
                ``vesting == 0`` and ``initial_release_x18 == SCALE`` do not
                hold together
        """
        if not isinstance(label, str):
            raise InvalidConfigError("Vesting name must be a string")
        if len(label.encode("utf-8")) > config.MAX_LABEL_BYTES:
            raise InvalidConfigError(f"Vesting name exceeds {config.MAX_LABEL_BYTES} bytes")

        if period_length is None:
            period_length = config.DEFAULT_PERIOD_SIZE
        period_length = _require_int(period_length, "period_length")
        if period_length <= 0 or period_length > config.MAX_PERIOD_SIZE:
            raise InvalidConfigError(
                f"Period size must be in (0, {config.MAX_PERIOD_SIZE}], got {period_length}"
            )

        cliff = _require_int(cliff, "cliff")
        if cliff < 0:
            raise InvalidConfigError("Cliff periods cannot be negative")

        vesting = _require_int(vesting, "vesting")
        if vesting < 0 or vesting > config.MAX_VESTING_PERIODS:
            raise InvalidConfigError(
                f"Vesting periods must be in [0, {config.MAX_VESTING_PERIODS}], got {vesting}"
            )

        initial_release_x18 = _require_int(initial_release_x18, "initial_release_x18")
        if initial_release_x18 < 0 or initial_release_x18 > SCALE:
            raise InvalidConfigError("Initial release must be between 0% and 100%")

        if (vesting == 0) != (initial_release_x18 == SCALE):
            raise InvalidConfigError(
                "A schedule without vesting periods must release 100% initially, and vice versa"
            )

        if not asset:
            raise InvalidConfigError("Token address is required")
        try:
            asset = normalize_address(asset)
        except InvalidAddressError as exc:
            raise InvalidConfigError(f"Invalid token address: {exc}") from exc
        if is_zero_address(asset):
            raise InvalidConfigError("Token address is zero address")

        return cls(
            label=label,
            period_length=period_length,
            cliff=cliff,
            vesting=vesting,
            initial_release_x18=initial_release_x18,
            asset=asset,
        )

    @classmethod
    def from_vesting_id(
        cls,
        vesting_id: bytes,
        period_length: int | None,
        cliff: int,
        vesting: int,
        initial_release_x18: int,
        asset: str,
    ) -> "ScheduleConfig":
        return cls.create(
            decode_vesting_id(vesting_id),
            period_length,
            cliff,
            vesting,
            initial_release_x18,
            asset,
        )

    # ==================== Derived Values ====================

    @property
    def vesting_id(self) -> bytes:
        return encode_vesting_id(self.label)

    @property
    def initial_release(self) -> FixedPointRatio:
        return FixedPointRatio(self.initial_release_x18)

    @property
    def total_periods(self) -> int:
        return self.cliff + self.vesting

    @property
    def total_duration(self) -> int:
        return self.total_periods * self.period_length

    # ==================== Release Math ====================

    def elapsed_periods(self, started_at: int, now: int) -> int:
        return max(now - started_at, 0) // self.period_length

    def vesting_periods_passed(self, elapsed_periods: int) -> int:
        # Periods inside the cliff contribute nothing; saturate at vesting
        return min(max(elapsed_periods - self.cliff, 0), self.vesting)

    def vested_amount(self, reserved: int, elapsed_periods: int) -> int:
        """Cumulative amount vested for ``reserved`` after ``elapsed_periods``."""
        ratio = self.initial_release
        initial_amount = ratio.apply(reserved)
        if self.vesting == 0:
            return initial_amount
        vesting_amount = ratio.complement_of(reserved)
        passed = self.vesting_periods_passed(elapsed_periods)
        return initial_amount + mul_div(vesting_amount, passed, self.vesting)

    def release_table(self, reserved: int) -> List[ReleaseStep]:
        """Vested and released amounts at every period up to full vesting."""
        steps = []
        previous = 0
        for elapsed in range(self.total_periods + 1):
            vested = self.vested_amount(reserved, elapsed)
            steps.append(ReleaseStep(elapsed, vested, vested - previous))
            previous = vested
        return steps

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "period_length": self.period_length,
            "cliff": self.cliff,
            "vesting": self.vesting,
            "initial_release_x18": self.initial_release_x18,
            "asset": self.asset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleConfig":
        return cls.create(
            data["label"],
            data["period_length"],
            data["cliff"],
            data["vesting"],
            data["initial_release_x18"],
            data["asset"],
        )
