"""
Account addresses - EIP-55 mixed-case checksums over 0x-prefixed hex.

Addresses are stored lowercase internally so that lookups are case
insensitive; ``to_checksum_address`` produces the display form.

Address Format:
- Raw:      0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed
- Checksum: 0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed
"""

from __future__ import annotations

from Crypto.Hash import keccak

from .exceptions import InvalidAddressError

ZERO_ADDRESS = "0x" + "0" * 40
_HEX_DIGITS = frozenset("0123456789abcdef")


def keccak256(data: bytes) -> bytes:
    """Compute keccak256 hash (same as Ethereum)."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def _hex_part(address: str) -> str:
    if not isinstance(address, str) or not address:
        raise InvalidAddressError("Address cannot be empty")
    if not address[:2].lower() == "0x":
        raise InvalidAddressError(f"Address must start with 0x: {address[:6]}")
    hex_part = address[2:]
    if len(hex_part) != 40:
        raise InvalidAddressError(f"Address hex part must be 40 characters, got {len(hex_part)}")
    if not set(hex_part.lower()) <= _HEX_DIGITS:
        raise InvalidAddressError(f"Invalid hex characters in address: {hex_part}")
    return hex_part


def to_checksum_address(address: str) -> str:
    """
    Convert an address to checksummed format (EIP-55).

    Raises:
        InvalidAddressError: If address format is invalid

    Example:
        >>> to_checksum_address("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")
        '0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed'
    """
    hex_lower = _hex_part(address).lower()
    address_hash = keccak256(hex_lower.encode("utf-8")).hex()

    checksummed = []
    for i, char in enumerate(hex_lower):
        if char in "0123456789":
            checksummed.append(char)
        elif int(address_hash[i], 16) >= 8:
            checksummed.append(char.upper())
        else:
            checksummed.append(char)

    return "0x" + "".join(checksummed)


def is_checksum_valid(address: str) -> bool:
    """
    True if the address is all lowercase, all uppercase, or carries a
    correct mixed-case checksum.
    """
    try:
        hex_part = _hex_part(address)
    except InvalidAddressError:
        return False

    if hex_part == hex_part.lower() or hex_part == hex_part.upper():
        return True

    return "0x" + hex_part == to_checksum_address(address)


def normalize_address(address: str) -> str:
    """
    Validate an address and return its lowercase storage form.

    Raises:
        InvalidAddressError: If the address is malformed or has a bad checksum
    """
    hex_part = _hex_part(address)
    if not is_checksum_valid(address):
        raise InvalidAddressError(
            f"Invalid checksum. Did you mean {to_checksum_address(address)}?"
        )
    return "0x" + hex_part.lower()


def is_zero_address(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS


def derive_address(*parts: str | bytes | int) -> str:
    """Deterministic address from the keccak hash of the given parts."""
    payload = b":".join(
        part if isinstance(part, bytes) else str(part).encode("utf-8")
        for part in parts
    )
    return "0x" + keccak256(payload)[-20:].hex()
