"""
Canonical arrival digest.

    digest = Keccak256(address[20] || uint256(destination_id)[32])

Byte-identical to Solidity's keccak256(abi.encodePacked(address, uint256)),
so the consuming contract can rebuild it from (msg.sender, destinationId).
Coordinates are deliberately not part of the digest.
"""

from __future__ import annotations

from typing import Final

from eth_utils import is_address, keccak, to_canonical_address

UINT256_MAX: Final[int] = 2**256 - 1


def _u256(x: int) -> bytes:
    """Encode a uint256 as 32 big-endian bytes."""
    if isinstance(x, bool) or not isinstance(x, int):
        raise TypeError("expected int")
    if not (0 <= x <= UINT256_MAX):
        raise ValueError("destination_id out of uint256 range")
    return x.to_bytes(32, "big")


def _address(wallet_address: str) -> bytes:
    """Decode a 0x-prefixed address (EIP-55 checked when mixed case)."""
    if not is_address(wallet_address):
        raise ValueError(f"invalid address: {wallet_address!r}")
    return to_canonical_address(wallet_address)


def arrival_digest(wallet_address: str, destination_id: int) -> bytes:
    """
    Compute the digest signed for an accepted arrival.

    Args:
        wallet_address: 20-byte hex address of the claimant
        destination_id: Registry id of the destination

    Returns:
        32-byte Keccak256 digest

    Raises:
        ValueError: If the address is malformed or the id out of range
    """
    return keccak(_address(wallet_address) + _u256(destination_id))


def to_hex32(b: bytes) -> str:
    """Convert 32-byte value to 0x-prefixed hex string."""
    if len(b) != 32:
        raise ValueError("expected 32-byte value")
    return "0x" + b.hex()
