"""
Via SDK - Byte and RLP Primitives

Minimal big-endian integers, hex/bytes normalization, address
canonicalization and the recursive-list codec used by the typed
transaction wire format.
"""

from typing import Optional, Union

import rlp
from eth_utils import (
    is_hex,
    keccak,
    remove_0x_prefix,
    to_canonical_address,
    to_checksum_address,
)


BytesLike = Union[bytes, bytearray, str]


def int_to_min_bytes(value: int) -> bytes:
    """Big-endian encoding without leading zeros. Zero encodes as empty."""
    if value < 0:
        raise ValueError(f"Cannot encode negative integer {value}")
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def bytes_to_int(data: bytes) -> int:
    """Inverse of int_to_min_bytes. Empty decodes as zero."""
    return int.from_bytes(data, "big") if data else 0


def to_bytes(value: Optional[BytesLike]) -> bytes:
    """Normalize bytes or a 0x-hex string to bytes. None becomes empty."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        if not is_hex(value) and value not in ("", "0x"):
            raise ValueError(f"Not a hex string: {value!r}")
        digits = remove_0x_prefix(value)
        if len(digits) % 2:
            digits = "0" + digits
        return bytes.fromhex(digits)
    raise TypeError(f"Expected bytes or hex string, got {type(value).__name__}")


def pad32(data: bytes) -> bytes:
    """Left-pad to 32 bytes."""
    if len(data) > 32:
        raise ValueError(f"Value longer than 32 bytes: {len(data)}")
    return data.rjust(32, b"\x00")


def address_to_bytes(address: Optional[str]) -> bytes:
    """20-byte address, or empty bytes when absent."""
    if not address:
        return b""
    return to_canonical_address(address)


def bytes_to_address(data: bytes) -> Optional[str]:
    """Checksummed address, or None for an empty slot."""
    if not data:
        return None
    return to_checksum_address(data)


def address_to_int(address: Optional[str]) -> int:
    """Address as a uint256 value (typed-data encoding of address fields)."""
    return bytes_to_int(address_to_bytes(address))


def rlp_encode(items: list) -> bytes:
    """RLP-encode a (nested) list of byte strings."""
    return rlp.encode(items)


def rlp_decode(payload: bytes) -> list:
    """RLP-decode into a (nested) list of byte strings."""
    return rlp.decode(payload)


__all__ = [
    "int_to_min_bytes",
    "bytes_to_int",
    "to_bytes",
    "pad32",
    "address_to_bytes",
    "bytes_to_address",
    "address_to_int",
    "rlp_encode",
    "rlp_decode",
    "keccak",
]
