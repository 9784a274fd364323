"""
Via SDK - L2 Address Helpers

Deterministic contract addresses and L2 -> L1 message hashes.
"""

from eth_utils import keccak, to_checksum_address

from ..constants import L1_MESSENGER_ADDRESS
from .encoding import BytesLike, address_to_bytes, pad32, to_bytes


CREATE_PREFIX = keccak(text="zksyncCreate")
CREATE2_PREFIX = keccak(text="zksyncCreate2")


def create_address(sender: str, sender_nonce: int) -> str:
    """Address of a contract deployed by ``sender`` with CREATE at ``sender_nonce``."""
    preimage = CREATE_PREFIX + pad32(address_to_bytes(sender)) + sender_nonce.to_bytes(32, "big")
    return to_checksum_address(keccak(preimage)[12:])


def create2_address(sender: str, bytecode_hash: BytesLike, salt: BytesLike, input: BytesLike = b"") -> str:
    """
    Address of a contract deployed with CREATE2.

    Args:
        sender: Deployer address.
        bytecode_hash: Versioned bytecode hash (see ``hash_bytecode``).
        salt: Salt bytes, concatenated as given.
        input: Constructor calldata.
    """
    preimage = (
        CREATE2_PREFIX
        + pad32(address_to_bytes(sender))
        + to_bytes(salt)
        + to_bytes(bytecode_hash)
        + keccak(to_bytes(input))
    )
    return to_checksum_address(keccak(preimage)[12:])


def get_hashed_l2_to_l1_msg(sender: str, msg: BytesLike, tx_number_in_block: int) -> bytes:
    """Hash of the log emitted when ``sender`` sends ``msg`` to L1."""
    encoded = (
        bytes([0, 1])  # shard id, is_service
        + tx_number_in_block.to_bytes(2, "big")
        + address_to_bytes(L1_MESSENGER_ADDRESS)
        + pad32(address_to_bytes(sender))
        + keccak(to_bytes(msg))
    )
    return keccak(encoded)


def is_address_eq(a: str, b: str) -> bool:
    return a.lower() == b.lower()
