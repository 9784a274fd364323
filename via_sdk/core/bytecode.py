"""
Via SDK - Bytecode Hasher

Content hash identifying deployable code blobs (factory dependencies).

Layout of the 32-byte result:
    [0:2]   version tag 01 00
    [2:4]   length in 32-byte words, big-endian
    [4:32]  sha256(bytecode)[4:32]
"""

import hashlib

from ..constants import BYTECODE_HASH_VERSION, BYTECODE_WORD_SIZE, MAX_BYTECODE_LEN_BYTES
from ..errors import InvalidBytecodeLength
from .encoding import BytesLike, to_bytes


def hash_bytecode(bytecode: BytesLike) -> bytes:
    """
    Compute the versioned content hash of a bytecode blob.

    Args:
        bytecode: Raw bytes or 0x-hex string.

    Returns:
        32-byte hash.

    Raises:
        InvalidBytecodeLength: Empty, not a multiple of 32, too long, or an
            even number of words.
    """
    code = to_bytes(bytecode)
    length = len(code)

    if length == 0:
        raise InvalidBytecodeLength("Bytecode can not be empty", length)
    if length % BYTECODE_WORD_SIZE != 0:
        raise InvalidBytecodeLength("The bytecode length in bytes must be divisible by 32", length)
    if length > MAX_BYTECODE_LEN_BYTES:
        raise InvalidBytecodeLength(
            f"Bytecode can not be longer than {MAX_BYTECODE_LEN_BYTES} bytes", length
        )

    words = length // BYTECODE_WORD_SIZE
    if words % 2 == 0:
        raise InvalidBytecodeLength("Bytecode length in 32-byte words must be odd", length)

    digest = hashlib.sha256(code).digest()
    return BYTECODE_HASH_VERSION + words.to_bytes(2, "big") + digest[4:]
