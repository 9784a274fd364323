"""
Via SDK - Constants

Centralized protocol constants for the SDK.
"""

# =============================================================================
# L2 Transaction Types
# =============================================================================

# Typed (EIP-712) transaction tag
EIP712_TX_TYPE = 0x71

LEGACY_TX_TYPE = 0x00

# Gas per pubdata byte used when the transaction does not set one
DEFAULT_GAS_PER_PUBDATA_LIMIT = 50000

# Typed-data domain for signed digests
EIP712_DOMAIN_NAME = "zkSync"
EIP712_DOMAIN_VERSION = "2"

# Field layout of the signed transaction struct
EIP712_TYPES = {
    "Transaction": [
        {"name": "txType", "type": "uint256"},
        {"name": "from", "type": "uint256"},
        {"name": "to", "type": "uint256"},
        {"name": "gasLimit", "type": "uint256"},
        {"name": "gasPerPubdataByteLimit", "type": "uint256"},
        {"name": "maxFeePerGas", "type": "uint256"},
        {"name": "maxPriorityFeePerGas", "type": "uint256"},
        {"name": "paymaster", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "factoryDeps", "type": "bytes32[]"},
        {"name": "paymasterInput", "type": "bytes"},
    ]
}


# =============================================================================
# Signature Validation
# =============================================================================

# bytes4(keccak256("isValidSignature(bytes32,bytes)"))
EIP1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")


# =============================================================================
# System Contract Addresses
# =============================================================================

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

L1_MESSENGER_ADDRESS = "0x0000000000000000000000000000000000008008"
L2_BASE_TOKEN_ADDRESS = "0x000000000000000000000000000000000000800a"


# =============================================================================
# Bytecode Hashing
# =============================================================================

BYTECODE_WORD_SIZE = 32

# Version tag written over the first two digest bytes
BYTECODE_HASH_VERSION = bytes([0x01, 0x00])

# 65535 words minus one: the word count must fit in 16 bits and be odd
MAX_BYTECODE_LEN_BYTES = (2 ** 16 - 1) * BYTECODE_WORD_SIZE - BYTECODE_WORD_SIZE


# =============================================================================
# L1 Deposits
# =============================================================================

# Bridge address the deposit amount is paid to (regtest)
L1_BRIDGE_ADDRESS = "bcrt1p3s7m76wp5seprjy4gdxuxrr8pjgd47q5s8lu9vefxmp0my2p4t9qh6s8kq"

# Default fee rate in sat/vB
DEFAULT_FEE_RATE = 2

# Outputs below these values are non-standard and get folded into the fee
DUST_LIMIT_P2PKH = 546
DUST_LIMIT_P2SH = 540
DUST_LIMIT_P2WPKH = 294
DUST_LIMIT_P2TR = 330

# Standard relay limit for an OP_RETURN payload
MAX_OP_RETURN_SIZE = 80

MIN_CONFIRMATIONS = 1
MAX_CONFIRMATIONS = 9999999

# Sequence number used for all deposit inputs (final, no RBF)
DEFAULT_SEQUENCE = 0xFFFFFFFF
