"""
Via SDK - Client SDK for the Via L2 bridged to Bitcoin

Usage (deposit BTC to L2):
    from via_sdk import L1Wallet, BitcoinRPC

    rpc = BitcoinRPC("http://127.0.0.1:18443", auth=("user", "pass"), wallet="alice")
    wallet = L1Wallet(wif, "bcrt1q...", rpc)
    result = wallet.deposit("0x36615Cf349d7F6344891B1e7CA7C72883F5dc049", 100_000)

Usage (L2 transactions):
    from via_sdk import L2Wallet, L2Provider

    wallet = L2Wallet(private_key, L2Provider("http://127.0.0.1:3050"))
    wallet.transfer("0xa61464658AfeAf65CccaaFD3a512b69A83B77618", 10**15)
    wallet.withdraw(10_000, "bcrt1q...")

Usage (from configuration):
    config = NetworkConfig.from_file("network_config.json")
    wallet = L2Wallet.from_config(config)
"""

from .errors import (
    ViaError,
    ConfigurationError,
    MissingConfigError,
    CodecError,
    MissingAuthentication,
    EmptySignatureRejected,
    MissingChainId,
    MissingFromAddress,
    NoSignatureProvided,
    TransactionParseError,
    SignatureParseFailed,
    InvalidBytecodeLength,
    ConflictingFeeSpecification,
    InvalidKeyError,
    TransactionError,
    UnsupportedAddressType,
    InvalidAddressError,
    InsufficientFundsError,
    SelectionFailed,
    BroadcastError,
    VerificationIOFailure,
    NetworkError,
    APIError,
    RPCError,
)

# Logging
from .logging import StructuredLogger, LogLevel, create_audit_logger, create_file_logger, get_logger

# Configuration and models
from .config import NetworkConfig, L1Config, L2Config
from .models import AddressType, SelectionStrategy, UTXO, Fee, PaymasterParams, DepositResult, TransactionResult

# L2 typed transactions
from .protocols.eip712 import (
    TypedTransaction,
    ClassicalSignature,
    EIP712Signer,
    serialize_eip712,
    serialize_signed_eip712,
    parse_eip712,
    eip712_tx_hash,
)
from .protocols.paymaster import get_paymaster_params, get_general_paymaster_input, get_approval_based_paymaster_input
from .core.bytecode import hash_bytecode
from .population import FeeQuoteProvider, populate_fee_data

# Signature verification
from .core.signature import is_signature_correct, is_message_signature_correct, is_typed_data_signature_correct

# L1 deposits
from .fees import FeeEstimator, FeeEstimate, FeePriority, FlatFee, VsizeFeeModel
from .core.selection import select_utxos
from .core.witness import SpendableScript, spendable_script_for
from .core.transaction import DepositBuilder, DepositTransaction

# Transport and keys
from .infra import BitcoinRPC, KeyManager, L2Provider

# Wallets
from .wallet import L1Wallet, L2Wallet

__version__ = "0.1.0"
__all__ = [
    # Wallets
    "L1Wallet",
    "L2Wallet",

    # Configuration
    "NetworkConfig",
    "L1Config",
    "L2Config",

    # Models
    "AddressType",
    "SelectionStrategy",
    "UTXO",
    "Fee",
    "PaymasterParams",
    "DepositResult",
    "TransactionResult",

    # Typed Transactions
    "TypedTransaction",
    "ClassicalSignature",
    "EIP712Signer",
    "serialize_eip712",
    "serialize_signed_eip712",
    "parse_eip712",
    "eip712_tx_hash",
    "hash_bytecode",
    "get_paymaster_params",
    "get_general_paymaster_input",
    "get_approval_based_paymaster_input",

    # Fee Population
    "FeeQuoteProvider",
    "populate_fee_data",

    # Signature Verification
    "is_signature_correct",
    "is_message_signature_correct",
    "is_typed_data_signature_correct",

    # Deposits
    "FeeEstimator",
    "FeeEstimate",
    "FeePriority",
    "FlatFee",
    "VsizeFeeModel",
    "select_utxos",
    "SpendableScript",
    "spendable_script_for",
    "DepositBuilder",
    "DepositTransaction",

    # Transport and Keys
    "BitcoinRPC",
    "L2Provider",
    "KeyManager",

    # Errors
    "ViaError",
    "ConfigurationError",
    "MissingConfigError",
    "CodecError",
    "MissingAuthentication",
    "EmptySignatureRejected",
    "MissingChainId",
    "MissingFromAddress",
    "NoSignatureProvided",
    "TransactionParseError",
    "SignatureParseFailed",
    "InvalidBytecodeLength",
    "ConflictingFeeSpecification",
    "InvalidKeyError",
    "TransactionError",
    "UnsupportedAddressType",
    "InvalidAddressError",
    "InsufficientFundsError",
    "SelectionFailed",
    "BroadcastError",
    "VerificationIOFailure",
    "NetworkError",
    "APIError",
    "RPCError",

    # Logging
    "StructuredLogger",
    "LogLevel",
    "create_audit_logger",
    "create_file_logger",
    "get_logger",
]
