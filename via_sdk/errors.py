"""
Via SDK - Error Types

Specific exception classes for better error handling and debugging.
"""

from typing import Optional


class ViaError(Exception):
    """Base exception for all Via SDK errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ViaError):
    """Error in SDK configuration."""
    pass


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    def __init__(self, key: str):
        super().__init__(f"Missing required configuration: {key}", {"key": key})
        self.key = key


# =============================================================================
# Codec Errors (typed transactions)
# =============================================================================

class CodecError(ViaError):
    """Error encoding, decoding or hashing a typed transaction."""
    pass


class MissingAuthentication(CodecError):
    """Neither a classical signature nor a custom signature was supplied."""

    def __init__(self, message: str = "Transaction has no signature and no custom signature"):
        super().__init__(message)


class EmptySignatureRejected(CodecError):
    """Custom signature was supplied but is zero-length."""

    def __init__(self, message: str = "Empty signatures are not supported!"):
        super().__init__(message)


class MissingChainId(CodecError):
    """chain_id is required for serialization and hashing."""

    def __init__(self, message: str = "Transaction chainId isn't set!"):
        super().__init__(message)


class MissingFromAddress(CodecError):
    """from_ is required for serialization."""

    def __init__(self, message: str = "Explicitly providing `from` field is required for EIP712 transactions!"):
        super().__init__(message)


class NoSignatureProvided(CodecError):
    """No authenticating bytes available to compute the canonical hash."""

    def __init__(self, message: str = "No signature provided!"):
        super().__init__(message)


class TransactionParseError(CodecError):
    """Payload is not a well-formed typed transaction."""
    pass


class SignatureParseFailed(TransactionParseError):
    """r/s slots are present but no valid classical signature can be formed."""

    def __init__(self, message: str = "Failed to parse signature!", v: Optional[int] = None):
        super().__init__(message, {"v": v} if v is not None else None)
        self.v = v


class InvalidBytecodeLength(CodecError):
    """Bytecode length violates the content-hash format."""

    def __init__(self, message: str, length: int):
        super().__init__(message, {"length": length})
        self.length = length


# =============================================================================
# Fee Errors
# =============================================================================

class FeeError(ViaError):
    """Error while populating fee fields."""
    pass


class ConflictingFeeSpecification(FeeError):
    """Legacy gas_price supplied together with an EIP-1559 fee field."""

    def __init__(self, message: str = "Provide combination of maxFeePerGas and maxPriorityFeePerGas or provide gasPrice. Not both!"):
        super().__init__(message)


# =============================================================================
# Key Errors
# =============================================================================

class KeyError(ViaError):
    """Error related to cryptographic keys."""
    pass


class InvalidKeyError(KeyError):
    """Key format is invalid."""
    pass


# =============================================================================
# L1 Transaction Errors
# =============================================================================

class TransactionError(ViaError):
    """Error during L1 transaction construction or broadcast."""
    pass


class UnsupportedAddressType(TransactionError):
    """Address does not belong to one of the supported script families."""

    def __init__(self, address: str):
        super().__init__(f"Unsupported address type: {address}", {"address": address})
        self.address = address


class InvalidAddressError(TransactionError):
    """Address cannot be decoded for the configured network."""

    def __init__(self, address: str, reason: Optional[str] = None):
        super().__init__(f"Invalid address: {address}", {"address": address, "reason": reason})
        self.address = address
        self.reason = reason


class InsufficientFundsError(TransactionError):
    """Not enough funds to complete the operation."""

    def __init__(self, required: int, available: int, message: Optional[str] = None):
        msg = message or f"Insufficient funds: required {required} sats, available {available} sats"
        super().__init__(msg, {"required": required, "available": available})
        self.required = required
        self.available = available


class SelectionFailed(InsufficientFundsError):
    """No subset of the candidate UTXOs covers amount plus fee."""

    def __init__(self, required: int, available: int, strategy: str = "largest_first"):
        super().__init__(
            required,
            available,
            f"UTXO selection '{strategy}' failed: required {required} sats, available {available} sats",
        )
        self.details["strategy"] = strategy
        self.strategy = strategy


class BroadcastError(TransactionError):
    """Error broadcasting transaction to the network."""

    def __init__(self, message: str, tx_hex: Optional[str] = None):
        super().__init__(message, {"tx_hex_length": len(tx_hex) if tx_hex else 0})
        self.tx_hex = tx_hex


# =============================================================================
# Verification Errors
# =============================================================================

class VerificationIOFailure(ViaError):
    """Signature could not be verified because a collaborator call failed.

    Distinct from a negative verification result: the question was never
    answered.
    """

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, {"address": address} if address else None)
        self.address = address


# =============================================================================
# Network Errors
# =============================================================================

class NetworkError(ViaError):
    """Error communicating with a node."""
    pass


class APIError(NetworkError):
    """HTTP-level error from a node endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None, endpoint: Optional[str] = None):
        super().__init__(message, {"status_code": status_code, "endpoint": endpoint})
        self.status_code = status_code
        self.endpoint = endpoint


class RPCError(NetworkError):
    """JSON-RPC error object returned by a node."""

    def __init__(self, code: int, message: str, method: Optional[str] = None, data=None):
        super().__init__(f"RPC error {code}: {message}", {"code": code, "method": method})
        self.code = code
        self.rpc_message = message
        self.method = method
        self.data = data


class ConnectionError(NetworkError):
    """Cannot connect to the node."""
    pass


class TimeoutError(NetworkError):
    """Request to the node timed out."""
    pass
