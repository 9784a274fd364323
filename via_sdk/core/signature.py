"""
Via SDK - Signature Verification

Checks a signature on behalf of either kind of account:
    - externally owned account (no code): ECDSA public key recovery
    - smart account (has code): EIP-1271 ``isValidSignature(bytes32,bytes)``

A wrong signature is ``False``. Failing to ask the node is
:class:`VerificationIOFailure`, so callers can tell "network down" from
"signature invalid".
"""

from typing import Any, Dict, List, Union

from eth_abi import encode
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import function_signature_to_4byte_selector, keccak

from ..constants import EIP1271_MAGIC_VALUE
from ..errors import NetworkError, RPCError, VerificationIOFailure
from .encoding import BytesLike, to_bytes
from .utils import is_address_eq


IS_VALID_SIGNATURE = "isValidSignature(bytes32,bytes)"
EXECUTION_REVERTED_CODE = 3


def hash_signable(message: SignableMessage) -> bytes:
    """EIP-191 digest of a signable message."""
    return keccak(b"\x19" + message.version + message.header + message.body)


def hash_message(message: Union[str, bytes]) -> bytes:
    """Personal-sign (``\\x19Ethereum Signed Message``) digest."""
    if isinstance(message, str):
        return hash_signable(encode_defunct(text=message))
    return hash_signable(encode_defunct(primitive=message))


def hash_typed_data(domain: Dict[str, Any], types: Dict[str, List[dict]], value: Dict[str, Any]) -> bytes:
    """EIP-712 digest. ``types`` must not include ``EIP712Domain``."""
    return hash_signable(encode_typed_data(domain_data=domain, message_types=types, message_data=value))


def recover_signer(digest: bytes, signature: BytesLike) -> str:
    """
    Address that produced ``signature`` over ``digest``.

    Raises:
        BadSignature, ValidationError, ValueError: Malformed signature.
    """
    raw = to_bytes(signature)
    if len(raw) != 65:
        raise ValueError(f"Expected 65-byte signature, got {len(raw)}")
    v = raw[64]
    if v >= 27:
        v -= 27
    sig = keys.Signature(vrs=(v, int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:64], "big")))
    return sig.recover_public_key_from_msg_hash(digest).to_checksum_address()


def _is_eoa_signature_correct(address: str, digest: bytes, signature: BytesLike) -> bool:
    try:
        return is_address_eq(recover_signer(digest, signature), address)
    except (BadSignature, ValidationError, ValueError, TypeError):
        return False


def _is_revert(error: RPCError) -> bool:
    return error.code == EXECUTION_REVERTED_CODE or "execution reverted" in (error.rpc_message or "").lower()


def _is_eip1271_signature_correct(provider, address: str, digest: bytes, signature: BytesLike) -> bool:
    calldata = function_signature_to_4byte_selector(IS_VALID_SIGNATURE) + encode(
        ["bytes32", "bytes"], [digest, to_bytes(signature)]
    )
    try:
        result = provider.eth_call(address, calldata)
    except RPCError as e:
        if _is_revert(e):
            return False
        raise VerificationIOFailure(f"isValidSignature call failed: {e}", address) from e
    except NetworkError as e:
        raise VerificationIOFailure(f"isValidSignature call failed: {e}", address) from e
    return to_bytes(result)[:4] == EIP1271_MAGIC_VALUE


def is_signature_correct(provider, address: str, digest: bytes, signature: BytesLike) -> bool:
    """
    Verify ``signature`` over ``digest`` for ``address``.

    Args:
        provider: Object with ``get_code(address)`` and ``eth_call(to, data)``
            (e.g. :class:`~via_sdk.infra.rpc.L2Provider`).
        address: Claimed signer.
        digest: 32-byte message hash.
        signature: Signature bytes (65-byte ECDSA for EOAs, opaque for contracts).

    Returns:
        True if the signature is valid for ``address``.

    Raises:
        VerificationIOFailure: The node could not be queried.
    """
    try:
        code = provider.get_code(address)
    except NetworkError as e:
        raise VerificationIOFailure(f"Cannot determine whether {address} has code: {e}", address) from e

    if not to_bytes(code):
        return _is_eoa_signature_correct(address, digest, signature)
    return _is_eip1271_signature_correct(provider, address, digest, signature)


def is_message_signature_correct(provider, address: str, message: Union[str, bytes], signature: BytesLike) -> bool:
    """Verify a personal-sign signature of ``message``."""
    return is_signature_correct(provider, address, hash_message(message), signature)


def is_typed_data_signature_correct(
    provider,
    address: str,
    domain: Dict[str, Any],
    types: Dict[str, List[dict]],
    value: Dict[str, Any],
    signature: BytesLike,
) -> bool:
    """Verify an EIP-712 typed-data signature."""
    return is_signature_correct(provider, address, hash_typed_data(domain, types, value), signature)
