"""
Via SDK - Bridge Payloads

Data the bridge reads on each side:
    - L1 -> L2 deposits carry the L2 recipient in an OP_RETURN output, as
      the literal ASCII text of the address ("0x" + 40 hex characters).
    - L2 -> L1 withdrawals call ``withdraw(bytes)`` on the base token
      contract with the UTF-8 text of the L1 address.
"""

from embit.script import Script
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, is_address

from ..constants import MAX_OP_RETURN_SIZE
from ..errors import InvalidAddressError


WITHDRAW_SIGNATURE = "withdraw(bytes)"

OP_PUSHDATA1 = 0x4C
OP_RETURN = 0x6A


def op_return_script(payload: bytes) -> Script:
    """Provably unspendable output script carrying ``payload``."""
    if len(payload) < OP_PUSHDATA1:
        push = bytes([len(payload)])
    elif len(payload) <= 0xFF:
        push = bytes([OP_PUSHDATA1, len(payload)])
    else:
        raise ValueError(f"OP_RETURN payload of {len(payload)} bytes is not supported")
    return Script(bytes([OP_RETURN]) + push + payload)


def deposit_payload(l2_recipient: str) -> bytes:
    """
    OP_RETURN payload naming the L2 recipient of a deposit.

    The address text is embedded as given, not decoded to 20 bytes.

    Raises:
        InvalidAddressError: Not a 0x-prefixed L2 address.
    """
    if not isinstance(l2_recipient, str) or not l2_recipient.startswith("0x") or not is_address(l2_recipient):
        raise InvalidAddressError(str(l2_recipient), "not a 0x-prefixed L2 address")

    payload = l2_recipient.encode("ascii")
    if len(payload) > MAX_OP_RETURN_SIZE:
        raise InvalidAddressError(l2_recipient, f"payload exceeds {MAX_OP_RETURN_SIZE} bytes")
    return payload


def deposit_script(l2_recipient: str) -> Script:
    """Zero-value OP_RETURN locking script for a deposit."""
    return op_return_script(deposit_payload(l2_recipient))


def encode_withdraw_calldata(l1_address: str) -> bytes:
    """Calldata for ``withdraw(bytes)`` paying out to ``l1_address``."""
    selector = function_signature_to_4byte_selector(WITHDRAW_SIGNATURE)
    return selector + encode(["bytes"], [l1_address.encode("utf-8")])
