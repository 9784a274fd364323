"""Protocol layer package."""

from .eip712 import TypedTransaction, EIP712Signer, serialize_eip712, parse_eip712, eip712_tx_hash
from .paymaster import get_paymaster_params
from .bridge import deposit_script, encode_withdraw_calldata

__all__ = [
    "TypedTransaction",
    "EIP712Signer",
    "serialize_eip712",
    "parse_eip712",
    "eip712_tx_hash",
    "get_paymaster_params",
    "deposit_script",
    "encode_withdraw_calldata",
]
