"""
Via SDK - Paymaster Parameters

Encodes the paymaster flows a fee sponsor understands:
    - general(bytes)                            sponsor pays unconditionally
    - approvalBased(address,uint256,bytes)      sponsor is paid in an ERC-20
"""

from dataclasses import dataclass
from typing import Union

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from ..core.encoding import BytesLike, to_bytes
from ..models import PaymasterParams


GENERAL_FLOW_SIGNATURE = "general(bytes)"
APPROVAL_BASED_FLOW_SIGNATURE = "approvalBased(address,uint256,bytes)"


@dataclass(frozen=True)
class GeneralPaymasterInput:
    inner_input: bytes = b""


@dataclass(frozen=True)
class ApprovalBasedPaymasterInput:
    token: str
    minimal_allowance: int
    inner_input: bytes = b""


PaymasterInput = Union[GeneralPaymasterInput, ApprovalBasedPaymasterInput]


def get_general_paymaster_input(inner_input: BytesLike = b"") -> bytes:
    """Calldata for the general paymaster flow."""
    selector = function_signature_to_4byte_selector(GENERAL_FLOW_SIGNATURE)
    return selector + encode(["bytes"], [to_bytes(inner_input)])


def get_approval_based_paymaster_input(
    token: str,
    minimal_allowance: int,
    inner_input: BytesLike = b"",
) -> bytes:
    """
    Calldata for the approval-based paymaster flow.

    Args:
        token: ERC-20 token the sponsor is compensated in.
        minimal_allowance: Allowance the sponsor needs on ``token``.
        inner_input: Extra data forwarded to the paymaster.
    """
    selector = function_signature_to_4byte_selector(APPROVAL_BASED_FLOW_SIGNATURE)
    return selector + encode(
        ["address", "uint256", "bytes"],
        [to_checksum_address(token), minimal_allowance, to_bytes(inner_input)],
    )


def get_paymaster_params(paymaster: str, paymaster_input: PaymasterInput) -> PaymasterParams:
    """Build PaymasterParams for ``paymaster`` from a flow description."""
    if isinstance(paymaster_input, ApprovalBasedPaymasterInput):
        encoded = get_approval_based_paymaster_input(
            paymaster_input.token,
            paymaster_input.minimal_allowance,
            paymaster_input.inner_input,
        )
    elif isinstance(paymaster_input, GeneralPaymasterInput):
        encoded = get_general_paymaster_input(paymaster_input.inner_input)
    else:
        raise TypeError(f"Unsupported paymaster input: {type(paymaster_input).__name__}")

    return PaymasterParams(paymaster=to_checksum_address(paymaster), paymaster_input=encoded)


__all__ = [
    "PaymasterParams",
    "GeneralPaymasterInput",
    "ApprovalBasedPaymasterInput",
    "get_general_paymaster_input",
    "get_approval_based_paymaster_input",
    "get_paymaster_params",
]
