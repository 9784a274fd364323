"""
Via SDK - L2 JSON-RPC Provider

Thin transport for the L2 node: code lookups, contract calls, fee
quotes, nonces and broadcast.
"""

from typing import Union

from eth_utils import to_checksum_address

from ..core.encoding import to_bytes
from ..models import Fee
from ..population import FeeQuoteProvider
from ..protocols.eip712 import TypedTransaction
from .api import JSONRPCClient


def to_rpc_transaction(tx: TypedTransaction) -> dict:
    """
    JSON-RPC request shape of ``tx``: hex quantities, and EIP-712 fields
    under ``eip712Meta`` with byte strings as arrays of integers.
    """
    result = {}
    if tx.from_:
        result["from"] = to_checksum_address(tx.from_)
    if tx.to:
        result["to"] = to_checksum_address(tx.to)
    result["value"] = hex(tx.value or 0)
    result["data"] = "0x" + to_bytes(tx.data).hex()
    for key, value in (
        ("nonce", tx.nonce),
        ("gas", tx.gas_limit),
        ("gasPrice", tx.gas_price),
        ("maxFeePerGas", tx.max_fee_per_gas),
        ("maxPriorityFeePerGas", tx.max_priority_fee_per_gas),
        ("chainId", tx.chain_id),
    ):
        if value is not None:
            result[key] = hex(value)
    if tx.tx_type is not None:
        result["type"] = hex(tx.tx_type)

    if not tx.has_custom_data:
        return result

    meta = {"gasPerPubdata": hex(tx.gas_per_pubdata or 0)}
    if tx.factory_deps:
        meta["factoryDeps"] = [list(to_bytes(dep)) for dep in tx.factory_deps]
    if tx.custom_signature:
        meta["customSignature"] = list(tx.custom_signature)
    if tx.paymaster_params:
        meta["paymasterParams"] = {
            "paymaster": to_checksum_address(tx.paymaster_params.paymaster),
            "paymasterInput": list(tx.paymaster_params.paymaster_input),
        }
    result["eip712Meta"] = meta
    return result


class L2Provider(JSONRPCClient, FeeQuoteProvider):
    """
    Client for the L2 node.

    Example:
        provider = L2Provider("http://127.0.0.1:3050")
        fee = provider.estimate_fee(tx)
    """

    def get_code(self, address: str, block: str = "latest") -> bytes:
        """Deployed bytecode at ``address`` (empty for an EOA)."""
        return to_bytes(self.call("eth_getCode", to_checksum_address(address), block))

    def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        """Execute a read-only contract call."""
        request = {"to": to_checksum_address(to), "data": "0x" + data.hex()}
        return to_bytes(self.call("eth_call", request, block))

    def estimate_fee(self, tx: TypedTransaction) -> Fee:
        """Fee quote from ``zks_estimateFee``."""
        return Fee.from_rpc(self.call("zks_estimateFee", to_rpc_transaction(tx)))

    def get_chain_id(self) -> int:
        return int(self.call("eth_chainId"), 16)

    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(self.call("eth_getTransactionCount", to_checksum_address(address), block), 16)

    def send_raw_transaction(self, raw: Union[bytes, str]) -> str:
        """Broadcast a serialized transaction and return its hash."""
        payload = raw if isinstance(raw, str) else "0x" + raw.hex()
        return self.call("eth_sendRawTransaction", payload)
