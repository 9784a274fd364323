"""
Via SDK - Data Models

Core data structures used throughout the SDK.
"""

from dataclasses import dataclass, field
from typing import Optional, List
from decimal import Decimal
from enum import Enum

from eth_utils import to_canonical_address


class AddressType(Enum):
    """L1 address script families a deposit can be funded from."""
    P2WPKH = "p2wpkh"              # bc1q / tb1q / bcrt1q, 20-byte program
    P2TR = "p2tr"                  # bc1p / tb1p / bcrt1p, key-path spend
    P2PKH = "p2pkh"                # base58 pubkey hash
    P2SH_P2WPKH = "p2sh-p2wpkh"    # base58 script hash wrapping P2WPKH


class SelectionStrategy(Enum):
    """UTXO selection strategies."""
    LARGEST_FIRST = "largest_first"
    SMALLEST_FIRST = "smallest_first"
    MIN_CHANGE = "min_change"
    ALL = "all"


@dataclass(frozen=True)
class UTXO:
    """Unspent Transaction Output."""
    txid: str
    vout: int
    value: int  # satoshis
    script_pubkey: Optional[str] = None
    confirmations: int = 0

    @property
    def outpoint(self) -> str:
        """Return txid:vout format."""
        return f"{self.txid}:{self.vout}"

    def to_dict(self) -> dict:
        return {"txid": self.txid, "vout": self.vout}

    @classmethod
    def from_rpc(cls, data: dict) -> "UTXO":
        """Create from a bitcoind ``listunspent`` entry (amount in BTC)."""
        return cls(
            txid=data["txid"],
            vout=int(data["vout"]),
            value=btc_to_sats(data["amount"]),
            script_pubkey=data.get("scriptPubKey"),
            confirmations=int(data.get("confirmations", 0)),
        )


def btc_to_sats(amount) -> int:
    """Convert a JSON BTC amount to satoshis without float drift."""
    return int((Decimal(str(amount)) * 100_000_000).to_integral_value())


@dataclass(frozen=True)
class Fee:
    """Fee quote for one L2 transaction shape.

    Only valid for the transaction it was computed for: changing ``data``
    or ``factory_deps`` invalidates it.
    """
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    gas_per_pubdata_limit: int

    @classmethod
    def from_rpc(cls, data: dict) -> "Fee":
        """Create from a ``zks_estimateFee`` result (hex quantities)."""
        return cls(
            gas_limit=_quantity(data["gas_limit"]),
            max_fee_per_gas=_quantity(data["max_fee_per_gas"]),
            max_priority_fee_per_gas=_quantity(data["max_priority_fee_per_gas"]),
            gas_per_pubdata_limit=_quantity(data["gas_per_pubdata_limit"]),
        )


def _quantity(value) -> int:
    if isinstance(value, str):
        return int(value, 16)
    return int(value)


@dataclass(frozen=True)
class PaymasterParams:
    """Fee sponsor: paymaster contract address plus opaque input."""
    paymaster: str
    paymaster_input: bytes

    def to_rlp_list(self) -> list:
        return [to_canonical_address(self.paymaster), self.paymaster_input]


@dataclass
class DepositResult:
    """Result of building (and optionally broadcasting) an L1 deposit."""
    txid: str
    raw_hex: str
    fee: int
    change: int = 0
    inputs: List[UTXO] = field(default_factory=list)
    broadcast: bool = False

    @property
    def input_value(self) -> int:
        return sum(utxo.value for utxo in self.inputs)


@dataclass
class TransactionResult:
    """Result of an L2 transaction submission."""
    success: bool
    tx_hash: Optional[str] = None
    raw_hex: Optional[str] = None
    error: Optional[str] = None
