"""
Via SDK - L1 Fee Estimation

Fee rates for deposits and the fee models UTXO selection runs against.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from .constants import (
    DEFAULT_FEE_RATE,
    DUST_LIMIT_P2PKH,
    DUST_LIMIT_P2SH,
    DUST_LIMIT_P2TR,
    DUST_LIMIT_P2WPKH,
)
from .models import AddressType

if TYPE_CHECKING:
    from .infra.api import BitcoinRPC


class FeePriority(Enum):
    """Fee priority levels."""
    LOW = "low"           # ~1 hour
    MEDIUM = "medium"     # ~30 min
    HIGH = "high"         # ~2 blocks
    URGENT = "urgent"     # Next block


@dataclass
class FeeEstimate:
    """Fee rate estimation result."""
    sat_per_vbyte: float
    priority: FeePriority
    estimated_blocks: int
    source: str = "default"

    def fee_for(self, vbytes: int) -> int:
        return math.ceil(vbytes * self.sat_per_vbyte)


class FeeEstimator:
    """
    Estimates deposit fee rates.

    Uses the node's ``estimatesmartfee`` when an RPC client is given and
    falls back to static rates when the node has no estimate (typical on
    regtest).
    """

    # Default fee rates (sat/vbyte)
    DEFAULT_RATES = {
        FeePriority.LOW: 1,
        FeePriority.MEDIUM: DEFAULT_FEE_RATE,
        FeePriority.HIGH: 5,
        FeePriority.URGENT: 10,
    }

    # Confirmation targets (blocks)
    ESTIMATED_BLOCKS = {
        FeePriority.LOW: 6,
        FeePriority.MEDIUM: 3,
        FeePriority.HIGH: 2,
        FeePriority.URGENT: 1,
    }

    # Minimum relay fee rate
    MIN_FEE_RATE = 1

    def __init__(self, rpc: Optional["BitcoinRPC"] = None):
        """
        Initialize fee estimator.

        Args:
            rpc: Optional node client for dynamic estimation.
        """
        self.rpc = rpc

    def estimate(self, priority: FeePriority = FeePriority.MEDIUM) -> FeeEstimate:
        """
        Estimate the fee rate for a priority level.

        Network errors from the node propagate.
        """
        blocks = self.ESTIMATED_BLOCKS[priority]

        if self.rpc is not None:
            result = self.rpc.estimate_smart_fee(blocks)
            feerate = result.get("feerate")
            if feerate is not None:
                # BTC/kvB -> sat/vB
                rate = float(Decimal(str(feerate)) * 100_000_000 / 1000)
                return FeeEstimate(
                    sat_per_vbyte=max(rate, self.MIN_FEE_RATE),
                    priority=priority,
                    estimated_blocks=int(result.get("blocks", blocks)),
                    source="node",
                )

        return FeeEstimate(
            sat_per_vbyte=self.DEFAULT_RATES[priority],
            priority=priority,
            estimated_blocks=blocks,
        )


# =============================================================================
# Fee models for UTXO selection
# =============================================================================

# Estimated vbytes spent per input, by script family
INPUT_VBYTES: Dict[AddressType, float] = {
    AddressType.P2WPKH: 68,
    AddressType.P2TR: 57.5,
    AddressType.P2PKH: 148,
    AddressType.P2SH_P2WPKH: 91,
}

DUST_LIMITS: Dict[AddressType, int] = {
    AddressType.P2WPKH: DUST_LIMIT_P2WPKH,
    AddressType.P2TR: DUST_LIMIT_P2TR,
    AddressType.P2PKH: DUST_LIMIT_P2PKH,
    AddressType.P2SH_P2WPKH: DUST_LIMIT_P2SH,
}

# version + locktime + input/output counts
TX_OVERHEAD_VBYTES = 10
SEGWIT_MARKER_VBYTES = 0.5


def output_vbytes(script_pubkey: bytes) -> int:
    """Serialized size of an output paying to ``script_pubkey``."""
    return 8 + 1 + len(script_pubkey)


class FeeModel(ABC):
    """
    Fee as a function of the selection shape.

    Outputs other than change are fixed by the caller, so a model only
    needs the number of inputs and whether a change output is added.
    """

    dust_limit: int = 0

    @abstractmethod
    def fee(self, n_inputs: int, with_change: bool) -> int:
        pass


class FlatFee(FeeModel):
    """Fixed fee regardless of transaction size."""

    def __init__(self, amount: int, dust_limit: int = 0):
        self.amount = amount
        self.dust_limit = dust_limit

    def fee(self, n_inputs: int, with_change: bool) -> int:
        return self.amount

    def __repr__(self) -> str:
        return f"FlatFee({self.amount})"


class VsizeFeeModel(FeeModel):
    """
    Fee rate times estimated vsize for inputs of one script family.

    Args:
        family: Script family of every input.
        fee_rate: sat/vbyte.
        outputs_vbytes: Size of the non-change outputs.
        change_vbytes: Size of the change output if one is added.
    """

    def __init__(
        self,
        family: AddressType,
        fee_rate: float,
        outputs_vbytes: int,
        change_vbytes: int,
    ):
        self.family = family
        self.fee_rate = fee_rate
        self.outputs_vbytes = outputs_vbytes
        self.change_vbytes = change_vbytes
        self.dust_limit = DUST_LIMITS[family]

    def vsize(self, n_inputs: int, with_change: bool) -> int:
        size = TX_OVERHEAD_VBYTES + n_inputs * INPUT_VBYTES[self.family] + self.outputs_vbytes
        if self.family != AddressType.P2PKH:
            size += SEGWIT_MARKER_VBYTES
        if with_change:
            size += self.change_vbytes
        return math.ceil(size)

    def fee(self, n_inputs: int, with_change: bool) -> int:
        return math.ceil(self.vsize(n_inputs, with_change) * self.fee_rate)

    def __repr__(self) -> str:
        return f"VsizeFeeModel({self.family.value}, {self.fee_rate} sat/vB)"
