"""
Via SDK - Fee Population

Fills an under-specified L2 transaction with gas and fee fields.

Precedence (applied once, in this order):
    1. gas_price together with max_fee_per_gas / max_priority_fee_per_gas
       is rejected before any network call.
    2. A fee quote is requested only when a relevant field is missing.
    3. Legacy (type 0) transactions get ``gas_price``; every other type
       gets ``max_fee_per_gas`` and ``max_priority_fee_per_gas``.
    4. ``gas_per_pubdata`` is filled for default, 0x71 and custom-data
       transactions only.
Caller-supplied values are never overwritten.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from .constants import EIP712_TX_TYPE, LEGACY_TX_TYPE
from .errors import ConflictingFeeSpecification
from .logging import StructuredLogger, get_logger
from .models import Fee
from .protocols.eip712 import TypedTransaction


class FeeQuoteProvider(ABC):
    """Anything that can quote fees for a transaction (usually an L2 node)."""

    @abstractmethod
    def estimate_fee(self, tx: TypedTransaction) -> Fee:
        """Return a fee quote for the transaction shape."""
        pass


def _uses_pubdata_pricing(tx: TypedTransaction) -> bool:
    return tx.tx_type is None or tx.tx_type == EIP712_TX_TYPE or tx.has_custom_data


def _needs_quote(tx: TypedTransaction) -> bool:
    if tx.gas_limit is None:
        return True
    if tx.gas_price is None and (tx.max_fee_per_gas is None or tx.max_priority_fee_per_gas is None):
        return True
    return _uses_pubdata_pricing(tx) and tx.gas_per_pubdata is None


def populate_fee_data(
    tx: TypedTransaction,
    provider: FeeQuoteProvider,
    logger: Optional[StructuredLogger] = None,
) -> TypedTransaction:
    """
    Return a copy of ``tx`` with gas and fee fields filled in.

    Args:
        tx: Candidate transaction. Not modified.
        provider: Fee quote source, called at most once.
        logger: Optional structured logger.

    Returns:
        New TypedTransaction.

    Raises:
        ConflictingFeeSpecification: gas_price combined with an EIP-1559 field.
        Any error raised by ``provider.estimate_fee`` propagates unchanged.
    """
    if tx.gas_price is not None and (
        tx.max_fee_per_gas is not None or tx.max_priority_fee_per_gas is not None
    ):
        raise ConflictingFeeSpecification()

    log = logger or get_logger("fees")

    if not _needs_quote(tx):
        log.debug("Fee fields complete, no quote requested")
        return replace(tx)

    fee = provider.estimate_fee(tx)
    log.debug(
        "Received fee quote",
        gas_limit=fee.gas_limit,
        max_fee_per_gas=fee.max_fee_per_gas,
        max_priority_fee_per_gas=fee.max_priority_fee_per_gas,
        gas_per_pubdata_limit=fee.gas_per_pubdata_limit,
    )

    updates = {}
    if tx.gas_limit is None:
        updates["gas_limit"] = fee.gas_limit

    if tx.gas_price is None:
        if tx.tx_type == LEGACY_TX_TYPE:
            updates["gas_price"] = fee.max_fee_per_gas
        else:
            if tx.max_fee_per_gas is None:
                updates["max_fee_per_gas"] = fee.max_fee_per_gas
            if tx.max_priority_fee_per_gas is None:
                updates["max_priority_fee_per_gas"] = fee.max_priority_fee_per_gas

    if _uses_pubdata_pricing(tx) and tx.gas_per_pubdata is None:
        updates["gas_per_pubdata"] = fee.gas_per_pubdata_limit

    return replace(tx, **updates)
