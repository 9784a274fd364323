"""
Via SDK - Deposit Builder

Builds, signs and broadcasts the L1 transaction that bridges funds to L2.

Outputs of a deposit:
    - bridge output paying ``amount`` to the bridge address
    - zero-value OP_RETURN carrying the L2 recipient as ASCII text
    - change back to the sender, when any
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from embit.script import Script
from embit.transaction import Transaction, TransactionInput, TransactionOutput

from ..constants import DEFAULT_FEE_RATE, DEFAULT_SEQUENCE, L1_BRIDGE_ADDRESS
from ..errors import InvalidKeyError, TransactionError
from ..fees import VsizeFeeModel, output_vbytes
from ..infra.keys import KeyManager
from ..logging import StructuredLogger, get_logger
from ..models import AddressType, DepositResult, SelectionStrategy, UTXO
from ..protocols.bridge import deposit_script
from .address import REGTEST, Network, address_to_script, classify_address
from .selection import Selection, Strategy, select_utxos
from .witness import SpendableScript, spendable_script_for


def transaction_vsize(tx: Transaction) -> int:
    """Virtual size (BIP-141) of a transaction."""
    total = len(tx.serialize())
    if not tx.is_segwit:
        return total
    # marker, flag and the witness stacks count once
    witness = 2 + sum(len(inp.witness.serialize()) for inp in tx.vin)
    return math.ceil(((total - witness) * 4 + witness) / 4)


@dataclass
class DepositTransaction:
    """
    A deposit under construction.

    Built fresh per deposit; once :meth:`finalize` has run the
    transaction is frozen and re-broadcasting ``raw`` is idempotent.
    """
    tx: Transaction
    prevouts: List[TransactionOutput]
    selection: Selection
    family: AddressType
    _finalized: bool = field(default=False, repr=False)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def sign(self, key: KeyManager, script: SpendableScript) -> None:
        """Sign every input with the sender key and attach unlocking data."""
        if self._finalized:
            raise TransactionError("Deposit transaction is already finalized")
        unlocking = [script.sign(self.tx, i, self.prevouts, key) for i in range(len(self.tx.vin))]
        for index, data in enumerate(unlocking):
            data.apply(self.tx, index)

    def finalize(self) -> bytes:
        """Freeze the transaction and return its raw bytes."""
        for index, inp in enumerate(self.tx.vin):
            if not inp.script_sig.data and not inp.witness.items:
                raise TransactionError(f"Input {index} is not signed", {"input": index})
        self._finalized = True
        return self.raw

    @property
    def raw(self) -> bytes:
        return self.tx.serialize()

    @property
    def txid(self) -> str:
        return self.tx.txid().hex()

    @property
    def vsize(self) -> int:
        return transaction_vsize(self.tx)

    def to_result(self, broadcast: bool = False) -> DepositResult:
        return DepositResult(
            txid=self.txid,
            raw_hex=self.raw.hex(),
            fee=self.selection.fee,
            change=self.selection.change,
            inputs=list(self.selection.inputs),
            broadcast=broadcast,
        )


def bip69_sort(tx: Transaction, prevouts: List[TransactionOutput]) -> List[TransactionOutput]:
    """
    Sort inputs and outputs lexicographically (BIP-69) in place.

    Returns:
        ``prevouts`` reordered to match the sorted inputs.
    """
    paired = sorted(zip(tx.vin, prevouts), key=lambda p: (p[0].txid, p[0].vout))
    tx.vin = [inp for inp, _ in paired]
    tx.vout.sort(key=lambda out: (out.value, out.script_pubkey.data))
    tx.clear_cache()
    return [prevout for _, prevout in paired]


class DepositBuilder:
    """
    Builds L1 -> L2 deposit transactions.

    The builder keeps no state between calls. Two concurrent deposits
    funded from the same address can select the same UTXOs; the node
    rejects the second broadcast. Serialize deposits per funding address
    if that matters.

    Example:
        builder = DepositBuilder(BitcoinRPC(url, auth=(user, password)))
        result = builder.deposit(key, "bcrt1q...", "0x36615Cf3...", 100_000)
    """

    def __init__(
        self,
        rpc,
        network: Network = REGTEST,
        bridge_address: str = L1_BRIDGE_ADDRESS,
        fee_rate: float = DEFAULT_FEE_RATE,
        bip69: bool = True,
        logger: Optional[StructuredLogger] = None,
        audit: Optional[StructuredLogger] = None,
    ):
        """
        Initialize deposit builder.

        Args:
            rpc: L1 node client with ``list_unspent`` and ``send_raw_transaction``.
            network: L1 network parameters.
            bridge_address: Address the deposit amount is paid to.
            fee_rate: Default fee rate in sat/vB.
            bip69: Sort inputs and outputs lexicographically.
            logger: Structured logger.
            audit: Receives one record per broadcast deposit, e.g. from
                :func:`~via_sdk.logging.create_audit_logger`.
        """
        self.rpc = rpc
        self.network = network
        self.bridge_address = bridge_address
        self.fee_rate = fee_rate
        self.bip69 = bip69
        self.logger = logger or get_logger("deposit")
        self.audit = audit

    def _spendable_utxos(self, utxos: Sequence[UTXO], locking_script: Script) -> List[UTXO]:
        owned = []
        for utxo in utxos:
            if utxo.script_pubkey and bytes.fromhex(utxo.script_pubkey) != locking_script.data:
                self.logger.warning("Skipping UTXO not locked to sender key", utxo=utxo.outpoint)
                continue
            owned.append(utxo)
        return owned

    def build(
        self,
        key: KeyManager,
        sender_address: str,
        l2_recipient: str,
        amount: int,
        strategy: Union[SelectionStrategy, str, Strategy, None] = None,
        fee_rate: Optional[float] = None,
    ) -> DepositTransaction:
        """
        Build and sign a deposit.

        Args:
            key: Sender key controlling ``sender_address``.
            sender_address: Funding address (P2WPKH, P2TR, P2PKH or P2SH-P2WPKH).
            l2_recipient: 0x-prefixed L2 address credited by the bridge.
            amount: Satoshis paid to the bridge.
            strategy: UTXO selection strategy (default largest-first).
            fee_rate: sat/vB, overrides the builder default.

        Returns:
            Finalized DepositTransaction.

        Raises:
            UnsupportedAddressType: Sender address family is not supported.
            InvalidKeyError: ``key`` does not control ``sender_address``.
            SelectionFailed: Confirmed UTXOs cannot cover amount plus fee.
            NetworkError: UTXO listing failed.
        """
        family = classify_address(sender_address, self.network)
        script = spendable_script_for(family)
        if script.address(key, self.network).lower() != sender_address.lower():
            raise InvalidKeyError(
                "Key does not control the sender address",
                {"address": sender_address, "family": family.value},
            )
        locking_script = script.derive_script(key)

        fixed_outputs = [
            TransactionOutput(amount, address_to_script(self.bridge_address, self.network)),
            TransactionOutput(0, deposit_script(l2_recipient)),
        ]
        fee_model = VsizeFeeModel(
            family,
            fee_rate if fee_rate is not None else self.fee_rate,
            outputs_vbytes=sum(output_vbytes(out.script_pubkey.data) for out in fixed_outputs),
            change_vbytes=output_vbytes(locking_script.data),
        )

        utxos = self._spendable_utxos(self.rpc.list_unspent(sender_address), locking_script)
        selection = select_utxos(utxos, amount, fee_model, strategy)
        self.logger.debug(
            "Selected UTXOs",
            inputs=[utxo.outpoint for utxo in selection.inputs],
            fee=selection.fee,
            change=selection.change,
        )

        outputs = list(fixed_outputs)
        if selection.change > 0:
            outputs.append(TransactionOutput(selection.change, locking_script))

        tx = Transaction(
            vin=[
                TransactionInput(bytes.fromhex(utxo.txid), utxo.vout, sequence=DEFAULT_SEQUENCE)
                for utxo in selection.inputs
            ],
            vout=outputs,
        )
        prevouts = [TransactionOutput(utxo.value, locking_script) for utxo in selection.inputs]
        if self.bip69:
            prevouts = bip69_sort(tx, prevouts)

        deposit = DepositTransaction(tx=tx, prevouts=prevouts, selection=selection, family=family)
        deposit.sign(key, script)
        deposit.finalize()
        return deposit

    def deposit(
        self,
        key: KeyManager,
        sender_address: str,
        l2_recipient: str,
        amount: int,
        strategy: Union[SelectionStrategy, str, Strategy, None] = None,
        fee_rate: Optional[float] = None,
    ) -> DepositResult:
        """
        Build, sign and broadcast a deposit.

        Returns:
            DepositResult with the node-reported txid.

        Raises:
            BroadcastError: The node rejected the transaction.
        """
        with self.logger.operation("deposit") as op:
            op.add_detail("amount", amount)
            op.add_detail("recipient", l2_recipient)
            deposit = self.build(key, sender_address, l2_recipient, amount, strategy, fee_rate)
            txid = self.rpc.send_raw_transaction(deposit.raw.hex())
            op.set_txid(txid)

        if self.audit is not None:
            self.audit.info(
                "Broadcast deposit",
                operation="deposit",
                txid=txid,
                sender=sender_address,
                recipient=l2_recipient,
                amount=amount,
                fee=deposit.selection.fee,
                inputs=[utxo.outpoint for utxo in deposit.selection.inputs],
            )

        result = deposit.to_result(broadcast=True)
        result.txid = txid
        return result
