"""
Via SDK - Spendable Scripts

One implementation per supported script family. Each knows how to
derive its locking script from the sender's key and how to produce the
unlocking data (scriptSig and/or witness) for an input it controls:

    P2WPKH       witness   [sig, pubkey]
    P2TR         witness   [schnorr_sig]              (key path)
    P2PKH        scriptSig <sig> <pubkey>
    P2SH-P2WPKH  scriptSig <0014{hash160(pubkey)}>, witness [sig, pubkey]
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from embit import script
from embit.script import Script, Witness
from embit.transaction import SIGHASH, Transaction, TransactionOutput

from ..errors import UnsupportedAddressType
from ..infra.keys import KeyManager
from ..models import AddressType
from .address import Network


@dataclass(frozen=True)
class UnlockingData:
    """Final scriptSig and witness stack for one input."""
    script_sig: bytes = b""
    witness: Tuple[bytes, ...] = ()

    def apply(self, tx: Transaction, index: int) -> None:
        tx.vin[index].script_sig = Script(self.script_sig)
        tx.vin[index].witness = Witness(list(self.witness))


class SpendableScript(ABC):
    """Spending logic for one address script family."""

    family: AddressType

    @abstractmethod
    def derive_script(self, key: KeyManager) -> Script:
        """Locking script (scriptPubKey) controlled by ``key``."""
        pass

    @abstractmethod
    def sign(
        self,
        tx: Transaction,
        index: int,
        prevouts: Sequence[TransactionOutput],
        key: KeyManager,
    ) -> UnlockingData:
        """
        Sign input ``index`` of ``tx``.

        Args:
            tx: Transaction with all inputs and outputs in final order.
            index: Input to sign.
            prevouts: Spent output of every input, in input order.
            key: Sender key.
        """
        pass

    def address(self, key: KeyManager, network: Network) -> str:
        """Address of ``derive_script(key)`` on ``network``."""
        return self.derive_script(key).address(network.params)

    def owns(self, script_pubkey: Script, key: KeyManager) -> bool:
        return script_pubkey == self.derive_script(key)


class P2WPKHSpend(SpendableScript):
    family = AddressType.P2WPKH

    def derive_script(self, key):
        return script.p2wpkh(key.get_public_key())

    def sign(self, tx, index, prevouts, key):
        script_code = script.p2pkh(key.get_public_key())
        digest = tx.sighash_segwit(index, script_code, prevouts[index].value, SIGHASH.ALL)
        witness = script.witness_p2wpkh(key.sign(digest), key.get_public_key(), SIGHASH.ALL)
        return UnlockingData(witness=tuple(witness.items))


class P2SHP2WPKHSpend(SpendableScript):
    family = AddressType.P2SH_P2WPKH

    def redeem_script(self, key: KeyManager) -> Script:
        return script.p2wpkh(key.get_public_key())

    def derive_script(self, key):
        return script.p2sh(self.redeem_script(key))

    def sign(self, tx, index, prevouts, key):
        script_code = script.p2pkh(key.get_public_key())
        digest = tx.sighash_segwit(index, script_code, prevouts[index].value, SIGHASH.ALL)
        witness = script.witness_p2wpkh(key.sign(digest), key.get_public_key(), SIGHASH.ALL)
        return UnlockingData(
            script_sig=script.script_sig_p2sh(self.redeem_script(key)).data,
            witness=tuple(witness.items),
        )


class P2PKHSpend(SpendableScript):
    family = AddressType.P2PKH

    def derive_script(self, key):
        return script.p2pkh(key.get_public_key())

    def sign(self, tx, index, prevouts, key):
        digest = tx.sighash_legacy(index, prevouts[index].script_pubkey, SIGHASH.ALL)
        script_sig = script.script_sig_p2pkh(key.sign(digest), key.get_public_key(), SIGHASH.ALL)
        return UnlockingData(script_sig=script_sig.data)


class P2TRSpend(SpendableScript):
    """Key-path spend of a BIP-86 style output (no script tree)."""
    family = AddressType.P2TR

    def derive_script(self, key):
        return script.p2tr(key.get_public_key())

    def sign(self, tx, index, prevouts, key):
        digest = tx.sighash_taproot(
            index,
            [out.script_pubkey for out in prevouts],
            [out.value for out in prevouts],
            SIGHASH.DEFAULT,
        )
        return UnlockingData(witness=(key.schnorr_sign(digest),))


SPENDABLE_SCRIPTS: Dict[AddressType, SpendableScript] = {
    AddressType.P2WPKH: P2WPKHSpend(),
    AddressType.P2TR: P2TRSpend(),
    AddressType.P2PKH: P2PKHSpend(),
    AddressType.P2SH_P2WPKH: P2SHP2WPKHSpend(),
}


def spendable_script_for(family: AddressType) -> SpendableScript:
    """
    Spending logic for a script family.

    Raises:
        UnsupportedAddressType: ``family`` has no implementation.
    """
    try:
        return SPENDABLE_SCRIPTS[family]
    except KeyError:
        raise UnsupportedAddressType(str(family)) from None
