"""
Unit tests for spendable scripts and the deposit OP_RETURN script.
"""

import pytest

from embit.hashes import hash160
from embit.script import Script
from embit.transaction import Transaction, TransactionInput, TransactionOutput

from via_sdk.core.witness import (
    P2PKHSpend,
    P2SHP2WPKHSpend,
    P2TRSpend,
    P2WPKHSpend,
    UnlockingData,
    spendable_script_for,
)
from via_sdk.models import AddressType
from via_sdk.protocols.bridge import op_return_script


def one_input_tx(script_pubkey: Script, value: int = 50_000):
    tx = Transaction(
        vin=[TransactionInput(bytes.fromhex("ab" * 32), 1)],
        vout=[TransactionOutput(value - 1_000, Script(b"\x00\x14" + b"\x22" * 20))],
    )
    return tx, [TransactionOutput(value, script_pubkey)]


class TestLockingScripts:
    """Tests for derive_script per family."""

    @pytest.mark.unit
    def test_p2wpkh(self, key_manager):
        assert P2WPKHSpend().derive_script(key_manager).data == b"\x00\x14" + hash160(key_manager.public_key)

    @pytest.mark.unit
    def test_p2sh_p2wpkh_wraps_redeem_script(self, key_manager):
        script = P2SHP2WPKHSpend()
        redeem = script.redeem_script(key_manager)
        assert redeem.data == b"\x00\x14" + hash160(key_manager.public_key)
        assert script.derive_script(key_manager).data == b"\xa9\x14" + hash160(redeem.data) + b"\x87"

    @pytest.mark.unit
    def test_p2pkh(self, key_manager):
        locking = P2PKHSpend().derive_script(key_manager)
        assert locking.script_type() == "p2pkh"
        assert locking.data[3:23] == hash160(key_manager.public_key)

    @pytest.mark.unit
    def test_p2tr_uses_tweaked_key(self, key_manager):
        locking = P2TRSpend().derive_script(key_manager)
        assert locking.data == b"\x51\x20" + key_manager.taproot_output_key
        assert key_manager.taproot_output_key != key_manager.xonly_public_key

    @pytest.mark.unit
    @pytest.mark.parametrize("family", list(AddressType))
    def test_lookup_by_family(self, family):
        script = spendable_script_for(family)
        assert script.family == family

    @pytest.mark.unit
    def test_owns(self, key_manager):
        script = P2WPKHSpend()
        assert script.owns(script.derive_script(key_manager), key_manager)
        assert not script.owns(P2PKHSpend().derive_script(key_manager), key_manager)


class TestUnlockingData:
    """Tests for the unlocking data each family produces."""

    @pytest.mark.unit
    def test_p2wpkh_witness(self, key_manager):
        script = P2WPKHSpend()
        tx, prevouts = one_input_tx(script.derive_script(key_manager))

        data = script.sign(tx, 0, prevouts, key_manager)

        assert data.script_sig == b""
        assert len(data.witness) == 2
        assert data.witness[0][-1] == 0x01
        assert data.witness[1] == key_manager.public_key

    @pytest.mark.unit
    def test_p2sh_p2wpkh_pushes_redeem_script(self, key_manager):
        script = P2SHP2WPKHSpend()
        tx, prevouts = one_input_tx(script.derive_script(key_manager))

        data = script.sign(tx, 0, prevouts, key_manager)

        assert data.script_sig == b"\x16" + script.redeem_script(key_manager).data
        assert data.witness[1] == key_manager.public_key

    @pytest.mark.unit
    def test_p2pkh_script_sig(self, key_manager):
        script = P2PKHSpend()
        tx, prevouts = one_input_tx(script.derive_script(key_manager))

        data = script.sign(tx, 0, prevouts, key_manager)

        assert data.witness == ()
        assert data.script_sig.endswith(b"\x21" + key_manager.public_key)

    @pytest.mark.unit
    def test_p2tr_single_schnorr_signature(self, key_manager):
        script = P2TRSpend()
        tx, prevouts = one_input_tx(script.derive_script(key_manager))

        data = script.sign(tx, 0, prevouts, key_manager)

        assert len(data.witness) == 1
        assert len(data.witness[0]) == 64

    @pytest.mark.unit
    def test_apply(self):
        tx, _ = one_input_tx(Script(b""))
        assert tx.serialize()[4:6] != b"\x00\x01"

        UnlockingData(script_sig=b"\x01", witness=(b"\x02",)).apply(tx, 0)

        assert tx.vin[0].script_sig.data == b"\x01"
        assert tx.vin[0].witness.items == [b"\x02"]
        assert tx.serialize()[4:6] == b"\x00\x01"


class TestOpReturnScript:
    """Tests for op_return_script."""

    @pytest.mark.unit
    def test_short_payload(self):
        assert op_return_script(b"hi").data == b"\x6a\x02hi"

    @pytest.mark.unit
    def test_pushdata1_payload(self):
        assert op_return_script(b"\xaa" * 80).data[:3] == b"\x6a\x4c\x50"

    @pytest.mark.unit
    def test_oversized_payload(self):
        with pytest.raises(ValueError):
            op_return_script(b"\x00" * 256)
