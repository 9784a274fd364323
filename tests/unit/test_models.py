"""
Unit tests for SDK data models and error types.
"""

import pytest

from via_sdk.errors import (
    InsufficientFundsError,
    MissingChainId,
    SelectionFailed,
    SignatureParseFailed,
    TransactionError,
    TransactionParseError,
    ViaError,
)
from via_sdk.models import UTXO, DepositResult, Fee, PaymasterParams, btc_to_sats


class TestUTXO:
    """Tests for UTXO model."""

    @pytest.mark.unit
    def test_utxo_outpoint(self, sample_utxo):
        """Test UTXO outpoint property."""
        assert sample_utxo.outpoint == f"{sample_utxo.txid}:{sample_utxo.vout}"

    @pytest.mark.unit
    def test_utxo_to_dict(self, sample_utxo):
        d = sample_utxo.to_dict()
        assert d == {"txid": sample_utxo.txid, "vout": sample_utxo.vout}

    @pytest.mark.unit
    def test_from_rpc(self):
        utxo = UTXO.from_rpc({
            "txid": "e" * 64,
            "vout": "2",
            "amount": 0.1,
            "scriptPubKey": "0014" + "11" * 20,
            "confirmations": 12,
        })

        assert utxo.value == 10_000_000
        assert utxo.vout == 2
        assert utxo.script_pubkey == "0014" + "11" * 20
        assert utxo.confirmations == 12

    @pytest.mark.unit
    def test_from_rpc_defaults(self):
        utxo = UTXO.from_rpc({"txid": "e" * 64, "vout": 0, "amount": 1})
        assert utxo.script_pubkey is None
        assert utxo.confirmations == 0

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "amount, sats",
        [(0.00000001, 1), (0.29, 29_000_000), ("21000000", 2_100_000_000_000_000), (1.1, 110_000_000)],
    )
    def test_btc_to_sats_is_exact(self, amount, sats):
        assert btc_to_sats(amount) == sats


class TestFee:
    """Tests for Fee quotes."""

    @pytest.mark.unit
    def test_from_rpc_hex(self):
        fee = Fee.from_rpc({
            "gas_limit": "0x1",
            "max_fee_per_gas": "0x10",
            "max_priority_fee_per_gas": "0x0",
            "gas_per_pubdata_limit": "0xc350",
        })
        assert fee == Fee(1, 16, 0, 50_000)

    @pytest.mark.unit
    def test_from_rpc_integers(self):
        fee = Fee.from_rpc({
            "gas_limit": 21000,
            "max_fee_per_gas": 1,
            "max_priority_fee_per_gas": 1,
            "gas_per_pubdata_limit": 800,
        })
        assert fee.gas_limit == 21000
        assert fee.gas_per_pubdata_limit == 800


class TestResults:
    """Tests for result containers."""

    @pytest.mark.unit
    def test_deposit_input_value(self, sample_utxo):
        result = DepositResult(txid="f" * 64, raw_hex="00", fee=200, inputs=[sample_utxo, sample_utxo])
        assert result.input_value == 200_000
        assert not result.broadcast

    @pytest.mark.unit
    def test_paymaster_rlp_list(self):
        params = PaymasterParams(paymaster="0x" + "ab" * 20, paymaster_input=b"\x01")
        assert params.to_rlp_list() == [b"\xab" * 20, b"\x01"]


class TestErrors:
    """Tests for the exception hierarchy."""

    @pytest.mark.unit
    def test_details_in_str(self):
        err = ViaError("boom", {"txid": "ab"})
        assert str(err) == "boom | Details: {'txid': 'ab'}"
        assert str(ViaError("plain")) == "plain"

    @pytest.mark.unit
    def test_selection_failed_hierarchy(self):
        err = SelectionFailed(required=10, available=3, strategy="min_change")

        assert isinstance(err, InsufficientFundsError)
        assert isinstance(err, TransactionError)
        assert err.details == {"required": 10, "available": 3, "strategy": "min_change"}
        assert "min_change" in str(err)

    @pytest.mark.unit
    def test_codec_defaults(self):
        assert str(MissingChainId()) == "Transaction chainId isn't set!"
        err = SignatureParseFailed(v=5)
        assert isinstance(err, TransactionParseError)
        assert err.details == {"v": 5}
