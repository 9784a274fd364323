"""
Unit tests for the L1 address codec and classification.
"""

import pytest

from embit.hashes import hash160

from via_sdk.core.address import (
    MAINNET,
    REGTEST,
    TESTNET,
    address_to_script_pubkey,
    classify_address,
    decode_segwit_address,
    encode_segwit_address,
    get_network,
    p2pkh_address,
    p2tr_address,
    p2wpkh_address,
)
from via_sdk.core.witness import spendable_script_for
from via_sdk.errors import InvalidAddressError, UnsupportedAddressType
from via_sdk.models import AddressType


G = bytes.fromhex("0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")


class TestSegwitCodec:
    """Tests for bech32 / bech32m witness addresses."""

    @pytest.mark.unit
    def test_p2wpkh_vector(self):
        assert p2wpkh_address(G, MAINNET) == "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"
        assert p2wpkh_address(G, TESTNET) == "tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx"

    @pytest.mark.unit
    def test_decode_is_case_insensitive(self):
        version, program = decode_segwit_address("bc", "BC1QW508D6QEJXTDG4Y5R3ZARVARY0C5XW7KV8F3T4")
        assert version == 0
        assert program == hash160(G)

    @pytest.mark.unit
    def test_v1_uses_bech32m(self):
        address = encode_segwit_address("bcrt", 1, b"\x42" * 32)
        assert decode_segwit_address("bcrt", address) == (1, b"\x42" * 32)

    @pytest.mark.unit
    def test_bad_checksum(self):
        with pytest.raises(InvalidAddressError):
            decode_segwit_address("bc", "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t5")

    @pytest.mark.unit
    def test_wrong_network(self):
        with pytest.raises(InvalidAddressError):
            decode_segwit_address("bcrt", "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4")

    @pytest.mark.unit
    def test_bip86_taproot_address(self):
        output_key = bytes.fromhex("a60869f0dbcf1dc659c9cecbaf8050135ea9e8cdc487053f1dc6880949dc684c")
        assert p2tr_address(output_key, MAINNET) == "bc1p5cyxnuxmeuwuvkwfem96lqzszd02n6xdcjrs20cac6yqjjwudpxqkedrcr"


class TestClassification:
    """Tests for classify_address."""

    @pytest.mark.unit
    @pytest.mark.parametrize("family", list(AddressType))
    def test_derived_addresses_classify(self, key_manager, family):
        address = spendable_script_for(family).address(key_manager, REGTEST)
        assert classify_address(address, REGTEST) == family

    @pytest.mark.unit
    def test_p2pkh_mainnet_vector(self):
        assert p2pkh_address(G, MAINNET) == "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
        assert classify_address("1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH", MAINNET) == AddressType.P2PKH

    @pytest.mark.unit
    def test_p2wsh_unsupported(self):
        address = encode_segwit_address("bcrt", 0, b"\x00" * 32)
        with pytest.raises(UnsupportedAddressType):
            classify_address(address, REGTEST)

    @pytest.mark.unit
    def test_garbage_rejected(self):
        with pytest.raises(InvalidAddressError):
            classify_address("not-an-address", REGTEST)

    @pytest.mark.unit
    def test_other_network_rejected(self):
        with pytest.raises(InvalidAddressError):
            classify_address("1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH", REGTEST)
        with pytest.raises(InvalidAddressError):
            classify_address("bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4", REGTEST)

    @pytest.mark.unit
    def test_uppercase_witness_address(self):
        address = "BC1QW508D6QEJXTDG4Y5R3ZARVARY0C5XW7KV8F3T4"
        assert classify_address(address, MAINNET) == AddressType.P2WPKH
        assert address_to_script_pubkey(address, MAINNET) == b"\x00\x14" + hash160(G)

    @pytest.mark.unit
    def test_script_pubkeys(self, key_manager):
        for family in AddressType:
            script = spendable_script_for(family)
            address = script.address(key_manager, REGTEST)
            assert address_to_script_pubkey(address, REGTEST) == script.derive_script(key_manager).data

    @pytest.mark.unit
    def test_get_network(self):
        assert get_network("regtest") is REGTEST
        with pytest.raises(ValueError):
            get_network("signet")
