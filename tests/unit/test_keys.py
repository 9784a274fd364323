"""
Unit tests for KeyManager and WIF handling.
"""

import pytest
import pickle

from embit import ec

from via_sdk.core.address import MAINNET, REGTEST, TESTNET
from via_sdk.errors import InvalidKeyError
from via_sdk.infra.keys import KeyManager, decode_wif, encode_wif, taproot_output_key


MAINNET_WIF_ONE = "KwDiBf89QgGbjEhKnhXJuH7LrciVrZi3qYjgd9M7rFU73sVHnoWn"

# BIP-86 first receiving key of the "abandon ... about" wallet
BIP86_INTERNAL_KEY = "cc8a4bc64d897bddc5fbc2f670f7a8ba0b386779106cf1223c6fc5d7cd6fc115"
BIP86_OUTPUT_KEY = "a60869f0dbcf1dc659c9cecbaf8050135ea9e8cdc487053f1dc6880949dc684c"


class TestKeyManagerBasic:
    """Basic KeyManager functionality tests."""

    @pytest.mark.unit
    def test_public_key_derivation(self, key_manager, test_public_key):
        """Test that the compressed public key is correctly derived."""
        assert key_manager.public_key.hex() == test_public_key
        assert key_manager.xonly_public_key.hex() == test_public_key[2:]

    @pytest.mark.unit
    def test_from_wif(self, test_public_key):
        km = KeyManager.from_wif(MAINNET_WIF_ONE, MAINNET)
        assert km.public_key.hex() == test_public_key

    @pytest.mark.unit
    def test_wif_round_trip(self, test_private_key):
        secret = bytes.fromhex(test_private_key)
        assert decode_wif(encode_wif(secret, MAINNET)) == secret
        assert encode_wif(secret, MAINNET) == MAINNET_WIF_ONE

    @pytest.mark.unit
    def test_wif_network_mismatch(self):
        with pytest.raises(InvalidKeyError, match="does not match"):
            decode_wif(MAINNET_WIF_ONE, REGTEST)

    @pytest.mark.unit
    def test_testnet_wif_accepted_on_regtest(self, test_private_key):
        secret = bytes.fromhex(test_private_key)
        assert decode_wif(encode_wif(secret, TESTNET), REGTEST) == secret

    @pytest.mark.unit
    def test_bad_checksum(self):
        with pytest.raises(InvalidKeyError):
            decode_wif(MAINNET_WIF_ONE[:-1] + "o")

    @pytest.mark.unit
    @pytest.mark.parametrize("secret", ["00" * 32, "ff" * 32, "01" * 31, "zz"])
    def test_invalid_secret(self, secret):
        with pytest.raises(InvalidKeyError):
            KeyManager.from_secret(secret)


class TestKeyManagerSigning:
    """Tests for signing operations."""

    @pytest.mark.unit
    def test_ecdsa_signature_verifies(self, key_manager):
        digest = b"\xab" * 32
        signature = key_manager.ecdsa_sign(digest)

        assert signature[0] == 0x30
        assert key_manager.verify_ecdsa(signature, digest)
        assert len(signature) <= 70
        assert ec.PublicKey.parse(key_manager.public_key).verify(ec.Signature.parse(signature), digest)

    @pytest.mark.unit
    def test_malformed_ecdsa_signature_is_invalid(self, key_manager):
        assert not key_manager.verify_ecdsa(b"\x30\x01", b"\xab" * 32)
        assert not key_manager.verify_ecdsa(b"", b"\xab" * 32)

    @pytest.mark.unit
    def test_ecdsa_is_deterministic(self, key_manager):
        assert key_manager.ecdsa_sign(b"\xcd" * 32) == key_manager.ecdsa_sign(b"\xcd" * 32)

    @pytest.mark.unit
    def test_schnorr_tweaked_signature(self, key_manager):
        digest = b"\x01" * 32
        signature = key_manager.schnorr_sign(digest)

        assert len(signature) == 64
        output_key = ec.PublicKey.from_xonly(key_manager.taproot_output_key)
        assert output_key.schnorr_verify(ec.SchnorrSig.parse(signature), digest)
        assert signature == key_manager.schnorr_sign(digest)

    @pytest.mark.unit
    def test_schnorr_untweaked_signature(self, key_manager):
        digest = b"\x02" * 32
        signature = key_manager.schnorr_sign(digest, tweak=False)
        internal_key = ec.PublicKey.from_xonly(key_manager.xonly_public_key)
        assert internal_key.schnorr_verify(ec.SchnorrSig.parse(signature), digest)

    @pytest.mark.unit
    def test_bip86_output_key_vector(self):
        assert taproot_output_key(bytes.fromhex(BIP86_INTERNAL_KEY)).hex() == BIP86_OUTPUT_KEY

    @pytest.mark.unit
    def test_taproot_output_key_is_tweaked_internal_key(self, key_manager):
        assert key_manager.taproot_output_key == taproot_output_key(key_manager.xonly_public_key)


@pytest.mark.security
class TestKeyManagerSecurity:
    """Secret material is never exposed."""

    @pytest.mark.unit
    def test_repr_does_not_leak(self, key_manager, test_private_key):
        assert test_private_key not in repr(key_manager)
        assert test_private_key not in str(key_manager)

    @pytest.mark.unit
    def test_no_dict(self, key_manager):
        with pytest.raises(AttributeError):
            key_manager.__dict__

    @pytest.mark.unit
    def test_pickle_blocked(self, key_manager):
        with pytest.raises(TypeError):
            pickle.dumps(key_manager)
