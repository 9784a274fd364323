"""
Via SDK - L1 Key Management

Holds the sender's secp256k1 key for deposit signing: ECDSA for
P2PKH / P2WPKH / P2SH-P2WPKH inputs and BIP-340 Schnorr with the
BIP-341 key-path tweak for P2TR inputs.

SECURITY NOTE: This class intentionally does NOT expose private key material
through properties or serialization. The private key is only used internally
for signing operations.
"""

from typing import Optional

from embit import base58, ec
from embit.base import EmbitError

from ..core.address import Network
from ..errors import InvalidKeyError


def decode_wif(wif: str, network: Optional[Network] = None) -> bytes:
    """
    Decode a WIF private key.

    Args:
        wif: Base58check WIF string.
        network: If given, the WIF version byte must match it.

    Returns:
        32-byte secret.

    Raises:
        InvalidKeyError: Bad checksum, length, version or uncompressed key.
    """
    try:
        key = ec.PrivateKey.from_wif(wif)
    except (EmbitError, ValueError) as e:
        raise InvalidKeyError(f"Invalid WIF: {e}") from e

    if not key.compressed:
        raise InvalidKeyError("Uncompressed WIF keys are not supported")

    # from_wif cannot tell testnet, signet and regtest apart
    prefix = base58.decode_check(wif)[0]
    if network is not None and prefix != network.wif_prefix:
        raise InvalidKeyError(
            f"WIF version 0x{prefix:02x} does not match {network.name}",
            {"expected": network.wif_prefix, "got": prefix},
        )
    return key.secret


def encode_wif(secret: bytes, network: Network) -> str:
    """Compressed WIF encoding of a 32-byte secret."""
    try:
        return ec.PrivateKey(secret).wif(network.params)
    except (EmbitError, ValueError) as e:
        raise InvalidKeyError(f"Invalid private key: {e}") from e


def taproot_output_key(internal_key: bytes) -> bytes:
    """x-only output key of a key-path-only taproot output (BIP-86)."""
    return ec.PublicKey.from_xonly(internal_key).taproot_tweak(b"").xonly()


class KeyManager:
    """
    Manages the L1 signing key for deposits.

    SECURITY: Private key material is never exposed through properties,
    serialization, or string representation. Use only the provided
    signing methods.
    """

    __slots__ = ('_private_key',)  # Prevent __dict__ access

    def __init__(self, secret: bytes):
        """
        Initialize key manager.

        Args:
            secret: 32-byte private key.
        """
        try:
            self._private_key = ec.PrivateKey(secret)
        except (EmbitError, ValueError) as e:
            raise InvalidKeyError(f"Private key must be a 32-byte scalar in [1, n-1]: {e}") from e

    @classmethod
    def from_wif(cls, wif: str, network: Optional[Network] = None) -> "KeyManager":
        """Create KeyManager from a WIF string."""
        return cls(decode_wif(wif, network))

    @classmethod
    def from_secret(cls, secret: str) -> "KeyManager":
        """Create KeyManager from private key hex string."""
        try:
            return cls(bytes.fromhex(secret))
        except ValueError as e:
            raise InvalidKeyError(f"Invalid private key hex: {e}") from e

    def get_public_key(self) -> ec.PublicKey:
        return self._private_key.get_public_key()

    @property
    def public_key(self) -> bytes:
        """33-byte compressed public key."""
        return self._private_key.sec()

    @property
    def xonly_public_key(self) -> bytes:
        """32-byte x-only internal key (BIP-340)."""
        return self._private_key.xonly()

    @property
    def taproot_output_key(self) -> bytes:
        """32-byte x-only output key for a key-path-only taproot output."""
        return taproot_output_key(self.xonly_public_key)

    def __repr__(self) -> str:
        """Safe representation that doesn't leak private key."""
        return f"KeyManager(public_key={self.public_key.hex()[:16]}...)"

    def __str__(self) -> str:
        """Safe string representation."""
        return self.__repr__()

    def __getstate__(self):
        """Prevent pickling to avoid accidental key serialization."""
        raise TypeError("KeyManager cannot be pickled (contains secret material)")

    def __reduce__(self):
        """Prevent pickling via reduce protocol."""
        raise TypeError("KeyManager cannot be pickled (contains secret material)")

    def sign(self, digest: bytes) -> ec.Signature:
        """Low-R, low-S ECDSA signature over a 32-byte digest (RFC 6979)."""
        return self._private_key.sign(digest)

    def ecdsa_sign(self, digest: bytes) -> bytes:
        """DER encoding of :meth:`sign`."""
        return self.sign(digest).serialize()

    def schnorr_sign(self, digest: bytes, tweak: bool = True) -> bytes:
        """
        64-byte BIP-340 signature over a 32-byte digest.

        Args:
            digest: Signature hash.
            tweak: Sign with the taproot-tweaked key (key-path spend).
        """
        signer = self._private_key.taproot_tweak(b"") if tweak else self._private_key
        return signer.schnorr_sign(digest).serialize()

    def verify_ecdsa(self, signature: bytes, digest: bytes) -> bool:
        try:
            parsed = ec.Signature.parse(signature)
        except (EmbitError, ValueError, IndexError):
            return False
        return self.get_public_key().verify(parsed, digest)
