"""
Via SDK - L1 Addresses

Network parameters, address derivation and classification of a sender
address into its script family. Encoding and decoding are done by embit.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from embit import bech32, ec
from embit.base import EmbitError
from embit.networks import NETWORKS as EMBIT_NETWORKS
from embit.script import Script, address_to_scriptpubkey, p2pkh, p2sh, p2wpkh

from ..errors import InvalidAddressError, UnsupportedAddressType
from ..models import AddressType


# =============================================================================
# Networks
# =============================================================================

@dataclass(frozen=True)
class Network:
    """An L1 network and its embit parameter table."""
    name: str
    params: dict = field(repr=False, compare=False, hash=False)

    @property
    def bech32_hrp(self) -> str:
        return self.params["bech32"]

    @property
    def pubkey_hash_prefix(self) -> int:
        return self.params["p2pkh"][0]

    @property
    def script_hash_prefix(self) -> int:
        return self.params["p2sh"][0]

    @property
    def wif_prefix(self) -> int:
        return self.params["wif"][0]


MAINNET = Network("mainnet", EMBIT_NETWORKS["main"])
TESTNET = Network("testnet", EMBIT_NETWORKS["test"])
REGTEST = Network("regtest", EMBIT_NETWORKS["regtest"])

NETWORKS: Dict[str, Network] = {n.name: n for n in (MAINNET, TESTNET, REGTEST)}


def get_network(name: str) -> Network:
    try:
        return NETWORKS[name]
    except KeyError:
        raise ValueError(f"Unknown network: {name}. Expected one of {sorted(NETWORKS)}") from None


# =============================================================================
# Witness addresses
# =============================================================================

def encode_segwit_address(hrp: str, witness_version: int, program: bytes) -> str:
    """Bech32 (v0) or bech32m (v1+) address of a witness program."""
    address = bech32.encode(hrp, witness_version, program)
    if address is None:
        raise InvalidAddressError(program.hex(), f"invalid v{witness_version} witness program")
    return address


def decode_segwit_address(hrp: str, address: str) -> Tuple[int, bytes]:
    """
    Decode a witness address.

    Returns:
        (witness_version, witness_program)

    Raises:
        InvalidAddressError: Bad checksum, wrong network or malformed program.
    """
    version, program = bech32.decode(hrp, address)
    if version is None:
        raise InvalidAddressError(address, f"not a valid witness address for hrp '{hrp}'")
    return version, bytes(program)


# =============================================================================
# Address derivation
# =============================================================================

def p2wpkh_address(pubkey: bytes, network: Network) -> str:
    return p2wpkh(ec.PublicKey.parse(pubkey)).address(network.params)


def p2tr_address(output_key: bytes, network: Network) -> str:
    """Taproot address from a 32-byte x-only output key."""
    return encode_segwit_address(network.bech32_hrp, 1, output_key)


def p2pkh_address(pubkey: bytes, network: Network) -> str:
    return p2pkh(ec.PublicKey.parse(pubkey)).address(network.params)


def p2sh_address(redeem_script: bytes, network: Network) -> str:
    return p2sh(Script(redeem_script)).address(network.params)


# =============================================================================
# Classification
# =============================================================================

_FAMILIES = {
    "p2wpkh": AddressType.P2WPKH,
    "p2tr": AddressType.P2TR,
    "p2pkh": AddressType.P2PKH,
    # Base58 script-hash addresses are assumed to wrap P2WPKH
    "p2sh": AddressType.P2SH_P2WPKH,
}


def address_to_script(address: str, network: Network) -> Script:
    """
    Locking script paying to ``address``.

    Any script type embit decodes is accepted so deposits can pay e.g.
    P2WSH bridge addresses.

    Raises:
        InvalidAddressError: Malformed, or not an address on ``network``.
    """
    if address.isupper() and address.lower().startswith(network.bech32_hrp + "1"):
        address = address.lower()

    try:
        script_pubkey = address_to_scriptpubkey(address)
    except (EmbitError, ValueError) as e:
        raise InvalidAddressError(address, str(e)) from e
    if script_pubkey is None:
        raise InvalidAddressError(address, "unknown address version")

    try:
        encoded = script_pubkey.address(network.params)
    except ValueError as e:
        raise InvalidAddressError(address, str(e)) from e
    if encoded != address:
        raise InvalidAddressError(address, f"not a {network.name} address")
    return script_pubkey


def address_to_script_pubkey(address: str, network: Network) -> bytes:
    """Raw locking script paying to ``address``."""
    return address_to_script(address, network).data


def classify_address(address: str, network: Network) -> AddressType:
    """
    Script family of a sender address.

    Raises:
        UnsupportedAddressType: Valid address of another family (e.g. P2WSH).
        InvalidAddressError: Not an address on ``network``.
    """
    family = _FAMILIES.get(address_to_script(address, network).script_type())
    if family is None:
        raise UnsupportedAddressType(address)
    return family
