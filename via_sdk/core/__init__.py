"""Core layer package."""

from .bytecode import hash_bytecode
from .address import Network, MAINNET, TESTNET, REGTEST, classify_address, address_to_script, address_to_script_pubkey
from .selection import Selection, Strategy, select_utxos
from .signature import is_signature_correct, is_message_signature_correct, is_typed_data_signature_correct
from .utils import create_address, create2_address

__all__ = [
    "hash_bytecode",
    "Network",
    "MAINNET",
    "TESTNET",
    "REGTEST",
    "classify_address",
    "address_to_script",
    "address_to_script_pubkey",
    "Selection",
    "Strategy",
    "select_utxos",
    "is_signature_correct",
    "is_message_signature_correct",
    "is_typed_data_signature_correct",
    "create_address",
    "create2_address",
]
