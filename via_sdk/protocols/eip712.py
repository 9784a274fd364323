"""
Via SDK - Typed Transaction Codec

Encoding, decoding, signing and hashing of EIP-712 (type 0x71)
transactions.

Wire format:
    0x71 || rlp([
        nonce, maxPriorityFeePerGas, maxFeePerGas, gasLimit, to, value, data,
        yParity | chainId, r | "", s | "",
        chainId, from,
        gasPerPubdata, factoryDeps, customSignature, [paymaster, input] | []
    ])

Authentication is either a classical ECDSA signature or an opaque custom
signature supplied by a smart account.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import keccak
from rlp.exceptions import DecodingError

from ..constants import (
    DEFAULT_GAS_PER_PUBDATA_LIMIT,
    EIP712_DOMAIN_NAME,
    EIP712_DOMAIN_VERSION,
    EIP712_TX_TYPE,
    EIP712_TYPES,
    ZERO_ADDRESS,
)
from ..core.bytecode import hash_bytecode
from ..core.encoding import (
    address_to_bytes,
    address_to_int,
    bytes_to_address,
    bytes_to_int,
    int_to_min_bytes,
    pad32,
    rlp_decode,
    rlp_encode,
    to_bytes,
)
from ..errors import (
    EmptySignatureRejected,
    MissingAuthentication,
    MissingChainId,
    MissingFromAddress,
    NoSignatureProvided,
    SignatureParseFailed,
    TransactionParseError,
)
from ..models import PaymasterParams


# =============================================================================
# Authentication
# =============================================================================

@dataclass(frozen=True)
class ClassicalSignature:
    """secp256k1 signature with a 0/1 recovery parity."""
    r: int
    s: int
    y_parity: int

    def __post_init__(self):
        if self.y_parity not in (0, 1):
            raise SignatureParseFailed(v=self.y_parity)

    def to_bytes(self) -> bytes:
        """Authenticating bytes: r(32) || s(32) || y_parity(1)."""
        return pad32(int_to_min_bytes(self.r)) + pad32(int_to_min_bytes(self.s)) + bytes([self.y_parity])

    @classmethod
    def from_bytes(cls, signature: Union[bytes, str]) -> "ClassicalSignature":
        """Parse a 65-byte r || s || v signature (v may be 0/1 or 27/28)."""
        raw = to_bytes(signature)
        if len(raw) != 65:
            raise SignatureParseFailed(f"Expected 65-byte signature, got {len(raw)} bytes")
        v = raw[64]
        y_parity = v - 27 if v >= 27 else v
        return cls(r=bytes_to_int(raw[:32]), s=bytes_to_int(raw[32:64]), y_parity=y_parity)

    @classmethod
    def from_vrs(cls, v: int, r: int, s: int) -> "ClassicalSignature":
        return cls(r=r, s=s, y_parity=v - 27 if v >= 27 else v)


@dataclass(frozen=True)
class CustomSignature:
    """Opaque signature bytes validated by a smart account."""
    data: bytes

    def to_bytes(self) -> bytes:
        return self.data


Authentication = Union[ClassicalSignature, CustomSignature]


# =============================================================================
# Transaction
# =============================================================================

@dataclass
class TypedTransaction:
    """
    An L2 transaction with pubdata pricing and fee-sponsor metadata.

    ``gas_price`` is the legacy fee field: when the max-fee fields are
    absent it is used for both. ``signature`` and ``hash`` are attached by
    :func:`parse_eip712`.
    """
    tx_type: Optional[int] = EIP712_TX_TYPE
    nonce: Optional[int] = None
    to: Optional[str] = None
    value: int = 0
    data: bytes = b""
    gas_limit: Optional[int] = None
    gas_per_pubdata: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    gas_price: Optional[int] = None
    chain_id: Optional[int] = None
    from_: Optional[str] = None
    factory_deps: List[bytes] = field(default_factory=list)
    custom_signature: Optional[bytes] = None
    paymaster_params: Optional[PaymasterParams] = None
    signature: Optional[ClassicalSignature] = None
    hash: Optional[bytes] = None

    @property
    def has_custom_data(self) -> bool:
        """True when any EIP-712 specific field is set."""
        return (
            self.gas_per_pubdata is not None
            or bool(self.factory_deps)
            or self.custom_signature is not None
            or self.paymaster_params is not None
        )

    def effective_max_fee(self) -> int:
        return self.max_fee_per_gas or self.gas_price or 0

    def effective_priority_fee(self) -> int:
        return self.max_priority_fee_per_gas or self.effective_max_fee()

    def authentication(self) -> Optional[Authentication]:
        """Authentication carried by the transaction itself.

        A non-empty custom signature takes precedence over a decoded
        classical signature.

        Raises:
            EmptySignatureRejected: custom_signature is present but empty.
        """
        if self.custom_signature is not None:
            if len(self.custom_signature) == 0:
                raise EmptySignatureRejected()
            return CustomSignature(bytes(self.custom_signature))
        return self.signature


SignatureLike = Union[ClassicalSignature, bytes, str]


def _coerce_signature(signature: Optional[SignatureLike]) -> Optional[ClassicalSignature]:
    if signature is None or isinstance(signature, ClassicalSignature):
        return signature
    return ClassicalSignature.from_bytes(signature)


# =============================================================================
# Encoding
# =============================================================================

def serialize_eip712(tx: TypedTransaction, signature: Optional[SignatureLike] = None) -> bytes:
    """
    Serialize a typed transaction to its 0x71-prefixed wire form.

    The signature slots carry ``[y_parity, r, s]`` when a classical
    signature is given (or was decoded onto ``tx``), otherwise
    ``[chain_id, "", ""]``.

    Args:
        tx: Transaction to encode. ``chain_id`` and ``from_`` are required.
        signature: Classical signature, as ClassicalSignature or 65 bytes.

    Returns:
        Raw transaction bytes.

    Raises:
        MissingChainId: chain_id is not set.
        MissingFromAddress: from_ is not set.
        EmptySignatureRejected: custom_signature is present but empty.
    """
    if tx.chain_id is None:
        raise MissingChainId()
    if not tx.from_:
        raise MissingFromAddress()

    tx.authentication()  # rejects an empty custom signature
    classical = _coerce_signature(signature) or tx.signature

    fields: list = [
        int_to_min_bytes(tx.nonce or 0),
        int_to_min_bytes(tx.effective_priority_fee()),
        int_to_min_bytes(tx.effective_max_fee()),
        int_to_min_bytes(tx.gas_limit or 0),
        address_to_bytes(tx.to),
        int_to_min_bytes(tx.value or 0),
        to_bytes(tx.data),
    ]

    if classical is not None:
        fields += [
            int_to_min_bytes(classical.y_parity),
            int_to_min_bytes(classical.r),
            int_to_min_bytes(classical.s),
        ]
    else:
        fields += [int_to_min_bytes(tx.chain_id), b"", b""]

    gas_per_pubdata = tx.gas_per_pubdata if tx.gas_per_pubdata is not None else DEFAULT_GAS_PER_PUBDATA_LIMIT
    fields += [
        int_to_min_bytes(tx.chain_id),
        address_to_bytes(tx.from_),
        int_to_min_bytes(gas_per_pubdata),
        [to_bytes(dep) for dep in tx.factory_deps],
        bytes(tx.custom_signature) if tx.custom_signature is not None else b"",
        tx.paymaster_params.to_rlp_list() if tx.paymaster_params else [],
    ]

    return bytes([EIP712_TX_TYPE]) + rlp_encode(fields)


def serialize_signed_eip712(tx: TypedTransaction, signature: Optional[SignatureLike] = None) -> bytes:
    """
    Serialize a transaction that is ready for broadcast.

    Raises:
        MissingAuthentication: neither a classical signature nor a
            non-empty custom signature is available.
    """
    if _coerce_signature(signature) is None and tx.authentication() is None:
        raise MissingAuthentication()
    return serialize_eip712(tx, signature)


# =============================================================================
# Decoding
# =============================================================================

def _paymaster_from_rlp(items) -> Optional[PaymasterParams]:
    if not isinstance(items, list):
        raise TransactionParseError("Paymaster parameters must be a list")
    if len(items) == 0:
        return None
    if len(items) != 2:
        raise TransactionParseError(
            f"Invalid paymaster parameters, expected to have length of 2, found {len(items)}!",
            {"length": len(items)},
        )
    return PaymasterParams(paymaster=bytes_to_address(items[0]), paymaster_input=bytes(items[1]))


_LIST_SLOTS = {13: "factoryDeps", 15: "paymasterParams"}


def _check_field_shapes(raw: list) -> None:
    for index, item in enumerate(raw):
        if index in _LIST_SLOTS:
            if not isinstance(item, list) or not all(isinstance(entry, bytes) for entry in item):
                raise TransactionParseError(
                    f"Field {index} ({_LIST_SLOTS[index]}) must be a list of byte strings",
                    {"field": index},
                )
        elif not isinstance(item, bytes):
            raise TransactionParseError(f"Field {index} must be a byte string", {"field": index})


def parse_eip712(payload: Union[bytes, str]) -> TypedTransaction:
    """
    Decode a 0x71 transaction and attach its canonical hash.

    The classical signature is reconstructed only when the custom
    signature slot is empty and both r and s are present. A transaction
    without any authentication is returned without a hash.

    Raises:
        TransactionParseError: Wrong type byte, malformed RLP, a field of the
            wrong shape or a paymaster list that is not 2 items long.
        SignatureParseFailed: r/s present but y-parity is not 0 or 1.
    """
    raw_bytes = to_bytes(payload)
    if not raw_bytes or raw_bytes[0] != EIP712_TX_TYPE:
        raise TransactionParseError(
            "Not an EIP-712 transaction",
            {"type": raw_bytes[0] if raw_bytes else None},
        )

    try:
        raw = rlp_decode(raw_bytes[1:])
    except DecodingError as e:
        raise TransactionParseError(f"Invalid RLP payload: {e}") from e

    if not isinstance(raw, list) or len(raw) != 16:
        raise TransactionParseError(
            "Expected a list of 16 fields",
            {"length": len(raw) if isinstance(raw, list) else None},
        )
    _check_field_shapes(raw)

    custom_signature = bytes(raw[14]) or None
    tx = TypedTransaction(
        tx_type=EIP712_TX_TYPE,
        nonce=bytes_to_int(raw[0]),
        max_priority_fee_per_gas=bytes_to_int(raw[1]),
        max_fee_per_gas=bytes_to_int(raw[2]),
        gas_limit=bytes_to_int(raw[3]),
        to=bytes_to_address(raw[4]),
        value=bytes_to_int(raw[5]),
        data=bytes(raw[6]),
        chain_id=bytes_to_int(raw[10]),
        from_=bytes_to_address(raw[11]),
        gas_per_pubdata=bytes_to_int(raw[12]),
        factory_deps=[bytes(dep) for dep in raw[13]],
        custom_signature=custom_signature,
        paymaster_params=_paymaster_from_rlp(raw[15]),
    )

    v, r, s = bytes_to_int(raw[7]), raw[8], raw[9]

    if custom_signature is None:
        if not r or not s:
            return tx
        if v not in (0, 1):
            raise SignatureParseFailed(v=v)
        tx.signature = ClassicalSignature(r=bytes_to_int(r), s=bytes_to_int(s), y_parity=v)

    tx.hash = eip712_tx_hash(tx)
    return tx


# =============================================================================
# Hashing and signing
# =============================================================================

def eip712_tx_hash(tx: TypedTransaction, eth_signature: Optional[SignatureLike] = None) -> bytes:
    """
    Canonical transaction hash: keccak(signed_digest || keccak(auth_bytes)).

    auth_bytes is the custom signature when present, otherwise
    r(32) || s(32) || y_parity of the classical signature.

    Raises:
        NoSignatureProvided: No custom signature and no classical signature.
        MissingChainId: chain_id is not set.
    """
    auth = tx.authentication()
    if not isinstance(auth, CustomSignature):
        auth = _coerce_signature(eth_signature) or tx.signature
    if auth is None:
        raise NoSignatureProvided()

    digest = EIP712Signer.get_signed_digest(tx)
    return keccak(digest + keccak(auth.to_bytes()))


class EIP712Signer:
    """
    Signs typed transactions with a local secp256k1 key.

    Example:
        signer = EIP712Signer(private_key, chain_id=270)
        tx.custom_signature = signer.sign(tx)
    """

    def __init__(self, private_key: Union[bytes, str], chain_id: int):
        self._account = Account.from_key(private_key)
        self.chain_id = chain_id

    def __repr__(self) -> str:
        return f"EIP712Signer(address={self._account.address}, chain_id={self.chain_id})"

    @property
    def address(self) -> str:
        return self._account.address

    def get_domain(self) -> dict:
        return _domain(self.chain_id)

    @staticmethod
    def get_sign_input(tx: TypedTransaction) -> dict:
        """Flattened struct signed by the typed-data digest."""
        paymaster = tx.paymaster_params.paymaster if tx.paymaster_params else ZERO_ADDRESS
        paymaster_input = tx.paymaster_params.paymaster_input if tx.paymaster_params else b""
        gas_per_pubdata = tx.gas_per_pubdata if tx.gas_per_pubdata is not None else DEFAULT_GAS_PER_PUBDATA_LIMIT

        return {
            "txType": tx.tx_type if tx.tx_type is not None else EIP712_TX_TYPE,
            "from": address_to_int(tx.from_),
            "to": address_to_int(tx.to),
            "gasLimit": tx.gas_limit or 0,
            "gasPerPubdataByteLimit": gas_per_pubdata,
            "maxFeePerGas": tx.effective_max_fee(),
            "maxPriorityFeePerGas": tx.effective_priority_fee(),
            "paymaster": address_to_int(paymaster),
            "nonce": tx.nonce or 0,
            "value": tx.value or 0,
            "data": to_bytes(tx.data),
            "factoryDeps": [hash_bytecode(dep) for dep in tx.factory_deps],
            "paymasterInput": bytes(paymaster_input),
        }

    @staticmethod
    def get_signed_digest(tx: TypedTransaction) -> bytes:
        """
        Typed-data hash of the transaction.

        Raises:
            MissingChainId: chain_id is not set.
        """
        if tx.chain_id is None:
            raise MissingChainId()
        message = _signable(tx, tx.chain_id)
        return keccak(b"\x19" + message.version + message.header + message.body)

    def sign(self, tx: TypedTransaction) -> bytes:
        """
        Sign the transaction's typed-data digest.

        Returns:
            65-byte r || s || v signature, v in {27, 28}.
        """
        signed = self._account.sign_message(_signable(tx, self.chain_id))
        return bytes(signed.signature)

    def sign_transaction(self, tx: TypedTransaction) -> TypedTransaction:
        """Copy of ``tx`` carrying this signer's signature as its custom signature."""
        chain_id = tx.chain_id if tx.chain_id is not None else self.chain_id
        prepared = replace(tx, chain_id=chain_id, from_=tx.from_ or self.address)
        return replace(prepared, custom_signature=self.sign(prepared))


def _domain(chain_id: int) -> dict:
    return {
        "name": EIP712_DOMAIN_NAME,
        "version": EIP712_DOMAIN_VERSION,
        "chainId": chain_id,
    }


def _signable(tx: TypedTransaction, chain_id: int):
    return encode_typed_data(
        domain_data=_domain(chain_id),
        message_types=EIP712_TYPES,
        message_data=EIP712Signer.get_sign_input(tx),
    )
