"""
Via SDK - Wallets

High-level interface for bridge users.

L1Wallet:
    - deposit BTC from an L1 address to an L2 recipient

L2Wallet:
    - populate, sign and send typed transactions
    - withdraw to an L1 address
    - transfer the base token
    - sign messages
"""

from dataclasses import replace
from typing import Optional, Union

from eth_account import Account
from eth_account.messages import encode_defunct

from .config import NetworkConfig, require_env
from .constants import DEFAULT_FEE_RATE, EIP712_TX_TYPE, L1_BRIDGE_ADDRESS, L2_BASE_TOKEN_ADDRESS
from .core.address import REGTEST, Network
from .core.selection import Strategy
from .core.transaction import DepositBuilder, DepositTransaction
from .errors import InvalidKeyError
from .infra.api import BitcoinRPC
from .infra.keys import KeyManager
from .infra.rpc import L2Provider
from .logging import StructuredLogger, get_logger
from .models import DepositResult, PaymasterParams, SelectionStrategy, TransactionResult
from .population import populate_fee_data
from .protocols.bridge import encode_withdraw_calldata
from .protocols.eip712 import EIP712Signer, TypedTransaction, serialize_signed_eip712


class L1Wallet:
    """
    Deposits from a single L1 address.

    Example:
        wallet = L1Wallet(wif, "bcrt1q...", BitcoinRPC(url, auth=(user, pw)))
        result = wallet.deposit("0x36615Cf349d7F6344891B1e7CA7C72883F5dc049", 100_000)
    """

    def __init__(
        self,
        wif: str,
        address: str,
        rpc: BitcoinRPC,
        network: Network = REGTEST,
        bridge_address: str = L1_BRIDGE_ADDRESS,
        fee_rate: float = DEFAULT_FEE_RATE,
        logger: Optional[StructuredLogger] = None,
        audit: Optional[StructuredLogger] = None,
    ):
        self._key = KeyManager.from_wif(wif, network)
        self.address = address
        self.network = network
        self.logger = logger or get_logger("wallet.l1")
        self.builder = DepositBuilder(
            rpc,
            network=network,
            bridge_address=bridge_address,
            fee_rate=fee_rate,
            logger=self.logger.child("deposit"),
            audit=audit,
        )

    def __repr__(self) -> str:
        return f"L1Wallet(address={self.address}, network={self.network.name})"

    @classmethod
    def from_config(cls, config: NetworkConfig, address: str, wif: Optional[str] = None) -> "L1Wallet":
        """
        Create a wallet from configuration.

        The WIF is taken from ``VIA_L1_WIF`` when not passed.
        """
        rpc = BitcoinRPC(config.l1.rpc_url, auth=config.l1.auth, wallet=config.l1.wallet)
        return cls(
            wif or require_env("L1_WIF"),
            address,
            rpc,
            network=config.l1.get_network(),
            bridge_address=config.bridge_address,
            fee_rate=config.fee_rate,
        )

    def get_balance(self) -> int:
        """Confirmed balance in satoshis."""
        return self.builder.rpc.get_balance(self.address)

    def build_deposit(
        self,
        l2_recipient: str,
        amount: int,
        strategy: Union[SelectionStrategy, str, Strategy, None] = None,
        fee_rate: Optional[float] = None,
    ) -> DepositTransaction:
        """Build and sign a deposit without broadcasting it."""
        return self.builder.build(self._key, self.address, l2_recipient, amount, strategy, fee_rate)

    def deposit(
        self,
        l2_recipient: str,
        amount: int,
        strategy: Union[SelectionStrategy, str, Strategy, None] = None,
        fee_rate: Optional[float] = None,
    ) -> DepositResult:
        """
        Deposit ``amount`` satoshis to ``l2_recipient``.

        Args:
            l2_recipient: 0x-prefixed L2 address.
            amount: Satoshis paid to the bridge.
            strategy: UTXO selection strategy.
            fee_rate: sat/vB override.

        Returns:
            DepositResult
        """
        return self.builder.deposit(self._key, self.address, l2_recipient, amount, strategy, fee_rate)


class L2Wallet:
    """
    Account on the L2.

    Example:
        wallet = L2Wallet(private_key, L2Provider("http://127.0.0.1:3050"))
        result = wallet.withdraw(10_000, "bcrt1q...")
    """

    def __init__(
        self,
        private_key: Union[bytes, str],
        provider: L2Provider,
        chain_id: Optional[int] = None,
        logger: Optional[StructuredLogger] = None,
        audit: Optional[StructuredLogger] = None,
    ):
        self.provider = provider
        self._chain_id = chain_id
        self._account = Account.from_key(private_key)
        self._private_key = private_key
        self._signer: Optional[EIP712Signer] = None
        self.logger = logger or get_logger("wallet.l2")
        self.audit = audit

    def __repr__(self) -> str:
        return f"L2Wallet(address={self.address})"

    @classmethod
    def from_config(cls, config: NetworkConfig, private_key: Optional[str] = None) -> "L2Wallet":
        """
        Create a wallet from configuration.

        The key is taken from ``VIA_L2_PRIVATE_KEY`` when not passed.
        """
        return cls(
            private_key or require_env("L2_PRIVATE_KEY"),
            L2Provider(config.l2.rpc_url),
            chain_id=config.l2.chain_id,
        )

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self.provider.get_chain_id()
        return self._chain_id

    @property
    def signer(self) -> EIP712Signer:
        if self._signer is None:
            self._signer = EIP712Signer(self._private_key, self.chain_id)
        return self._signer

    # =========================================================================
    # Transactions
    # =========================================================================

    def populate_transaction(self, tx: TypedTransaction) -> TypedTransaction:
        """
        Fill fees, nonce, chain id and typed-transaction defaults.

        Only missing fields are filled. ``tx`` is not modified.
        """
        tx = replace(tx, from_=tx.from_ or self.address)
        populated = populate_fee_data(tx, self.provider, self.logger)

        updates = {}
        if populated.tx_type is None:
            updates["tx_type"] = EIP712_TX_TYPE
        if populated.value is None:
            updates["value"] = 0
        if populated.data is None:
            updates["data"] = b""
        if populated.factory_deps is None:
            updates["factory_deps"] = []
        if populated.nonce is None:
            updates["nonce"] = self.provider.get_transaction_count(self.address, "pending")
        if populated.chain_id is None:
            updates["chain_id"] = self.chain_id
        return replace(populated, **updates)

    def sign_transaction(self, tx: TypedTransaction) -> bytes:
        """
        Populate and sign ``tx``.

        The typed-data signature is carried as the custom signature.

        Returns:
            Serialized signed transaction.

        Raises:
            InvalidKeyError: ``tx.from_`` names another account.
        """
        if tx.from_ and tx.from_.lower() != self.address.lower():
            raise InvalidKeyError(f"Transaction sender {tx.from_} is not {self.address}", {"from": tx.from_})
        populated = self.populate_transaction(tx)
        signed = self.signer.sign_transaction(populated)
        return serialize_signed_eip712(signed)

    def send_transaction(self, tx: TypedTransaction) -> TransactionResult:
        """Populate, sign and broadcast ``tx``."""
        with self.logger.operation("send_transaction") as op:
            raw = self.sign_transaction(tx)
            tx_hash = self.provider.send_raw_transaction(raw)
            op.set_txid(tx_hash)

        if self.audit is not None:
            self.audit.info(
                "Broadcast L2 transaction",
                operation="send_transaction",
                txid=tx_hash,
                sender=self.address,
                to=tx.to,
                value=tx.value,
            )
        return TransactionResult(success=True, tx_hash=tx_hash, raw_hex="0x" + raw.hex())

    # =========================================================================
    # Bridge & Transfers
    # =========================================================================

    def withdraw(
        self,
        amount: int,
        to: str,
        paymaster_params: Optional[PaymasterParams] = None,
    ) -> TransactionResult:
        """
        Withdraw ``amount`` of the base token to L1 address ``to``.

        Args:
            amount: Amount in base token units.
            to: L1 address receiving the funds.
            paymaster_params: Optional fee sponsor.
        """
        self.logger.info("Withdrawing to L1", amount=amount, to=to)
        tx = TypedTransaction(
            to=L2_BASE_TOKEN_ADDRESS,
            value=amount,
            data=encode_withdraw_calldata(to),
            paymaster_params=paymaster_params,
        )
        return self.send_transaction(tx)

    def transfer(
        self,
        to: str,
        amount: int,
        paymaster_params: Optional[PaymasterParams] = None,
    ) -> TransactionResult:
        """Transfer ``amount`` of the base token to L2 address ``to``."""
        self.logger.info("Transferring base token", amount=amount, to=to)
        tx = TypedTransaction(to=to, value=amount, paymaster_params=paymaster_params)
        return self.send_transaction(tx)

    # =========================================================================
    # Messages
    # =========================================================================

    def sign_message(self, message: Union[str, bytes]) -> bytes:
        """Personal-sign ``message``; returns the 65-byte signature."""
        if isinstance(message, str):
            signable = encode_defunct(text=message)
        else:
            signable = encode_defunct(primitive=message)
        return bytes(self._account.sign_message(signable).signature)
