"""
Via SDK - L1 Node Client

JSON-RPC over HTTP to a bitcoind-compatible node: UTXO listing, fee
estimation and broadcast.
"""

import itertools
from typing import Any, List, Optional, Tuple

import requests

from ..constants import MAX_CONFIRMATIONS, MIN_CONFIRMATIONS
from ..errors import APIError, BroadcastError, ConnectionError, RPCError, TimeoutError
from ..logging import StructuredLogger, get_logger
from ..models import UTXO


class JSONRPCClient:
    """
    Minimal JSON-RPC client over a ``requests.Session``.

    Transport failures are raised as SDK network errors; an ``error``
    object in the reply is raised as :class:`RPCError`. No retries.
    """

    jsonrpc_version = "2.0"

    def __init__(
        self,
        url: str,
        auth: Optional[Tuple[str, str]] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.url = url
        self.session = session or requests.Session()
        if auth:
            self.session.auth = auth
        self.timeout = timeout
        self.logger = logger or get_logger("rpc")
        self._ids = itertools.count(1)

    def _post(self, payload: dict) -> requests.Response:
        """Make POST request to the node."""
        try:
            return self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise TimeoutError(f"Request to {self.url} timed out: {e}") from e
        except requests.ConnectionError as e:
            raise ConnectionError(f"Cannot connect to {self.url}: {e}") from e
        except requests.RequestException as e:
            raise APIError(f"API request failed: {e}", endpoint=self.url) from e

    def call(self, method: str, *params: Any) -> Any:
        """
        Invoke ``method`` and return its ``result``.

        Raises:
            RPCError: The node answered with an error object.
            APIError: Non-JSON or HTTP error reply without an error object.
            ConnectionError, TimeoutError: Transport failures.
        """
        payload = {
            "jsonrpc": self.jsonrpc_version,
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        self.logger.debug("RPC request", method=method)
        response = self._post(payload)

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            raise RPCError(
                int(error.get("code", -1)),
                str(error.get("message", "")),
                method=method,
                data=error.get("data"),
            )

        if response.status_code >= 400 or not isinstance(body, dict):
            raise APIError(
                f"Unexpected reply to {method}: HTTP {response.status_code}",
                status_code=response.status_code,
                endpoint=self.url,
            )

        return body.get("result")


class BitcoinRPC(JSONRPCClient):
    """
    Client for a bitcoind JSON-RPC endpoint.

    Example:
        rpc = BitcoinRPC("http://127.0.0.1:18443", auth=("user", "pass"), wallet="alice")
        utxos = rpc.list_unspent("bcrt1q...")
    """

    jsonrpc_version = "1.0"

    def __init__(self, url: str, auth: Optional[Tuple[str, str]] = None, wallet: Optional[str] = None, **kwargs):
        if wallet:
            url = f"{url.rstrip('/')}/wallet/{wallet}"
        super().__init__(url, auth=auth, **kwargs)

    # =========================================================================
    # Address Operations
    # =========================================================================

    def list_unspent(
        self,
        address: str,
        min_conf: int = MIN_CONFIRMATIONS,
        max_conf: int = MAX_CONFIRMATIONS,
    ) -> List[UTXO]:
        """
        Confirmed UTXOs of ``address`` known to the node's wallet.

        Args:
            address: L1 address.
            min_conf: Minimum confirmations (default 1).
            max_conf: Maximum confirmations.

        Returns:
            List of UTXO objects.
        """
        data = self.call("listunspent", min_conf, max_conf, [address])
        return [UTXO.from_rpc(item) for item in data or []]

    def get_balance(self, address: str) -> int:
        """Confirmed balance of ``address`` in satoshis."""
        return sum(utxo.value for utxo in self.list_unspent(address))

    # =========================================================================
    # Fees
    # =========================================================================

    def estimate_smart_fee(self, conf_target: int) -> dict:
        """Raw ``estimatesmartfee`` result (feerate in BTC/kvB when known)."""
        return self.call("estimatesmartfee", conf_target) or {}

    # =========================================================================
    # Transaction Operations
    # =========================================================================

    def send_raw_transaction(self, tx_hex: str) -> str:
        """
        Broadcast a raw transaction.

        Returns:
            txid reported by the node.

        Raises:
            BroadcastError: The node rejected the transaction.
        """
        try:
            return self.call("sendrawtransaction", tx_hex)
        except RPCError as e:
            raise BroadcastError(f"Broadcast rejected: {e.rpc_message}", tx_hex=tx_hex) from e
