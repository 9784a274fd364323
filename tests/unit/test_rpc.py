"""
Unit tests for the JSON-RPC transports (L1 node and L2 provider).
"""

import pytest
from unittest.mock import Mock

import requests

from via_sdk.errors import APIError, BroadcastError, ConnectionError, RPCError, TimeoutError
from via_sdk.infra.api import BitcoinRPC, JSONRPCClient
from via_sdk.infra.rpc import L2Provider, to_rpc_transaction
from via_sdk.models import PaymasterParams
from via_sdk.protocols.eip712 import TypedTransaction


RECIPIENT = "0xa61464658AfeAf65CccaaFD3a512b69A83B77618"


def make_session(result=None, error=None, status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    if body is None:
        body = {"jsonrpc": "2.0", "id": 1, "result": result, "error": error}
    response.json.return_value = body
    session = Mock()
    session.post.return_value = response
    return session


class TestJSONRPCClient:
    """Tests for request shaping and error mapping."""

    @pytest.mark.unit
    def test_call_returns_result(self):
        session = make_session(result="0x1")
        client = JSONRPCClient("http://node", session=session)

        assert client.call("eth_chainId") == "0x1"
        payload = session.post.call_args.kwargs["json"]
        assert payload["method"] == "eth_chainId"
        assert payload["params"] == []
        assert session.post.call_args.kwargs["timeout"] == 30

    @pytest.mark.unit
    def test_request_ids_increment(self):
        session = make_session(result=None)
        client = JSONRPCClient("http://node", session=session)
        client.call("a")
        client.call("b")
        ids = [call.kwargs["json"]["id"] for call in session.post.call_args_list]
        assert ids == [1, 2]

    @pytest.mark.unit
    def test_error_object_raises_rpc_error(self):
        session = make_session(error={"code": -32000, "message": "execution reverted", "data": "0x"})
        client = JSONRPCClient("http://node", session=session)

        with pytest.raises(RPCError) as exc_info:
            client.call("eth_call", {})
        assert exc_info.value.code == -32000
        assert exc_info.value.rpc_message == "execution reverted"
        assert exc_info.value.method == "eth_call"

    @pytest.mark.unit
    def test_http_error_without_body(self):
        session = make_session(status_code=401)
        session.post.return_value.json.side_effect = ValueError("no json")
        client = JSONRPCClient("http://node", session=session)

        with pytest.raises(APIError) as exc_info:
            client.call("getblockcount")
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raised, expected",
        [
            (requests.Timeout("slow"), TimeoutError),
            (requests.ConnectionError("refused"), ConnectionError),
            (requests.RequestException("boom"), APIError),
        ],
    )
    def test_transport_errors_mapped(self, raised, expected):
        session = Mock()
        session.post.side_effect = raised
        client = JSONRPCClient("http://node", session=session)

        with pytest.raises(expected):
            client.call("eth_chainId")

    @pytest.mark.unit
    def test_auth_applied_to_session(self):
        session = make_session()
        JSONRPCClient("http://node", auth=("user", "pass"), session=session)
        assert session.auth == ("user", "pass")


class TestBitcoinRPC:
    """Tests for the L1 node client."""

    @pytest.mark.unit
    def test_wallet_url(self):
        rpc = BitcoinRPC("http://127.0.0.1:18443/", wallet="alice", session=make_session())
        assert rpc.url == "http://127.0.0.1:18443/wallet/alice"

    @pytest.mark.unit
    def test_list_unspent(self):
        session = make_session(result=[
            {"txid": "a" * 64, "vout": 1, "amount": 0.001, "scriptPubKey": "0014" + "00" * 20, "confirmations": 6},
        ])
        rpc = BitcoinRPC("http://node", session=session)

        utxos = rpc.list_unspent("bcrt1qxyz")

        payload = session.post.call_args.kwargs["json"]
        assert payload["jsonrpc"] == "1.0"
        assert payload["params"] == [1, 9999999, ["bcrt1qxyz"]]
        assert utxos[0].value == 100_000
        assert utxos[0].outpoint == "a" * 64 + ":1"

    @pytest.mark.unit
    def test_get_balance(self):
        session = make_session(result=[
            {"txid": "a" * 64, "vout": 0, "amount": "0.5"},
            {"txid": "b" * 64, "vout": 0, "amount": 0.00000001},
        ])
        assert BitcoinRPC("http://node", session=session).get_balance("addr") == 50_000_001

    @pytest.mark.unit
    def test_broadcast_rejected(self):
        session = make_session(error={"code": -25, "message": "bad-txns-inputs-missingorspent"})
        rpc = BitcoinRPC("http://node", session=session)

        with pytest.raises(BroadcastError, match="missingorspent"):
            rpc.send_raw_transaction("00")


class TestL2Provider:
    """Tests for the L2 JSON-RPC provider."""

    @pytest.mark.unit
    def test_estimate_fee(self):
        session = make_session(result={
            "gas_limit": "0x5208",
            "max_fee_per_gas": "0xee6b280",
            "max_priority_fee_per_gas": "0x0",
            "gas_per_pubdata_limit": "0xc350",
        })
        provider = L2Provider("http://node", session=session)

        fee = provider.estimate_fee(TypedTransaction(to=RECIPIENT, from_=RECIPIENT))

        assert fee.gas_limit == 21_000
        assert fee.max_fee_per_gas == 250_000_000
        assert fee.gas_per_pubdata_limit == 50_000
        assert session.post.call_args.kwargs["json"]["method"] == "zks_estimateFee"

    @pytest.mark.unit
    def test_get_code_and_call(self):
        session = make_session(result="0x6080")
        provider = L2Provider("http://node", session=session)

        assert provider.get_code(RECIPIENT) == b"\x60\x80"
        assert provider.eth_call(RECIPIENT, b"\x01") == b"\x60\x80"
        params = session.post.call_args.kwargs["json"]["params"]
        assert params == [{"to": RECIPIENT, "data": "0x01"}, "latest"]

    @pytest.mark.unit
    def test_nonce_and_chain_id(self):
        session = make_session(result="0x10e")
        provider = L2Provider("http://node", session=session)
        assert provider.get_chain_id() == 270
        assert provider.get_transaction_count(RECIPIENT) == 270
        assert session.post.call_args.kwargs["json"]["params"][1] == "pending"

    @pytest.mark.unit
    def test_send_raw_transaction(self):
        session = make_session(result="0x" + "ab" * 32)
        provider = L2Provider("http://node", session=session)

        assert provider.send_raw_transaction(b"\x71\x01") == "0x" + "ab" * 32
        assert session.post.call_args.kwargs["json"]["params"] == ["0x7101"]

    @pytest.mark.unit
    def test_rpc_transaction_shape(self):
        tx = TypedTransaction(
            to=RECIPIENT,
            from_=RECIPIENT,
            value=10,
            gas_per_pubdata=50_000,
            custom_signature=b"\x01\x02",
            paymaster_params=PaymasterParams(paymaster=RECIPIENT, paymaster_input=b"\x03"),
        )

        request = to_rpc_transaction(tx)

        assert request["value"] == "0xa"
        assert request["type"] == "0x71"
        assert "nonce" not in request
        assert request["eip712Meta"]["gasPerPubdata"] == "0xc350"
        assert request["eip712Meta"]["customSignature"] == [1, 2]
        assert request["eip712Meta"]["paymasterParams"]["paymasterInput"] == [3]

    @pytest.mark.unit
    def test_plain_transaction_has_no_meta(self):
        request = to_rpc_transaction(TypedTransaction(tx_type=2, to=RECIPIENT))
        assert "eip712Meta" not in request
