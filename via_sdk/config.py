"""
Via SDK - Configuration Management

Handles loading and managing SDK configuration.
Node endpoints and network parameters only; private keys are passed to
the wallets directly and never read from config files.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .constants import DEFAULT_FEE_RATE, L1_BRIDGE_ADDRESS
from .core.address import Network, get_network
from .errors import ConfigurationError, MissingConfigError


ENV_PREFIX = "VIA_"


@dataclass
class L1Config:
    """
    L1 (Bitcoin) node configuration.

    ``rpc_user`` / ``rpc_password`` are node credentials, not wallet keys.
    """
    network: str = "regtest"
    rpc_url: str = "http://127.0.0.1:18443"
    rpc_user: Optional[str] = None
    rpc_password: Optional[str] = None
    wallet: Optional[str] = None

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        if self.rpc_user is None:
            return None
        return (self.rpc_user, self.rpc_password or "")

    def get_network(self) -> Network:
        try:
            return get_network(self.network)
        except ValueError as e:
            raise ConfigurationError(str(e), {"network": self.network}) from e


@dataclass
class L2Config:
    """L2 node configuration. ``chain_id`` is asked from the node when unset."""
    rpc_url: str = "http://127.0.0.1:3050"
    chain_id: Optional[int] = None


@dataclass
class NetworkConfig:
    """
    Full SDK configuration (PUBLIC).

    Safe to commit to version control.
    """
    l1: L1Config = field(default_factory=L1Config)
    l2: L2Config = field(default_factory=L2Config)
    bridge_address: str = L1_BRIDGE_ADDRESS
    fee_rate: float = DEFAULT_FEE_RATE

    @classmethod
    def from_file(cls, path: str) -> "NetworkConfig":
        """
        Load configuration from a JSON file.

        Example network_config.json:
        {
            "l1": {"network": "regtest", "rpc_url": "http://127.0.0.1:18443",
                   "rpc_user": "rpcuser", "rpc_password": "rpcpass", "wallet": "alice"},
            "l2": {"rpc_url": "http://127.0.0.1:3050", "chain_id": 25223},
            "bridge_address": "bcrt1p...",
            "fee_rate": 2
        }
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(config_path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

        l1 = data.get("l1", {})
        l2 = data.get("l2", {})
        chain_id = l2.get("chain_id")
        return cls(
            l1=L1Config(
                network=l1.get("network", L1Config.network),
                rpc_url=l1.get("rpc_url", L1Config.rpc_url),
                rpc_user=l1.get("rpc_user"),
                rpc_password=l1.get("rpc_password"),
                wallet=l1.get("wallet"),
            ),
            l2=L2Config(
                rpc_url=l2.get("rpc_url", L2Config.rpc_url),
                chain_id=int(chain_id) if chain_id is not None else None,
            ),
            bridge_address=data.get("bridge_address", L1_BRIDGE_ADDRESS),
            fee_rate=float(data.get("fee_rate", DEFAULT_FEE_RATE)),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NetworkConfig":
        """
        Load configuration from ``VIA_*`` environment variables.

        Recognized: VIA_L1_NETWORK, VIA_L1_RPC_URL, VIA_L1_RPC_USER,
        VIA_L1_RPC_PASSWORD, VIA_L1_WALLET, VIA_L2_RPC_URL, VIA_L2_CHAIN_ID,
        VIA_BRIDGE_ADDRESS, VIA_FEE_RATE. Unset variables keep defaults.
        """
        env = os.environ if environ is None else environ

        def get(name: str, default=None):
            return env.get(ENV_PREFIX + name, default)

        chain_id = get("L2_CHAIN_ID")
        fee_rate = get("FEE_RATE", DEFAULT_FEE_RATE)
        try:
            return cls(
                l1=L1Config(
                    network=get("L1_NETWORK", L1Config.network),
                    rpc_url=get("L1_RPC_URL", L1Config.rpc_url),
                    rpc_user=get("L1_RPC_USER"),
                    rpc_password=get("L1_RPC_PASSWORD"),
                    wallet=get("L1_WALLET"),
                ),
                l2=L2Config(
                    rpc_url=get("L2_RPC_URL", L2Config.rpc_url),
                    chain_id=int(chain_id) if chain_id else None,
                ),
                bridge_address=get("BRIDGE_ADDRESS", L1_BRIDGE_ADDRESS),
                fee_rate=float(fee_rate),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}") from e


def require_env(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Value of ``VIA_<name>``; raises MissingConfigError when unset."""
    env = os.environ if environ is None else environ
    value = env.get(ENV_PREFIX + name)
    if not value:
        raise MissingConfigError(ENV_PREFIX + name)
    return value
