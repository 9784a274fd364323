"""Infrastructure layer package."""

from .api import JSONRPCClient, BitcoinRPC
from .keys import KeyManager
from .rpc import L2Provider

__all__ = ["JSONRPCClient", "BitcoinRPC", "KeyManager", "L2Provider"]
