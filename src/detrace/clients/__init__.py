"""Chain clients: JSON-RPC transport and the per-pass storage cache."""

from detrace.clients.chain_access import CachedChainAccess, NullChainAccess
from detrace.clients.rpc import RPC

__all__ = ["CachedChainAccess", "NullChainAccess", "RPC"]
