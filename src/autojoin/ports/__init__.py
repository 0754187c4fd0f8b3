from .registry import RegistryClient, QueryArg
from .backend import DiscoveryBackend

__all__ = [
    "RegistryClient",
    "QueryArg",
    "DiscoveryBackend",
]
