"""autojoin: peer discovery, self-registration and TTL liveness for cluster nodes."""

__version__ = "0.1.0"
