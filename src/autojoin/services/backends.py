from __future__ import annotations
from typing import Optional

from autojoin.ports.backend import DiscoveryBackend
from autojoin.ports.registry import RegistryClient
from autojoin.services.settings import Settings

BACKENDS = ("consul", "memory")


def get_backend(settings: Settings, registry: Optional[RegistryClient] = None) -> DiscoveryBackend:
    kind = settings.backend.strip().lower()
    if kind == "consul":
        from autojoin.adapters.http.requests_registry import RequestsRegistryClient
        from autojoin.services.consul.backend import ConsulBackend

        return ConsulBackend(settings, registry or RequestsRegistryClient.from_settings(settings))
    if kind == "memory":
        from autojoin.services.backend_memory import MemoryBackend, shared_members

        return MemoryBackend(settings, shared_members())
    raise ValueError(f"unknown backend {settings.backend!r}, expected one of: {', '.join(BACKENDS)}")
