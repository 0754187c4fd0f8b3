# src/autojoin/services/cluster_context.py
from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from autojoin.ports.backend import DiscoveryBackend
from autojoin.ports.registry import RegistryClient
from autojoin.services.settings import Settings

_CTX: ContextVar[Optional["ClusterContext"]] = ContextVar("autojoin_cluster_ctx", default=None)


@dataclass(slots=True)
class ClusterContext:
    """Settings of this node, the selected discovery backend and the registry transport it owns."""

    settings: Settings
    backend: DiscoveryBackend
    # None для бэкендов без HTTP (memory)
    registry: Optional[RegistryClient] = None

    @property
    def node_name(self) -> str:
        return self.settings.node_name

    def close(self) -> None:
        """Release the registry transport (HTTP session); safe to call more than once."""
        if self.registry is not None:
            self.registry.close()


def set_ctx(ctx: ClusterContext) -> None:
    _CTX.set(ctx)


def get_ctx() -> ClusterContext:
    """Текущий контекст узла; RuntimeError, если composition root его ещё не построил."""
    ctx = _CTX.get()
    if ctx is None:
        raise RuntimeError("ClusterContext is not initialized; call autojoin.apps.bootstrap.init_ctx() first")
    return ctx


def clear_ctx() -> None:
    _CTX.set(None)


@contextmanager
def use_ctx(ctx: ClusterContext):
    token = _CTX.set(ctx)
    try:
        yield ctx
    finally:
        _CTX.reset(token)
