# src/autojoin/apps/bootstrap.py
from __future__ import annotations
from threading import RLock
from typing import Optional

from autojoin.services import cluster_context
from autojoin.services.backends import get_backend
from autojoin.services.cluster_context import ClusterContext, set_ctx
from autojoin.services.logging import setup_logging
from autojoin.services.settings import Settings


class _CtxHolder:
    _ctx: Optional[ClusterContext] = None
    _lock = RLock()

    @classmethod
    def get(cls) -> ClusterContext:
        with cls._lock:
            if cls._ctx is None:
                cls._ctx = cls._build(Settings.from_sources())
                set_ctx(cls._ctx)
            return cls._ctx

    @classmethod
    def init(cls, settings: Optional[Settings] = None) -> ClusterContext:
        with cls._lock:
            cls._ctx = cls._build(settings or Settings.from_sources())
            set_ctx(cls._ctx)
            return cls._ctx

    @classmethod
    def clear(cls) -> None:
        with cls._lock:
            cls._ctx = None
            cluster_context.clear_ctx()

    @staticmethod
    def _build(settings: Settings) -> ClusterContext:
        setup_logging(settings.log_level, settings.logs_dir, node=settings.node_name, cluster=settings.cluster_name)
        backend = get_backend(settings)
        return ClusterContext(settings=settings, backend=backend, registry=getattr(backend, "registry", None))


def init_ctx(settings: Optional[Settings] = None) -> ClusterContext:
    return _CtxHolder.init(settings)


def get_ctx() -> ClusterContext:
    return _CtxHolder.get()


def clear_ctx() -> None:
    _CtxHolder.clear()
