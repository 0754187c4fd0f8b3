# src/autojoin/services/bootstrap.py
from __future__ import annotations
import asyncio
from typing import Optional

from autojoin.services.cluster_context import ClusterContext, get_ctx
from autojoin.services.consul.backend import ConsulBackend
from autojoin.services.consul.health import HealthCheckLoop
from autojoin.services.logging import get_logger

_log = get_logger("bootstrap")


class BootstrapService:
    def __init__(self, ctx: ClusterContext) -> None:
        self.ctx = ctx
        self.health: Optional[HealthCheckLoop] = None
        self._ready = asyncio.Event()
        self._booted = False

    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def booted(self) -> bool:
        return self._booted

    def _health_loop(self) -> Optional[HealthCheckLoop]:
        settings = self.ctx.settings
        if settings.backend != "consul" or not isinstance(self.ctx.backend, ConsulBackend):
            return None
        if settings.consul_svc_ttl is None:
            # без TTL Consul не ждёт пингов, таймер не нужен
            return None
        return HealthCheckLoop.for_ttl(self.ctx.backend, settings.consul_svc_ttl)

    async def run_boot_sequence(self) -> None:
        if self._booted:
            return
        self.health = self._health_loop()
        if self.health is not None:
            self.health.start()
        self._booted = True
        self._ready.set()
        _log.info("boot.ready", extra={"extra": {"backend": self.ctx.settings.backend, "health_loop": self.health is not None}})

    async def shutdown(self) -> None:
        if self.health is not None:
            await self.health.stop()
            self.health = None
        self._booted = False
        self._ready.clear()


# --- модульные фасады (синглтон) ---
_SERVICE: BootstrapService | None = None


def _svc() -> BootstrapService:
    global _SERVICE
    ctx = get_ctx()
    # новый контекст (init_ctx) подхватываем, пока сервис не загружен;
    # загруженный сервис держит свой контекст до shutdown()
    if _SERVICE is None or (_SERVICE.ctx is not ctx and not _SERVICE.booted):
        _SERVICE = BootstrapService(ctx)
    return _SERVICE


def is_ready() -> bool:
    return _svc().is_ready()


async def run_boot_sequence() -> None:
    await _svc().run_boot_sequence()


async def shutdown() -> None:
    global _SERVICE
    if _SERVICE is not None:
        await _SERVICE.shutdown()
        _SERVICE = None
