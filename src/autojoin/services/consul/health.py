"""
TTL liveness loop for the Consul backend.

The loop marks ``service:<service-id>`` as passing every ``ttl / 2`` seconds.
An internal error (HTTP 500) from the agent starts recovery: the node list is
polled until Consul answers, and the service is registered again if this
node is missing from it.
"""

from __future__ import annotations
import asyncio
from enum import Enum
from typing import List, Optional

from autojoin.config import const
from autojoin.core.errors import AutojoinError, RegistryError, RegistryFaultError
from autojoin.services.consul.backend import ConsulBackend
from autojoin.services.logging import get_logger

_log = get_logger("consul.health")


class LoopState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking_liveness"
    RECOVERING = "recovering"


class HealthCheckLoop:
    def __init__(
        self,
        backend: ConsulBackend,
        *,
        interval: float,
        attempts: int = const.RECOVERY_ATTEMPTS,
        retry_delay: float = const.RECOVERY_DELAY_SEC,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"health check interval must be positive, got {interval!r}")
        self.backend = backend
        self.interval = interval
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.state = LoopState.IDLE
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def for_ttl(cls, backend: ConsulBackend, ttl: int, **kw) -> "HealthCheckLoop":
        # половина TTL, чтобы Consul не успел пометить сервис critical даже при одном пропуске
        return cls(backend, interval=ttl / 2, **kw)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _wait_stop(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if ``stop()`` was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def wait_nodelist(self) -> Optional[List[str]]:
        last: Optional[RegistryError] = None
        for attempt in range(1, self.attempts + 1):
            try:
                return await self.backend.discover()
            except RegistryError as e:
                last = e
                _log.debug("recovery.nodelist.retry", extra={"extra": {"attempt": attempt, "error": str(e)}})
            if attempt < self.attempts and await self._wait_stop(self.retry_delay):
                return None
        if last is not None:
            _log.error(
                "Internal error in Consul while updating health check. "
                "Cannot obtain list of nodes registered in Consul either: %s",
                last,
            )
        return None

    async def maybe_re_register(self) -> None:
        members = await self.wait_nodelist()
        if members is None:
            return
        # TODO: решить, перерегистрировать ли узел, который есть в списке, но чей check остаётся failing
        if self.backend.settings.node_name in members:
            _log.error("Internal error in Consul while updating health check")
            return
        _log.error("Internal error in Consul while updating health check, node is not registered. Re-registering")
        try:
            await self.backend.register()
        except AutojoinError as e:
            _log.error("Re-registration in Consul failed: %s", e)

    async def send_health_check_pass(self) -> None:
        self.state = LoopState.CHECKING
        try:
            await self.backend.pass_health_check()
        except RegistryFaultError:
            self.state = LoopState.RECOVERING
            await self.maybe_re_register()
        except AutojoinError as e:
            _log.error("Error updating Consul health check: %s", e)
        finally:
            self.state = LoopState.IDLE

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval
        while not await self._wait_stop(max(0.0, next_at - loop.time())):
            try:
                await self.send_health_check_pass()
            except Exception:
                # тик не должен останавливать таймер
                _log.exception("Unexpected error in Consul health check tick")
            next_at += self.interval
            now = loop.time()
            if next_at <= now:
                skipped = int((now - next_at) // self.interval) + 1
                _log.debug("health.tick.skipped", extra={"extra": {"skipped": skipped}})
                next_at += skipped * self.interval

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task  # type: ignore[return-value]
        self._stop.clear()
        _log.debug("Starting Consul health check TTL timer", extra={"extra": {"interval": self.interval}})
        self._task = asyncio.create_task(self._run(), name="autojoin-consul-health")
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        task, self._task = self._task, None
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
