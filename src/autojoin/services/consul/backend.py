from __future__ import annotations
from typing import List

from autojoin.ports.backend import DiscoveryBackend
from autojoin.ports.registry import RegistryClient
from autojoin.services.consul.nodelist import NodeListResolver, maybe_add_acl
from autojoin.services.consul.registration import RegistrationBuilder
from autojoin.services.logging import get_logger
from autojoin.services.settings import Settings

_log = get_logger("consul")


class ConsulBackend(DiscoveryBackend):
    """Peer discovery and self-registration through a Consul agent."""

    name = "consul"

    def __init__(self, settings: Settings, registry: RegistryClient) -> None:
        self.settings = settings
        self.registry = registry
        self.builder = RegistrationBuilder(settings)
        self.resolver = NodeListResolver(settings, registry)

    def service_id(self) -> str:
        return self.builder.service_id()

    async def discover(self) -> List[str]:
        return await self.resolver.discover()

    async def register(self) -> None:
        payload = self.builder.build()
        body = payload.to_json()
        await self.registry.post(["v1", "agent", "service", "register"], maybe_add_acl(self.settings), body)
        _log.info("service.registered", extra={"extra": {"service_id": payload.id, "address": payload.address, "port": payload.port}})

    async def deregister(self) -> None:
        sid = self.service_id()
        await self.registry.get(["v1", "agent", "service", "deregister", sid], maybe_add_acl(self.settings))
        _log.info("service.deregistered", extra={"extra": {"service_id": sid}})

    async def pass_health_check(self) -> None:
        check = ":".join(["service", self.service_id()])
        await self.registry.get(["v1", "agent", "check", "pass", check], maybe_add_acl(self.settings))
