from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from autojoin.core.errors import RegistryDecodeError
from autojoin.ports.registry import QueryArg, RegistryClient
from autojoin.services import node_name as nn
from autojoin.services.settings import Settings

ACCEPTED_WITH_WARNINGS = ("passing", "warning")


def maybe_add_acl(settings: Settings, qargs: Sequence[QueryArg] = ()) -> List[QueryArg]:
    out = list(qargs)
    if settings.consul_acl_token is not None:
        out.append(("token", settings.consul_acl_token))
    return out


@dataclass
class NodeEntry:
    """One element of the ``/v1/health/service/<name>`` response."""

    node: str
    service_address: str = ""
    service_port: Optional[int] = None
    checks: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def statuses(self) -> List[str]:
        return [str(c.get("Status", "")) for c in self.checks]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeEntry":
        try:
            service = data["Service"]
            checks = data.get("Checks") or []
            if not isinstance(checks, list) or not all(isinstance(c, dict) for c in checks):
                raise RegistryDecodeError(f"unexpected Checks shape: {checks!r}")
            return cls(
                node=str(data["Node"]["Node"]),
                service_address=str(service.get("Address") or ""),
                service_port=service.get("Port"),
                checks=list(checks),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise RegistryDecodeError(f"unexpected health entry shape: {e!r}") from e


class NodeListResolver:
    def __init__(self, settings: Settings, registry: RegistryClient) -> None:
        self.settings = settings
        self.registry = registry

    def query_args(self) -> List[QueryArg]:
        s = self.settings
        qargs: List[QueryArg] = []
        if not s.consul_include_nodes_with_warnings:
            qargs.append("passing")
        if s.cluster_name is not None:
            qargs.append(("tag", s.cluster_name))
        return maybe_add_acl(s, qargs)

    def filter_nodes(self, entries: Iterable[NodeEntry]) -> List[NodeEntry]:
        if not self.settings.consul_include_nodes_with_warnings:
            # сервер уже отфильтровал по ?passing
            return list(entries)
        return [e for e in entries if all(st in ACCEPTED_WITH_WARNINGS for st in e.statuses)]

    def node_id(self, entry: NodeEntry) -> str:
        s = self.settings
        if entry.service_address:
            return nn.node_name(entry.service_address, s.node_prefix, longname=s.consul_use_longname)
        ident = nn.node_name(entry.node, s.node_prefix, longname=s.consul_use_longname)
        if s.consul_use_longname:
            ident = nn.add_domain(ident, s.consul_domain)
        return ident

    def extract_nodes(self, entries: Iterable[NodeEntry]) -> List[str]:
        return sorted({self.node_id(e) for e in entries})

    async def discover(self) -> List[str]:
        data = await self.registry.get(["v1", "health", "service", self.settings.consul_svc], self.query_args())
        if not isinstance(data, list):
            raise RegistryDecodeError(f"expected a list of health entries, got {type(data).__name__}")
        entries = [NodeEntry.from_dict(item) for item in data]
        return self.extract_nodes(self.filter_nodes(entries))
