"""
Registration document for ``/v1/agent/service/register``.

The payload is assembled step by step from settings; every step may add a
field, none removes one. Misconfiguration is reported with a warning and the
conflicting knob is ignored, registration itself still goes ahead.
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from autojoin.config import const
from autojoin.core.errors import PayloadSerializationError
from autojoin.services import node_name as nn
from autojoin.services.logging import get_logger
from autojoin.services.settings import Settings

_log = get_logger("consul")


@dataclass
class HealthCheckDefinition:
    notes: str
    ttl: str
    deregister_after: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"Notes": self.notes, "TTL": self.ttl}
        if self.deregister_after is not None:
            data["DeregisterCriticalServiceAfter"] = self.deregister_after
        return data


@dataclass
class RegistrationPayload:
    id: str
    name: str
    port: int
    address: Optional[str] = None
    check: Optional[HealthCheckDefinition] = None
    tags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"ID": self.id, "Name": self.name}
        if self.address is not None:
            data["Address"] = self.address
        data["Port"] = self.port
        if self.check is not None:
            data["Check"] = self.check.to_dict()
        if self.tags is not None:
            data["Tags"] = list(self.tags)
        return data

    def to_json(self) -> bytes:
        try:
            return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            _log.error("Error serializing the request body: %s", e)
            raise PayloadSerializationError(str(e)) from e


def service_ttl(seconds: int) -> str:
    return f"{seconds}s"


def service_id(service: str, address: Optional[str]) -> str:
    if address is None:
        return service
    return ":".join([service, address])


class RegistrationBuilder:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _nodename_mode(self) -> bool:
        s = self.settings
        if s.consul_svc_addr_nodename and not s.consul_svc_addr_auto:
            _log.warning(
                "consul_svc_addr_nodename can be used only if consul_svc_addr_auto is true; "
                "consul_svc_addr_nodename value will be ignored"
            )
            return False
        return s.consul_svc_addr_nodename

    def service_address(self) -> Optional[str]:
        """Resolve the address to advertise, or ``None`` when nothing is configured."""
        s = self.settings
        from_nodename = self._nodename_mode()
        if s.consul_svc_addr_nic is None:
            if s.consul_svc_addr_auto:
                return nn.node_hostname(from_nodename, s.node_name)
            return s.consul_svc_addr
        return nn.nic_ipv4(s.consul_svc_addr_nic)

    def service_id(self) -> str:
        return service_id(self.settings.consul_svc, self.service_address())

    def _maybe_add_check(self, payload: RegistrationPayload) -> None:
        s = self.settings
        if s.consul_svc_ttl is None:
            if s.consul_deregister_after is not None:
                _log.warning(
                    "Can't use consul_deregister_after without consul_svc_ttl; "
                    "the deregister setting will be ignored"
                )
            return
        check = HealthCheckDefinition(notes=const.CONSUL_CHECK_NOTES, ttl=service_ttl(s.consul_svc_ttl))
        if s.consul_deregister_after is not None:
            check.deregister_after = service_ttl(s.consul_deregister_after)
        payload.check = check

    def build(self) -> RegistrationPayload:
        s = self.settings
        address = self.service_address()
        payload = RegistrationPayload(
            id=service_id(s.consul_svc, address),
            name=s.consul_svc,
            port=s.consul_svc_port,
        )
        if address is not None:
            payload.address = address
        self._maybe_add_check(payload)
        if s.cluster_name is not None:
            payload.tags = [s.cluster_name]
        return payload


def build_registration_payload(settings: Settings) -> RegistrationPayload:
    return RegistrationBuilder(settings).build()
