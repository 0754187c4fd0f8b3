"""Consul backend: registration payload, node list, TTL health loop."""

from .registration import HealthCheckDefinition, RegistrationBuilder, RegistrationPayload, build_registration_payload
from .nodelist import NodeEntry, NodeListResolver
from .backend import ConsulBackend
from .health import HealthCheckLoop, LoopState

__all__ = [
    "HealthCheckDefinition",
    "RegistrationBuilder",
    "RegistrationPayload",
    "build_registration_payload",
    "NodeEntry",
    "NodeListResolver",
    "ConsulBackend",
    "HealthCheckLoop",
    "LoopState",
]
