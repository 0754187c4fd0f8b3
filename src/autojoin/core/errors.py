"""Common error hierarchy for registry calls and registration."""

from __future__ import annotations

from typing import Optional


class AutojoinError(RuntimeError):
    """Base class for all autojoin runtime errors."""


class RegistryError(AutojoinError):
    """Raised when a call to the service registry did not succeed."""

    def __init__(self, reason: str, *, status: Optional[int] = None, path: Optional[str] = None) -> None:
        self.reason = reason
        self.status = status
        self.path = path
        message = reason
        if status is not None:
            message = f"{status}: {message}"
        if path:
            message = f"{message} ({path})"
        super().__init__(message)


class RegistryTransportError(RegistryError):
    """Connection refused, DNS failure, timeout: the request never got an answer."""


class RegistryFaultError(RegistryError):
    """The registry answered with an internal server error (HTTP 500)."""


class RegistryHTTPError(RegistryError):
    """The registry answered with a non-success status other than 500."""


class RegistryDecodeError(RegistryError):
    """The response body could not be decoded or has an unexpected shape."""


class PayloadSerializationError(AutojoinError):
    """Raised when the registration payload cannot be encoded as JSON."""


class AddressResolutionError(AutojoinError):
    """Raised when the service address cannot be read from a network interface."""

    def __init__(self, nic: str, detail: Optional[str] = None) -> None:
        self.nic = nic
        self.detail = detail
        message = f"Cannot resolve IPv4 address of interface '{nic}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


__all__ = [
    "AutojoinError",
    "RegistryError",
    "RegistryTransportError",
    "RegistryFaultError",
    "RegistryHTTPError",
    "RegistryDecodeError",
    "PayloadSerializationError",
    "AddressResolutionError",
]
