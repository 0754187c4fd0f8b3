from .errors import (
    AutojoinError,
    RegistryError,
    RegistryTransportError,
    RegistryFaultError,
    RegistryHTTPError,
    RegistryDecodeError,
    PayloadSerializationError,
    AddressResolutionError,
)

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
