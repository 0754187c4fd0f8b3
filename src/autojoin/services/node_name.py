"""Cluster node identifiers (``prefix@host``) and local address lookup."""

from __future__ import annotations
import ipaddress
import socket

import psutil

from autojoin.core.errors import AddressResolutionError


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def node_name(host: str, prefix: str, *, longname: bool = False) -> str:
    """Format a peer identifier; short-name mode keeps only the first DNS label of a hostname."""
    host = host.strip()
    if not longname and not is_ip_address(host):
        host = host.split(".", 1)[0]
    return f"{prefix}@{host}"


def add_domain(host: str, domain: str) -> str:
    return ".".join([host, "node", domain])


def node_hostname(from_nodename: bool, local_node: str) -> str:
    if from_nodename:
        _, _, host = local_node.partition("@")
        if host:
            return host
    return socket.gethostname()


def nic_ipv4(nic: str) -> str:
    """First IPv4 address bound to ``nic``."""
    try:
        addrs = psutil.net_if_addrs()
    except (OSError, RuntimeError) as e:
        raise AddressResolutionError(nic, str(e)) from e
    if nic not in addrs:
        raise AddressResolutionError(nic, "no such interface")
    for addr in addrs[nic]:
        if addr.family == socket.AF_INET and addr.address:
            return addr.address
    raise AddressResolutionError(nic, "no IPv4 address bound")
