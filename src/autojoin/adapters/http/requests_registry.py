from __future__ import annotations
import asyncio
import json
from typing import Any, Sequence
from urllib.parse import quote

import requests

from autojoin.core.errors import (
    RegistryDecodeError,
    RegistryFaultError,
    RegistryHTTPError,
    RegistryTransportError,
)
from autojoin.ports.registry import QueryArg, RegistryClient
from autojoin.services.logging import get_logger

_log = get_logger("http")


def build_path(path: Sequence[str]) -> str:
    return "/" + "/".join(quote(str(seg), safe=":@") for seg in path)


def build_query(qargs: Sequence[QueryArg]) -> str:
    parts = []
    for arg in qargs:
        if isinstance(arg, tuple):
            key, value = arg
            parts.append(f"{quote(str(key), safe='')}={quote(str(value), safe='')}")
        else:
            parts.append(quote(str(arg), safe=""))
    return "&".join(parts)


def build_url(scheme: str, host: str, port: int, path: Sequence[str], qargs: Sequence[QueryArg] = ()) -> str:
    url = f"{scheme}://{host}:{port}{build_path(path)}"
    query = build_query(qargs)
    return f"{url}?{query}" if query else url


def decode_body(resp: requests.Response, path: str) -> Any:
    text = resp.text
    if not text or not text.strip():
        return []
    try:
        return json.loads(text)
    except ValueError as e:
        raise RegistryDecodeError(f"invalid JSON in response: {e}", status=resp.status_code, path=path) from e


# Реализация через requests, но безопасно для event loop (to_thread)
class RequestsRegistryClient(RegistryClient):
    """Blocking ``requests`` transport to the registry's HTTP API, run off the event loop."""

    def __init__(self, scheme: str = "http", host: str = "localhost", port: int = 8500, timeout: float = 10.0, session: requests.Session | None = None) -> None:
        self.scheme = scheme
        self.host = host
        self.port = port
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "RequestsRegistryClient":
        return cls(
            scheme=settings.consul_scheme,
            host=settings.consul_host,
            port=settings.consul_port,
            timeout=settings.http_timeout,
        )

    def _request(self, method: str, path: Sequence[str], qargs: Sequence[QueryArg], body: bytes | None) -> Any:
        url = build_url(self.scheme, self.host, self.port, path, qargs)
        display = build_path(path)
        headers = {"Content-Type": "application/json"} if body is not None else None
        try:
            resp = self._session.request(method, url, data=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise RegistryTransportError(str(e) or e.__class__.__name__, path=display) from e

        _log.debug("registry.response", extra={"extra": {"method": method, "path": display, "status": resp.status_code}})
        if resp.status_code == 500:
            raise RegistryFaultError(resp.text.strip() or "internal server error", status=500, path=display)
        if not resp.ok:
            raise RegistryHTTPError(resp.text.strip() or resp.reason or "request failed", status=resp.status_code, path=display)
        return decode_body(resp, display)

    async def get(self, path: Sequence[str], qargs: Sequence[QueryArg] = ()) -> Any:
        return await asyncio.to_thread(self._request, "GET", path, qargs, None)

    async def post(self, path: Sequence[str], qargs: Sequence[QueryArg] = (), body: bytes | None = None) -> Any:
        return await asyncio.to_thread(self._request, "POST", path, qargs, body)

    def close(self) -> None:
        self._session.close()
