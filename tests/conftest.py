# tests/conftest.py
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pytest

from autojoin.services.settings import Settings


@dataclass
class Call:
    method: str
    path: str
    qargs: List[Any]
    body: Optional[bytes] = None


class FakeRegistry:
    """
    RegistryClient-двойник: записывает вызовы и отвечает заранее заданными ответами.
    Для пути можно задать очередь ответов; последний ответ повторяется.
    Исключение в очереди выбрасывается вместо ответа.
    """

    def __init__(self) -> None:
        self.calls: List[Call] = []
        self._routes: Dict[str, List[Any]] = {}
        self.closed = False

    def on(self, path: str, *responses: Any) -> "FakeRegistry":
        self._routes.setdefault(path, []).extend(responses)
        return self

    def calls_to(self, prefix: str) -> List[Call]:
        return [c for c in self.calls if c.path.startswith(prefix)]

    def _answer(self, method: str, path: Sequence[str], qargs: Sequence[Any], body: Optional[bytes]) -> Any:
        key = "/" + "/".join(str(p) for p in path)
        self.calls.append(Call(method, key, list(qargs), body))
        queue = self._routes.get(key)
        if not queue:
            return []
        resp = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(resp, BaseException):
            raise resp
        return resp

    async def get(self, path, qargs=()):
        return self._answer("GET", path, qargs, None)

    async def post(self, path, qargs=(), body=None):
        return self._answer("POST", path, qargs, body)

    def close(self) -> None:
        self.closed = True


def health_entry(node: str, address: str = "", statuses: Sequence[str] = ("passing",), port: int = 5672) -> Dict[str, Any]:
    return {
        "Node": {"Node": node, "Address": "192.168.0.1"},
        "Service": {"ID": "autojoin", "Service": "autojoin", "Address": address, "Port": port},
        "Checks": [{"CheckID": f"c{i}", "Status": st} for i, st in enumerate(statuses)],
    }


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def make_settings():
    def _make(**kw) -> Settings:
        kw.setdefault("node_name", "autojoin@node1")
        return Settings(**kw)

    return _make


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    # не даём реальному окружению/.env влиять на тесты
    import os

    for key in list(os.environ):
        if key.startswith("AUTOJOIN_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _log_propagation():
    # setup_logging выключает propagate; caplog слушает root
    logger = logging.getLogger("autojoin")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def event_loop():
    """Локальный event loop на тест (совместимо без pytest-asyncio)."""
    loop = asyncio.new_event_loop()
    try:
        yield loop
    finally:
        loop.close()
