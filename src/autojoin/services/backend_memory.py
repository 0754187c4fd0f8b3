from __future__ import annotations
from threading import RLock
from typing import List, Set

from autojoin.ports.backend import DiscoveryBackend
from autojoin.services.settings import Settings


class MemoryBackend(DiscoveryBackend):
    """Process-local membership; useful for development and single-host tests."""

    name = "memory"

    def __init__(self, settings: Settings, members: Set[str] | None = None) -> None:
        self.settings = settings
        self._members: Set[str] = members if members is not None else set()
        self._lock = RLock()

    async def discover(self) -> List[str]:
        with self._lock:
            return sorted(self._members)

    async def register(self) -> None:
        with self._lock:
            self._members.add(self.settings.node_name)

    async def deregister(self) -> None:
        with self._lock:
            self._members.discard(self.settings.node_name)


# singleton: узлы одного процесса видят друг друга
_MEMBERS: Set[str] = set()


def shared_members() -> Set[str]:
    return _MEMBERS
