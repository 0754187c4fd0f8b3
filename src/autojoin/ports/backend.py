from __future__ import annotations
from typing import List, Protocol


class DiscoveryBackend(Protocol):
    name: str

    async def discover(self) -> List[str]: ...
    async def register(self) -> None: ...
    async def deregister(self) -> None: ...
