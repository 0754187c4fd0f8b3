from __future__ import annotations
from typing import Any, Protocol, Sequence, Tuple, Union

# элемент query: "passing" (флаг без значения) или ("token", "...")
QueryArg = Union[str, Tuple[str, str]]


class RegistryClient(Protocol):
    async def get(self, path: Sequence[str], qargs: Sequence[QueryArg] = ()) -> Any: ...
    async def post(self, path: Sequence[str], qargs: Sequence[QueryArg] = (), body: bytes | None = None) -> Any: ...
    def close(self) -> None: ...
