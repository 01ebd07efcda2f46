"""Document store port — abstract interface for the remote document database.

Core modules depend on this protocol, never on a specific database SDK.
The store guarantees no ordering on queries; callers sort.
"""

from __future__ import annotations

from typing import Any, Protocol


class DocumentStorePort(Protocol):
    """Abstract document store used by the repository and session manager."""

    async def add(self, collection: str, data: dict) -> str: ...

    async def get(self, collection: str, doc_id: str) -> dict | None: ...

    async def set(self, collection: str, doc_id: str, data: dict) -> None: ...

    async def update(self, collection: str, doc_id: str, data: dict) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def query_equal(
        self, collection: str, field: str, value: Any
    ) -> list[tuple[str, dict]]: ...

    async def flip_flag(
        self, collection: str, doc_id: str, field: str, extra: dict | None = None
    ) -> bool: ...

    def server_timestamp(self) -> Any: ...
