"""Blob store port — abstract interface for remote file storage."""

from __future__ import annotations

from typing import Protocol


class BlobStorePort(Protocol):
    """Uploads bytes unchanged and returns a URL that can be stored on a record."""

    async def upload(
        self, local_path: str, destination: str, content_type: str | None = None
    ) -> str: ...
