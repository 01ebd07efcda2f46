"""Backend error — the one exception every remote adapter raises.

Adapters translate SDK/HTTP failures into a BackendError carrying a stable
identifier (``auth/...``, ``storage/...`` or a bare document-store status such
as ``permission-denied``). Core modules classify it; they never inspect SDK
exception types.
"""

from __future__ import annotations


class BackendError(Exception):
    """Raised when an account, document-store or blob-store call fails."""

    def __init__(self, code: str | None, message: str = "") -> None:
        self.code = code
        self.message = message or (f"Error ({code})" if code else "Backend error")
        super().__init__(self.message)
