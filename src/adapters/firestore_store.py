"""Firestore adapter — implements DocumentStorePort on Cloud Firestore.

Uses the Firebase Admin Firestore client (sync) wrapped with
asyncio.to_thread for async compatibility. Google API errors are turned into
BackendError with Firestore's status names (``permission-denied``,
``not-found``, ...).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore import SERVER_TIMESTAMP, FieldFilter, transactional

from src.ports.backend_error import BackendError

logger = logging.getLogger(__name__)

# Used when an error carries only an HTTP status
_HTTP_STATUS_CODES: dict[int, str] = {
    400: "invalid-argument",
    401: "unauthenticated",
    403: "permission-denied",
    404: "not-found",
    409: "already-exists",
    412: "failed-precondition",
    429: "resource-exhausted",
    499: "cancelled",
    500: "internal",
    501: "unimplemented",
    503: "unavailable",
    504: "deadline-exceeded",
}


def _to_backend_error(exc: GoogleAPICallError) -> BackendError:
    """Map a google-api-core error to a Firestore-style status identifier."""
    status = getattr(exc, "grpc_status_code", None)
    if status is not None:
        code = status.name.lower().replace("_", "-")
    else:
        code = _HTTP_STATUS_CODES.get(getattr(exc, "code", None), "unknown")
    return BackendError(code, getattr(exc, "message", "") or str(exc))


class FirestoreStore:
    """Cloud Firestore implementation of DocumentStorePort."""

    def __init__(self, client=None) -> None:
        self._client = client

    def _db(self):
        if self._client is None:
            from src.integrations.firebase_app import get_firestore_client
            self._client = get_firestore_client()
        return self._client

    async def _call(self, op: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except BackendError:
            raise
        except GoogleAPICallError as exc:
            logger.error("Firestore error (%s): %s", op, exc)
            raise _to_backend_error(exc) from exc

    # ------------------------------------------------------------------
    # DocumentStorePort
    # ------------------------------------------------------------------

    async def add(self, collection: str, data: dict) -> str:
        def _add() -> str:
            _, ref = self._db().collection(collection).add(data)
            return ref.id

        doc_id = await self._call("add", _add)
        logger.debug("Firestore add %s/%s", collection, doc_id)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> dict | None:
        def _get() -> dict | None:
            snap = self._db().collection(collection).document(doc_id).get()
            return snap.to_dict() if snap.exists else None

        return await self._call("get", _get)

    async def set(self, collection: str, doc_id: str, data: dict) -> None:
        def _set() -> None:
            self._db().collection(collection).document(doc_id).set(data)

        await self._call("set", _set)

    async def update(self, collection: str, doc_id: str, data: dict) -> None:
        def _update() -> None:
            self._db().collection(collection).document(doc_id).update(data)

        await self._call("update", _update)

    async def delete(self, collection: str, doc_id: str) -> None:
        def _delete() -> None:
            self._db().collection(collection).document(doc_id).delete()

        await self._call("delete", _delete)

    async def query_equal(
        self, collection: str, field: str, value: Any
    ) -> list[tuple[str, dict]]:
        def _query() -> list[tuple[str, dict]]:
            query = self._db().collection(collection).where(
                filter=FieldFilter(field, "==", value)
            )
            return [(snap.id, snap.to_dict() or {}) for snap in query.stream()]

        rows = await self._call("query", _query)
        logger.debug("Firestore query %s where %s == %r: %d row(s)", collection, field, value, len(rows))
        return rows

    async def flip_flag(
        self, collection: str, doc_id: str, field: str, extra: dict | None = None
    ) -> bool:
        """Negate a boolean field inside a transaction and return the new value."""

        def _flip() -> bool:
            client = self._db()
            ref = client.collection(collection).document(doc_id)

            @transactional
            def _run(transaction) -> bool:
                snap = ref.get(transaction=transaction)
                if not snap.exists:
                    raise BackendError("not-found", f"Error (not-found): {collection}/{doc_id}")
                value = not bool((snap.to_dict() or {}).get(field, False))
                transaction.update(ref, {field: value, **(extra or {})})
                return value

            return _run(client.transaction())

        return await self._call("flip_flag", _flip)

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP
