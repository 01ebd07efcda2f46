"""
Campus Events — Event Repository.

CRUD and flag toggles for events in the remote document store. Every remote
failure is logged with its operation name and re-raised as an
EventServiceError carrying one classified, user-facing message.
Single attempt throughout: nothing is retried.
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from src.core.error_classifier import handle_error
from src.core.validation import EventDraft, EventValidationError, require_text, validate_event
from src.data.models import EVENT_FIELD_NAMES, Event, EventType
from src.ports.backend_error import BackendError

if TYPE_CHECKING:
    from src.ports.blob_store_port import BlobStorePort
    from src.ports.document_store_port import DocumentStorePort

logger = logging.getLogger(__name__)

_REMOTE_URI_PREFIXES = ("http://", "https://", "gs://")

# Fields that must stay non-empty when they appear in an update
_REQUIRED_TEXT_FIELDS = {
    "title": "Title",
    "date": "Date",
    "start_time": "Start time",
    "end_time": "End time",
    "location": "Location",
}


class EventServiceError(Exception):
    """Raised when a remote event operation fails. ``str(exc)`` is user-facing."""


class EventRepository:
    """Events for one backend, keyed by backend-assigned document id."""

    def __init__(
        self,
        store: DocumentStorePort,
        blobs: BlobStorePort | None = None,
        collection: str | None = None,
    ) -> None:
        if collection is None:
            from src.config import settings
            collection = settings.EVENTS_COLLECTION

        self._store = store
        self._blobs = blobs
        self._collection = collection

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    async def create(self, owner_id: str, fields: EventDraft | dict) -> str:
        """Persist a new event for ``owner_id`` and return its id.

        New events always start not favorite and not completed; the creation
        timestamp is assigned by the server.
        """
        draft = validate_event(fields)

        try:
            image_url = await self._store_image(owner_id, draft.image_uri)
            doc = {
                "userId": owner_id,
                "type": draft.type.value,
                "title": draft.title,
                "date": draft.date,
                "startTime": draft.start_time,
                "endTime": draft.end_time,
                "location": draft.location,
                "description": draft.description,
                "imageUrl": image_url,
                "isFavorite": False,
                "isCompleted": False,
                "createdAt": self._store.server_timestamp(),
            }
            event_id = await self._store.add(self._collection, doc)
        except Exception as exc:
            raise EventServiceError(handle_error(exc, "Create Event")) from exc

        logger.info("Event created: #%s '%s' on %s", event_id, draft.title, draft.date)
        return event_id

    async def get(self, event_id: str) -> Event | None:
        """Fetch one event; None when no record exists."""
        if not event_id:
            return None
        try:
            data = await self._store.get(self._collection, event_id)
        except Exception as exc:
            raise EventServiceError(handle_error(exc, "Get Event")) from exc

        if data is None:
            return None
        return Event.from_document(event_id, data)

    async def list_for_user(self, owner_id: str) -> list[Event]:
        """All events owned by ``owner_id``, newest first.

        The store gives no ordering guarantee, so sorting happens here.
        """
        try:
            rows = await self._store.query_equal(self._collection, "userId", owner_id)
        except Exception as exc:
            raise EventServiceError(handle_error(exc, "Get User Events")) from exc

        events = [Event.from_document(doc_id, data) for doc_id, data in rows]
        events.sort(key=lambda ev: ev.created_at, reverse=True)
        logger.debug("Loaded %d event(s) for user %s", len(events), owner_id)
        return events

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def update(self, event_id: str, partial_fields: dict[str, Any]) -> None:
        """Apply a partial update and stamp ``updatedAt``.

        No version check: the last writer wins.
        """
        await self._update(event_id, partial_fields, "Update Event")

    async def _update(self, event_id: str, partial_fields: dict[str, Any], context: str) -> None:
        doc = self._build_update(partial_fields)

        try:
            if "imageUrl" in doc and self._needs_upload(doc["imageUrl"]):
                owner_id = await self._owner_of(event_id)
                doc["imageUrl"] = await self._store_image(owner_id, doc["imageUrl"])
            doc["updatedAt"] = self._store.server_timestamp()
            await self._store.update(self._collection, event_id, doc)
        except Exception as exc:
            raise EventServiceError(handle_error(exc, context)) from exc

        logger.info("Event #%s updated: %s", event_id, ", ".join(sorted(doc)))

    async def delete(self, event_id: str) -> None:
        """Hard delete. The event's uploaded image, if any, is left in storage."""
        try:
            await self._store.delete(self._collection, event_id)
        except Exception as exc:
            raise EventServiceError(handle_error(exc, "Delete Event")) from exc
        logger.info("Event #%s deleted", event_id)

    # ------------------------------------------------------------------
    # Flag toggles
    # ------------------------------------------------------------------

    async def toggle_favorite(self, event_id: str, current_value: bool) -> None:
        """Store ``not current_value``.

        The caller's value is trusted: a concurrent change from another
        session is silently overwritten.
        """
        await self._update(event_id, {"is_favorite": not current_value}, "Toggle Favorite")

    async def toggle_completed(self, event_id: str, current_value: bool) -> None:
        """Store ``not current_value`` (same caveat as toggle_favorite)."""
        await self._update(event_id, {"is_completed": not current_value}, "Toggle Completed")

    async def flip_favorite(self, event_id: str) -> bool:
        """Negate the stored favorite flag inside a transaction; return the new value."""
        return await self._flip(event_id, "isFavorite", "Flip Favorite")

    async def flip_completed(self, event_id: str) -> bool:
        """Negate the stored completed flag inside a transaction; return the new value."""
        return await self._flip(event_id, "isCompleted", "Flip Completed")

    async def _flip(self, event_id: str, field: str, context: str) -> bool:
        try:
            value = await self._store.flip_flag(
                self._collection, event_id, field,
                extra={"updatedAt": self._store.server_timestamp()},
            )
        except Exception as exc:
            raise EventServiceError(handle_error(exc, context)) from exc
        logger.info("Event #%s %s → %s", event_id, field, value)
        return value

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_update(partial_fields: dict[str, Any]) -> dict[str, Any]:
        """Validate a partial update and map it to stored field names."""
        errors: dict[str, str] = {}
        doc: dict[str, Any] = {}

        for name, value in partial_fields.items():
            stored = EVENT_FIELD_NAMES.get(name)
            if stored is None:
                errors[name] = f"{name} cannot be updated"
                continue
            try:
                if name in _REQUIRED_TEXT_FIELDS:
                    value = require_text(value, _REQUIRED_TEXT_FIELDS[name])
                elif name == "type":
                    value = EventType(value).value
                elif name == "description":
                    value = (value or "").strip()
                elif name == "image_uri":
                    value = (value or "").strip() or None
                elif name in ("is_favorite", "is_completed"):
                    value = bool(value)
            except ValueError as exc:
                errors[name] = str(exc) if name != "type" else "Invalid event type"
                continue
            doc[stored] = value

        if errors:
            raise EventValidationError(errors)
        return doc

    def _needs_upload(self, image_uri: str | None) -> bool:
        return (
            bool(image_uri)
            and self._blobs is not None
            and not image_uri.startswith(_REMOTE_URI_PREFIXES)
        )

    async def _owner_of(self, event_id: str) -> str:
        """Owner id of a stored event; images are filed under it."""
        data = await self._store.get(self._collection, event_id)
        if data is None:
            raise BackendError("not-found", f"Error (not-found): {self._collection}/{event_id}")
        return data.get("userId") or event_id

    async def _store_image(self, owner_id: str, image_uri: str | None) -> str | None:
        """Upload a local image file unchanged to the owner's folder; pass remote URIs through."""
        if not self._needs_upload(image_uri):
            return image_uri

        local_path = image_uri.removeprefix("file://")
        suffix = Path(local_path).suffix or ".jpg"
        content_type, _ = mimetypes.guess_type(local_path)
        destination = f"{self._collection}/{owner_id}/{uuid.uuid4().hex}{suffix}"
        url = await self._blobs.upload(local_path, destination, content_type)
        logger.info("Event image uploaded to %s", destination)
        return url
