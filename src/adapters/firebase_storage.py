"""Firebase Storage adapter — implements BlobStorePort on Cloud Storage.

Uploads files byte-for-byte (no resizing or re-encoding) and returns a
Firebase download URL. The google-cloud-storage client is sync, so calls run
in asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from urllib.parse import quote

from google.api_core.exceptions import GoogleAPICallError

from src.ports.backend_error import BackendError

logger = logging.getLogger(__name__)

_DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"

_HTTP_STATUS_CODES: dict[int, str] = {
    401: "storage/unauthenticated",
    403: "storage/unauthorized",
    404: "storage/object-not-found",
    429: "storage/quota-exceeded",
}


def _to_backend_error(exc: GoogleAPICallError) -> BackendError:
    message = getattr(exc, "message", "") or str(exc)
    code = _HTTP_STATUS_CODES.get(getattr(exc, "code", None), "storage/unknown")
    if code == "storage/object-not-found" and "bucket" in message.lower():
        code = "storage/bucket-not-found"
    return BackendError(code, message)


def build_download_url(bucket_name: str, path: str, token: str) -> str:
    return _DOWNLOAD_URL.format(bucket=bucket_name, path=quote(path, safe=""), token=token)


class FirebaseStorage:
    """Cloud Storage implementation of BlobStorePort."""

    def __init__(self, bucket=None) -> None:
        self._bucket = bucket

    def _get_bucket(self):
        if self._bucket is None:
            from src.integrations.firebase_app import get_storage_bucket
            self._bucket = get_storage_bucket()
        return self._bucket

    async def upload(
        self, local_path: str, destination: str, content_type: str | None = None
    ) -> str:
        token = uuid.uuid4().hex

        def _upload() -> str:
            bucket = self._get_bucket()
            blob = bucket.blob(destination)
            # Firebase serves objects through this token instead of ACLs
            blob.metadata = {"firebaseStorageDownloadTokens": token}
            blob.upload_from_filename(local_path, content_type=content_type)
            return build_download_url(bucket.name, destination, token)

        try:
            url = await asyncio.to_thread(_upload)
        except FileNotFoundError as exc:
            logger.error("Image file not found: %s", local_path)
            raise BackendError("storage/object-not-found", str(exc)) from exc
        except GoogleAPICallError as exc:
            logger.error("Storage error (upload %s): %s", destination, exc)
            raise _to_backend_error(exc) from exc

        logger.info("Uploaded %s → %s", local_path, destination)
        return url
