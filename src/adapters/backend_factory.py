"""Backend factory — wires the Firebase adapters from config."""

from __future__ import annotations

from dataclasses import dataclass

from src.config import settings
from src.ports.account_port import AccountPort
from src.ports.blob_store_port import BlobStorePort
from src.ports.document_store_port import DocumentStorePort


@dataclass
class Backend:
    """The three remote collaborators the core modules depend on."""

    accounts: AccountPort
    store: DocumentStorePort
    blobs: BlobStorePort | None = None


def create_backend() -> Backend:
    """Return Firebase-backed adapters for the configured project.

    The blob store is only wired when FIREBASE_STORAGE_BUCKET is set;
    without it image references are stored as given.
    """
    from src.adapters.firestore_store import FirestoreStore
    from src.adapters.identity_toolkit_account import IdentityToolkitAccount

    blobs: BlobStorePort | None = None
    if settings.FIREBASE_STORAGE_BUCKET:
        from src.adapters.firebase_storage import FirebaseStorage

        blobs = FirebaseStorage()

    return Backend(
        accounts=IdentityToolkitAccount(
            api_key=settings.FIREBASE_API_KEY,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        ),
        store=FirestoreStore(),
        blobs=blobs,
    )
