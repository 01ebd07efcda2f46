"""
Campus Events — Firebase Admin initialization.

Initializes the Firebase Admin SDK once per process from the service-account
key and hands out the Firestore client and Storage bucket built on it.
"""

from __future__ import annotations

import logging
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, firestore, storage

logger = logging.getLogger(__name__)


def get_firebase_app() -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use.

    Raises:
        FileNotFoundError: the service-account key file is missing.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass  # not initialized yet

    from src.config import settings

    key_path = Path(settings.FIREBASE_CREDENTIALS_PATH)
    if not key_path.exists():
        raise FileNotFoundError(
            f"Firebase service-account key not found at {key_path}. "
            "Download it from the Firebase console (Project settings → Service accounts)."
        )

    options: dict[str, str] = {}
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET

    app = firebase_admin.initialize_app(credentials.Certificate(str(key_path)), options)
    logger.info("Firebase Admin SDK initialized for project %s", app.project_id)
    return app


def get_firestore_client():
    """Return a Firestore client bound to the default app."""
    return firestore.client(get_firebase_app())


def get_storage_bucket():
    """Return the configured Cloud Storage bucket."""
    return storage.bucket(app=get_firebase_app())
