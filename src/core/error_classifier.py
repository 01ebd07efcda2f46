"""
Campus Events — Error Classifier.

Turns opaque backend failures into one stable sentence a user can act on.
Classification is pure and never raises; logging is a separate step
composed in ``handle_error``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

# "Error (auth/invalid-credential)" → "auth/invalid-credential"
_BRACKETED_CODE = re.compile(r"\(([^)]+)\)")

GENERIC_MESSAGE = "Something went wrong. Please try again"
FALLBACK_MESSAGE = "An unexpected error occurred. Please try again"

_INTERNAL_MARKERS = ("Firebase", "Error (")

AUTH_MESSAGES: dict[str, str] = {
    "auth/invalid-email": "Invalid email address. Please check and try again",
    "auth/user-disabled": "This account has been disabled. Contact support for help",
    "auth/user-not-found": "No account found with this email address",
    "auth/wrong-password": "Invalid email or password. Please try again",
    "auth/invalid-credential": "Invalid email or password. Please try again",
    "auth/email-already-in-use": "An account with this email already exists",
    "auth/weak-password": "Password is too weak. Use at least 6 characters",
    "auth/operation-not-allowed": "This operation is not allowed",
    "auth/too-many-requests": "Too many failed attempts. Please try again later",
    "auth/requires-recent-login": "Please log out and log in again to continue",
    "auth/network-request-failed": "Network error. Check your internet connection",
    "auth/invalid-verification-code": "Invalid verification code. Please try again",
    "auth/invalid-verification-id": "Verification failed. Please start over",
    "auth/missing-verification-code": "Please enter the verification code",
    "auth/missing-verification-id": "Verification session expired. Please start over",
    "auth/account-exists-with-different-credential": "An account already exists with this email",
    "auth/credential-already-in-use": "This credential is already linked to another account",
    "auth/timeout": "Request timed out. Please try again",
    "auth/missing-email": "Email address is required",
    "auth/invalid-password": "Invalid password. Password must be at least 6 characters",
    "auth/popup-closed-by-user": "Sign-in was cancelled",
    "auth/cancelled-popup-request": "Sign-in was cancelled",
}

DOCUMENT_STORE_MESSAGES: dict[str, str] = {
    "permission-denied": "You do not have permission to perform this action",
    "not-found": "The requested resource was not found",
    "already-exists": "This resource already exists",
    "failed-precondition": "Operation cannot be completed at this time",
    "aborted": "Operation was cancelled. Please try again",
    "out-of-range": "Invalid input value",
    "unimplemented": "This feature is not yet available",
    "internal": "Internal error occurred. Please try again",
    "unavailable": "Service is temporarily unavailable",
    "data-loss": "Data error occurred. Please contact support",
    "unauthenticated": "You must be logged in to continue",
    "resource-exhausted": "Service quota exceeded. Please try again later",
    "cancelled": "Operation was cancelled",
    "invalid-argument": "Invalid input. Please check your data",
    "deadline-exceeded": "Request timed out. Please try again",
}

STORAGE_MESSAGES: dict[str, str] = {
    "storage/unauthorized": "You do not have permission to access this file",
    "storage/canceled": "File upload was cancelled",
    "storage/unknown": "An unknown error occurred during file upload",
    "storage/object-not-found": "File not found",
    "storage/bucket-not-found": "Storage bucket not found",
    "storage/project-not-found": "Project configuration error",
    "storage/quota-exceeded": "Storage quota exceeded",
    "storage/unauthenticated": "You must be logged in to upload files",
    "storage/retry-limit-exceeded": "Upload failed. Please try again",
    "storage/invalid-checksum": "File was corrupted during upload",
    "storage/server-file-wrong-size": "File upload failed. Please try again",
}

ERROR_MESSAGES: dict[str, str] = {
    **AUTH_MESSAGES,
    **DOCUMENT_STORE_MESSAGES,
    **STORAGE_MESSAGES,
}


def _field(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name)
    return getattr(error, name, None)


def _message_of(error: Any) -> str | None:
    """Exceptions carry their text in args; other objects may have .message."""
    message = _field(error, "message")
    if isinstance(message, str) and message:
        return message
    if isinstance(error, BaseException):
        text = str(error)
        return text or None
    return None


def extract_error_code(error: Any) -> str | None:
    """Return the structured code if present, else one parsed from the message."""
    if error is None or isinstance(error, str):
        return None

    code = _field(error, "code")
    if isinstance(code, str) and code:
        return code

    message = _message_of(error)
    if message:
        match = _BRACKETED_CODE.search(message)
        if match:
            return match.group(1)
    return None


def classify(error: Any) -> str:
    """Convert any backend error into a user-facing sentence. Never raises."""
    try:
        code = extract_error_code(error)
        if code:
            return ERROR_MESSAGES.get(code, GENERIC_MESSAGE)

        if isinstance(error, str):
            return error

        message = _message_of(error)
        if message and not any(marker in message for marker in _INTERNAL_MARKERS):
            return message
    except Exception:  # a broken __str__ must not break error reporting
        logger.debug("Could not inspect error %r", type(error))

    return FALLBACK_MESSAGE


def handle_error(error: Any, context: str = "") -> str:
    """Log the raw error with its context, then return the classified message."""
    logger.error("Error in %s: %r", context, error)
    return classify(error)
