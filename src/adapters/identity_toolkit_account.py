"""Identity Toolkit adapter — implements AccountPort for Firebase Authentication.

Talks to the Firebase Auth REST API (accounts:signUp, accounts:signInWithPassword,
accounts:update, accounts:sendOobCode) with httpx. REST error strings such as
``EMAIL_EXISTS`` are mapped to the ``auth/...`` identifiers the error
classifier knows.

The signed-in session lives in memory only. Auth-state listeners are called
in order after every sign-in, sign-up and sign-out.
"""

from __future__ import annotations

import logging

import httpx

from src.data.models import AccountSession
from src.ports.account_port import AuthStateListener
from src.ports.backend_error import BackendError

logger = logging.getLogger(__name__)

_BASE_URL = "https://identitytoolkit.googleapis.com/v1/accounts:{op}"

REST_ERROR_CODES: dict[str, str] = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "USER_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": "auth/user-disabled",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_EMAIL": "auth/missing-email",
    "WEAK_PASSWORD": "auth/weak-password",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "auth/requires-recent-login",
    "TOKEN_EXPIRED": "auth/requires-recent-login",
    "INVALID_ID_TOKEN": "auth/invalid-user-token",
}


def map_rest_error(message: str) -> str:
    """``"WEAK_PASSWORD : Password should be..."`` → ``"auth/weak-password"``."""
    key = message.split(":", 1)[0].strip()
    return REST_ERROR_CODES.get(key, "auth/" + "-".join(key.lower().replace("_", " ").split()))


class _ListenerSubscription:
    def __init__(self, listeners: list[AuthStateListener], listener: AuthStateListener) -> None:
        self._listeners = listeners
        self._listener = listener

    def cancel(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class IdentityToolkitAccount:
    """Firebase Authentication (REST) implementation of AccountPort."""

    def __init__(self, api_key: str | None = None, timeout: float | None = None) -> None:
        if api_key is None or timeout is None:
            from src.config import settings
            api_key = api_key if api_key is not None else settings.FIREBASE_API_KEY
            timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS

        self._api_key = api_key
        self._timeout = timeout
        self._session: AccountSession | None = None
        self._listeners: list[AuthStateListener] = []

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, op: str, payload: dict) -> dict:
        """POST to accounts:<op>; raise BackendError with an auth/... code on failure."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    _BASE_URL.format(op=op),
                    params={"key": self._api_key},
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            logger.error("Identity Toolkit timeout (%s): %s", op, exc)
            raise BackendError("auth/timeout", str(exc)) from exc
        except httpx.TransportError as exc:
            logger.error("Identity Toolkit network error (%s): %s", op, exc)
            raise BackendError("auth/network-request-failed", str(exc)) from exc

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            message = (data.get("error") or {}).get("message", f"HTTP {resp.status_code}")
            code = map_rest_error(message)
            logger.warning("Identity Toolkit %s failed: %s", op, message)
            raise BackendError(code, f"Firebase: Error ({code}).")
        return data

    def _require_session(self) -> AccountSession:
        if self._session is None:
            raise BackendError(None, "No user logged in")
        return self._session

    def _apply_tokens(self, session: AccountSession, data: dict) -> None:
        session.id_token = data.get("idToken", session.id_token)
        session.refresh_token = data.get("refreshToken", session.refresh_token)

    # ------------------------------------------------------------------
    # Auth state
    # ------------------------------------------------------------------

    def current_session(self) -> AccountSession | None:
        return self._session

    def subscribe(self, listener: AuthStateListener) -> _ListenerSubscription:
        self._listeners.append(listener)
        return _ListenerSubscription(self._listeners, listener)

    async def _set_session(self, session: AccountSession | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                await listener(session)
            except Exception:
                logger.exception("Auth-state listener failed")

    # ------------------------------------------------------------------
    # AccountPort
    # ------------------------------------------------------------------

    async def create_account(self, email: str, password: str) -> AccountSession:
        data = await self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        session = AccountSession(
            uid=data["localId"],
            email=data.get("email", email),
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )
        logger.info("Account created: %s", session.uid)
        await self._set_session(session)
        return session

    async def sign_in(self, email: str, password: str) -> AccountSession:
        data = await self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        session = AccountSession(
            uid=data["localId"],
            email=data.get("email", email),
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
            display_name=data.get("displayName", ""),
            photo_url=data.get("profilePicture") or None,
        )
        await self._set_session(session)
        return session

    async def sign_out(self) -> None:
        await self._set_session(None)

    async def update_display_name(self, display_name: str) -> None:
        session = self._require_session()
        data = await self._post(
            "update",
            {"idToken": session.id_token, "displayName": display_name, "returnSecureToken": True},
        )
        self._apply_tokens(session, data)
        session.display_name = display_name

    async def send_email_verification(self) -> None:
        session = self._require_session()
        await self._post("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": session.id_token})
        logger.info("Verification email sent to %s", session.email)

    async def send_password_reset(self, email: str) -> None:
        await self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def reauthenticate(self, password: str) -> AccountSession:
        """Confirm the current user's password and refresh their tokens."""
        session = self._require_session()
        data = await self._post(
            "signInWithPassword",
            {"email": session.email, "password": password, "returnSecureToken": True},
        )
        if data.get("localId") != session.uid:
            raise BackendError("auth/user-mismatch", "Firebase: Error (auth/user-mismatch).")
        self._apply_tokens(session, data)
        return session

    async def update_password(self, new_password: str) -> None:
        session = self._require_session()
        data = await self._post(
            "update",
            {"idToken": session.id_token, "password": new_password, "returnSecureToken": True},
        )
        self._apply_tokens(session, data)
