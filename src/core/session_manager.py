"""
Campus Events — Session / Profile Manager.

Thin layer over the account service and the ``users`` collection. Each
operation is one remote call (sign-up is four, in sequence) plus one layer
of error translation. The only local state is the cached session and
profile, kept current by an auth-state subscription.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from src.core.error_classifier import extract_error_code, handle_error
from src.core.validation import (
    ChangePasswordForm,
    FormValidationError,
    LoginForm,
    ProfileForm,
    ResetPasswordForm,
    SignUpForm,
    validate_form,
)
from src.data.models import PROFILE_FIELD_NAMES, AccountSession, UserProfile

if TYPE_CHECKING:
    from src.ports.account_port import AccountPort, Subscription
    from src.ports.document_store_port import DocumentStorePort

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Raised when an account operation fails. ``str(exc)`` is user-facing.

    ``code`` keeps the backend identifier (if any) so a form can point at the
    field that caused it, e.g. ``auth/wrong-password`` → current password.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)


def _session_error(exc: Exception, context: str) -> SessionError:
    return SessionError(handle_error(exc, context), code=extract_error_code(exc))


class SessionManager:
    """Current user, sign-in/out and profile edits for one app instance."""

    def __init__(
        self,
        accounts: AccountPort,
        store: DocumentStorePort,
        users_collection: str | None = None,
    ) -> None:
        if users_collection is None:
            from src.config import settings
            users_collection = settings.USERS_COLLECTION

        self._accounts = accounts
        self._store = store
        self._users_collection = users_collection
        self._subscription: Subscription | None = None

        self.session: AccountSession | None = None
        self.current_user: UserProfile | None = None
        self.loading = True

    # ------------------------------------------------------------------
    # Auth-state subscription
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to auth-state changes and load the current state.

        Call ``close()`` to stop receiving changes.
        """
        if self._subscription is None:
            self._subscription = self._accounts.subscribe(self._on_auth_state)
            await self._on_auth_state(self._accounts.current_session())

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    async def _on_auth_state(self, session: AccountSession | None) -> None:
        self.session = session
        if session is None:
            self.current_user = None
        else:
            try:
                data = await self._store.get(self._users_collection, session.uid)
            except Exception as exc:
                handle_error(exc, "Load Profile")
                data = None
            if data is not None:
                self.current_user = UserProfile.from_document(data)
        self.loading = False

    # ------------------------------------------------------------------
    # Account lifecycle
    # ------------------------------------------------------------------

    async def sign_up(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        confirm_password: str | None = None,
    ) -> UserProfile:
        """Create the account, name it, send verification, write the profile.

        Four remote calls in sequence with no rollback: a failure part way
        leaves whatever the earlier steps created.
        """
        form = validate_form(
            SignUpForm,
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password,
            confirm_password=password if confirm_password is None else confirm_password,
        )

        try:
            session = await self._accounts.create_account(form.email, form.password)
            await self._accounts.update_display_name(f"{form.first_name} {form.last_name}")
            await self._accounts.send_email_verification()

            profile = UserProfile(
                uid=session.uid,
                email=form.email,
                first_name=form.first_name,
                last_name=form.last_name,
                photo_url=session.photo_url,
                created_at=datetime.now(timezone.utc).isoformat(),
                email_verified=False,
            )
            await self._store.set(self._users_collection, session.uid, profile.to_document())
        except Exception as exc:
            raise _session_error(exc, "Sign Up") from exc

        self.session = session
        self.current_user = profile
        logger.info("Account created for %s", profile.email)
        return profile

    async def sign_in(self, email: str, password: str) -> AccountSession:
        form = validate_form(LoginForm, email=email, password=password)
        try:
            session = await self._accounts.sign_in(form.email, form.password)
        except Exception as exc:
            raise _session_error(exc, "Sign In") from exc
        logger.info("Signed in as %s", session.email)
        return session

    async def sign_out(self) -> None:
        try:
            await self._accounts.sign_out()
        except Exception as exc:
            raise _session_error(exc, "Sign Out") from exc
        self.session = None
        self.current_user = None

    async def reset_password(self, email: str) -> None:
        form = validate_form(ResetPasswordForm, email=email)
        try:
            await self._accounts.send_password_reset(form.email)
        except Exception as exc:
            raise _session_error(exc, "Reset Password") from exc
        logger.info("Password reset email requested for %s", form.email)

    async def change_password(
        self,
        current_password: str,
        new_password: str,
        confirm_password: str | None = None,
    ) -> None:
        """Re-authenticate with the current password, then set the new one."""
        form = validate_form(
            ChangePasswordForm,
            current_password=current_password,
            new_password=new_password,
            confirm_password=new_password if confirm_password is None else confirm_password,
        )
        if self._accounts.current_session() is None:
            raise SessionError("User not authenticated")

        try:
            await self._accounts.reauthenticate(form.current_password)
            await self._accounts.update_password(form.new_password)
        except Exception as exc:
            raise _session_error(exc, "Change Password") from exc
        logger.info("Password changed")

    async def sign_in_with_google(self) -> None:
        raise SessionError("Google Sign-In will be implemented")

    async def verify_email(self, otp: str) -> None:
        raise SessionError("Email verification handled by Firebase email link")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def update_profile(self, **fields) -> UserProfile | None:
        """Merge ``fields`` into the stored and cached profile.

        Accepts first_name, last_name, photo_url and email_verified.
        """
        unknown = {name for name in fields if name not in PROFILE_FIELD_NAMES}
        if unknown:
            raise FormValidationError(
                {name: f"{name} cannot be changed" for name in sorted(unknown)}
            )
        names = {name: fields[name] for name in ("first_name", "last_name") if name in fields}
        if names:
            form = validate_form(ProfileForm, **names)
            for name in names:
                fields[name] = getattr(form, name)

        session = self._accounts.current_session()
        if session is None:
            raise SessionError("No user logged in")

        doc = {PROFILE_FIELD_NAMES[name]: value for name, value in fields.items()}
        try:
            await self._store.update(self._users_collection, session.uid, doc)
        except Exception as exc:
            raise _session_error(exc, "Update Profile") from exc

        if self.current_user is not None:
            self.current_user = dataclasses.replace(self.current_user, **fields)
        logger.info("Profile updated for %s: %s", session.uid, ", ".join(sorted(doc)))
        return self.current_user
