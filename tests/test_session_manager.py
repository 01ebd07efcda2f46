"""Tests for src.core.session_manager — sign-up/in/out, password and profile.

The account service is a MagicMock with AsyncMock methods; profiles go to
the in-memory FakeStore.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.core.session_manager import SessionError, SessionManager
from src.core.validation import FormValidationError
from src.data.models import AccountSession, UserProfile
from src.ports.backend_error import BackendError


def _session(uid="uid-1", email="ada@campus.edu"):
    return AccountSession(uid=uid, email=email, id_token="tok")


def _make_manager(store, signed_in=None):
    accounts = MagicMock()
    accounts.create_account = AsyncMock(return_value=_session())
    accounts.sign_in = AsyncMock(return_value=_session())
    accounts.sign_out = AsyncMock()
    accounts.update_display_name = AsyncMock()
    accounts.send_email_verification = AsyncMock()
    accounts.send_password_reset = AsyncMock()
    accounts.reauthenticate = AsyncMock(return_value=_session())
    accounts.update_password = AsyncMock()
    accounts.current_session = MagicMock(return_value=signed_in)
    subscription = MagicMock()
    accounts.subscribe = MagicMock(return_value=subscription)
    return SessionManager(accounts, store, users_collection="users"), accounts


class TestSignUp:
    @pytest.mark.asyncio
    async def test_four_steps_in_order(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        calls = []
        accounts.create_account.side_effect = lambda *a: calls.append("create") or _session()
        accounts.update_display_name.side_effect = lambda *a: calls.append("name")
        accounts.send_email_verification.side_effect = lambda *a: calls.append("verify")

        profile = await manager.sign_up("Ada", "Lovelace", " Ada@Campus.edu ", "secret123")

        assert calls == ["create", "name", "verify"]
        accounts.create_account.assert_awaited_once_with("ada@campus.edu", "secret123")
        accounts.update_display_name.assert_awaited_once_with("Ada Lovelace")
        stored = fake_store.collections["users"]["uid-1"]
        assert stored["firstName"] == "Ada"
        assert stored["email"] == "ada@campus.edu"
        assert stored["emailVerified"] is False
        assert profile.uid == "uid-1"
        assert manager.current_user == profile

    @pytest.mark.asyncio
    async def test_verification_failure_leaves_no_profile(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        accounts.send_email_verification.side_effect = BackendError("auth/too-many-requests")

        with pytest.raises(SessionError, match="Too many failed attempts") as exc_info:
            await manager.sign_up("Ada", "Lovelace", "ada@campus.edu", "secret123")

        assert exc_info.value.code == "auth/too-many-requests"
        # the auth identity was created and is not rolled back
        accounts.create_account.assert_awaited_once()
        assert "users" not in fake_store.collections

    @pytest.mark.asyncio
    async def test_email_in_use(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        accounts.create_account.side_effect = BackendError("auth/email-already-in-use")
        with pytest.raises(SessionError, match="already exists"):
            await manager.sign_up("Ada", "Lovelace", "ada@campus.edu", "secret123")

    @pytest.mark.asyncio
    async def test_invalid_form_never_calls_backend(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        with pytest.raises(FormValidationError) as exc_info:
            await manager.sign_up("A", "L0velace", "not-an-email", "short", "other")

        errors = exc_info.value.errors
        assert errors["first_name"] == "First name must be at least 2 characters"
        assert errors["last_name"] == "Last name can only contain letters"
        assert errors["email"] == "Please enter a valid email address"
        assert errors["password"] == "Password must be at least 8 characters"
        accounts.create_account.assert_not_called()


class TestSignInOut:
    @pytest.mark.asyncio
    async def test_sign_in_passthrough(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        session = await manager.sign_in("ADA@campus.edu", "pw")
        accounts.sign_in.assert_awaited_once_with("ada@campus.edu", "pw")
        assert session.uid == "uid-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["auth/wrong-password", "auth/invalid-credential"])
    async def test_bad_credentials_same_message(self, fake_store, code):
        manager, accounts = _make_manager(fake_store)
        accounts.sign_in.side_effect = BackendError(code)
        with pytest.raises(SessionError) as exc_info:
            await manager.sign_in("ada@campus.edu", "pw")
        assert str(exc_info.value) == "Invalid email or password. Please try again"

    @pytest.mark.asyncio
    async def test_sign_out_clears_cache(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        manager.session = _session()
        manager.current_user = UserProfile(uid="uid-1", email="a@b.c", first_name="A", last_name="B")
        await manager.sign_out()
        accounts.sign_out.assert_awaited_once()
        assert manager.session is None
        assert manager.current_user is None

    @pytest.mark.asyncio
    async def test_reset_password(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        await manager.reset_password(" Ada@Campus.edu")
        accounts.send_password_reset.assert_awaited_once_with("ada@campus.edu")

    @pytest.mark.asyncio
    async def test_reset_password_unknown_user(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        accounts.send_password_reset.side_effect = BackendError("auth/user-not-found")
        with pytest.raises(SessionError, match="No account found"):
            await manager.reset_password("ghost@campus.edu")

    @pytest.mark.asyncio
    async def test_deferred_features_always_fail(self, fake_store):
        manager, _ = _make_manager(fake_store)
        with pytest.raises(SessionError):
            await manager.sign_in_with_google()
        with pytest.raises(SessionError):
            await manager.verify_email("123456")


class TestAuthStateSubscription:
    @pytest.mark.asyncio
    async def test_start_loads_profile_for_current_session(self, fake_store):
        fake_store.collections["users"] = {
            "uid-1": {"uid": "uid-1", "email": "ada@campus.edu", "firstName": "Ada", "lastName": "L"}
        }
        manager, accounts = _make_manager(fake_store, signed_in=_session())

        assert manager.loading is True
        await manager.start()

        accounts.subscribe.assert_called_once()
        assert manager.loading is False
        assert manager.current_user.first_name == "Ada"

    @pytest.mark.asyncio
    async def test_signed_out_state_clears_user(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        await manager.start()
        listener = accounts.subscribe.call_args.args[0]

        manager.current_user = UserProfile(uid="x", email="x", first_name="X", last_name="Y")
        await listener(None)
        assert manager.current_user is None
        assert manager.session is None

    @pytest.mark.asyncio
    async def test_profile_load_failure_is_logged_not_raised(self, fake_store):
        manager, _ = _make_manager(fake_store, signed_in=_session())
        fake_store.fail_with = BackendError("unavailable")
        await manager.start()
        assert manager.current_user is None
        assert manager.loading is False

    @pytest.mark.asyncio
    async def test_close_cancels_subscription(self, fake_store):
        manager, accounts = _make_manager(fake_store)
        await manager.start()
        subscription = accounts.subscribe.return_value
        manager.close()
        subscription.cancel.assert_called_once()
        manager.close()
        subscription.cancel.assert_called_once()


class TestChangePassword:
    @pytest.mark.asyncio
    async def test_reauthenticates_first(self, fake_store):
        manager, accounts = _make_manager(fake_store, signed_in=_session())
        await manager.change_password("old-pass", "newpass123")
        accounts.reauthenticate.assert_awaited_once_with("old-pass")
        accounts.update_password.assert_awaited_once_with("newpass123")

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, fake_store):
        manager, accounts = _make_manager(fake_store, signed_in=_session())
        accounts.reauthenticate.side_effect = BackendError("auth/wrong-password")
        with pytest.raises(SessionError) as exc_info:
            await manager.change_password("bad", "newpass123")
        assert exc_info.value.code == "auth/wrong-password"
        accounts.update_password.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_session(self, fake_store):
        manager, accounts = _make_manager(fake_store, signed_in=None)
        with pytest.raises(SessionError, match="not authenticated"):
            await manager.change_password("old-pass", "newpass123")

    @pytest.mark.asyncio
    async def test_mismatched_confirmation(self, fake_store):
        manager, _ = _make_manager(fake_store, signed_in=_session())
        with pytest.raises(FormValidationError) as exc_info:
            await manager.change_password("old-pass", "newpass123", "newpass124")
        assert exc_info.value.errors["confirm_password"] == "Passwords do not match"


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_merges_remote_and_cached(self, fake_store):
        fake_store.collections["users"] = {
            "uid-1": {"uid": "uid-1", "email": "ada@campus.edu", "firstName": "Ada", "lastName": "L"}
        }
        manager, _ = _make_manager(fake_store, signed_in=_session())
        await manager.start()

        profile = await manager.update_profile(first_name="  Augusta ", photo_url="https://p/1.png")

        stored = fake_store.collections["users"]["uid-1"]
        assert stored["firstName"] == "Augusta"
        assert stored["photoURL"] == "https://p/1.png"
        assert stored["lastName"] == "L"
        assert profile.first_name == "Augusta"
        assert manager.current_user.photo_url == "https://p/1.png"

    @pytest.mark.asyncio
    async def test_partial_name_update_without_cached_profile(self, fake_store):
        fake_store.collections["users"] = {"uid-1": {"uid": "uid-1", "lastName": "L"}}
        manager, _ = _make_manager(fake_store, signed_in=_session())
        assert manager.current_user is None

        result = await manager.update_profile(first_name=" Alice ")

        assert result is None
        stored = fake_store.collections["users"]["uid-1"]
        assert stored["firstName"] == "Alice"
        assert stored["lastName"] == "L"

    @pytest.mark.asyncio
    async def test_requires_session(self, fake_store):
        manager, _ = _make_manager(fake_store, signed_in=None)
        with pytest.raises(SessionError, match="No user logged in"):
            await manager.update_profile(photo_url="https://p/1.png")

    @pytest.mark.asyncio
    async def test_email_cannot_change(self, fake_store):
        manager, _ = _make_manager(fake_store, signed_in=_session())
        with pytest.raises(FormValidationError) as exc_info:
            await manager.update_profile(email="new@campus.edu")
        assert "email" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, fake_store):
        manager, _ = _make_manager(fake_store, signed_in=_session())
        with pytest.raises(FormValidationError) as exc_info:
            await manager.update_profile(first_name="  ", last_name="Lovelace")
        assert exc_info.value.errors == {"first_name": "First name is required"}

    @pytest.mark.asyncio
    async def test_remote_failure_is_classified(self, fake_store):
        manager, _ = _make_manager(fake_store, signed_in=_session())
        with pytest.raises(SessionError, match="not found"):
            await manager.update_profile(photo_url="https://p/1.png")
