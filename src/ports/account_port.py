"""Account port — abstract interface for the remote account service.

Core modules depend on this protocol, never on a specific identity provider.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from src.data.models import AccountSession

AuthStateListener = Callable[[AccountSession | None], Awaitable[None]]


class Subscription(Protocol):
    """Handle returned by ``AccountPort.subscribe``."""

    def cancel(self) -> None: ...


class AccountPort(Protocol):
    """Abstract account interface used by core modules."""

    async def create_account(self, email: str, password: str) -> AccountSession: ...

    async def sign_in(self, email: str, password: str) -> AccountSession: ...

    async def sign_out(self) -> None: ...

    async def update_display_name(self, display_name: str) -> None: ...

    async def send_email_verification(self) -> None: ...

    async def send_password_reset(self, email: str) -> None: ...

    async def reauthenticate(self, password: str) -> AccountSession: ...

    async def update_password(self, new_password: str) -> None: ...

    def current_session(self) -> AccountSession | None: ...

    def subscribe(self, listener: AuthStateListener) -> Subscription: ...
