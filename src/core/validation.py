"""
Campus Events — Form Validation.

Local checks that run before any remote call. Failures never reach the
error classifier: they carry one message per offending field, ready to show
next to the input.
"""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import (
    BaseModel,
    BeforeValidator,
    EmailStr,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from src.data.models import EventType

_NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")
_DIGIT_PATTERN = re.compile(r"[0-9]")

_FIELD_LABELS = {
    "type": "Event type",
    "title": "Title",
    "date": "Date",
    "start_time": "Start time",
    "end_time": "End time",
    "location": "Location",
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
    "password": "Password",
    "current_password": "Current password",
    "new_password": "New password",
}


class FormValidationError(ValueError):
    """Raised when a form fails local validation.

    ``errors`` maps each offending field to a user-facing message.
    """

    def __init__(
        self, errors: dict[str, str], summary: str = "Please fill in all required fields",
    ) -> None:
        self.errors = errors
        super().__init__(summary)


class EventValidationError(FormValidationError):
    """Raised when event fields are missing or malformed."""


def _collect_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into field → first message."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__form__",)
        field = str(loc[0])
        message = err.get("msg", "Invalid value")
        if err.get("type") == "missing":
            message = f"{_FIELD_LABELS.get(field, field)} is required"
        elif "not a valid email address" in message:
            message = "Please enter a valid email address"
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")
        errors.setdefault(field, message)
    return errors


def require_text(value: str | None, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value


def _normalize_email(value: str | None) -> str:
    return require_text(value, "Email").lower()


Email = Annotated[EmailStr, BeforeValidator(_normalize_email)]


# ---------------------------------------------------------------------------
# Event form
# ---------------------------------------------------------------------------


class EventDraft(BaseModel):
    """Fields a user supplies when creating an event. Values are stored trimmed."""

    type: EventType
    title: str
    date: str
    start_time: str
    end_time: str
    location: str
    description: str = ""
    image_uri: str | None = None

    @field_validator("title", "date", "start_time", "end_time", "location", mode="before")
    @classmethod
    def strip_required(cls, v: str | None, info: ValidationInfo) -> str:
        return require_text(v, _FIELD_LABELS[info.field_name])

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: str | EventType | None) -> EventType:
        if isinstance(v, EventType):
            return v
        try:
            return EventType((v or "").strip())
        except ValueError:
            allowed = ", ".join(t.value for t in EventType)
            raise ValueError(f"Event type must be one of: {allowed}") from None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: str | None) -> str:
        return (v or "").strip()

    @field_validator("image_uri", mode="before")
    @classmethod
    def blank_image_is_none(cls, v: str | None) -> str | None:
        return (v or "").strip() or None


def validate_event(fields: EventDraft | dict) -> EventDraft:
    """Return a validated EventDraft or raise EventValidationError."""
    if isinstance(fields, EventDraft):
        return fields
    try:
        return EventDraft(**fields)
    except ValidationError as exc:
        raise EventValidationError(_collect_errors(exc)) from exc


# ---------------------------------------------------------------------------
# Account forms
# ---------------------------------------------------------------------------


def _check_name(value: str | None, label: str) -> str:
    value = require_text(value, label)
    if len(value) < 2:
        raise ValueError(f"{label} must be at least 2 characters")
    if not _NAME_PATTERN.match(value):
        raise ValueError(f"{label} can only contain letters")
    return value


class LoginForm(BaseModel):
    email: Email
    password: str

    @field_validator("password", mode="before")
    @classmethod
    def require_password(cls, v: str | None) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ResetPasswordForm(BaseModel):
    email: Email


class SignUpForm(BaseModel):
    """Sign-up form: names are letters only, password needs 8 chars and a digit."""

    first_name: str
    last_name: str
    email: Email
    password: str
    confirm_password: str

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def check_name(cls, v: str | None, info: ValidationInfo) -> str:
        return _check_name(v, _FIELD_LABELS[info.field_name])

    @field_validator("password", mode="before")
    @classmethod
    def check_password(cls, v: str | None) -> str:
        if not v:
            raise ValueError("Password is required")
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not _DIGIT_PATTERN.search(v):
            raise ValueError("Password must contain at least one number")
        return v

    @field_validator("confirm_password", mode="before")
    @classmethod
    def require_confirmation(cls, v: str | None) -> str:
        if not v:
            raise ValueError("Please confirm your password")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> SignUpForm:
        if self.password != self.confirm_password:
            raise ValueError("Passwords must match")
        return self


class ProfileForm(BaseModel):
    """Name edits; a name left out is not checked."""

    first_name: str | None = None
    last_name: str | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_required(cls, v: str | None, info: ValidationInfo) -> str:
        return require_text(v, _FIELD_LABELS[info.field_name])


class ChangePasswordForm(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator("current_password", mode="before")
    @classmethod
    def require_current(cls, v: str | None) -> str:
        if not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("new_password", mode="before")
    @classmethod
    def check_new(cls, v: str | None) -> str:
        if not v:
            raise ValueError("New password is required")
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("confirm_password", mode="before")
    @classmethod
    def require_confirmation(cls, v: str | None) -> str:
        if not v:
            raise ValueError("Please confirm your password")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> ChangePasswordForm:
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


def validate_form(model: type[BaseModel], **fields) -> BaseModel:
    """Build ``model`` from ``fields`` or raise FormValidationError.

    Model-level checks only ever compare a password with its confirmation,
    so their message is reported on ``confirm_password``.
    """
    try:
        return model(**fields)
    except ValidationError as exc:
        errors = _collect_errors(exc)
        if "__form__" in errors:
            errors.setdefault("confirm_password", errors.pop("__form__"))
        raise FormValidationError(errors) from exc
