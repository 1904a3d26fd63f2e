"""Typed records for receiver responses and forwarding outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from relay_bot.receiver.http import ReceiverError

RecordT = TypeVar("RecordT", bound=BaseModel)


class RegisteredUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    discord_id: Optional[str] = Field(default=None, alias="discordId")
    username: Optional[str] = None
    registered_at: Optional[datetime] = Field(default=None, alias="registeredAt")


class RegistrationStatus(BaseModel):
    """Body of the registration-check endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    registered: bool = False
    error: Optional[str] = None
    user: Optional[RegisteredUser] = None

    @property
    def email(self) -> str | None:
        if self.success and self.registered and self.user and self.user.email:
            return self.user.email
        return None


class OAuthInitiation(BaseModel):
    """Body of the OAuth-initiation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    auth_url: Optional[str] = Field(default=None, alias="authUrl")
    error: Optional[str] = None
    message: Optional[str] = None


def parse_record(model: type[RecordT], body: Any) -> RecordT:
    """Validate a decoded JSON body against a record type; mismatches are transport errors."""
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise ReceiverError(f"Unexpected {model.__name__} shape: {e.error_count()} error(s)", body=body) from e


class ForwardFailure(StrEnum):
    UNREGISTERED = "unregistered"
    EMPTY = "empty"
    FETCH_FAILED = "fetch_failed"
    TRANSPORT = "transport"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class ForwardResult:
    ok: bool
    status: Optional[int] = None
    body: Any = None
    failure: Optional[ForwardFailure] = None

    @classmethod
    def failed(cls, failure: ForwardFailure, status: int | None = None, body: Any = None) -> ForwardResult:
        return cls(ok=False, status=status, body=body, failure=failure)
