"""Authentication-related Pydantic schemas."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.user import User, UserType
from app.schemas.profile import MenteeSummary, MentorSummary, ProfileRead


_INPUT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    str_strip_whitespace=True,
)
_OUTPUT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)

PASSWORD_MIN_LENGTH = 6


def _split_list(value: Any) -> Any:
    """Accept repeated form fields, comma separated strings or a mix of both."""

    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return value
    items: list[str] = []
    for entry in value:
        if not isinstance(entry, str):
            items.append(entry)
            continue
        items.extend(part.strip() for part in entry.split(",") if part.strip())
    return items


class MentorRegistration(BaseModel):
    """Fields submitted with the mentor registration form (photo excluded)."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    programming_languages: list[str] = Field(min_length=1)
    technologies: list[str] = Field(min_length=1)
    domains: list[str] = Field(min_length=1)
    years_of_experience: int = Field(ge=0, le=80)
    general_description: str = Field(min_length=1, max_length=1000)
    phone_number: str = Field(min_length=1, max_length=32)
    linkedin_url: Optional[str] = Field(default=None, max_length=500)

    model_config = _INPUT_CONFIG

    @field_validator("programming_languages", "technologies", "domains", mode="before")
    @classmethod
    def _split_comma_separated(cls, value: Any) -> Any:
        return _split_list(value)

    @field_validator("linkedin_url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("linkedin_url")
    @classmethod
    def _require_http_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("LinkedIn URL must start with http:// or https://")
        return value


class MenteeRegistration(BaseModel):
    """Schema for registering a mentee account."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(min_length=1, max_length=32)
    general_description: Optional[str] = Field(default=None, max_length=500)

    model_config = _INPUT_CONFIG


class UserLogin(BaseModel):
    """Schema for logging in with email and password."""

    email: EmailStr
    password: str = Field(min_length=1)

    model_config = _INPUT_CONFIG


class VerifyEmailRequest(BaseModel):
    token: str = Field(min_length=1)

    model_config = _INPUT_CONFIG


class ResendVerificationRequest(BaseModel):
    email: EmailStr

    model_config = _INPUT_CONFIG


class UserRead(BaseModel):
    """Schema representing the public view of an account."""

    id: uuid.UUID
    email: str
    user_type: UserType
    is_email_verified: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = _OUTPUT_CONFIG

    @classmethod
    def from_account(cls, user: User, first_name: str | None, last_name: str | None) -> "UserRead":
        return cls(
            id=user.id,
            email=user.email,
            user_type=user.user_type,
            is_email_verified=user.is_email_verified,
            first_name=first_name,
            last_name=last_name,
        )


class MentorRegistrationResponse(BaseModel):
    message: str
    user: UserRead
    mentor: MentorSummary
    email_sent: bool
    next_step: str

    model_config = _OUTPUT_CONFIG


class MenteeRegistrationResponse(BaseModel):
    message: str
    user: UserRead
    mentee: MenteeSummary
    email_sent: bool
    next_step: str

    model_config = _OUTPUT_CONFIG


class VerifyEmailResponse(BaseModel):
    message: str
    user: UserRead
    profile: Optional[ProfileRead] = None
    auto_logged_in: bool = True

    model_config = _OUTPUT_CONFIG


class ResendVerificationResponse(BaseModel):
    message: str
    email_sent: bool

    model_config = _OUTPUT_CONFIG


class LoginResponse(BaseModel):
    message: str
    user: UserRead
    profile: Optional[ProfileRead] = None

    model_config = _OUTPUT_CONFIG


class LogoutResponse(BaseModel):
    message: str
    user: str

    model_config = _OUTPUT_CONFIG


class SessionInfo(BaseModel):
    user_id: str
    user_type: str
    email: str

    model_config = _OUTPUT_CONFIG


class WhoAmIResponse(BaseModel):
    authenticated: bool = True
    user: UserRead
    profile: Optional[ProfileRead] = None
    session: SessionInfo

    model_config = _OUTPUT_CONFIG


__all__ = [
    "LoginResponse",
    "LogoutResponse",
    "MenteeRegistration",
    "MenteeRegistrationResponse",
    "MentorRegistration",
    "MentorRegistrationResponse",
    "PASSWORD_MIN_LENGTH",
    "ResendVerificationRequest",
    "ResendVerificationResponse",
    "SessionInfo",
    "UserLogin",
    "UserRead",
    "VerifyEmailRequest",
    "VerifyEmailResponse",
    "WhoAmIResponse",
]
