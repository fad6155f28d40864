"""Profile-related Pydantic schemas."""

from __future__ import annotations

import uuid
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.admin import Admin
from app.models.mentee import Mentee
from app.models.mentor import Mentor


_READ_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
    frozen=True,
)


class MentorProfileRead(BaseModel):
    """Mentor profile as returned to the signed-in mentor."""

    profile_type: Literal["mentor"] = "mentor"
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone_number: str
    programming_languages: list[str]
    technologies: list[str]
    domains: list[str]
    years_of_experience: int
    general_description: str
    linkedin_url: Optional[str] = None
    has_profile_photo: bool

    model_config = _READ_CONFIG


class MenteeProfileRead(BaseModel):
    """Mentee profile as returned to the signed-in mentee."""

    profile_type: Literal["mentee"] = "mentee"
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone_number: str
    general_description: Optional[str] = None

    model_config = _READ_CONFIG


class AdminProfileRead(BaseModel):
    profile_type: Literal["admin"] = "admin"
    id: uuid.UUID
    first_name: str
    last_name: str

    model_config = _READ_CONFIG


ProfileRead = Annotated[
    Union[MentorProfileRead, MenteeProfileRead, AdminProfileRead],
    Field(discriminator="profile_type"),
]


class MentorSummary(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    has_profile_photo: bool

    model_config = _READ_CONFIG


class MenteeSummary(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str

    model_config = _READ_CONFIG


def serialize_profile(profile: Mentor | Mentee | Admin | None) -> Optional[ProfileRead]:
    """Convert a profile ORM record into its tagged wire representation."""

    if profile is None:
        return None
    if isinstance(profile, Mentor):
        return MentorProfileRead.model_validate(profile)
    if isinstance(profile, Mentee):
        return MenteeProfileRead.model_validate(profile)
    if isinstance(profile, Admin):
        return AdminProfileRead.model_validate(profile)
    raise TypeError(f"Unsupported profile type {type(profile).__name__}")


__all__ = [
    "AdminProfileRead",
    "MenteeProfileRead",
    "MenteeSummary",
    "MentorProfileRead",
    "MentorSummary",
    "ProfileRead",
    "serialize_profile",
]
