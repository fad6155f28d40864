"""Role-specific profile records attached to accounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.admin import Admin
from app.models.mentee import Mentee
from app.models.mentor import Mentor
from app.models.user import User, UserType


Profile = Union[Mentor, Mentee, Admin]

_PROFILE_MODELS: dict[UserType, type[Mentor] | type[Mentee] | type[Admin]] = {
    UserType.MENTOR: Mentor,
    UserType.MENTEE: Mentee,
    UserType.ADMIN: Admin,
}

ALLOWED_PHOTO_CONTENT_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp"}
)


class ProfilePhotoError(ValueError):
    """Raised when an uploaded profile photo is rejected."""


@dataclass(frozen=True)
class ProfilePhoto:
    """A validated profile photo upload."""

    data: bytes
    content_type: str
    file_name: str


def _resolve_profile_model(user_type: UserType) -> type[Mentor] | type[Mentee] | type[Admin]:
    try:
        return _PROFILE_MODELS[user_type]
    except KeyError as exc:
        raise ValueError(f"Unsupported user type '{user_type}'.") from exc


def get_profile(db: Session, user: User) -> Optional[Profile]:
    """Return the profile record matching the account's role, if one exists."""

    model = _resolve_profile_model(user.user_type)
    statement = select(model).where(model.user_id == user.id)
    return db.execute(statement).scalar_one_or_none()


def display_name(profile: Optional[Profile]) -> tuple[str | None, str | None]:
    if profile is None:
        return None, None
    return profile.first_name, profile.last_name


def validate_profile_photo(
    file_name: str | None,
    content_type: str | None,
    data: bytes,
) -> ProfilePhoto:
    """Check an upload against the allowed image types and size limit."""

    if content_type not in ALLOWED_PHOTO_CONTENT_TYPES:
        raise ProfilePhotoError("Only image files (JPEG, PNG, GIF, WEBP) are allowed.")
    if not data:
        raise ProfilePhotoError("Uploaded photo is empty.")
    if len(data) > settings.profile_photo_max_bytes:
        max_mb = settings.profile_photo_max_bytes // (1024 * 1024)
        raise ProfilePhotoError(f"File too large. Maximum size is {max_mb}MB.")
    return ProfilePhoto(data=data, content_type=content_type, file_name=file_name or "photo")


def create_mentor_profile(
    db: Session,
    user: User,
    *,
    first_name: str,
    last_name: str,
    phone_number: str,
    programming_languages: list[str],
    technologies: list[str],
    domains: list[str],
    years_of_experience: int,
    general_description: str,
    linkedin_url: str | None,
    photo: ProfilePhoto,
) -> Mentor:
    mentor = Mentor(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        email=user.email,
        phone_number=phone_number,
        programming_languages=list(programming_languages),
        technologies=list(technologies),
        domains=list(domains),
        years_of_experience=years_of_experience,
        general_description=general_description,
        linkedin_url=linkedin_url,
        profile_photo=photo.data,
        photo_content_type=photo.content_type,
        photo_file_name=photo.file_name,
    )
    db.add(mentor)
    db.flush()
    return mentor


def create_mentee_profile(
    db: Session,
    user: User,
    *,
    first_name: str,
    last_name: str,
    phone_number: str,
    general_description: str | None = None,
) -> Mentee:
    mentee = Mentee(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        email=user.email,
        phone_number=phone_number,
        general_description=general_description,
    )
    db.add(mentee)
    db.flush()
    return mentee


def create_admin_profile(db: Session, user: User, *, first_name: str, last_name: str) -> Admin:
    admin = Admin(user_id=user.id, first_name=first_name, last_name=last_name)
    db.add(admin)
    db.flush()
    return admin


__all__ = [
    "ALLOWED_PHOTO_CONTENT_TYPES",
    "Profile",
    "ProfilePhoto",
    "ProfilePhotoError",
    "create_admin_profile",
    "create_mentee_profile",
    "create_mentor_profile",
    "display_name",
    "get_profile",
    "validate_profile_photo",
]
