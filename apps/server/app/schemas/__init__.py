"""Application schema exports."""

from .auth import (
    LoginResponse,
    LogoutResponse,
    MenteeRegistration,
    MenteeRegistrationResponse,
    MentorRegistration,
    MentorRegistrationResponse,
    ResendVerificationRequest,
    ResendVerificationResponse,
    SessionInfo,
    UserLogin,
    UserRead,
    VerifyEmailRequest,
    VerifyEmailResponse,
    WhoAmIResponse,
)
from .profile import (
    AdminProfileRead,
    MenteeProfileRead,
    MenteeSummary,
    MentorProfileRead,
    MentorSummary,
    ProfileRead,
    serialize_profile,
)

__all__ = [
    "AdminProfileRead",
    "LoginResponse",
    "LogoutResponse",
    "MenteeProfileRead",
    "MenteeRegistration",
    "MenteeRegistrationResponse",
    "MenteeSummary",
    "MentorProfileRead",
    "MentorRegistration",
    "MentorRegistrationResponse",
    "MentorSummary",
    "ProfileRead",
    "ResendVerificationRequest",
    "ResendVerificationResponse",
    "SessionInfo",
    "UserLogin",
    "UserRead",
    "VerifyEmailRequest",
    "VerifyEmailResponse",
    "WhoAmIResponse",
    "serialize_profile",
]
