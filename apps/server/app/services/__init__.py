"""Service layer helpers for domain operations."""

from .auth_lifecycle import (
    AccountNotFoundOrVerifiedError,
    AuthLifecycleError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotAuthenticatedError,
    login,
    logout,
    register_mentee,
    register_mentor,
    resend_verification,
    verify_email,
    who_am_i,
)
from .email import (
    EmailDeliveryError,
    build_verification_email,
    build_welcome_email,
    send_verification_email,
    send_welcome_email,
)
from .email_verification import (
    build_verification_link,
    issue_verification_token,
    mark_email_verified,
    validate_verification_token,
)
from .profiles import (
    ProfilePhoto,
    ProfilePhotoError,
    create_admin_profile,
    get_profile,
    validate_profile_photo,
)
from .users import (
    UserEmailAlreadyExistsError,
    create_account,
    get_user_by_email,
    get_user_by_id,
)

__all__ = [
    "AccountNotFoundOrVerifiedError",
    "AuthLifecycleError",
    "EmailDeliveryError",
    "EmailNotVerifiedError",
    "InvalidCredentialsError",
    "InvalidOrExpiredTokenError",
    "NotAuthenticatedError",
    "ProfilePhoto",
    "ProfilePhotoError",
    "UserEmailAlreadyExistsError",
    "build_verification_email",
    "build_verification_link",
    "build_welcome_email",
    "create_account",
    "create_admin_profile",
    "get_profile",
    "get_user_by_email",
    "get_user_by_id",
    "issue_verification_token",
    "login",
    "logout",
    "mark_email_verified",
    "register_mentee",
    "register_mentor",
    "resend_verification",
    "send_verification_email",
    "send_welcome_email",
    "validate_profile_photo",
    "validate_verification_token",
    "verify_email",
    "who_am_i",
]
