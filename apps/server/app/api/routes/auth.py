"""Authentication API routes."""

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.api.dependencies import get_db, get_session_context
from app.core.config import settings
from app.core.rate_limit import limiter
from app.core.session import SessionContext
from app.schemas.auth import (
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
from app.schemas.profile import MenteeSummary, MentorSummary, serialize_profile
from app.services import auth_lifecycle
from app.services.auth_lifecycle import (
    AccountNotFoundOrVerifiedError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotAuthenticatedError,
)
from app.services.profiles import ProfilePhotoError, display_name, validate_profile_photo
from app.services.users import UserEmailAlreadyExistsError


router = APIRouter(tags=["auth"])

NEXT_STEP = "Please check your email and click the verification link to activate your account."


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def _duplicate_email() -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Email already registered")


def _user_read(user, profile) -> UserRead:
    first_name, last_name = display_name(profile)
    return UserRead.from_account(user, first_name, last_name)


@router.post(
    "/register-mentor",
    response_model=MentorRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth_rate_limit)
def register_mentor(
    request: Request,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    programming_languages: Optional[list[str]] = Form(None, alias="programmingLanguages"),
    technologies: Optional[list[str]] = Form(None),
    domains: Optional[list[str]] = Form(None),
    years_of_experience: Optional[str] = Form(None, alias="yearsOfExperience"),
    general_description: Optional[str] = Form(None, alias="generalDescription"),
    phone_number: Optional[str] = Form(None, alias="phoneNumber"),
    linkedin_url: Optional[str] = Form(None, alias="linkedinUrl"),
    photo: Optional[UploadFile] = File(None),
) -> MentorRegistrationResponse | JSONResponse:
    """Register a mentor from a multipart form that includes the profile photo."""

    submitted = {
        "email": email,
        "password": password,
        "first_name": first_name,
        "last_name": last_name,
        "programming_languages": programming_languages,
        "technologies": technologies,
        "domains": domains,
        "years_of_experience": years_of_experience,
        "general_description": general_description,
        "phone_number": phone_number,
        "linkedin_url": linkedin_url,
    }
    try:
        payload = MentorRegistration.model_validate(
            {key: value for key, value in submitted.items() if value is not None}
        )
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc

    if photo is None or not photo.filename:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Profile photo is required",
            message="Please upload a profile photo",
        )

    try:
        # Read at most one byte past the limit.
        data = photo.file.read(settings.profile_photo_max_bytes + 1)
        profile_photo = validate_profile_photo(photo.filename, photo.content_type, data)
    except ProfilePhotoError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    try:
        result = auth_lifecycle.register_mentor(db, session, payload, profile_photo)
    except UserEmailAlreadyExistsError:
        return _duplicate_email()

    return MentorRegistrationResponse(
        message="Mentor registered successfully! Please check your email to verify your account.",
        user=_user_read(result.user, result.profile),
        mentor=MentorSummary.model_validate(result.profile),
        email_sent=result.email_sent,
        next_step=NEXT_STEP,
    )


@router.post(
    "/register-mentee",
    response_model=MenteeRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth_rate_limit)
def register_mentee(
    request: Request,
    payload: MenteeRegistration,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> MenteeRegistrationResponse | JSONResponse:
    """Register a mentee account and send the verification email."""

    try:
        result = auth_lifecycle.register_mentee(db, session, payload)
    except UserEmailAlreadyExistsError:
        return _duplicate_email()

    return MenteeRegistrationResponse(
        message="Mentee registered successfully! Please check your email to verify your account.",
        user=_user_read(result.user, result.profile),
        mentee=MenteeSummary.model_validate(result.profile),
        email_sent=result.email_sent,
        next_step=NEXT_STEP,
    )


@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email(
    payload: VerifyEmailRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> VerifyEmailResponse | JSONResponse:
    """Consume a verification token and sign the account in."""

    try:
        result = auth_lifecycle.verify_email(
            db,
            session,
            payload.token,
            background_tasks=background_tasks,
        )
    except InvalidOrExpiredTokenError:
        db.rollback()
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid or expired verification token")

    return VerifyEmailResponse(
        message="Email verified successfully! You are now logged in.",
        user=_user_read(result.user, result.profile),
        profile=serialize_profile(result.profile),
        auto_logged_in=True,
    )


@router.post("/resend-verification", response_model=ResendVerificationResponse)
@limiter.limit(settings.auth_rate_limit)
def resend_verification(
    request: Request,
    payload: ResendVerificationRequest,
    db: Session = Depends(get_db),
) -> ResendVerificationResponse | JSONResponse:
    """Issue a new verification token and re-send the email."""

    try:
        email_sent = auth_lifecycle.resend_verification(db, str(payload.email))
    except AccountNotFoundOrVerifiedError:
        return _error(status.HTTP_400_BAD_REQUEST, "User not found or already verified")

    if email_sent:
        message = "Verification email sent! Please check your inbox."
    else:
        message = "We could not send the verification email. Please try again later."
    return ResendVerificationResponse(message=message, email_sent=email_sent)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.auth_rate_limit)
def login(
    request: Request,
    payload: UserLogin,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> LoginResponse | JSONResponse:
    """Authenticate with email/password and open a session."""

    try:
        result = auth_lifecycle.login(db, session, str(payload.email), payload.password)
    except InvalidCredentialsError:
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid email or password")
    except EmailNotVerifiedError as exc:
        return _error(
            status.HTTP_401_UNAUTHORIZED,
            "Email not verified",
            message="Please verify your email before logging in. Check your inbox for the verification link.",
            needsVerification=True,
            email=exc.email,
        )

    return LoginResponse(
        message="Login successful",
        user=_user_read(result.user, result.profile),
        profile=serialize_profile(result.profile),
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(session: SessionContext = Depends(get_session_context)) -> LogoutResponse | JSONResponse:
    """Destroy the current session."""

    try:
        email = auth_lifecycle.logout(session)
    except NotAuthenticatedError:
        return _error(status.HTTP_400_BAD_REQUEST, "Not logged in")

    return LogoutResponse(message="Logged out successfully", user=email)


@router.get("/me", response_model=WhoAmIResponse)
def read_current_session(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> WhoAmIResponse | JSONResponse:
    """Describe the signed-in account, or report that nobody is signed in."""

    result = auth_lifecycle.who_am_i(db, session)
    if result is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"authenticated": False},
        )

    return WhoAmIResponse(
        authenticated=True,
        user=_user_read(result.user, result.profile),
        profile=serialize_profile(result.profile),
        session=SessionInfo.model_validate(result.session),
    )


__all__ = ["router"]
