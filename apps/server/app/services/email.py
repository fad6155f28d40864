"""Utilities for sending transactional emails."""

from __future__ import annotations

import html
import logging
import re
import smtplib
from email.message import EmailMessage

from app.core.config import settings
from app.models.user import UserType

logger = logging.getLogger(__name__)

_LINK_PATTERN = re.compile(r"https?://\S*verify-email\S*")


class EmailDeliveryError(Exception):
    """Raised when an email could not be delivered."""


def _expiry_phrase(minutes: int) -> str:
    if minutes >= 60 and minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


def build_verification_email(recipient: str, first_name: str, verification_link: str) -> EmailMessage:
    """Construct the email asking a new member to verify their address."""

    expiry = _expiry_phrase(settings.email_verification_token_expiry_minutes)
    safe_name = html.escape(first_name)
    safe_link = html.escape(verification_link, quote=True)
    message = EmailMessage()
    message["Subject"] = "QueenB - Verify Your Email Address"
    message["From"] = settings.email_sender
    message["To"] = recipient
    message.set_content(
        (
            f"Hi {first_name}!\n\n"
            "Thank you for joining the QueenB community! To complete your registration "
            "and start your mentorship journey, please verify your email address:\n"
            f"{verification_link}\n\n"
            f"This verification link will expire in {expiry}. If you didn't create "
            "an account with QueenB, please ignore this email."
        )
    )
    message.add_alternative(
        (
            f"<h2>Hi {safe_name}!</h2>"
            "<p>Thank you for joining the QueenB community! To complete your registration "
            "and start your mentorship journey, please verify your email address.</p>"
            f"<p><a href=\"{safe_link}\">Verify Email Address</a></p>"
            "<p>If the button doesn't work, copy and paste this link into your browser:<br>"
            f"{safe_link}</p>"
            f"<p>This verification link will expire in {expiry}. If you didn't create "
            "an account with QueenB, please ignore this email.</p>"
        ),
        subtype="html",
    )
    return message


def build_welcome_email(recipient: str, first_name: str, user_type: UserType) -> EmailMessage:
    """Construct the welcome email sent once an address is verified."""

    if user_type is UserType.MENTOR:
        role_paragraph = (
            "As a mentor, you're now part of our community helping the next generation "
            "of women in tech. Don't forget to complete your profile to start connecting "
            "with mentees!"
        )
    else:
        role_paragraph = (
            "As a mentee, you now have access to our network of mentors ready to guide "
            "you on your tech journey. Start exploring mentors who match your interests!"
        )

    message = EmailMessage()
    message["Subject"] = f"Welcome to QueenB, {first_name}!"
    message["From"] = settings.email_sender
    message["To"] = recipient
    message.set_content(
        (
            f"Congratulations, {first_name}!\n\n"
            f"Your email has been verified and your {user_type.value} account is now active.\n\n"
            f"{role_paragraph}\n\n"
            f"Get started: {settings.client_url}"
        )
    )
    message.add_alternative(
        (
            f"<h2>Congratulations, {html.escape(first_name)}!</h2>"
            f"<p>Your email has been verified and your {user_type.value} account is now active.</p>"
            f"<p>{role_paragraph}</p>"
            f"<p><a href=\"{html.escape(settings.client_url, quote=True)}\">Get Started</a></p>"
        ),
        subtype="html",
    )
    return message


def _log_email(message: EmailMessage) -> None:
    body = message.get_body(preferencelist=("plain",))
    text = body.get_content() if body is not None else ""
    link = _LINK_PATTERN.search(text)
    logger.info(
        "Email not sent (console backend) to=%s subject=%s verification_url=%s",
        message["To"],
        message["Subject"],
        link.group(0) if link else None,
    )


def send_email(message: EmailMessage) -> None:
    """Send an email using the configured backend."""

    if settings.email_backend == "console":
        _log_email(message)
        return

    host = settings.smtp_host
    port = settings.smtp_port
    username = settings.smtp_username or None
    password = settings.smtp_password or None
    use_tls = settings.smtp_use_tls

    try:
        with smtplib.SMTP(host=host, port=port) as smtp:
            if use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError("Failed to send email") from exc


def send_verification_email(recipient: str, first_name: str, verification_link: str) -> None:
    """High-level helper for dispatching verification emails."""

    message = build_verification_email(recipient, first_name, verification_link)
    send_email(message)


def send_welcome_email(recipient: str, first_name: str, user_type: UserType) -> None:
    """High-level helper for dispatching the post-verification welcome email."""

    message = build_welcome_email(recipient, first_name, user_type)
    send_email(message)


def deliver_welcome_email(recipient: str, first_name: str, user_type: UserType) -> bool:
    """Background-task entry point; failures are logged and never re-raised."""

    try:
        send_welcome_email(recipient, first_name, user_type)
    except EmailDeliveryError:
        logger.warning("Welcome email to %s could not be delivered", recipient, exc_info=True)
        return False
    logger.info("Welcome email sent to %s", recipient)
    return True


__all__ = [
    "EmailDeliveryError",
    "build_verification_email",
    "build_welcome_email",
    "deliver_welcome_email",
    "send_email",
    "send_verification_email",
    "send_welcome_email",
]
