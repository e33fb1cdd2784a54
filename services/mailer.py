"""Outgoing email for one-time codes, delivered through Resend."""

from __future__ import annotations

import resend
from flask import current_app

from .otp import OTP_TTL


class MailDeliveryError(RuntimeError):
    """Raised when the mail provider rejects or fails a delivery."""


def _mail_configured() -> bool:
    return bool(current_app.config.get("RESEND_API_KEY"))


def _should_log_codes() -> bool:
    return (
        not _mail_configured()
        or current_app.debug
        or bool(current_app.config.get("LOG_OTP_TO_CONSOLE"))
    )


def _deliver(to_email: str, subject: str, html: str, text: str) -> None:
    if not _mail_configured():
        return

    resend.api_key = current_app.config["RESEND_API_KEY"]
    params = {
        "from": current_app.config["EMAIL_FROM"],
        "to": [to_email],
        "subject": subject,
        "html": html,
        "text": text,
    }
    try:
        result = resend.Emails.send(params)
    except Exception as exc:
        current_app.logger.error("Email to %s failed: %s", to_email, exc)
        raise MailDeliveryError(str(exc)) from exc

    message_id = result.get("id") if isinstance(result, dict) else None
    current_app.logger.info("Email sent to %s (id=%s)", to_email, message_id or "unknown")


def _code_body(name: str | None, code: str, purpose: str) -> tuple[str, str]:
    app_name = current_app.config.get("APP_NAME", "Classifieds")
    minutes = int(OTP_TTL.total_seconds() // 60)
    html = (
        f"<p>Hi {name or 'there'},</p>"
        f"<p>Your {purpose} code for {app_name} is:</p>"
        f'<p style="font-size: 28px; font-weight: bold; letter-spacing: 4px;">{code}</p>'
        f"<p>This code expires in {minutes} minutes. "
        "If you didn't request this, you can ignore this email.</p>"
    )
    text = f"Your {app_name} {purpose} code is: {code}. It expires in {minutes} minutes."
    return html, text


def send_verification_code(email: str, name: str | None, code: str) -> None:
    """Deliver an email verification code."""

    if _should_log_codes():
        current_app.logger.info("Verification code for %s: %s", email, code)

    app_name = current_app.config.get("APP_NAME", "Classifieds")
    html, text = _code_body(name, code, "verification")
    _deliver(email, f"Your verification code - {app_name}", html, text)


def send_password_reset_code(email: str, name: str | None, code: str) -> None:
    """Deliver a password reset code."""

    if _should_log_codes():
        current_app.logger.info("Password reset code for %s: %s", email, code)

    app_name = current_app.config.get("APP_NAME", "Classifieds")
    html, text = _code_body(name, code, "password reset")
    _deliver(email, f"Reset your password - {app_name}", html, text)
