"""Email dispatch using the Resend API."""

from __future__ import annotations

import html
import logging

from echosphere.config import get_settings
from echosphere.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

_settings = get_settings()


def _render_body(body: str) -> str:
    paragraphs = [p.strip() for p in body.split("\n\n") if p.strip()]
    return "\n".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )


def send_email(to: str, subject: str, body: str) -> None:
    """Send a plain-text email via Resend.

    Raises ConfigurationError when RESEND_API_KEY is missing and
    ExternalServiceError when the provider rejects the message.
    """
    if not _settings.email.resend_api_key:
        logger.warning("RESEND_API_KEY not set, email to %s not sent: %s", to, subject)
        raise ConfigurationError("Email is not configured. Set RESEND_API_KEY to send resident replies.")

    import resend
    resend.api_key = _settings.email.resend_api_key

    try:
        resend.Emails.send({
            "from": _settings.email.sender,
            "to": [to],
            "subject": subject,
            "html": _render_body(body),
            "text": body,
        })
    except Exception as e:
        logger.exception("Failed to send email to %s", to)
        raise ExternalServiceError("The email provider rejected the message.") from e


def send_status_update_email(to: str, organization_name: str, category: str, status: str) -> bool:
    """Notify a resident that their report changed status. Returns True on success."""
    subject = f"Update on your {category} report from {organization_name}"
    body = (
        f"Your report to {organization_name} is now: {status.replace('_', ' ')}.\n\n"
        "Thank you for helping improve your community."
    )
    try:
        send_email(to, subject, body)
        return True
    except (ConfigurationError, ExternalServiceError):
        return False
