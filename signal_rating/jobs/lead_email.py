"""
Lead Notification Email

Emails the owner a plain-text summary every time a prospect completes the
wizard.

Transport:
- EMAIL_SERVICE=SendGrid: smtp.sendgrid.net:587, user 'apikey', password
  SENDGRID_API_KEY
- any other service name: SMTP_HOST if set, otherwise the well-known host of
  the service (gmail, outlook, yahoo, ...), authenticated with EMAIL_USER /
  EMAIL_PASS
All connections upgrade with STARTTLS.

The email is skipped (not failed) when notifications are disabled or the
credentials for the configured service are missing. Delivery failures raise
NotificationError; the dispatcher logs them and the submission still succeeds.
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.message import EmailMessage
from typing import Any, Dict, Optional, Tuple

from signal_rating.core.config import Settings
from signal_rating.core.exceptions import NotificationError
from signal_rating.models.schemas import SubmissionRecord
from signal_rating.services.scoring import format_fixed


logger = logging.getLogger(__name__)


SENDGRID_SERVICE = "sendgrid"
SENDGRID_HOST = "smtp.sendgrid.net"
SENDGRID_USER = "apikey"

# Well-known SMTP submission hosts by service name
SMTP_SERVICE_HOSTS: Dict[str, str] = {
    "gmail": "smtp.gmail.com",
    "outlook": "smtp-mail.outlook.com",
    "hotmail": "smtp-mail.outlook.com",
    "office365": "smtp.office365.com",
    "yahoo": "smtp.mail.yahoo.com",
    "zoho": "smtp.zoho.com",
    "mailgun": "smtp.mailgun.org",
}


def _percent(score: float, digits: int = 1) -> str:
    return format_fixed(score * 100, digits)


def format_subject(record: SubmissionRecord) -> str:
    return f"New Lead: {record.client_name} ({_percent(record.scores.overall_score, 0)}% ASR Score)"


def format_timestamp(timestamp: str) -> str:
    """Human-readable submission time; the raw value when it is not ISO-8601."""
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return moment.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def format_email_body(record: SubmissionRecord, public_base_url: str) -> str:
    """
    Plain-text body of the lead notification.

    Example (abridged):
        New Lead Magnet Submission Received!

        Company: Acme
        ...
        SCORES:
        - Overall ASR Score: 62.4%
    """
    if record.patterns:
        patterns = "\n".join(
            f"- {pattern.pattern_id.value} ({pattern.priority.value}): {pattern.description}"
            for pattern in record.patterns
        )
    else:
        patterns = "None detected"

    return "\n".join([
        "New Lead Magnet Submission Received!",
        "",
        f"Company: {record.client_name}",
        f"Email: {record.email or 'Not provided'}",
        f"Timestamp: {format_timestamp(record.timestamp)}",
        "",
        "COHORT INFO:",
        f"- ARR: {record.cohort}",
        f"- Sector: {record.sector}",
        f"- Employees: {record.employees}",
        "",
        "SCORES:",
        f"- Overall ASR Score: {_percent(record.scores.overall_score)}%",
        f"- Pipeline Health: {_percent(record.scores.pipeline)}%",
        f"- Sales Conversion: {_percent(record.scores.conversion)}%",
        f"- Customer Expansion: {_percent(record.scores.expansion)}%",
        "",
        f"TOP CHALLENGE: {record.answers.top_challenge or 'N/A'}",
        "",
        "DETECTED PATTERNS:",
        patterns,
        "",
        "---",
        f"Client ID: {record.client_id}",
        f"View all submissions at: {public_base_url.rstrip('/')}/api/submissions",
    ])


def resolve_transport(settings: Settings) -> Tuple[Optional[Tuple[str, int, str, str]], Optional[str]]:
    """
    Work out the SMTP server and credentials for the configured service.

    Returns:
        ((host, port, user, password), None) when sending is possible, or
        (None, reason) when the email should be skipped.

    Raises:
        NotificationError: If the service name has no known host and no
            SMTP_HOST override is configured.
    """
    service = settings.email_service.strip().lower()
    if service == SENDGRID_SERVICE:
        if not settings.sendgrid_api_key:
            return None, "SendGrid API key not configured (set SENDGRID_API_KEY)"
        host = settings.smtp_host or SENDGRID_HOST
        return (host, settings.smtp_port, SENDGRID_USER, settings.sendgrid_api_key), None

    if not settings.email_user or not settings.email_pass:
        return None, "Email credentials not configured (set EMAIL_USER and EMAIL_PASS)"
    host = settings.smtp_host or SMTP_SERVICE_HOSTS.get(service)
    if not host:
        raise NotificationError(
            f"Unknown email service '{settings.email_service}'; set SMTP_HOST"
        )
    return (host, settings.smtp_port, settings.email_user, settings.email_pass), None


def send_notification_email(record: SubmissionRecord, settings: Settings) -> Dict[str, Any]:
    """
    Email the owner about a new submission.

    Args:
        record: The stored submission.
        settings: Application settings with the email configuration.

    Returns:
        Dict with:
        - success: True when sent or deliberately skipped
        - skipped: True when notifications are disabled or not configured
        - reason: Why the email was skipped
        - to: Recipient address (when sent)

    Raises:
        NotificationError: If the SMTP exchange fails.
    """
    if not settings.email_notifications_enabled:
        logger.info("Email notifications disabled (set EMAIL_NOTIFICATIONS_ENABLED=true to enable)")
        return {'success': True, 'skipped': True, 'reason': 'Email notifications disabled'}

    transport, reason = resolve_transport(settings)
    if transport is None:
        logger.info(f"Skipping notification email: {reason}")
        return {'success': True, 'skipped': True, 'reason': reason}

    host, port, user, password = transport
    message = EmailMessage()
    message["From"] = settings.email_from
    message["To"] = settings.email_to
    message["Subject"] = format_subject(record)
    message.set_content(format_email_body(record, settings.public_base_url))

    try:
        with smtplib.SMTP(host, port, timeout=settings.smtp_timeout_seconds) as smtp:
            smtp.starttls(context=ssl.create_default_context())
            smtp.login(user, password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationError(f"Email send failed: {e}") from e

    logger.info(f"Notification email sent to {settings.email_to}")
    return {'success': True, 'to': settings.email_to}
