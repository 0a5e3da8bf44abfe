"""
Lead notification jobs for the Alpine Signal Rating backend.

Runs after a wizard submission has been scored and stored:
- owner notification email over SMTP (lead_email.py)
- optional Slack lead alert via incoming webhook (slack_alert.py)
- dispatch of both channels as one background task (notifications.py)

Notifications are best effort. Each channel is skipped when it is not
configured, and a failed channel is logged without affecting the submission
or the other channel.

Environment Requirements:
-------------------------
For email:
- EMAIL_NOTIFICATIONS_ENABLED=true
- EMAIL_SERVICE=SendGrid with SENDGRID_API_KEY, or an SMTP service name with
  EMAIL_USER / EMAIL_PASS (and SMTP_HOST for services without a known host)
- EMAIL_FROM / EMAIL_TO

For Slack:
- SLACK_WEBHOOK_URL: https://hooks.slack.com/services/xxx/yyy/zzz

Usage:
------
    from signal_rating.jobs import dispatch_submission_notifications

    background_tasks.add_task(dispatch_submission_notifications, record, settings)
"""

from signal_rating.jobs.lead_email import (
    send_notification_email,
    format_email_body,
    format_subject,
)
from signal_rating.jobs.slack_alert import (
    send_slack_alert,
    format_lead_blocks,
)
from signal_rating.jobs.notifications import dispatch_submission_notifications


__all__ = [
    # Email
    'send_notification_email',
    'format_email_body',
    'format_subject',
    # Slack
    'send_slack_alert',
    'format_lead_blocks',
    # Dispatch
    'dispatch_submission_notifications',
]
