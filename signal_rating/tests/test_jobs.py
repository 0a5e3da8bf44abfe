"""
Tests for submission notifications (jobs/lead_email.py, jobs/slack_alert.py,
jobs/notifications.py).

SMTP and the Slack webhook are always mocked:
- patch('signal_rating.jobs.lead_email.smtplib.SMTP')
- patch('signal_rating.jobs.slack_alert.WebhookClient')

Test Classes:
- TestEmailFormatting: subject and body text
- TestSendNotificationEmail: skip paths, transport selection, SMTP failures
- TestSlackAlert: block layout, skip path, webhook failures
- TestDispatch: channel isolation
"""

import smtplib
from unittest.mock import MagicMock, Mock, patch

import pytest

from signal_rating.core.config import Settings
from signal_rating.core.exceptions import NotificationError
from signal_rating.jobs.lead_email import (
    format_email_body,
    format_subject,
    resolve_transport,
    send_notification_email,
)
from signal_rating.jobs.notifications import dispatch_submission_notifications
from signal_rating.jobs.slack_alert import format_lead_blocks, send_slack_alert


def _settings(**overrides) -> Settings:
    values = {
        "_env_file": None,
        "email_notifications_enabled": False,
        "slack_webhook_url": None,
    }
    values.update(overrides)
    return Settings(**values)


# ============================================================
# EMAIL
# ============================================================

class TestEmailFormatting:

    def test_subject(self, sample_record):
        sample_record.scores.overall_score = 0.624
        assert format_subject(sample_record) == "New Lead: Acme Analytics (62% ASR Score)"

    def test_body_sections(self, sample_record):
        body = format_email_body(sample_record, "https://signal.example.com/")

        assert body.startswith("New Lead Magnet Submission Received!")
        assert "Company: Acme Analytics" in body
        assert "Email: cfo@acme.example" in body
        assert "- ARR: 1M-5M" in body
        assert "TOP CHALLENGE: conversion" in body
        assert "pipeline_conversion_gap (high)" in body
        assert "Client ID: client-123" in body
        assert body.endswith("View all submissions at: https://signal.example.com/api/submissions")

    def test_body_without_patterns(self, sample_record):
        sample_record.patterns = []
        sample_record.email = ""
        body = format_email_body(sample_record, "http://localhost:3000")

        assert "DETECTED PATTERNS:\nNone detected" in body
        assert "Email: Not provided" in body


class TestSendNotificationEmail:

    def test_disabled_is_skipped(self, sample_record):
        with patch('signal_rating.jobs.lead_email.smtplib.SMTP') as mock_smtp:
            result = send_notification_email(sample_record, _settings())

        assert result['skipped'] is True
        mock_smtp.assert_not_called()

    def test_missing_sendgrid_key_is_skipped(self, sample_record):
        settings = _settings(email_notifications_enabled=True, sendgrid_api_key=None)
        with patch('signal_rating.jobs.lead_email.smtplib.SMTP') as mock_smtp:
            result = send_notification_email(sample_record, settings)

        assert result['success'] is True
        assert result['skipped'] is True
        assert "SENDGRID_API_KEY" in result['reason']
        mock_smtp.assert_not_called()

    def test_sendgrid_send(self, sample_record, email_settings):
        with patch('signal_rating.jobs.lead_email.smtplib.SMTP') as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            result = send_notification_email(sample_record, email_settings)

        assert result == {'success': True, 'to': 'owner@example.com'}
        mock_smtp.assert_called_once_with("smtp.sendgrid.net", 587, timeout=15.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("apikey", "SG.test-key")

        message = smtp.send_message.call_args[0][0]
        assert message["To"] == "owner@example.com"
        assert message["Subject"].startswith("New Lead: Acme Analytics")

    def test_named_smtp_service(self, sample_record):
        settings = _settings(
            email_notifications_enabled=True,
            email_service="gmail",
            email_user="owner@gmail.com",
            email_pass="app-password",
        )
        with patch('signal_rating.jobs.lead_email.smtplib.SMTP') as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            send_notification_email(sample_record, settings)

        mock_smtp.assert_called_once_with("smtp.gmail.com", 587, timeout=15.0)
        smtp.login.assert_called_once_with("owner@gmail.com", "app-password")

    def test_unknown_service_without_host_raises(self):
        settings = _settings(
            email_notifications_enabled=True,
            email_service="carrier-pigeon",
            email_user="user",
            email_pass="pass",
        )
        with pytest.raises(NotificationError):
            resolve_transport(settings)

    def test_smtp_host_override(self):
        settings = _settings(
            email_service="carrier-pigeon",
            email_user="user",
            email_pass="pass",
            smtp_host="mail.internal",
            smtp_port=2525,
        )
        transport, reason = resolve_transport(settings)
        assert transport == ("mail.internal", 2525, "user", "pass")
        assert reason is None

    def test_smtp_failure_raises(self, sample_record, email_settings):
        with patch('signal_rating.jobs.lead_email.smtplib.SMTP') as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            smtp.send_message.side_effect = smtplib.SMTPException("relay denied")

            with pytest.raises(NotificationError, match="relay denied"):
                send_notification_email(sample_record, email_settings)

    def test_connection_failure_raises(self, sample_record, email_settings):
        with patch('signal_rating.jobs.lead_email.smtplib.SMTP', side_effect=OSError("unreachable")):
            with pytest.raises(NotificationError):
                send_notification_email(sample_record, email_settings)


# ============================================================
# SLACK
# ============================================================

class TestSlackAlert:

    def test_blocks_layout(self, sample_record):
        blocks = format_lead_blocks(sample_record)

        assert [block["type"] for block in blocks] == [
            "header", "section", "divider", "section", "section", "context",
        ]
        assert blocks[0]["text"]["text"].startswith("New Lead: Acme Analytics")
        assert "*HIGH* Strong pipeline but weak conversion" in blocks[4]["text"]["text"]
        assert "Client ID: client-123" in blocks[5]["elements"][0]["text"]

    def test_blocks_without_patterns(self, sample_record):
        sample_record.patterns = []
        blocks = format_lead_blocks(sample_record)
        assert "Detected Patterns" not in str(blocks)

    def test_no_webhook_is_skipped(self, sample_record):
        with patch('signal_rating.jobs.slack_alert.WebhookClient') as mock_client:
            result = send_slack_alert(sample_record, _settings())

        assert result['skipped'] is True
        mock_client.assert_not_called()

    def test_send_success(self, sample_record):
        settings = _settings(slack_webhook_url="https://hooks.slack.com/services/T/B/X")
        with patch('signal_rating.jobs.slack_alert.WebhookClient') as mock_client:
            mock_client.return_value.send.return_value = Mock(status_code=200, body="ok")
            result = send_slack_alert(sample_record, settings)

        assert result == {'success': True}
        mock_client.assert_called_once_with("https://hooks.slack.com/services/T/B/X")
        kwargs = mock_client.return_value.send.call_args.kwargs
        assert kwargs["text"] == "New Lead: Acme Analytics"
        assert kwargs["blocks"] == format_lead_blocks(sample_record)

    def test_non_200_raises(self, sample_record):
        settings = _settings(slack_webhook_url="https://hooks.slack.com/services/T/B/X")
        with patch('signal_rating.jobs.slack_alert.WebhookClient') as mock_client:
            mock_client.return_value.send.return_value = Mock(status_code=404, body="no_service")

            with pytest.raises(NotificationError, match="404"):
                send_slack_alert(sample_record, settings)

    def test_client_exception_raises(self, sample_record):
        settings = _settings(slack_webhook_url="https://hooks.slack.com/services/T/B/X")
        with patch('signal_rating.jobs.slack_alert.WebhookClient') as mock_client:
            mock_client.return_value.send.side_effect = ConnectionError("reset")

            with pytest.raises(NotificationError):
                send_slack_alert(sample_record, settings)


# ============================================================
# DISPATCH
# ============================================================

class TestDispatch:

    def test_all_channels_skipped_by_default(self, sample_record):
        results = dispatch_submission_notifications(sample_record, _settings())

        assert results['email']['skipped'] is True
        assert results['slack']['skipped'] is True

    def test_failure_does_not_stop_other_channels(self, sample_record):
        failing_email = MagicMock(side_effect=NotificationError("smtp down"))
        slack = MagicMock(return_value={'success': True})

        with patch.dict(
            'signal_rating.jobs.notifications.CHANNELS',
            {'email': failing_email, 'slack': slack},
        ):
            results = dispatch_submission_notifications(sample_record, _settings())

        assert results['email'] == {'success': False, 'error': 'smtp down'}
        assert results['slack'] == {'success': True}
        slack.assert_called_once()

    def test_unexpected_error_is_contained(self, sample_record):
        failing_slack = MagicMock(side_effect=UnicodeEncodeError('ascii', 'é', 0, 1, 'bad'))
        email = MagicMock(return_value={'success': True})

        with patch.dict(
            'signal_rating.jobs.notifications.CHANNELS',
            {'slack': failing_slack, 'email': email},
        ):
            results = dispatch_submission_notifications(sample_record, _settings())

        assert results['slack']['success'] is False
        assert 'ascii' in results['slack']['error']
        assert results['email'] == {'success': True}
