"""
Slack Lead Alert

Posts a Block Kit summary of each new submission to a Slack incoming webhook
using slack-sdk's WebhookClient.

The alert is optional: without SLACK_WEBHOOK_URL it is skipped. A non-200
response or a transport error raises NotificationError.

Environment Variables:
- SLACK_WEBHOOK_URL: https://hooks.slack.com/services/xxx/yyy/zzz
"""

import logging
from typing import Any, Dict, List

from slack_sdk.webhook import WebhookClient

from signal_rating.core.config import Settings
from signal_rating.core.exceptions import NotificationError
from signal_rating.models.schemas import SubmissionRecord
from signal_rating.services.scoring import format_fixed


logger = logging.getLogger(__name__)


def format_lead_blocks(record: SubmissionRecord) -> List[Dict[str, Any]]:
    """
    Format a submission as Slack Block Kit blocks.

    Layout: header, contact/cohort fields, scores, detected patterns, context
    footer with the client id.
    """
    scores = record.scores
    blocks: List[Dict[str, Any]] = []

    blocks.append({
        "type": "header",
        "text": {
            "type": "plain_text",
            "text": f"New Lead: {record.client_name} ({format_fixed(scores.overall_score * 100, 0)}% ASR)",
        }
    })

    blocks.append({
        "type": "section",
        "fields": [
            {"type": "mrkdwn", "text": f"*Email:*\n{record.email or 'Not provided'}"},
            {"type": "mrkdwn", "text": f"*ARR:*\n{record.cohort}"},
            {"type": "mrkdwn", "text": f"*Sector:*\n{record.sector}"},
            {"type": "mrkdwn", "text": f"*Employees:*\n{record.employees}"},
        ]
    })

    blocks.append({"type": "divider"})

    score_text = (
        f"*Scores*\n"
        f"Overall: *{format_fixed(scores.overall_score * 100, 1)}%*  |  "
        f"Pipeline: *{format_fixed(scores.pipeline * 100, 1)}%*  |  "
        f"Conversion: *{format_fixed(scores.conversion * 100, 1)}%*  |  "
        f"Expansion: *{format_fixed(scores.expansion * 100, 1)}%*\n"
        f"Top challenge: {record.answers.top_challenge or 'N/A'}"
    )
    blocks.append({
        "type": "section",
        "text": {"type": "mrkdwn", "text": score_text}
    })

    if record.patterns:
        pattern_lines = "\n".join(
            f"- *{pattern.priority.value.upper()}* {pattern.description}"
            for pattern in record.patterns
        )
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"*Detected Patterns*\n{pattern_lines}"}
        })

    blocks.append({
        "type": "context",
        "elements": [
            {"type": "mrkdwn", "text": f"Client ID: {record.client_id} | Submitted {record.timestamp}"}
        ]
    })

    return blocks


def send_slack_alert(record: SubmissionRecord, settings: Settings) -> Dict[str, Any]:
    """
    Post a lead alert to Slack.

    Returns:
        Dict with 'success' and, when no webhook is configured, 'skipped' and
        'reason'.

    Raises:
        NotificationError: If Slack rejects the message or cannot be reached.
    """
    if not settings.slack_webhook_url:
        return {'success': True, 'skipped': True, 'reason': 'SLACK_WEBHOOK_URL not configured'}

    blocks = format_lead_blocks(record)
    fallback = f"New Lead: {record.client_name}"
    try:
        client = WebhookClient(settings.slack_webhook_url)
        response = client.send(text=fallback, blocks=blocks)
    except Exception as e:
        raise NotificationError(f"Failed to send Slack message: {e}") from e

    if response.status_code != 200:
        raise NotificationError(
            f"Slack API returned status {response.status_code}: {response.body}"
        )

    logger.info(f"Slack lead alert sent for {record.client_name}")
    return {'success': True}
