"""
Submission notification dispatch.

Runs every notification channel for a stored submission. Channels are
independent: a failure in one is logged and recorded in the result, and the
others still run. Nothing here raises, so it is safe to schedule as a FastAPI
background task after the response has been sent.
"""

import logging
from typing import Any, Callable, Dict

from signal_rating.core.config import Settings
from signal_rating.core.exceptions import NotificationError
from signal_rating.jobs.lead_email import send_notification_email
from signal_rating.jobs.slack_alert import send_slack_alert
from signal_rating.models.schemas import SubmissionRecord


logger = logging.getLogger(__name__)


CHANNELS: Dict[str, Callable[[SubmissionRecord, Settings], Dict[str, Any]]] = {
    'email': send_notification_email,
    'slack': send_slack_alert,
}


def dispatch_submission_notifications(
    record: SubmissionRecord,
    settings: Settings,
) -> Dict[str, Dict[str, Any]]:
    """
    Notify the owner about a new submission on every channel.

    Args:
        record: The stored submission.
        settings: Application settings.

    Returns:
        Per-channel result dicts keyed by channel name, e.g.
        {'email': {'success': True, 'skipped': True, 'reason': ...},
         'slack': {'success': False, 'error': ...}}
    """
    results: Dict[str, Dict[str, Any]] = {}
    for name, send in CHANNELS.items():
        try:
            results[name] = send(record, settings)
        except NotificationError as e:
            logger.warning(f"{name} notification failed for {record.client_id}: {e}")
            results[name] = {'success': False, 'error': str(e)}
        except Exception as e:
            logger.exception(f"Unexpected error in {name} notification for {record.client_id}")
            results[name] = {'success': False, 'error': str(e)}
    return results
