"""
Exception hierarchy for the Alpine Signal Rating backend.

- ConfigurationError: a rating has no metric bundle entry, or a static config
  file is missing or malformed. Fatal at startup; a rejected request when
  raised by an individual out-of-range rating.
- ValidationError: the caller omitted the answers payload.
- RenderError: PDF rendering failed or timed out.
- NotificationError: an email or Slack notification could not be sent.
- PersistenceError: the submission log could not be read or appended.

Route handlers translate these into HTTP responses. Notification and
persistence failures are logged by their callers and never fail a submission.
"""


class SignalRatingError(Exception):
    """Base class for all application errors."""


class ConfigurationError(SignalRatingError):
    """Static configuration is missing, malformed, or has no entry for a rating."""


class ValidationError(SignalRatingError):
    """A request is missing required data."""


class RenderError(SignalRatingError):
    """The PDF report could not be rendered."""


class NotificationError(SignalRatingError):
    """A notification channel failed to deliver a message."""


class PersistenceError(SignalRatingError):
    """The submission log could not be read or written."""
