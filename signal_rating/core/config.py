"""
Settings and environment management module for the Alpine Signal Rating backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for local development (no variable is required)
- Singleton pattern via @lru_cache for efficient access
- Optional credentials for the email and Slack notification channels

Environment Variables:
- ASSESSMENT_CONFIG_PATH: Question and metric bundle config (default: packaged wizard_questions.json)
- FIX_LIBRARY_PATH: Fix catalogue used by the PDF report (default: packaged fix_library.json)
- SUBMISSIONS_PATH: Append-only submission log (default: submissions_data.json)
- PDF_OUTPUT_DIR: Directory rendered reports are written to (default: temp_pdfs)
- EMAIL_NOTIFICATIONS_ENABLED: Send owner notification emails (default: false)
- EMAIL_SERVICE: 'SendGrid' or an SMTP service name such as 'gmail'
- SENDGRID_API_KEY / EMAIL_USER / EMAIL_PASS: Email credentials
- SLACK_WEBHOOK_URL: Optional Slack incoming webhook for lead alerts

Usage:
    from signal_rating.core.config import get_settings

    settings = get_settings()
    submissions_path = settings.submissions_path
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


# Directory holding the packaged JSON configuration files
DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        assessment_config_path: Path to wizard_questions.json.
        fix_library_path: Path to fix_library.json.
        submissions_path: Path to the JSON submission log.
        pdf_output_dir: Directory for rendered PDF reports.
        pdf_render_timeout_seconds: Upper bound on a single render.
        pdf_max_concurrent_renders: Number of renders allowed at once.
        logo_path: Optional PNG embedded on the report cover.
        public_base_url: Base URL used for links in notifications.
        cors_origins: Origins allowed by the CORS middleware.
        email_notifications_enabled: Whether owner emails are sent.
        email_from: Sender address.
        email_to: Owner address receiving lead notifications.
        email_service: 'SendGrid' or an SMTP service name.
        sendgrid_api_key: SendGrid API key (SMTP password for user 'apikey').
        email_user: SMTP username for non-SendGrid services.
        email_pass: SMTP password for non-SendGrid services.
        smtp_host: Explicit SMTP host; overrides the service lookup.
        smtp_port: SMTP port (STARTTLS).
        smtp_timeout_seconds: Socket timeout for SMTP connections.
        slack_webhook_url: Slack incoming webhook URL for lead alerts.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Static Configuration Files
    # =========================================================================

    assessment_config_path: Path = DATA_DIR / "wizard_questions.json"
    fix_library_path: Path = DATA_DIR / "fix_library.json"

    # =========================================================================
    # Storage
    # =========================================================================

    # Append-only JSON array of submission records
    submissions_path: Path = Path("submissions_data.json")

    # =========================================================================
    # PDF Reports
    # =========================================================================

    pdf_output_dir: Path = Path("temp_pdfs")
    pdf_render_timeout_seconds: float = 30.0
    pdf_max_concurrent_renders: int = 2
    logo_path: Optional[Path] = None

    # =========================================================================
    # HTTP
    # =========================================================================

    public_base_url: str = 'http://localhost:3000'
    cors_origins: List[str] = ['*']

    # =========================================================================
    # Email Notifications (Optional)
    # =========================================================================

    email_notifications_enabled: bool = False
    email_from: str = 'noreply@alpine-signal.com'
    email_to: str = 'your-email@example.com'

    # 'SendGrid' relays through smtp.sendgrid.net with user 'apikey';
    # any other value is treated as an SMTP service name (e.g. 'gmail')
    email_service: str = 'SendGrid'
    sendgrid_api_key: Optional[str] = None
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_timeout_seconds: float = 15.0

    # =========================================================================
    # Slack Integration (Optional)
    # =========================================================================

    # Format: https://hooks.slack.com/services/xxx/yyy/zzz
    slack_webhook_url: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
