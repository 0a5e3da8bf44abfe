"""
Core infrastructure package for the Alpine Signal Rating backend.

Provides:
- Configuration management via pydantic-settings
- The application exception hierarchy
- Loaders for the static assessment config and fix library

Simplified imports:

    from signal_rating.core import get_settings, load_assessment_config, ConfigurationError

FastAPI dependencies live in signal_rating.core.dependencies and are imported
from there directly.
"""

# =============================================================================
# Re-exports from signal_rating.core.config
# =============================================================================
from signal_rating.core.config import Settings, get_settings

# =============================================================================
# Re-exports from signal_rating.core.exceptions
# =============================================================================
from signal_rating.core.exceptions import (
    SignalRatingError,
    ConfigurationError,
    ValidationError,
    RenderError,
    NotificationError,
    PersistenceError,
)

# =============================================================================
# Re-exports from signal_rating.core.assessment
# =============================================================================
from signal_rating.core.assessment import (
    QUESTION_KEYS,
    TOP_CHALLENGE_KEY,
    parse_assessment_config,
    load_assessment_config,
    load_fix_library,
)


__all__ = [
    # Configuration management
    'Settings',
    'get_settings',
    # Exceptions
    'SignalRatingError',
    'ConfigurationError',
    'ValidationError',
    'RenderError',
    'NotificationError',
    'PersistenceError',
    # Static configuration loaders
    'QUESTION_KEYS',
    'TOP_CHALLENGE_KEY',
    'parse_assessment_config',
    'load_assessment_config',
    'load_fix_library',
]
