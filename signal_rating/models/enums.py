"""
Enumeration definitions for the Alpine Signal Rating backend.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in Pydantic models and JSON responses.

Enums:
- Category: the four scoring categories (three loops plus economics)
- Loop: display names of the three GTM loops
- TopChallenge: recognized answers to the "top challenge" question
- PatternId / PatternPriority: qualitative pattern tags
- MetricId: the nine fixed priority metrics
- MetricFormat: display formats for raw metric values
- ScoreBand / RecommendationPriority / FixPriority: report presentation tiers
"""

from enum import Enum


class Category(str, Enum):
    """
    Scoring categories, one per metric bundle.

    Pipeline, Conversion and Expansion are exposed as loops; Economics is only
    folded into the overall score.
    """
    PIPELINE = "pipeline"
    CONVERSION = "conversion"
    EXPANSION = "expansion"
    ECONOMICS = "economics"


class Loop(str, Enum):
    """
    Display names of the GTM loops.

    Values are the capitalized names used on the results page and in the PDF.
    ECONOMICS only appears as the origin of a priority metric, never as a
    scored loop.
    """
    PIPELINE = "Pipeline"
    CONVERSION = "Conversion"
    EXPANSION = "Expansion"
    ECONOMICS = "Economics"


class TopChallenge(str, Enum):
    """
    Recognized answers to question 5.

    Only these three values reweight the overall score. Any other answer is
    passed through unchanged and leaves the base weights untouched.
    """
    PIPELINE = "pipeline"
    CONVERSION = "conversion"
    RETENTION = "retention"


class PatternId(str, Enum):
    """Identifiers of the rule-based qualitative patterns."""
    PIPELINE_CONVERSION_GAP = "pipeline_conversion_gap"
    LEAKY_BUCKET = "leaky_bucket"
    SYSTEMATIC_ISSUES = "systematic_issues"
    UNIT_ECONOMICS_PROBLEM = "unit_economics_problem"


class PatternPriority(str, Enum):
    """Severity attached to a detected pattern."""
    HIGH = "high"
    CRITICAL = "critical"


class MetricId(str, Enum):
    """
    The nine fixed metrics considered for priority recommendations.

    Three come from Pipeline, two each from Conversion, Expansion and
    Economics. The set is fixed and not configurable.
    """
    LEAD_VELOCITY_RATE = "lead_velocity_rate"
    MQL_TO_SQL_CONVERSION = "mql_to_sql_conversion"
    LEAD_RESPONSE_TIME = "lead_response_time"
    WIN_RATE = "win_rate"
    SALES_CYCLE_LENGTH = "sales_cycle_length"
    NET_REVENUE_RETENTION = "nrr"
    CHURN_RATE = "churn_rate"
    CAC_PAYBACK_PERIOD = "cac_payback_period"
    LTV_CAC_RATIO = "ltv_cac"


class MetricFormat(str, Enum):
    """
    How a raw metric value is rendered for display.

    - percentage: rounded value * 100 followed by '%'
    - days: rounded value followed by ' days'
    - ratio: one decimal followed by ':1'
    - decimal: two decimals
    """
    PERCENTAGE = "percentage"
    DAYS = "days"
    RATIO = "ratio"
    DECIMAL = "decimal"


class ScoreBand(str, Enum):
    """Color band of a 0-100 score: >=70 high, >=40 medium, else low."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationPriority(str, Enum):
    """Priority attached to a loop-level recommendation."""
    HIGH = "High"
    MEDIUM = "Medium"


class FixPriority(str, Enum):
    """Priority label printed on a recommended fix in the PDF report."""
    HIGH = "HIGH"
    MED = "MED"
    LOW = "LOW"
