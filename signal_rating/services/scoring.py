"""
Scoring Engine Service

Computes the Alpine Signal Rating from four 1-5 ratings and a top-challenge
answer. Each rating selects a bundle of benchmark metric values from the static
assessment config; every bundle is reduced to a category score by a fixed
weighted sum of metric-to-benchmark ratios. The three loop scores and the
economics score are then combined with challenge-adjusted weights into the
overall score.

The engine is a pure function of (ratings, metric bundles):
- no I/O and no module state beyond the constant coefficient tables below
- the same inputs always produce the same ScoreResult
- safe to call from any number of concurrent requests

Ratings outside 1..5 raise ConfigurationError rather than falling back to a
default, so a fabricated score is never reported.

Arithmetic keeps the published formula term by term (same operand order,
half-up rounding) so scores are reproducible on every client.
"""

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from signal_rating.core.assessment import QUESTION_KEYS, TOP_CHALLENGE_KEY
from signal_rating.core.exceptions import ConfigurationError
from signal_rating.models.enums import (
    Category,
    Loop,
    MetricFormat,
    MetricId,
    PatternId,
    PatternPriority,
    TopChallenge,
)
from signal_rating.models.schemas import (
    DetectedPattern,
    LoopScores,
    MetricBundles,
    PriorityRecommendation,
    RatingInput,
    ScoreResult,
)


# =============================================================================
# Coefficient Tables
# =============================================================================


@dataclass(frozen=True)
class ScoreTerm:
    """
    One term of a category score: (metric / benchmark) * weight.

    For lower-is-better metrics the ratio is inverted to (1 - metric / benchmark).
    """
    metric: str
    benchmark: float
    weight: float
    lower_is_better: bool = False

    def ratio(self, value: float) -> float:
        if self.lower_is_better:
            return 1 - (value / self.benchmark)
        return value / self.benchmark


# Benchmarks are the "excellent" values; weights within a category sum to 1.0
CATEGORY_TERMS: Dict[Category, Tuple[ScoreTerm, ...]] = {
    Category.PIPELINE: (
        ScoreTerm("lead_velocity_rate", 0.12, 0.25),
        ScoreTerm("mql_to_sql_conversion", 0.28, 0.25),
        ScoreTerm("marketing_contribution_pipeline", 0.38, 0.20),
        ScoreTerm("pipeline_coverage_ratio", 3.8, 0.15),
        ScoreTerm("inbound_lead_volume_growth", 0.25, 0.10),
        ScoreTerm("lead_response_time", 24, 0.05, lower_is_better=True),
    ),
    Category.CONVERSION: (
        ScoreTerm("win_rate", 0.32, 0.30),
        ScoreTerm("sales_cycle_length", 180, 0.20, lower_is_better=True),
        ScoreTerm("sql_acceptance_rate", 0.90, 0.15),
        ScoreTerm("demo_to_proposal_rate", 0.72, 0.15),
        ScoreTerm("proposal_to_won_rate", 0.68, 0.10),
        ScoreTerm("pipeline_conversion_rate", 0.42, 0.10),
    ),
    Category.EXPANSION: (
        ScoreTerm("nrr", 1.20, 0.30),
        ScoreTerm("grr", 0.98, 0.20),
        ScoreTerm("churn_rate", 1, 0.20, lower_is_better=True),
        ScoreTerm("expansion_revenue_growth", 0.28, 0.15),
        ScoreTerm("nps", 58, 0.10),
        ScoreTerm("time_to_first_value", 60, 0.05, lower_is_better=True),
    ),
    Category.ECONOMICS: (
        ScoreTerm("cac_payback_period", 26, 0.20, lower_is_better=True),
        ScoreTerm("ltv_cac", 5.8, 0.20),
        ScoreTerm("burn_multiple", 4.0, 0.15, lower_is_better=True),
        ScoreTerm("sales_rep_ramp_time", 6.5, 0.10, lower_is_better=True),
        ScoreTerm("quota_attainment", 0.88, 0.15),
        ScoreTerm("magic_number", 1.25, 0.10),
        ScoreTerm("rule_of_40", 62, 0.10),
    ),
}

# Base category weights of the overall score (sum to 1.0)
BASE_WEIGHTS: Dict[Category, float] = {
    Category.PIPELINE: 0.30,
    Category.CONVERSION: 0.30,
    Category.EXPANSION: 0.25,
    Category.ECONOMICS: 0.15,
}

# Multiplier applied to the weight of the user's top-challenge category
CHALLENGE_WEIGHT_BOOST = 1.15

# Top-challenge answers that reweight the overall score
CHALLENGE_FOCUS: Dict[str, Category] = {
    TopChallenge.PIPELINE.value: Category.PIPELINE,
    TopChallenge.CONVERSION.value: Category.CONVERSION,
    TopChallenge.RETENTION.value: Category.EXPANSION,
}

VALID_RATINGS = range(1, 6)
DEFAULT_RATING = 3
DEFAULT_TOP_CHALLENGE = TopChallenge.PIPELINE.value
PRIORITY_RECOMMENDATION_COUNT = 5


# =============================================================================
# Priority Metric Definitions
# =============================================================================


@dataclass(frozen=True)
class PriorityMetric:
    """A metric eligible for priority recommendations."""
    metric_id: MetricId
    name: str
    loop: Loop
    category: Category
    term: ScoreTerm
    value_format: MetricFormat


def _term(category: Category, metric: str) -> ScoreTerm:
    return next(term for term in CATEGORY_TERMS[category] if term.metric == metric)


# Fixed candidate list; its order is the tie-break order of the ranking
PRIORITY_METRICS: Tuple[PriorityMetric, ...] = (
    PriorityMetric(MetricId.LEAD_VELOCITY_RATE, "Lead Velocity Rate", Loop.PIPELINE,
                   Category.PIPELINE, _term(Category.PIPELINE, "lead_velocity_rate"),
                   MetricFormat.PERCENTAGE),
    PriorityMetric(MetricId.MQL_TO_SQL_CONVERSION, "MQL to SQL Conversion", Loop.PIPELINE,
                   Category.PIPELINE, _term(Category.PIPELINE, "mql_to_sql_conversion"),
                   MetricFormat.PERCENTAGE),
    PriorityMetric(MetricId.LEAD_RESPONSE_TIME, "Lead Response Time", Loop.PIPELINE,
                   Category.PIPELINE, _term(Category.PIPELINE, "lead_response_time"),
                   MetricFormat.DAYS),
    PriorityMetric(MetricId.WIN_RATE, "Win Rate", Loop.CONVERSION,
                   Category.CONVERSION, _term(Category.CONVERSION, "win_rate"),
                   MetricFormat.PERCENTAGE),
    PriorityMetric(MetricId.SALES_CYCLE_LENGTH, "Sales Cycle Length", Loop.CONVERSION,
                   Category.CONVERSION, _term(Category.CONVERSION, "sales_cycle_length"),
                   MetricFormat.DAYS),
    PriorityMetric(MetricId.NET_REVENUE_RETENTION, "Net Revenue Retention", Loop.EXPANSION,
                   Category.EXPANSION, _term(Category.EXPANSION, "nrr"),
                   MetricFormat.PERCENTAGE),
    PriorityMetric(MetricId.CHURN_RATE, "Churn Rate", Loop.EXPANSION,
                   Category.EXPANSION, _term(Category.EXPANSION, "churn_rate"),
                   MetricFormat.PERCENTAGE),
    PriorityMetric(MetricId.CAC_PAYBACK_PERIOD, "CAC Payback Period", Loop.ECONOMICS,
                   Category.ECONOMICS, _term(Category.ECONOMICS, "cac_payback_period"),
                   MetricFormat.DAYS),
    PriorityMetric(MetricId.LTV_CAC_RATIO, "LTV:CAC Ratio", Loop.ECONOMICS,
                   Category.ECONOMICS, _term(Category.ECONOMICS, "ltv_cac"),
                   MetricFormat.RATIO),
)


# =============================================================================
# Pattern Rules
# =============================================================================


@dataclass(frozen=True)
class PatternRule:
    """A predicate over raw ratings that emits a fixed pattern when true."""
    pattern_id: PatternId
    description: str
    priority: PatternPriority
    applies: Callable[[RatingInput], bool]


# Evaluated in this order; several rules can fire for one submission
PATTERN_RULES: Tuple[PatternRule, ...] = (
    PatternRule(
        PatternId.PIPELINE_CONVERSION_GAP,
        "Strong pipeline but weak conversion - focus on sales enablement",
        PatternPriority.HIGH,
        lambda r: r.pipeline_rating >= 4 and r.conversion_rating <= 2,
    ),
    PatternRule(
        PatternId.LEAKY_BUCKET,
        "Acquiring customers but losing them - prioritize customer success",
        PatternPriority.CRITICAL,
        lambda r: r.conversion_rating >= 4 and r.expansion_rating <= 2,
    ),
    PatternRule(
        PatternId.SYSTEMATIC_ISSUES,
        "Multiple weak areas suggest fundamental GTM challenges",
        PatternPriority.CRITICAL,
        lambda r: r.pipeline_rating <= 2 and r.conversion_rating <= 2 and r.expansion_rating <= 2,
    ),
    PatternRule(
        PatternId.UNIT_ECONOMICS_PROBLEM,
        "Operations functional but economics unsustainable",
        PatternPriority.HIGH,
        lambda r: r.economics_rating <= 2 and (r.pipeline_rating >= 3 or r.conversion_rating >= 3),
    ),
)


# =============================================================================
# Rounding and Formatting
# =============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""
    floor = math.floor(value)
    return int(floor + 1 if value - floor >= 0.5 else floor)


def format_fixed(value: float, digits: int) -> str:
    """Fixed-point string with `digits` decimals, ties rounded away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp_unit(value: float) -> float:
    """Clamp a score to [0, 1]."""
    return max(0.0, min(1.0, value))


VALUE_FORMATTERS: Dict[MetricFormat, Callable[[float], str]] = {
    MetricFormat.PERCENTAGE: lambda v: f"{round_half_up(v * 100)}%",
    MetricFormat.DAYS: lambda v: f"{round_half_up(v)} days",
    MetricFormat.RATIO: lambda v: f"{format_fixed(v, 1)}:1",
    MetricFormat.DECIMAL: lambda v: format_fixed(v, 2),
}

METRIC_FORMATS: Dict[MetricId, MetricFormat] = {
    metric.metric_id: metric.value_format for metric in PRIORITY_METRICS
}


def format_metric_value(metric_id: MetricId, value: float) -> str:
    """
    Format a raw metric value for display.

    The format is looked up by metric identity; metrics without an entry are
    shown as two-decimal numbers.

    Examples:
        >>> format_metric_value(MetricId.WIN_RATE, 0.21)
        '21%'
        >>> format_metric_value(MetricId.LTV_CAC_RATIO, 3.0)
        '3.0:1'
    """
    value_format = METRIC_FORMATS.get(metric_id, MetricFormat.DECIMAL)
    return VALUE_FORMATTERS[value_format](value)


# =============================================================================
# Answer Parsing
# =============================================================================

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_rating(value: Any) -> Optional[int]:
    """
    Parse a raw wizard answer into an integer.

    Uses leading-integer semantics: "4", " 4 ", "4.7" and 4.7 all parse to 4.
    Missing, blank and non-numeric values return None. The result is not range
    checked.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        value = repr(value)
    if not isinstance(value, str):
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def coerce_rating(value: Any) -> int:
    """Parse a rating, substituting the default for missing, unparseable or zero answers."""
    return parse_rating(value) or DEFAULT_RATING


def build_rating_input(answers: Mapping[str, Any]) -> RatingInput:
    """
    Build the engine input from raw wizard answers.

    Args:
        answers: Wizard answers keyed by question id.

    Returns:
        RatingInput with defaults applied. Out-of-range ratings are passed
        through so the engine can reject them.
    """
    top_challenge = answers.get(TOP_CHALLENGE_KEY) or DEFAULT_TOP_CHALLENGE
    return RatingInput(
        pipeline_rating=coerce_rating(answers.get(QUESTION_KEYS[Category.PIPELINE])),
        conversion_rating=coerce_rating(answers.get(QUESTION_KEYS[Category.CONVERSION])),
        expansion_rating=coerce_rating(answers.get(QUESTION_KEYS[Category.EXPANSION])),
        economics_rating=coerce_rating(answers.get(QUESTION_KEYS[Category.ECONOMICS])),
        top_challenge=str(top_challenge),
    )


# =============================================================================
# Engine
# =============================================================================


def category_rating(ratings: RatingInput, category: Category) -> int:
    """Return the rating answered for a category."""
    return getattr(ratings, f"{category.value}_rating")


def lookup_metrics(metric_bundles: MetricBundles, category: Category, rating: int) -> Any:
    """
    Resolve the metric record a rating maps to.

    Raises:
        ConfigurationError: If the rating is outside 1..5 or the bundle has no
            entry for it.
    """
    if isinstance(rating, bool) or not isinstance(rating, int) or rating not in VALID_RATINGS:
        raise ConfigurationError(
            f"{category.value} rating must be an integer between 1 and 5, got {rating!r}"
        )
    table = getattr(metric_bundles, category.value)
    try:
        return table[str(rating)]
    except KeyError as e:
        raise ConfigurationError(
            f"No {category.value} metrics configured for rating {rating}"
        ) from e


def score_category(category: Category, metrics: Any) -> float:
    """
    Weighted sum of metric ratios for one category.

    The result is not clamped; extreme configs can push it outside [0, 1].
    """
    total = 0.0
    for term in CATEGORY_TERMS[category]:
        total += term.ratio(getattr(metrics, term.metric)) * term.weight
    return total


def compute_weights(top_challenge: Any) -> Dict[Category, float]:
    """
    Category weights for the overall score.

    The category matching the top challenge (retention maps to expansion) is
    multiplied by CHALLENGE_WEIGHT_BOOST and all weights are renormalized to
    sum to 1. Unrecognized challenges return the base weights.
    """
    weights = dict(BASE_WEIGHTS)
    focus = CHALLENGE_FOCUS.get(top_challenge) if isinstance(top_challenge, str) else None
    if focus is not None:
        weights[focus] *= CHALLENGE_WEIGHT_BOOST
        total = sum(weights.values())
        weights = {category: weight / total for category, weight in weights.items()}
    return weights


def rank_priority_metrics(
    metrics_by_category: Mapping[Category, Any],
    limit: int = PRIORITY_RECOMMENDATION_COUNT,
) -> List[PriorityRecommendation]:
    """
    Rank the fixed priority metrics worst first and keep the first `limit`.

    The sort is stable, so equal scores keep PRIORITY_METRICS order.
    """
    scored = []
    for metric in PRIORITY_METRICS:
        value = getattr(metrics_by_category[metric.category], metric.term.metric)
        scored.append((metric.term.ratio(value), metric, value))

    ranked = sorted(scored, key=lambda item: item[0])[:limit]
    return [
        PriorityRecommendation(
            metric_id=metric.metric_id,
            name=metric.name,
            loop=metric.loop,
            normalized_score=round_half_up(score * 100),
            formatted_value=format_metric_value(metric.metric_id, value),
        )
        for score, metric, value in ranked
    ]


def detect_patterns(ratings: RatingInput) -> List[DetectedPattern]:
    """Evaluate every pattern rule against the raw ratings, in rule order."""
    return [
        DetectedPattern(
            pattern_id=rule.pattern_id,
            description=rule.description,
            priority=rule.priority,
        )
        for rule in PATTERN_RULES
        if rule.applies(ratings)
    ]


def compute_scores(
    ratings: RatingInput,
    top_challenge: Optional[str],
    metric_bundles: MetricBundles,
) -> ScoreResult:
    """
    Score one assessment.

    Args:
        ratings: The four ratings.
        top_challenge: Top-challenge answer; reweights the overall score when
            recognized.
        metric_bundles: Rating -> metric lookup tables from the assessment config.

    Returns:
        ScoreResult with the clamped overall and loop scores, the five weakest
        metrics and the detected patterns.

    Raises:
        ConfigurationError: If any rating is outside 1..5.

    Example:
        >>> result = compute_scores(RatingInput(pipeline_rating=4, conversion_rating=2), "pipeline", bundles)
        >>> [p.pattern_id for p in result.detected_patterns]
        [<PatternId.PIPELINE_CONVERSION_GAP: 'pipeline_conversion_gap'>]
    """
    metrics_by_category = {
        category: lookup_metrics(metric_bundles, category, category_rating(ratings, category))
        for category in Category
    }
    category_scores = {
        category: score_category(category, metrics)
        for category, metrics in metrics_by_category.items()
    }

    weights = compute_weights(top_challenge)
    overall = 0.0
    for category in Category:
        overall += category_scores[category] * weights[category]

    return ScoreResult(
        overall_score=clamp_unit(overall),
        loop_scores=LoopScores(
            pipeline=clamp_unit(category_scores[Category.PIPELINE]),
            conversion=clamp_unit(category_scores[Category.CONVERSION]),
            expansion=clamp_unit(category_scores[Category.EXPANSION]),
        ),
        priority_recommendations=rank_priority_metrics(metrics_by_category),
        detected_patterns=detect_patterns(ratings),
    )
