"""
Pydantic request/response and configuration models for the Alpine Signal Rating backend.

This module provides type-safe validation and serialization for:
- the static assessment configuration (metric bundles per rating, question copy)
- the fix library used by the PDF report
- scoring engine inputs and outputs
- wizard submission, submission log, benchmark and PDF report API contracts

Configuration models are frozen: they are loaded once at startup and shared
read-only by every request.

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from signal_rating.models.enums import (
    Category,
    FixPriority,
    Loop,
    MetricId,
    PatternId,
    PatternPriority,
    RecommendationPriority,
    ScoreBand,
)


# Rating keys every metric bundle must define
RATING_KEYS = ("1", "2", "3", "4", "5")


# =============================================================================
# Metric Bundle Models (static configuration)
# =============================================================================


class PipelineMetrics(BaseModel):
    """Pipeline metric values implied by one rating answer."""
    model_config = ConfigDict(frozen=True)

    lead_velocity_rate: float
    mql_to_sql_conversion: float
    marketing_contribution_pipeline: float
    pipeline_coverage_ratio: float
    inbound_lead_volume_growth: float
    lead_response_time: float


class ConversionMetrics(BaseModel):
    """Conversion metric values implied by one rating answer."""
    model_config = ConfigDict(frozen=True)

    win_rate: float
    sales_cycle_length: float
    sql_acceptance_rate: float
    demo_to_proposal_rate: float
    proposal_to_won_rate: float
    pipeline_conversion_rate: float


class ExpansionMetrics(BaseModel):
    """Expansion metric values implied by one rating answer."""
    model_config = ConfigDict(frozen=True)

    nrr: float
    grr: float
    churn_rate: float
    expansion_revenue_growth: float
    nps: float
    time_to_first_value: float


class EconomicsMetrics(BaseModel):
    """Economics metric values implied by one rating answer."""
    model_config = ConfigDict(frozen=True)

    cac_payback_period: float
    ltv_cac: float
    burn_multiple: float
    sales_rep_ramp_time: float
    quota_attainment: float
    magic_number: float
    rule_of_40: float


class MetricBundles(BaseModel):
    """
    Lookup tables from stringified rating ("1".."5") to metric values.

    One table per category. Every table must define all five rating keys so
    that any in-range rating resolves; a missing key is a configuration defect
    and is rejected when the config is loaded.

    Validated tables are exposed as read-only mappings.
    """
    model_config = ConfigDict(frozen=True)

    pipeline: Dict[str, PipelineMetrics]
    conversion: Dict[str, ConversionMetrics]
    expansion: Dict[str, ExpansionMetrics]
    economics: Dict[str, EconomicsMetrics]

    @model_validator(mode="after")
    def _require_all_rating_keys(self) -> "MetricBundles":
        for category in Category:
            table = getattr(self, category.value)
            missing = [key for key in RATING_KEYS if key not in table]
            if missing:
                raise ValueError(
                    f"{category.value} bundle is missing rating keys: {', '.join(missing)}"
                )
            # frozen=True blocks assignment through __setattr__ only
            object.__setattr__(self, category.value, MappingProxyType(dict(table)))
        return self

    @field_serializer("pipeline", "conversion", "expansion", "economics")
    def _serialize_table(self, table: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(table)


# =============================================================================
# Question Copy Models (static configuration)
# =============================================================================


class RatingQuestion(BaseModel):
    """Public copy of a 1-5 rating question (metric mapping excluded)."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Answer key, e.g. question_1_pipeline_health")
    category: Category = Field(..., description="Category the rating feeds")
    prompt: str = Field(..., description="Question text shown in the wizard")
    options: Dict[str, str] = Field(
        default_factory=dict,
        description="Label per rating value '1'..'5'"
    )


class ChallengeChoice(BaseModel):
    """One selectable answer of the top-challenge question."""
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class ChallengeQuestion(BaseModel):
    """Public copy of the top-challenge question."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default="question_5_top_challenge")
    prompt: str
    choices: List[ChallengeChoice] = Field(default_factory=list)


class AssessmentConfig(BaseModel):
    """
    Complete static assessment configuration.

    Built once at startup from wizard_questions.json and passed explicitly to
    the scoring engine through request dependencies.
    """
    model_config = ConfigDict(frozen=True)

    title: str = Field(default="Alpine Signal Rating")
    version: str = Field(default="1.0")
    rating_questions: List[RatingQuestion]
    top_challenge_question: ChallengeQuestion
    metric_bundles: MetricBundles


class QuestionsResponse(BaseModel):
    """Response for GET /api/wizard/questions."""
    title: str
    version: str
    questions: List[RatingQuestion]
    top_challenge: ChallengeQuestion


# =============================================================================
# Fix Library Models (static configuration)
# =============================================================================


class FixEntry(BaseModel):
    """A recommended fix shown in the PDF report."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    impact: str


class FixLibrary(BaseModel):
    """
    Catalogue of fixes per loop.

    Fix selection addresses entries by position, so each list must be long
    enough for the highest index used (pipeline 4, conversion 3, expansion 3).
    """
    model_config = ConfigDict(frozen=True)

    pipeline_fixes: List[FixEntry] = Field(..., min_length=5)
    conversion_fixes: List[FixEntry] = Field(..., min_length=4)
    expansion_fixes: List[FixEntry] = Field(..., min_length=4)


# =============================================================================
# Scoring Engine Models
# =============================================================================


class RatingInput(BaseModel):
    """
    Ratings and top challenge for one scoring request.

    Ratings are expected in 1..5. The range is enforced by the scoring engine
    (ConfigurationError), not here, so that an out-of-range value surfaces as a
    scoring failure rather than a silently defaulted score.
    """
    pipeline_rating: int = Field(default=3, description="Pipeline health rating")
    conversion_rating: int = Field(default=3, description="Sales conversion rating")
    expansion_rating: int = Field(default=3, description="Customer success rating")
    economics_rating: int = Field(default=3, description="Economics and efficiency rating")
    top_challenge: str = Field(default="pipeline", description="Selected top challenge")


class LoopScores(BaseModel):
    """Clamped 0-1 scores of the three GTM loops."""
    pipeline: float = Field(..., ge=0.0, le=1.0)
    conversion: float = Field(..., ge=0.0, le=1.0)
    expansion: float = Field(..., ge=0.0, le=1.0)


class PriorityRecommendation(BaseModel):
    """One of the five weakest metrics, worst first."""
    metric_id: MetricId = Field(..., description="Stable metric identifier")
    name: str = Field(..., description="Display name of the metric")
    loop: Loop = Field(..., description="Category the metric belongs to")
    normalized_score: int = Field(..., description="Ratio to benchmark as a rounded percentage")
    formatted_value: str = Field(..., description="Raw value formatted for display")


class DetectedPattern(BaseModel):
    """A qualitative pattern triggered by a combination of raw ratings."""
    pattern_id: PatternId
    description: str
    priority: PatternPriority


class ScoreResult(BaseModel):
    """
    Output of the scoring engine.

    Consumed verbatim by the results page, the PDF report, the submission log
    and the notification channels.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "overall_score": 0.62,
                "loop_scores": {"pipeline": 0.71, "conversion": 0.48, "expansion": 0.66},
                "priority_recommendations": [
                    {
                        "metric_id": "win_rate",
                        "name": "Win Rate",
                        "loop": "Conversion",
                        "normalized_score": 47,
                        "formatted_value": "15%",
                    }
                ],
                "detected_patterns": [
                    {
                        "pattern_id": "pipeline_conversion_gap",
                        "description": "Strong pipeline but weak conversion - focus on sales enablement",
                        "priority": "high",
                    }
                ],
            }
        }
    )

    overall_score: float = Field(..., ge=0.0, le=1.0)
    loop_scores: LoopScores
    priority_recommendations: List[PriorityRecommendation]
    detected_patterns: List[DetectedPattern]


# =============================================================================
# Wizard Submission Models
# =============================================================================


class WizardSubmitRequest(BaseModel):
    """
    Body of POST /wizard_submit.

    `answers` is the raw wizard state keyed by question id plus the cohort
    fields (arr, sector, employees). It is optional at the schema level so a
    missing payload is reported as a validation failure with the documented
    error body.
    """
    answers: Optional[Dict[str, Any]] = Field(default=None)
    client_name: Optional[str] = Field(default=None)
    client_id: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)


class WizardSubmitResponse(ScoreResult):
    """Scoring result returned to the wizard, echoing the client id."""
    success: bool = True
    client_id: Optional[str] = None


# =============================================================================
# Submission Log Models
# =============================================================================


class SubmissionAnswers(BaseModel):
    """Ratings as submitted; None where the answer was absent or unparseable."""
    pipeline_health: Optional[int] = None
    sales_conversion: Optional[int] = None
    customer_success: Optional[int] = None
    economics_efficiency: Optional[int] = None
    top_challenge: Optional[str] = None


class SubmissionScores(BaseModel):
    """Derived scores stored with a submission."""
    overall_score: float
    pipeline: float
    conversion: float
    expansion: float


class SubmissionRecord(BaseModel):
    """
    One entry of the append-only submission log.

    Created once when a wizard submission is scored; never updated.
    """
    client_id: Optional[str] = None
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp")
    client_name: str = Field(default="Unknown")
    email: str = Field(default="")
    cohort: str = Field(default="unknown", description="ARR bucket")
    sector: str = Field(default="unknown")
    employees: str = Field(default="unknown")
    answers: SubmissionAnswers
    scores: SubmissionScores
    patterns: List[DetectedPattern] = Field(default_factory=list)


class SubmissionListResponse(BaseModel):
    """Response for GET /api/submissions."""
    submissions: List[Dict[str, Any]]
    total: int
    total_all: int


class ScoreDistribution(BaseModel):
    """Summary statistics of one score column."""
    mean: float
    median: float
    p25: float
    p75: float


class CohortBenchmark(BaseModel):
    """Score statistics for one cohort of stored submissions."""
    cohort: str
    count: int
    overall_score: ScoreDistribution
    loops: Dict[str, ScoreDistribution]


class BenchmarkResponse(BaseModel):
    """Response for GET /api/submissions/benchmarks."""
    cohorts: List[CohortBenchmark]
    total: int


# =============================================================================
# Report Models
# =============================================================================


class LoopPercent(BaseModel):
    """A loop score expressed as a rounded 0-100 percentage."""
    name: Loop
    score: int
    band: ScoreBand


class ReportInsights(BaseModel):
    """Narrative commentary paragraphs for the report."""
    main_insight: str
    loop_analysis: str
    actionable_outcome: str


class LoopRecommendation(BaseModel):
    """Loop-level recommendation, weakest loop first."""
    loop: Loop
    priority: RecommendationPriority
    description: str


class SelectedFix(BaseModel):
    """A fix chosen from the library for one loop."""
    loop: Loop
    priority: FixPriority
    fix: FixEntry


class LoopNarrative(BaseModel):
    """Per-loop paragraph for the loop performance section."""
    loop: LoopPercent
    heading: str
    text: str


class ReportContent(BaseModel):
    """
    Everything the PDF renderer prints, derived from a ScoreResult.

    Building this is pure; rendering it is the only step that touches fpdf2.
    """
    client_name: str
    generated_at: datetime
    overall_score: int
    overall_band: ScoreBand
    tagline: str
    loops: List[LoopPercent] = Field(..., description="Weakest loop first")
    weakest_loop: LoopPercent
    strongest_loop: LoopPercent
    insights: ReportInsights
    executive_summary: List[str]
    key_findings: List[str]
    loop_narratives: List[LoopNarrative]
    focus_statement: str
    root_causes: List[str]
    fixes: List[SelectedFix] = Field(..., description="Weakest loop first")
    recommendations: List[LoopRecommendation]
    priority_metrics: List[PriorityRecommendation] = Field(default_factory=list)
    detected_patterns: List[DetectedPattern] = Field(default_factory=list)


class PdfReportRequest(BaseModel):
    """
    Body of POST /api/generate-pdf.

    Mirrors the ScoreResult returned by /wizard_submit plus the client name the
    wizard collected.
    """
    client_name: str = Field(..., min_length=1)
    overall_score: float = Field(..., ge=0.0, le=1.0)
    loop_scores: LoopScores
    priority_recommendations: List[PriorityRecommendation] = Field(default_factory=list)
    detected_patterns: List[DetectedPattern] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


class PdfReportResponse(BaseModel):
    """Response for POST /api/generate-pdf."""
    success: bool = True
    filename: str
    download_url: str
