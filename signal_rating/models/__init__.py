"""
Package initialization file for signal_rating models.

Re-exports all Pydantic schemas and enumerations so other modules can import
them from `signal_rating.models` directly.

Usage:
    from signal_rating.models import (
        Category,
        MetricBundles,
        ScoreResult,
        SubmissionRecord,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from signal_rating.models.enums import (
    Category,
    Loop,
    TopChallenge,
    PatternId,
    PatternPriority,
    MetricId,
    MetricFormat,
    ScoreBand,
    RecommendationPriority,
    FixPriority,
)


# =============================================================================
# Schemas
# =============================================================================

from signal_rating.models.schemas import (
    # Static configuration
    RATING_KEYS,
    PipelineMetrics,
    ConversionMetrics,
    ExpansionMetrics,
    EconomicsMetrics,
    MetricBundles,
    RatingQuestion,
    ChallengeChoice,
    ChallengeQuestion,
    AssessmentConfig,
    QuestionsResponse,
    FixEntry,
    FixLibrary,
    # Scoring engine
    RatingInput,
    LoopScores,
    PriorityRecommendation,
    DetectedPattern,
    ScoreResult,
    # Wizard submission
    WizardSubmitRequest,
    WizardSubmitResponse,
    # Submission log
    SubmissionAnswers,
    SubmissionScores,
    SubmissionRecord,
    SubmissionListResponse,
    ScoreDistribution,
    CohortBenchmark,
    BenchmarkResponse,
    # Report
    LoopPercent,
    ReportInsights,
    LoopRecommendation,
    SelectedFix,
    LoopNarrative,
    ReportContent,
    PdfReportRequest,
    PdfReportResponse,
)


__all__ = [
    # Enums
    'Category',
    'Loop',
    'TopChallenge',
    'PatternId',
    'PatternPriority',
    'MetricId',
    'MetricFormat',
    'ScoreBand',
    'RecommendationPriority',
    'FixPriority',
    # Static configuration
    'RATING_KEYS',
    'PipelineMetrics',
    'ConversionMetrics',
    'ExpansionMetrics',
    'EconomicsMetrics',
    'MetricBundles',
    'RatingQuestion',
    'ChallengeChoice',
    'ChallengeQuestion',
    'AssessmentConfig',
    'QuestionsResponse',
    'FixEntry',
    'FixLibrary',
    # Scoring engine
    'RatingInput',
    'LoopScores',
    'PriorityRecommendation',
    'DetectedPattern',
    'ScoreResult',
    # Wizard submission
    'WizardSubmitRequest',
    'WizardSubmitResponse',
    # Submission log
    'SubmissionAnswers',
    'SubmissionScores',
    'SubmissionRecord',
    'SubmissionListResponse',
    'ScoreDistribution',
    'CohortBenchmark',
    'BenchmarkResponse',
    # Report
    'LoopPercent',
    'ReportInsights',
    'LoopRecommendation',
    'SelectedFix',
    'LoopNarrative',
    'ReportContent',
    'PdfReportRequest',
    'PdfReportResponse',
]
