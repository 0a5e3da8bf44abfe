"""
Backend Services Module

Business logic of the Alpine Signal Rating backend. Every service is a plain
function or a small class with explicit inputs, so the API layer wires them
together and tests can call them directly.

Services:
- scoring: the scoring engine (ratings + metric bundles -> ScoreResult)
- insights: report narrative, loop ordering and fix selection
- submissions: append-only JSON submission log, filters and CSV export
- benchmarks: per-cohort score statistics
- pdf_report: fpdf2 report rendering with bounded concurrency

All services are consumed by the API layer (signal_rating/api/).
"""

# =============================================================================
# Scoring Engine
# =============================================================================

from signal_rating.services.scoring import (
    compute_scores,
    compute_weights,
    score_category,
    lookup_metrics,
    rank_priority_metrics,
    detect_patterns,
    format_metric_value,
    build_rating_input,
    parse_rating,
    coerce_rating,
    round_half_up,
    BASE_WEIGHTS,
    CATEGORY_TERMS,
    PRIORITY_METRICS,
    PATTERN_RULES,
)

# =============================================================================
# Report Insights
# =============================================================================

from signal_rating.services.insights import (
    build_report_content,
    order_loops,
    select_fixes,
    loop_recommendations,
    generate_insights,
    score_band,
    score_tagline,
)

# =============================================================================
# Submission Log
# =============================================================================

from signal_rating.services.submissions import (
    SubmissionStore,
    build_submission_record,
    filter_submissions,
    export_csv,
)

# =============================================================================
# Benchmarks
# =============================================================================

from signal_rating.services.benchmarks import (
    compute_benchmarks,
    summarize_scores,
)

# =============================================================================
# PDF Reports
# =============================================================================

from signal_rating.services.pdf_report import (
    ReportRenderer,
    render_pdf,
    report_filename,
    sanitize_for_pdf,
)


__all__ = [
    # Scoring engine
    'compute_scores',
    'compute_weights',
    'score_category',
    'lookup_metrics',
    'rank_priority_metrics',
    'detect_patterns',
    'format_metric_value',
    'build_rating_input',
    'parse_rating',
    'coerce_rating',
    'round_half_up',
    'BASE_WEIGHTS',
    'CATEGORY_TERMS',
    'PRIORITY_METRICS',
    'PATTERN_RULES',
    # Report insights
    'build_report_content',
    'order_loops',
    'select_fixes',
    'loop_recommendations',
    'generate_insights',
    'score_band',
    'score_tagline',
    # Submission log
    'SubmissionStore',
    'build_submission_record',
    'filter_submissions',
    'export_csv',
    # Benchmarks
    'compute_benchmarks',
    'summarize_scores',
    # PDF reports
    'ReportRenderer',
    'render_pdf',
    'report_filename',
    'sanitize_for_pdf',
]
