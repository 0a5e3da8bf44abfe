"""
Report Insights Service

Turns a ScoreResult into the narrative content of the PDF report: score bands,
tagline, commentary paragraphs, loop ordering, root causes, fix selection and
loop-level recommendations.

All functions here are pure. Scores arrive as 0-1 floats and are converted to
0-100 percentages with half-up rounding before any threshold is applied, so
the bands match the percentages printed on the report.

Thresholds:
- Score band: >=70 high, >=40 medium, else low
- Health description / tagline: 80 / 70 / 60 / 50 steps
- Concern level of the weakest loop: 70 / 60 / 50 steps
- Fix selection per loop: <50, <70, else
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from signal_rating.models.enums import FixPriority, Loop, RecommendationPriority, ScoreBand
from signal_rating.models.schemas import (
    FixEntry,
    FixLibrary,
    LoopNarrative,
    LoopPercent,
    LoopRecommendation,
    LoopScores,
    PdfReportRequest,
    ReportContent,
    ReportInsights,
    SelectedFix,
)
from signal_rating.services.scoring import round_half_up


# Loop order used before sorting; ties keep this order
LOOP_ORDER: Tuple[Loop, ...] = (Loop.PIPELINE, Loop.CONVERSION, Loop.EXPANSION)


# =============================================================================
# Bands and Taglines
# =============================================================================


def to_percent(score: float) -> int:
    """Convert a 0-1 score to a rounded 0-100 percentage."""
    return round_half_up(score * 100)


def score_band(percent: int) -> ScoreBand:
    """Color band of a percentage score."""
    if percent >= 70:
        return ScoreBand.HIGH
    if percent >= 40:
        return ScoreBand.MEDIUM
    return ScoreBand.LOW


def health_description(percent: int) -> str:
    if percent >= 80:
        return "indicating exceptional GTM infrastructure health with minimal optimization needs"
    if percent >= 70:
        return "indicating strong GTM infrastructure health with minor optimization opportunities"
    if percent >= 60:
        return "indicating solid GTM infrastructure with notable areas for improvement"
    if percent >= 50:
        return "indicating moderate GTM infrastructure health with significant improvement opportunities"
    return "indicating GTM infrastructure challenges requiring immediate attention"


def concern_level(percent: int) -> str:
    if percent >= 70:
        return "minor optimization opportunity"
    if percent >= 60:
        return "area requiring attention"
    if percent >= 50:
        return "primary area of concern"
    return "critical priority"


def score_tagline(percent: int) -> str:
    """Headline printed under the overall score on the report cover."""
    if percent >= 80:
        return ("Exceptional Performance | You are ahead of 90% of companies. "
                "Focus on scaling your winning systems.")
    if percent >= 70:
        return ("Strong Foundation | You are ahead of 70% of companies. "
                "Strategic improvements will unlock 2-3x growth potential.")
    if percent >= 60:
        return ("Solid Base | You are ahead of 50% of companies. "
                "Systematic fixes will drive 40-60% improvement.")
    if percent >= 50:
        return "Growth Opportunity | Addressing key gaps will unlock 60-80% improvement potential."
    return "Transformation Needed | Systematic rebuilding will create 2-4x improvement opportunity."


# =============================================================================
# Loop Ordering
# =============================================================================


def loop_percentages(loop_scores: LoopScores) -> List[LoopPercent]:
    """Loop percentages in fixed Pipeline, Conversion, Expansion order."""
    values = {
        Loop.PIPELINE: loop_scores.pipeline,
        Loop.CONVERSION: loop_scores.conversion,
        Loop.EXPANSION: loop_scores.expansion,
    }
    loops = []
    for loop in LOOP_ORDER:
        percent = to_percent(values[loop])
        loops.append(LoopPercent(name=loop, score=percent, band=score_band(percent)))
    return loops


def order_loops(loop_scores: LoopScores) -> List[LoopPercent]:
    """
    Loops sorted weakest first.

    The sort is stable: tied loops keep Pipeline, Conversion, Expansion order.
    The first entry is the weakest loop and the last the strongest.
    """
    return sorted(loop_percentages(loop_scores), key=lambda loop: loop.score)


# =============================================================================
# Commentary
# =============================================================================


def generate_insights(
    client_name: str,
    overall: int,
    strongest: LoopPercent,
    weakest: LoopPercent,
) -> ReportInsights:
    """
    Build the three commentary paragraphs.

    Args:
        client_name: Company name shown in the report.
        overall: Overall score as a percentage.
        strongest: Highest scoring loop.
        weakest: Lowest scoring loop.
    """
    main_insight = (
        f"{client_name} currently has an overall ASR score of {overall}, "
        f"{health_description(overall)}."
    )
    loop_analysis = (
        f"The {weakest.name.value} loop ({weakest.score}) represents the "
        f"{concern_level(weakest.score)} and should be the focus of immediate improvement "
        f"efforts. In contrast, the {strongest.name.value} loop ({strongest.score}) shows "
        f"relative strength and can serve as a foundation for broader GTM improvements."
    )
    actionable_outcome = (
        f"By addressing the priority fixes identified in this report, {client_name} can "
        f"expect to see measurable improvements in pipeline velocity, conversion rates, "
        f"and customer expansion within 90 days."
    )
    return ReportInsights(
        main_insight=main_insight,
        loop_analysis=loop_analysis,
        actionable_outcome=actionable_outcome,
    )


def executive_summary(overall: int, strongest: LoopPercent, weakest: LoopPercent) -> List[str]:
    """Paragraphs of the executive summary page."""
    if overall >= 70:
        outlook = (
            "With your strong baseline, the focus should be on optimization and scaling "
            "what's working. Small adjustments to high-performing systems can generate "
            "outsized results."
        )
    else:
        outlook = (
            "Systematic improvements across your GTM infrastructure will create compounding "
            "returns. Focus on foundational fixes first, then scale what works."
        )
    return [
        f"Your Alpine System diagnostic reveals an overall Alpine Signal Rating (ASR) of "
        f"{overall}/100. This assessment evaluates your entire Go-To-Market infrastructure "
        f"across Pipeline, Conversion, and Expansion loops.",
        f"Your strongest area is {strongest.name.value}, while {weakest.name.value} presents "
        f"the greatest opportunity for improvement. Addressing inefficiencies in your "
        f"{weakest.name.value} loop could yield immediate returns and unlock substantial "
        f"growth potential.",
        outlook,
    ]


def key_findings(overall: int) -> List[str]:
    headline = (
        "Strong GTM infrastructure with excellent execution capabilities"
        if overall >= 70
        else "GTM infrastructure has solid foundation with room for improvement"
    )
    return [
        headline,
        "Opportunities identified for process optimization and automation",
        "Data infrastructure improvements recommended for better decision-making",
    ]


LOOP_HEADINGS: Dict[Loop, str] = {
    Loop.PIPELINE: "Pipeline - Lead Generation & Qualification",
    Loop.CONVERSION: "Conversion - Deal Velocity & Win Rate",
    Loop.EXPANSION: "Expansion - Retention & Growth",
}

# (>=70, >=50, below) paragraph templates per loop
LOOP_NARRATIVES: Dict[Loop, Tuple[str, str, str]] = {
    Loop.PIPELINE: (
        "Your Pipeline loop is performing at {score}%, indicating strong lead generation and "
        "qualification processes. Focus on maintaining quality while scaling volume.",
        "Your Pipeline loop at {score}% shows room for improvement. Focus on ICP clarity, "
        "lead response time, and marketing/sales alignment.",
        "Your Pipeline loop at {score}% requires immediate attention. Prioritize lead quality "
        "over quantity and fix marketing/sales handoffs.",
    ),
    Loop.CONVERSION: (
        "Your Conversion loop is strong at {score}%. Continue refining your sales process and "
        "consider expanding your team to capitalize on this strength.",
        "Your {score}% Conversion score indicates inconsistent sales execution. Focus on "
        "standardizing processes, improving sales enablement, and reducing cycle times.",
        "Your Conversion loop at {score}% is below expectations. Implement structured "
        "discovery, productize your offers, and build proposal templates.",
    ),
    Loop.EXPANSION: (
        "Expansion loop strength at {score}% shows excellent customer retention and growth. "
        "Continue investing in customer success and expansion playbooks.",
        "Your Expansion score of {score}% indicates room to grow existing accounts. Build "
        "systematic expansion motions and reduce time-to-value.",
        "Your Expansion loop at {score}% signals retention challenges. Focus on onboarding, "
        "customer health scoring, and churn prevention.",
    ),
}


def loop_narrative(loop: LoopPercent) -> LoopNarrative:
    strong, middling, weak = LOOP_NARRATIVES[loop.name]
    if loop.score >= 70:
        template = strong
    elif loop.score >= 50:
        template = middling
    else:
        template = weak
    return LoopNarrative(
        loop=loop,
        heading=LOOP_HEADINGS[loop.name],
        text=template.format(score=loop.score),
    )


FOCUS_SYMPTOMS: Dict[Loop, str] = {
    Loop.PIPELINE: "Not enough qualified leads reaching your sales team.",
    Loop.CONVERSION: "Too many deals stalling or lost to competition.",
    Loop.EXPANSION: "Customers churning before you can expand accounts.",
}


def focus_statement(weakest: LoopPercent) -> str:
    """One-line diagnosis of the weakest loop for the priority focus page."""
    severity = "performance is below potential" if weakest.score >= 60 else "rates are below expectations"
    return f"{weakest.name.value} {severity}. {FOCUS_SYMPTOMS[weakest.name]}"


ROOT_CAUSES: Dict[Loop, List[str]] = {
    Loop.PIPELINE: [
        "No clear ICP -> wasting time on unqualified leads",
        "Slow lead response -> competitors getting there first",
        "Marketing/sales handoff broken -> qualified leads falling through cracks",
        "No pipeline coverage targets -> revenue gaps appearing too late",
    ],
    Loop.CONVERSION: [
        "No pre-call qualification -> taking meetings with anyone who raises their hand",
        "Vague offers -> prospects cannot clearly see the value",
        "Weak discovery -> failing to validate fit and urgency early",
        "Custom proposals -> every deal takes weeks instead of hours",
    ],
    Loop.EXPANSION: [
        "No systematic onboarding -> customers do not see value fast enough",
        "Reactive customer success -> only talking to customers when they complain",
        "No expansion playbook -> leaving upsell revenue on the table",
        "Churn happening silently -> no early warning system",
    ],
}


def root_causes(loop: Loop) -> List[str]:
    """Four typical root causes of a weak loop."""
    return list(ROOT_CAUSES.get(loop, []))


# =============================================================================
# Recommendations and Fixes
# =============================================================================


RECOMMENDATION_DESCRIPTIONS: Dict[Loop, str] = {
    Loop.PIPELINE: (
        "Focus on lead generation, qualification, and pipeline coverage to build a healthy "
        "sales funnel. Schedule a diagnostic call to see your detailed Pipeline metrics and "
        "custom fix roadmap."
    ),
    Loop.CONVERSION: (
        "Improve win rates, shorten sales cycles, and optimize your deal conversion process. "
        "Schedule a diagnostic call to see your detailed Conversion metrics and custom fix "
        "roadmap."
    ),
    Loop.EXPANSION: (
        "Strengthen customer retention, reduce churn, and build expansion revenue streams. "
        "Schedule a diagnostic call to see your detailed Expansion metrics and custom fix "
        "roadmap."
    ),
}


def loop_recommendations(ordered: List[LoopPercent]) -> List[LoopRecommendation]:
    """
    One recommendation per loop, weakest first.

    The weakest loop is High priority when it scores below 60; every other
    recommendation is Medium.
    """
    recommendations = []
    for index, loop in enumerate(ordered):
        if index == 0 and loop.score < 60:
            priority = RecommendationPriority.HIGH
        else:
            priority = RecommendationPriority.MEDIUM
        recommendations.append(
            LoopRecommendation(
                loop=loop.name,
                priority=priority,
                description=RECOMMENDATION_DESCRIPTIONS[loop.name],
            )
        )
    return recommendations


# Library list and fix positions for scores (<50, <70, >=70)
FIX_POSITIONS: Dict[Loop, Tuple[str, Tuple[int, int, int]]] = {
    Loop.PIPELINE: ("pipeline_fixes", (2, 0, 4)),
    Loop.CONVERSION: ("conversion_fixes", (1, 0, 3)),
    Loop.EXPANSION: ("expansion_fixes", (0, 1, 3)),
}

FIX_PRIORITIES: Tuple[FixPriority, ...] = (FixPriority.HIGH, FixPriority.MED, FixPriority.LOW)


def select_fix(fix_library: FixLibrary, loop: LoopPercent) -> FixEntry:
    """Pick the library fix matching a loop's score tier."""
    attribute, positions = FIX_POSITIONS[loop.name]
    if loop.score < 50:
        position = positions[0]
    elif loop.score < 70:
        position = positions[1]
    else:
        position = positions[2]
    return getattr(fix_library, attribute)[position]


def select_fixes(fix_library: FixLibrary, ordered: List[LoopPercent]) -> List[SelectedFix]:
    """One fix per loop, weakest loop first with HIGH, then MED and LOW."""
    return [
        SelectedFix(loop=loop.name, priority=priority, fix=select_fix(fix_library, loop))
        for loop, priority in zip(ordered, FIX_PRIORITIES)
    ]


# =============================================================================
# Report Content
# =============================================================================


def build_report_content(
    request: PdfReportRequest,
    fix_library: FixLibrary,
    generated_at: Optional[datetime] = None,
) -> ReportContent:
    """
    Derive everything the PDF prints from a scoring result.

    Args:
        request: Scores and client name posted by the results page.
        fix_library: Fix catalogue loaded at startup.
        generated_at: Report date; defaults to the request timestamp or now.

    Returns:
        ReportContent ready for rendering.
    """
    generated_at = generated_at or request.timestamp or datetime.now(timezone.utc)
    overall = to_percent(request.overall_score)
    ordered = order_loops(request.loop_scores)
    weakest, strongest = ordered[0], ordered[-1]

    return ReportContent(
        client_name=request.client_name,
        generated_at=generated_at,
        overall_score=overall,
        overall_band=score_band(overall),
        tagline=score_tagline(overall),
        loops=ordered,
        weakest_loop=weakest,
        strongest_loop=strongest,
        insights=generate_insights(request.client_name, overall, strongest, weakest),
        executive_summary=executive_summary(overall, strongest, weakest),
        key_findings=key_findings(overall),
        loop_narratives=[loop_narrative(loop) for loop in loop_percentages(request.loop_scores)],
        focus_statement=focus_statement(weakest),
        root_causes=root_causes(weakest.name),
        fixes=select_fixes(fix_library, ordered),
        recommendations=loop_recommendations(ordered),
        priority_metrics=request.priority_recommendations,
        detected_patterns=request.detected_patterns,
    )
