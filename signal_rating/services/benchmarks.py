"""
Cohort Benchmark Service

Summarizes stored submission scores per cohort (ARR bucket) so a new result
can be placed against companies of similar size.

For every cohort, and for overall/pipeline/conversion/expansion scores:
- count of submissions with a usable score
- mean and median
- 25th and 75th percentiles (numpy linear interpolation)

Submissions without numeric scores are ignored.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from signal_rating.models.schemas import BenchmarkResponse, CohortBenchmark, ScoreDistribution
from signal_rating.services.submissions import filter_submissions


logger = logging.getLogger(__name__)


LOOP_COLUMNS = ["pipeline", "conversion", "expansion"]
SCORE_COLUMNS = ["overall_score"] + LOOP_COLUMNS


def summarize_scores(values: np.ndarray) -> ScoreDistribution:
    """Mean, median and quartiles of a non-empty score array."""
    p25, median, p75 = np.percentile(values, [25, 50, 75])
    return ScoreDistribution(
        mean=float(np.mean(values)),
        median=float(median),
        p25=float(p25),
        p75=float(p75),
    )


def _scores_frame(submissions: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for submission in submissions:
        scores = submission.get("scores") or {}
        row = {"cohort": submission.get("cohort") or "unknown"}
        for column in SCORE_COLUMNS:
            row[column] = scores.get(column)
        rows.append(row)

    frame = pd.DataFrame(rows, columns=["cohort"] + SCORE_COLUMNS)
    for column in SCORE_COLUMNS:
        frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame.dropna(subset=SCORE_COLUMNS)


def compute_benchmarks(
    submissions: List[Dict[str, Any]],
    cohort: Optional[str] = None,
    sector: Optional[str] = None,
) -> BenchmarkResponse:
    """
    Per-cohort score statistics of stored submissions.

    Args:
        submissions: Stored submission dicts.
        cohort: Restrict to one cohort.
        sector: Restrict to one sector.

    Returns:
        BenchmarkResponse with cohorts sorted by name and the number of
        submissions that contributed.
    """
    filtered = filter_submissions(submissions, cohort=cohort, sector=sector)
    frame = _scores_frame(filtered)

    cohorts = []
    for name, group in frame.groupby("cohort", sort=True):
        cohorts.append(
            CohortBenchmark(
                cohort=str(name),
                count=len(group),
                overall_score=summarize_scores(group["overall_score"].to_numpy()),
                loops={
                    column: summarize_scores(group[column].to_numpy())
                    for column in LOOP_COLUMNS
                },
            )
        )

    logger.info(f"Computed benchmarks for {len(cohorts)} cohorts from {len(frame)} submissions")
    return BenchmarkResponse(cohorts=cohorts, total=len(frame))
