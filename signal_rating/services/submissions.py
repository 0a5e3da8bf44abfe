"""
Submission Log Service

Append-only JSON log of scored wizard submissions, used for benchmarking and
lead follow-up.

Storage format: a single pretty-printed (indent 2) JSON array. Each append
reads the array, adds one record, writes a temporary file next to the log and
atomically replaces the original. Appends are serialized by a process-wide
lock so concurrent submissions cannot lose each other's records.

Reads never lock; os.replace guarantees a reader sees either the old or the
new array, never a partial write.

Errors reading or writing the file raise PersistenceError. Callers log it and
carry on: a storage failure never fails a submission.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from signal_rating.core.assessment import QUESTION_KEYS, TOP_CHALLENGE_KEY
from signal_rating.core.exceptions import PersistenceError
from signal_rating.models.enums import Category
from signal_rating.models.schemas import (
    ScoreResult,
    SubmissionAnswers,
    SubmissionRecord,
    SubmissionScores,
)
from signal_rating.services.scoring import parse_rating


logger = logging.getLogger(__name__)


# Columns written first in CSV exports; nested fields follow in log order
CSV_LEADING_COLUMNS = [
    "client_id",
    "timestamp",
    "client_name",
    "email",
    "cohort",
    "sector",
    "employees",
]


# =============================================================================
# Record Construction
# =============================================================================


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-31T09:15:00.123Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _text_or_default(value: Any, default: str) -> str:
    return str(value) if value else default


def build_submission_record(
    answers: Mapping[str, Any],
    result: ScoreResult,
    client_id: Optional[str] = None,
    client_name: Optional[str] = None,
    email: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> SubmissionRecord:
    """
    Build the log entry for a scored submission.

    Ratings are stored as parsed from the raw answers (None where absent or
    unparseable), not as the defaulted values used for scoring. The ARR answer
    becomes the cohort.

    Args:
        answers: Raw wizard answers.
        result: Scoring result for the same answers.
        client_id: Caller-supplied client identifier.
        client_name: Company name; defaults to "Unknown".
        email: Contact email; defaults to "".
        timestamp: Submission time; defaults to now.

    Returns:
        SubmissionRecord ready to append.
    """
    top_challenge = answers.get(TOP_CHALLENGE_KEY)
    return SubmissionRecord(
        client_id=client_id,
        timestamp=utc_timestamp(timestamp),
        client_name=client_name or "Unknown",
        email=email or "",
        cohort=_text_or_default(answers.get("arr"), "unknown"),
        sector=_text_or_default(answers.get("sector"), "unknown"),
        employees=_text_or_default(answers.get("employees"), "unknown"),
        answers=SubmissionAnswers(
            pipeline_health=parse_rating(answers.get(QUESTION_KEYS[Category.PIPELINE])) or None,
            sales_conversion=parse_rating(answers.get(QUESTION_KEYS[Category.CONVERSION])) or None,
            customer_success=parse_rating(answers.get(QUESTION_KEYS[Category.EXPANSION])) or None,
            economics_efficiency=parse_rating(answers.get(QUESTION_KEYS[Category.ECONOMICS])) or None,
            top_challenge=str(top_challenge) if top_challenge else None,
        ),
        scores=SubmissionScores(
            overall_score=result.overall_score,
            pipeline=result.loop_scores.pipeline,
            conversion=result.loop_scores.conversion,
            expansion=result.loop_scores.expansion,
        ),
        patterns=result.detected_patterns,
    )


# =============================================================================
# Store
# =============================================================================


class SubmissionStore:
    """
    JSON-array submission log bound to one file.

    One instance is created in the application lifespan and shared by all
    requests. Methods are synchronous; call them through asyncio.to_thread
    from async handlers.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load_all(self) -> List[Dict[str, Any]]:
        """
        Read every stored submission.

        Returns:
            List of submission dicts in append order; empty when the log does
            not exist yet.

        Raises:
            PersistenceError: If the file cannot be read or is not a JSON array.
        """
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as handle:
                submissions = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Could not read submission log {self.path}: {e}") from e
        if not isinstance(submissions, list):
            raise PersistenceError(f"Submission log {self.path} is not a JSON array")
        return submissions

    def append(self, record: SubmissionRecord) -> int:
        """
        Append one record to the log.

        Returns:
            Total number of stored submissions after the append.

        Raises:
            PersistenceError: If the log cannot be read or rewritten. The file
                is left unchanged in that case.
        """
        with self._lock:
            submissions = self.load_all()
            submissions.append(record.model_dump(mode="json"))
            self._write(submissions)
        logger.info(f"Stored submission in {self.path} (total: {len(submissions)})")
        return len(submissions)

    def _write(self, submissions: List[Dict[str, Any]]) -> None:
        directory = self.path.parent
        temp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_name = handle.name
                json.dump(submissions, handle, indent=2)
            os.replace(temp_name, self.path)
        except OSError as e:
            if temp_name and os.path.exists(temp_name):
                os.unlink(temp_name)
            raise PersistenceError(f"Could not write submission log {self.path}: {e}") from e


# =============================================================================
# Filtering and Export
# =============================================================================


def filter_submissions(
    submissions: List[Dict[str, Any]],
    cohort: Optional[str] = None,
    sector: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Filter stored submissions.

    Cohort and sector match exactly. Date bounds are inclusive and compared
    with the record timestamp; a date-only bound means midnight UTC. Records
    with an unparseable timestamp, and every record when a bound itself is
    unparseable, are excluded by a date filter. Empty filter values are
    ignored.

    Returns:
        Matching submissions in log order.
    """
    if not submissions:
        return []

    frame = pd.DataFrame({
        "cohort": [s.get("cohort") for s in submissions],
        "sector": [s.get("sector") for s in submissions],
        "timestamp": pd.to_datetime(
            pd.Series([s.get("timestamp") for s in submissions], dtype="object"),
            utc=True,
            errors="coerce",
            format="ISO8601",
        ),
    })

    mask = pd.Series(True, index=frame.index)
    if cohort:
        mask &= frame["cohort"] == cohort
    if sector:
        mask &= frame["sector"] == sector
    if start_date:
        mask &= frame["timestamp"] >= pd.to_datetime(start_date, utc=True, errors="coerce")
    if end_date:
        mask &= frame["timestamp"] <= pd.to_datetime(end_date, utc=True, errors="coerce")

    return [submissions[position] for position in frame.index[mask]]


def _pattern_ids(patterns: Any) -> str:
    if not isinstance(patterns, list):
        return ""
    return "; ".join(
        str(p.get("pattern_id", "")) if isinstance(p, dict) else str(p)
        for p in patterns
    )


def export_csv(submissions: List[Dict[str, Any]]) -> str:
    """
    Flatten submissions into CSV text.

    Nested objects become dotted columns (answers.pipeline_health,
    scores.overall_score, ...); the pattern list becomes a '; '-separated
    list of pattern ids.
    """
    if not submissions:
        return pd.DataFrame(columns=CSV_LEADING_COLUMNS).to_csv(index=False)

    frame = pd.json_normalize(submissions)
    if "patterns" in frame.columns:
        frame["patterns"] = frame["patterns"].apply(_pattern_ids)

    leading = [column for column in CSV_LEADING_COLUMNS if column in frame.columns]
    remaining = [column for column in frame.columns if column not in leading]
    return frame[leading + remaining].to_csv(index=False)
