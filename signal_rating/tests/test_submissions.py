"""
Tests for the submission log (services/submissions.py).

Covers record construction from raw answers, append/load through the JSON
file store, failure handling on a corrupt log, concurrent appends, filtering
and CSV export.
"""

import json
import threading
from datetime import datetime, timezone

import pytest

from signal_rating.core.exceptions import PersistenceError
from signal_rating.models.enums import PatternId
from signal_rating.services.submissions import (
    SubmissionStore,
    build_submission_record,
    export_csv,
    filter_submissions,
    utc_timestamp,
)


def _stored(client_id, timestamp, cohort="1M-5M", sector="SaaS", overall=0.5):
    return {
        "client_id": client_id,
        "timestamp": timestamp,
        "client_name": f"Company {client_id}",
        "email": "",
        "cohort": cohort,
        "sector": sector,
        "employees": "11-50",
        "answers": {
            "pipeline_health": 3,
            "sales_conversion": 3,
            "customer_success": 3,
            "economics_efficiency": 3,
            "top_challenge": "pipeline",
        },
        "scores": {
            "overall_score": overall,
            "pipeline": overall,
            "conversion": overall,
            "expansion": overall,
        },
        "patterns": [],
    }


# ============================================================
# RECORD CONSTRUCTION
# ============================================================

class TestBuildSubmissionRecord:

    def test_record_fields(self, sample_record, sample_result):
        assert sample_record.client_id == "client-123"
        assert sample_record.timestamp == "2025-01-15T10:00:00.000Z"
        assert sample_record.cohort == "1M-5M"
        assert sample_record.sector == "SaaS"
        assert sample_record.employees == "11-50"
        assert sample_record.answers.pipeline_health == 4
        assert sample_record.answers.sales_conversion == 2
        assert sample_record.answers.top_challenge == "conversion"
        assert sample_record.scores.overall_score == sample_result.overall_score
        assert sample_record.scores.conversion == sample_result.loop_scores.conversion
        assert [p.pattern_id for p in sample_record.patterns] == [PatternId.PIPELINE_CONVERSION_GAP]

    def test_unparseable_answers_stored_as_none(self, sample_result):
        record = build_submission_record(
            {
                "question_1_pipeline_health": "",
                "question_2_sales_conversion": "abc",
                "question_3_customer_success": 0,
            },
            sample_result,
        )

        assert record.answers.pipeline_health is None
        assert record.answers.sales_conversion is None
        assert record.answers.customer_success is None
        assert record.answers.economics_efficiency is None
        assert record.answers.top_challenge is None

    def test_defaults_for_missing_identity(self, sample_result):
        record = build_submission_record({}, sample_result)

        assert record.client_name == "Unknown"
        assert record.email == ""
        assert record.cohort == "unknown"
        assert record.sector == "unknown"
        assert record.employees == "unknown"

    def test_utc_timestamp_format(self):
        moment = datetime(2025, 1, 31, 9, 15, 0, 123456, tzinfo=timezone.utc)
        assert utc_timestamp(moment) == "2025-01-31T09:15:00.123Z"


# ============================================================
# STORE
# ============================================================

class TestSubmissionStore:

    def test_missing_file_is_empty(self, tmp_path):
        store = SubmissionStore(tmp_path / "submissions_data.json")
        assert store.load_all() == []

    def test_append_and_load(self, tmp_path, sample_record):
        path = tmp_path / "submissions_data.json"
        store = SubmissionStore(path)

        assert store.append(sample_record) == 1
        assert store.append(sample_record) == 2

        stored = store.load_all()
        assert len(stored) == 2
        assert stored[0]["client_id"] == "client-123"
        assert stored[0]["scores"]["overall_score"] == sample_record.scores.overall_score
        assert stored[0]["patterns"][0]["pattern_id"] == "pipeline_conversion_gap"

    def test_file_is_indented_json_array(self, tmp_path, sample_record):
        path = tmp_path / "submissions_data.json"
        SubmissionStore(path).append(sample_record)

        text = path.read_text(encoding="utf-8")
        assert text.startswith("[\n  {")
        assert isinstance(json.loads(text), list)

    def test_creates_parent_directory(self, tmp_path, sample_record):
        path = tmp_path / "nested" / "dir" / "submissions_data.json"
        SubmissionStore(path).append(sample_record)
        assert path.exists()

    def test_corrupt_log_raises_and_is_preserved(self, tmp_path, sample_record):
        path = tmp_path / "submissions_data.json"
        path.write_text("{not json", encoding="utf-8")
        store = SubmissionStore(path)

        with pytest.raises(PersistenceError):
            store.load_all()
        with pytest.raises(PersistenceError):
            store.append(sample_record)
        assert path.read_text(encoding="utf-8") == "{not json"

    def test_non_array_log_raises(self, tmp_path):
        path = tmp_path / "submissions_data.json"
        path.write_text('{"submissions": []}', encoding="utf-8")

        with pytest.raises(PersistenceError):
            SubmissionStore(path).load_all()

    def test_no_temp_files_left_behind(self, tmp_path, sample_record):
        SubmissionStore(tmp_path / "submissions_data.json").append(sample_record)
        assert [p.name for p in tmp_path.iterdir()] == ["submissions_data.json"]

    def test_concurrent_appends_are_not_lost(self, tmp_path, sample_record):
        store = SubmissionStore(tmp_path / "submissions_data.json")
        threads = [threading.Thread(target=store.append, args=(sample_record,)) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.load_all()) == 20


# ============================================================
# FILTERING
# ============================================================

class TestFilterSubmissions:

    @pytest.fixture
    def submissions(self):
        return [
            _stored("a", "2025-01-10T08:00:00.000Z", cohort="1M-5M", sector="SaaS"),
            _stored("b", "2025-01-15T10:00:00.000Z", cohort="5M-10M", sector="SaaS"),
            _stored("c", "2025-01-20T12:30:00.000Z", cohort="1M-5M", sector="Fintech"),
            _stored("d", "not-a-date", cohort="1M-5M", sector="SaaS"),
        ]

    def _ids(self, submissions):
        return [s["client_id"] for s in submissions]

    def test_no_filters_returns_everything(self, submissions):
        assert self._ids(filter_submissions(submissions)) == ["a", "b", "c", "d"]

    def test_empty_filter_values_ignored(self, submissions):
        assert len(filter_submissions(submissions, cohort="", sector="")) == 4

    def test_cohort_and_sector(self, submissions):
        assert self._ids(filter_submissions(submissions, cohort="1M-5M")) == ["a", "c", "d"]
        assert self._ids(filter_submissions(submissions, cohort="1M-5M", sector="SaaS")) == ["a", "d"]

    def test_date_bounds_inclusive(self, submissions):
        filtered = filter_submissions(
            submissions,
            start_date="2025-01-15T10:00:00.000Z",
            end_date="2025-01-20T12:30:00.000Z",
        )
        assert self._ids(filtered) == ["b", "c"]

    def test_date_only_bound_is_midnight(self, submissions):
        assert self._ids(filter_submissions(submissions, end_date="2025-01-15")) == ["a"]

    def test_unparseable_timestamp_excluded_by_date_filter(self, submissions):
        assert "d" not in self._ids(filter_submissions(submissions, start_date="2025-01-01"))

    def test_empty_log(self):
        assert filter_submissions([], cohort="1M-5M") == []


# ============================================================
# CSV EXPORT
# ============================================================

class TestExportCsv:

    def test_columns_and_rows(self, tmp_path, sample_record):
        store = SubmissionStore(tmp_path / "submissions_data.json")
        store.append(sample_record)

        csv_text = export_csv(store.load_all())
        lines = csv_text.strip().splitlines()
        header = lines[0].split(",")

        assert header[:7] == [
            "client_id", "timestamp", "client_name", "email", "cohort", "sector", "employees",
        ]
        assert "answers.pipeline_health" in header
        assert "scores.overall_score" in header
        assert "patterns" in header
        assert len(lines) == 2
        assert "pipeline_conversion_gap" in lines[1]

    def test_patterns_joined(self):
        record = _stored("a", "2025-01-10T08:00:00.000Z")
        record["patterns"] = [
            {"pattern_id": "leaky_bucket", "description": "x", "priority": "critical"},
            {"pattern_id": "unit_economics_problem", "description": "y", "priority": "high"},
        ]
        assert "leaky_bucket; unit_economics_problem" in export_csv([record])

    def test_empty_export_has_header(self):
        assert export_csv([]).strip() == "client_id,timestamp,client_name,email,cohort,sector,employees"
