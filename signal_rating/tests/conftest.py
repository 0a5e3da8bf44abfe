"""
Pytest Configuration and Shared Fixtures for Alpine Signal Rating Tests.

This module provides fixtures and configuration for all backend tests, supporting:
- Async test execution with pytest-asyncio
- The packaged assessment config and fix library, loaded once per session
- Settings isolated to a temporary directory (submission log, PDF output)
- A FastAPI TestClient with the application lifespan running
- Sample scoring results and submission records

Markers:
- parity: numeric results must match the published scoring formula exactly
- integration: exercises the full FastAPI application
- slow: exhaustive sweeps over every rating combination
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from signal_rating.core.assessment import load_assessment_config, load_fix_library
from signal_rating.core.config import DATA_DIR, Settings, get_settings
from signal_rating.models.schemas import (
    AssessmentConfig,
    FixLibrary,
    MetricBundles,
    PdfReportRequest,
    RatingInput,
    ScoreResult,
    SubmissionRecord,
)
from signal_rating.services.scoring import compute_scores
from signal_rating.services.submissions import build_submission_record


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    Usage:
        # Skip the exhaustive sweeps:
        pytest -m "not slow"
    """
    config.addinivalue_line("markers", "parity: exact numeric parity with the scoring formula")
    config.addinivalue_line("markers", "integration: full application tests through TestClient")
    config.addinivalue_line("markers", "slow: exhaustive sweeps over rating combinations")


# ============================================================
# STATIC CONFIGURATION FIXTURES
# ============================================================

@pytest.fixture(scope="session")
def assessment_config() -> AssessmentConfig:
    """The packaged wizard_questions.json."""
    return load_assessment_config(DATA_DIR / "wizard_questions.json")


@pytest.fixture(scope="session")
def metric_bundles(assessment_config: AssessmentConfig) -> MetricBundles:
    return assessment_config.metric_bundles


@pytest.fixture(scope="session")
def fix_library() -> FixLibrary:
    """The packaged fix_library.json."""
    return load_fix_library(DATA_DIR / "fix_library.json")


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture
def test_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    """
    Settings pointing the submission log and PDF output into tmp_path.

    Notification channels are disabled so no test reaches the network.
    """
    monkeypatch.setenv("SUBMISSIONS_PATH", str(tmp_path / "submissions_data.json"))
    monkeypatch.setenv("PDF_OUTPUT_DIR", str(tmp_path / "temp_pdfs"))
    monkeypatch.setenv("EMAIL_NOTIFICATIONS_ENABLED", "false")
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def email_settings() -> Settings:
    """Settings with SendGrid email enabled and no Slack webhook."""
    return Settings(
        _env_file=None,
        email_notifications_enabled=True,
        email_service="SendGrid",
        sendgrid_api_key="SG.test-key",
        email_from="noreply@alpine-signal.com",
        email_to="owner@example.com",
        slack_webhook_url=None,
    )


# ============================================================
# APPLICATION FIXTURES
# ============================================================

@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan run against temporary storage."""
    from signal_rating.main import app

    with TestClient(app) as test_client:
        yield test_client


# ============================================================
# SAMPLE DATA FIXTURES
# ============================================================

@pytest.fixture
def sample_answers() -> Dict[str, Any]:
    """Raw wizard answers for a strong-pipeline, weak-conversion company."""
    return {
        "question_1_pipeline_health": "4",
        "question_2_sales_conversion": "2",
        "question_3_customer_success": "3",
        "question_4_economics_and_efficiency": "3",
        "question_5_top_challenge": "conversion",
        "arr": "1M-5M",
        "sector": "SaaS",
        "employees": "11-50",
        "company_name": "Acme Analytics",
        "user_email": "cfo@acme.example",
    }


@pytest.fixture
def sample_result(metric_bundles: MetricBundles) -> ScoreResult:
    ratings = RatingInput(
        pipeline_rating=4,
        conversion_rating=2,
        expansion_rating=3,
        economics_rating=3,
        top_challenge="conversion",
    )
    return compute_scores(ratings, ratings.top_challenge, metric_bundles)


@pytest.fixture
def sample_record(sample_answers: Dict[str, Any], sample_result: ScoreResult) -> SubmissionRecord:
    return build_submission_record(
        sample_answers,
        sample_result,
        client_id="client-123",
        client_name="Acme Analytics",
        email="cfo@acme.example",
        timestamp=datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_report_request(sample_result: ScoreResult) -> PdfReportRequest:
    return PdfReportRequest(
        client_name="Acme Analytics",
        timestamp=datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc),
        **sample_result.model_dump(),
    )
