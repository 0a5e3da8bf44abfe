'''
Alpine Signal Rating Backend Test Suite

Test Modules:
-------------
- test_scoring.py: Scoring engine
  - Category arithmetic against the published coefficients
  - Score bounds over every rating combination
  - Challenge-adjusted weights
  - Priority ranking, stable ties, value formatting
  - Pattern detection and answer parsing

- test_assessment.py: Static config and fix library loading

- test_insights.py: Report content
  - Score bands, taglines, loop ordering
  - Fix selection and loop recommendations

- test_submissions.py: Submission log store, filters, CSV export

- test_benchmarks.py: Per-cohort score statistics

- test_reports.py: PDF rendering, timeouts, download path checks

- test_jobs.py: Owner email, Slack alert and notification dispatch

- test_api.py: FastAPI routes through TestClient

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v
    pytest -m "not slow"

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

# This file enables pytest discovery of the tests directory

__all__ = []
