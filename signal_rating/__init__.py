"""
Alpine Signal Rating Backend Package.

FastAPI service for the Alpine Signal Rating (ASR) GTM assessment. Scores the
five-question wizard, keeps an append-only submission log for benchmarking,
notifies the owner of new leads and renders the PDF diagnostic report.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, static assessment config loading, dependencies
    - models: Pydantic schemas and enums
    - services: Scoring engine, report content, submission log, benchmarks, PDF
    - jobs: Owner notifications (email, Slack)
    - data: Packaged wizard_questions.json and fix_library.json
"""

__version__ = "1.0.0"
