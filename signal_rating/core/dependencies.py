"""
FastAPI dependency injection module for the Alpine Signal Rating backend.

Provides reusable dependencies for configuration access and for the shared
objects built once in the application lifespan (see signal_rating.main):

- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_assessment_config / AssessmentConfigDep: questions and metric bundles
- get_submission_store / SubmissionStoreDep: append-only submission log
- get_report_renderer / ReportRendererDep: bounded PDF renderer

The lifespan stores these on `app.state`; handlers never reach for module
globals, so tests can swap any of them through `app.dependency_overrides`.

Usage Examples:
    @router.post("/wizard_submit")
    async def wizard_submit(
        body: WizardSubmitRequest,
        config: AssessmentConfigDep,
        store: SubmissionStoreDep,
    ) -> WizardSubmitResponse:
        ...

This module is not re-exported from signal_rating.core because it depends on
the service layer; import it directly.
"""

from typing import Annotated

from fastapi import Depends, Request

from signal_rating.core.config import Settings, get_settings
from signal_rating.models.schemas import AssessmentConfig
from signal_rating.services.pdf_report import ReportRenderer
from signal_rating.services.submissions import SubmissionStore


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


# =============================================================================
# Application State Dependencies
# =============================================================================

def get_assessment_config(request: Request) -> AssessmentConfig:
    """Assessment config loaded at startup."""
    return request.app.state.assessment_config


def get_submission_store(request: Request) -> SubmissionStore:
    """Submission log bound to the configured file."""
    return request.app.state.submission_store


def get_report_renderer(request: Request) -> ReportRenderer:
    """PDF renderer with the configured concurrency limit and timeout."""
    return request.app.state.report_renderer


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

AssessmentConfigDep = Annotated[AssessmentConfig, Depends(get_assessment_config)]
SubmissionStoreDep = Annotated[SubmissionStore, Depends(get_submission_store)]
ReportRendererDep = Annotated[ReportRenderer, Depends(get_report_renderer)]
