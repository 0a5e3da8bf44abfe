"""
FastAPI router for the assessment wizard.

Endpoints:
- GET /api/wizard/questions: question copy and top-challenge choices (metric
  mappings stay server-side)
- POST /wizard_submit: score a completed wizard, store the submission and
  schedule owner notifications

Response contract of /wizard_submit:
    { success: true, client_id, overall_score, loop_scores,
      priority_recommendations, detected_patterns }

Error mapping:
- answers missing -> 400 {"error": "Missing answers data"}
- rating outside 1..5 -> 422 {"error": "Invalid rating", "message": ...}
- anything else -> 500 {"error": "Failed to process submission", "message": ...}

Storage and notification failures are logged and never fail the request.
"""

import asyncio
import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException

from signal_rating.core.dependencies import AssessmentConfigDep, SettingsDep, SubmissionStoreDep
from signal_rating.core.exceptions import ConfigurationError, PersistenceError, ValidationError
from signal_rating.jobs.notifications import dispatch_submission_notifications
from signal_rating.models.schemas import (
    QuestionsResponse,
    WizardSubmitRequest,
    WizardSubmitResponse,
)
from signal_rating.services.scoring import build_rating_input, compute_scores
from signal_rating.services.submissions import build_submission_record


logger = logging.getLogger(__name__)

router = APIRouter(tags=["wizard"])


def _optional_text(value: Any) -> Optional[str]:
    return str(value) if value else None


@router.get("/api/wizard/questions", response_model=QuestionsResponse)
async def get_questions(config: AssessmentConfigDep) -> QuestionsResponse:
    """Return the wizard questions without their metric mappings."""
    return QuestionsResponse(
        title=config.title,
        version=config.version,
        questions=config.rating_questions,
        top_challenge=config.top_challenge_question,
    )


@router.post("/wizard_submit", response_model=WizardSubmitResponse)
async def wizard_submit(
    body: WizardSubmitRequest,
    background_tasks: BackgroundTasks,
    config: AssessmentConfigDep,
    store: SubmissionStoreDep,
    settings: SettingsDep,
) -> WizardSubmitResponse:
    """
    Score a completed wizard.

    Missing, blank, non-numeric or zero ratings default to 3 and a missing top
    challenge defaults to 'pipeline'. The client name and email fall back to
    the company_name and user_email answers.

    Returns:
        WizardSubmitResponse with the full scoring result.
    """
    try:
        if body.answers is None:
            raise ValidationError("Missing answers data")

        answers = body.answers
        client_name = body.client_name or _optional_text(answers.get("company_name"))
        email = body.email or _optional_text(answers.get("user_email"))
        logger.info(
            f"Processing submission for {client_name or 'Unknown'} "
            f"(client_id={body.client_id}, email={email or 'N/A'})"
        )

        ratings = build_rating_input(answers)
        result = compute_scores(ratings, ratings.top_challenge, config.metric_bundles)

    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"error": str(e)})
    except ConfigurationError as e:
        logger.warning(f"Rejected submission for {body.client_id}: {e}")
        raise HTTPException(
            status_code=422,
            detail={"error": "Invalid rating", "message": str(e)}
        )
    except Exception as e:
        logger.exception("Error processing wizard submission")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to process submission", "message": str(e)}
        )

    logger.info(
        f"Scores for {client_name or 'Unknown'}: overall {result.overall_score * 100:.1f}%, "
        f"pipeline {result.loop_scores.pipeline * 100:.1f}%, "
        f"conversion {result.loop_scores.conversion * 100:.1f}%, "
        f"expansion {result.loop_scores.expansion * 100:.1f}%"
    )

    record = build_submission_record(
        answers,
        result,
        client_id=body.client_id,
        client_name=client_name,
        email=email,
    )
    try:
        await asyncio.to_thread(store.append, record)
    except PersistenceError as e:
        logger.warning(f"Submission for {body.client_id} was scored but not stored: {e}")

    background_tasks.add_task(dispatch_submission_notifications, record, settings)

    return WizardSubmitResponse(
        **result.model_dump(),
        success=True,
        client_id=body.client_id,
    )
