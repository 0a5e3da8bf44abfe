"""
FastAPI router for the stored submission log.

Endpoints:
- GET /api/submissions: filtered submissions { submissions, total, total_all }
- GET /api/submissions/export: the same filter as a CSV download
- GET /api/submissions/benchmarks: per-cohort score statistics

Filters (all optional): cohort, sector, start_date, end_date. Date bounds are
inclusive and compared with the record timestamp.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from signal_rating.core.dependencies import SubmissionStoreDep
from signal_rating.core.exceptions import PersistenceError
from signal_rating.models.schemas import BenchmarkResponse, SubmissionListResponse
from signal_rating.services.benchmarks import compute_benchmarks
from signal_rating.services.submissions import SubmissionStore, export_csv, filter_submissions


logger = logging.getLogger(__name__)

router = APIRouter()


async def _load(store: SubmissionStore) -> List[Dict[str, Any]]:
    try:
        return await asyncio.to_thread(store.load_all)
    except PersistenceError as e:
        logger.exception("Error reading submissions data")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to read submissions data", "message": str(e)}
        )


@router.get("", response_model=SubmissionListResponse)
async def list_submissions(
    store: SubmissionStoreDep,
    cohort: Optional[str] = Query(default=None, description="ARR bucket"),
    sector: Optional[str] = Query(default=None, description="Sector"),
    start_date: Optional[str] = Query(default=None, description="Inclusive lower timestamp bound"),
    end_date: Optional[str] = Query(default=None, description="Inclusive upper timestamp bound"),
) -> SubmissionListResponse:
    """
    List stored submissions.

    Returns:
        SubmissionListResponse; an empty log yields zero totals.
    """
    submissions = await _load(store)
    filtered = filter_submissions(submissions, cohort, sector, start_date, end_date)
    logger.info(f"Listed {len(filtered)} of {len(submissions)} submissions")
    return SubmissionListResponse(
        submissions=filtered,
        total=len(filtered),
        total_all=len(submissions),
    )


@router.get("/export")
async def export_submissions(
    store: SubmissionStoreDep,
    cohort: Optional[str] = Query(default=None),
    sector: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None),
    end_date: Optional[str] = Query(default=None),
) -> Response:
    """Download the filtered submissions as CSV."""
    submissions = await _load(store)
    filtered = filter_submissions(submissions, cohort, sector, start_date, end_date)
    return Response(
        content=export_csv(filtered),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="submissions.csv"'},
    )


@router.get("/benchmarks", response_model=BenchmarkResponse)
async def get_benchmarks(
    store: SubmissionStoreDep,
    cohort: Optional[str] = Query(default=None),
    sector: Optional[str] = Query(default=None),
) -> BenchmarkResponse:
    """Score distribution per cohort."""
    submissions = await _load(store)
    return compute_benchmarks(submissions, cohort=cohort, sector=sector)
