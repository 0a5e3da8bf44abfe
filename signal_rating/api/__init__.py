"""
Backend API package initialization.

FastAPI router modules of the Alpine Signal Rating backend:
- wizard: question copy and wizard submission scoring
- submissions: stored submission listing, CSV export and cohort benchmarks
- reports: PDF report generation and download
"""

from fastapi import APIRouter

from signal_rating.api.wizard import router as wizard_router
from signal_rating.api.submissions import router as submissions_router
from signal_rating.api.reports import router as reports_router

# Create main API router
api_router = APIRouter()

# wizard and reports routers carry their own full paths
api_router.include_router(wizard_router)
api_router.include_router(submissions_router, prefix="/api/submissions", tags=["submissions"])
api_router.include_router(reports_router)

__all__ = [
    "api_router",
    "wizard_router",
    "submissions_router",
    "reports_router",
]
