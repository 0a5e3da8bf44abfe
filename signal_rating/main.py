"""
FastAPI application entry point for the Alpine Signal Rating API.

Configures logging and CORS, builds the shared application state in the
lifespan and registers the API routers.

Application state (built once at startup, read-only afterwards):
- assessment_config: questions and metric bundles
- fix_library: report fix catalogue
- submission_store: append-only submission log
- report_renderer: bounded PDF renderer

A missing or malformed config file raises ConfigurationError from the
lifespan, so the server refuses to start instead of scoring against a partial
configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signal_rating import __version__
from signal_rating.api import api_router
from signal_rating.core.assessment import load_assessment_config, load_fix_library
from signal_rating.core.config import get_settings
from signal_rating.services.pdf_report import ReportRenderer
from signal_rating.services.submissions import SubmissionStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Load the assessment config and fix library (fatal on error)
        - Create the submission store and PDF renderer

    On shutdown:
        - Log shutdown message
    """
    settings = get_settings()
    logger.info("Alpine Signal Rating API starting")

    app.state.assessment_config = load_assessment_config(settings.assessment_config_path)
    app.state.fix_library = load_fix_library(settings.fix_library_path)
    app.state.submission_store = SubmissionStore(settings.submissions_path)
    app.state.report_renderer = ReportRenderer(
        output_dir=settings.pdf_output_dir,
        fix_library=app.state.fix_library,
        logo_path=settings.logo_path,
        max_concurrent=settings.pdf_max_concurrent_renders,
        timeout_seconds=settings.pdf_render_timeout_seconds,
    )
    logger.info(
        f"Submissions stored in {settings.submissions_path}; "
        f"reports written to {settings.pdf_output_dir}"
    )

    yield

    logger.info("Alpine Signal Rating API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Alpine Signal Rating API",
    version=__version__,
    description=(
        "Scores the Alpine Signal Rating GTM assessment, stores submissions "
        "for benchmarking and renders the PDF diagnostic report."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'ok'
    """
    return {"status": "ok", "message": "Alpine Signal Rating API is running"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Alpine Signal Rating API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "signal_rating.main:app",
        host="0.0.0.0",
        port=3000,
        reload=True,
    )
