"""
FastAPI router for PDF reports.

Endpoints:
- POST /api/generate-pdf: render the report for a scoring result
  -> { success, filename, download_url: "/temp_pdfs/<filename>" }
- GET /temp_pdfs/{filename}: download a rendered report

Rendering failures and timeouts return 500 and are not retried.
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from signal_rating.core.dependencies import ReportRendererDep
from signal_rating.core.exceptions import RenderError
from signal_rating.models.schemas import PdfReportRequest, PdfReportResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


@router.post("/api/generate-pdf", response_model=PdfReportResponse)
async def generate_pdf(body: PdfReportRequest, renderer: ReportRendererDep) -> PdfReportResponse:
    """Render and store the PDF report for one client."""
    logger.info(f"Generating PDF for {body.client_name}")
    try:
        filename = await renderer.render(body)
    except RenderError as e:
        logger.exception(f"Error generating PDF for {body.client_name}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to generate PDF", "message": str(e)}
        )

    return PdfReportResponse(
        success=True,
        filename=filename,
        download_url=f"/temp_pdfs/{filename}",
    )


@router.get("/temp_pdfs/{filename}")
async def download_pdf(filename: str, renderer: ReportRendererDep) -> FileResponse:
    """Serve a previously rendered report."""
    path = renderer.resolve(filename)
    if path is None:
        raise HTTPException(status_code=404, detail={"error": "Report not found"})
    return FileResponse(path, media_type="application/pdf", filename=filename)
