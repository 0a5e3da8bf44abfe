"""
PDF Report Service

Renders the downloadable GTM diagnostic report with fpdf2 and stores it in the
configured output directory.

Report layout (A4, core Helvetica font):
1. Cover: logo, title, client, date, overall ASR score and tagline
2. Executive summary, key findings and commentary
3. Loop performance analysis with score bars
4. Priority focus area: root causes and recommended fixes, plus the top
   metrics and detected patterns when the caller supplied them
5. Recommended next steps and contact details

Rendering is CPU-bound and synchronous. ReportRenderer runs it in a worker
thread behind an asyncio.Semaphore (bounded concurrency) with an
asyncio.wait_for timeout. A timed-out render keeps its slot until the thread
returns. Any failure surfaces as RenderError and is never retried.

Text is reduced to the Latin-1 range of the core fonts before it is written;
unsupported characters become '?'.
"""

import asyncio
import logging
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from signal_rating.core.exceptions import RenderError
from signal_rating.models.enums import ScoreBand
from signal_rating.models.schemas import FixLibrary, PdfReportRequest, ReportContent
from signal_rating.services.insights import build_report_content


logger = logging.getLogger(__name__)


# =============================================================================
# Styling
# =============================================================================

FONT = "Helvetica"

NAVY = (0, 0, 44)
CYAN = (0, 150, 170)
GRAY = (90, 96, 110)
TRACK = (225, 228, 235)

BAND_COLORS = {
    ScoreBand.HIGH: (0, 170, 100),
    ScoreBand.MEDIUM: (230, 130, 0),
    ScoreBand.LOW: (220, 60, 50),
}

PRIORITY_COLORS = {
    "HIGH": (220, 60, 50),
    "MED": (230, 130, 0),
    "LOW": (230, 130, 0),
}

BOOKING_URL = "https://calendly.com/thealpinesystem/gtm-assessment"
CONTACT_EMAIL = "signal@thealpinesystem.com"
WEBSITE_URL = "https://thealpinesystem.com"

REPORT_PREFIX = "alpine-gtm-report"
REPORT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+\.pdf$")


PDF_REPLACEMENTS = {
    "’": "'",
    "‘": "'",
    "“": '"',
    "”": '"',
    "–": "-",
    "—": "-",
    "…": "...",
    "→": "->",
    "•": "-",
    "·": "-",
    "™": "TM",
}


def sanitize_for_pdf(text: str) -> str:
    """Map typographic characters to Latin-1 equivalents for the core fonts."""
    for src, dest in PDF_REPLACEMENTS.items():
        text = text.replace(src, dest)
    return text.encode("latin-1", errors="replace").decode("latin-1")


def report_filename(client_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    File name of a rendered report.

    Every character outside [A-Za-z0-9] in the client name becomes '-' and the
    result is lowercased, e.g. "Acme, Inc." -> alpine-gtm-report-acme--inc--<ms>.pdf.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    slug = re.sub(r"[^A-Za-z0-9]", "-", client_name).lower()
    return f"{REPORT_PREFIX}-{slug}-{timestamp_ms}.pdf"


def format_report_date(moment: datetime) -> str:
    """Long US date, e.g. 'January 31, 2025'."""
    return f"{moment:%B} {moment.day}, {moment.year}"


# =============================================================================
# Document
# =============================================================================


class ReportPDF(FPDF):
    """FPDF document with the report's recurring building blocks."""

    def __init__(self, generated_year: int):
        super().__init__(orientation="P", unit="mm", format="A4")
        self.generated_year = generated_year
        self.set_auto_page_break(auto=True, margin=18)
        self.set_margins(18, 18, 18)

    def footer(self):
        self.set_y(-12)
        self.set_font(FONT, "", 8)
        self.set_text_color(*GRAY)
        self.cell(
            0, 6,
            f"(c) The Alpine System {self.generated_year} - Assess.Fix.Scale.Repeat.   Page {self.page_no()}",
            align="C",
        )

    def write_line(self, text: str, size: float = 11, style: str = "",
                   color: Tuple[int, int, int] = NAVY, height: float = 7, align: str = "L"):
        self.set_font(FONT, style, size)
        self.set_text_color(*color)
        self.cell(0, height, sanitize_for_pdf(text), align=align,
                  new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def section_title(self, text: str):
        self.ln(2)
        self.write_line(text, size=18, style="B", color=CYAN, height=11)
        self.ln(2)

    def paragraph(self, text: str, size: float = 11, color: Tuple[int, int, int] = NAVY):
        self.set_font(FONT, "", size)
        self.set_text_color(*color)
        self.multi_cell(0, 6, sanitize_for_pdf(text), align="L",
                        new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(3)

    def bullet(self, text: str, color: Tuple[int, int, int] = GRAY):
        self.set_font(FONT, "", 11)
        self.set_text_color(*color)
        x = self.get_x()
        self.cell(5, 6, "-")
        self.set_x(x + 5)
        self.multi_cell(0, 6, sanitize_for_pdf(text), align="L",
                        new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def score_bar(self, score: int, band: ScoreBand, height: float = 3):
        width = self.w - self.l_margin - self.r_margin
        x, y = self.get_x(), self.get_y()
        self.set_fill_color(*TRACK)
        self.rect(x, y, width, height, style="F")
        filled = width * max(0, min(100, score)) / 100
        if filled > 0:
            self.set_fill_color(*BAND_COLORS[band])
            self.rect(x, y, filled, height, style="F")
        self.ln(height + 3)


# =============================================================================
# Pages
# =============================================================================


def _cover_page(pdf: ReportPDF, content: ReportContent, logo_path: Optional[Path]) -> None:
    pdf.add_page()
    if logo_path is not None:
        if logo_path.is_file():
            pdf.image(str(logo_path), x=(pdf.w - 60) / 2, y=24, w=60)
        else:
            logger.warning(f"Report logo not found at {logo_path}; rendering without it")
    pdf.set_y(70)
    pdf.write_line("Your GTM Diagnostic", size=26, style="B", color=CYAN, height=14, align="C")
    pdf.write_line(f"Prepared for {content.client_name}", size=15, color=GRAY, height=9, align="C")
    pdf.write_line(f"Generated on {format_report_date(content.generated_at)}",
                   size=11, color=GRAY, align="C")

    pdf.ln(22)
    pdf.write_line(str(content.overall_score), size=72, style="B",
                   color=BAND_COLORS[content.overall_band], height=30, align="C")
    pdf.write_line("ASR Score", size=16, style="B", height=10, align="C")
    pdf.ln(6)
    pdf.set_font(FONT, "", 12)
    pdf.set_text_color(*GRAY)
    pdf.multi_cell(0, 7, sanitize_for_pdf(content.tagline), align="C",
                   new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _summary_page(pdf: ReportPDF, content: ReportContent) -> None:
    pdf.add_page()
    pdf.section_title("Executive Summary")
    for text in content.executive_summary:
        pdf.paragraph(text)

    pdf.write_line("Key Findings:", style="B", color=CYAN)
    for finding in content.key_findings:
        pdf.bullet(finding)
    pdf.ln(4)

    pdf.section_title("Key Insights & Commentary")
    pdf.paragraph(content.insights.main_insight, color=GRAY)
    pdf.paragraph(content.insights.loop_analysis, color=GRAY)
    pdf.paragraph(content.insights.actionable_outcome, color=GRAY)


def _loop_page(pdf: ReportPDF, content: ReportContent) -> None:
    pdf.add_page()
    pdf.section_title("GTM Loop Performance Analysis")
    pdf.paragraph("Your Go-To-Market infrastructure is measured across three critical loops:")

    for narrative in content.loop_narratives:
        pdf.set_font(FONT, "B", 13)
        pdf.set_text_color(*CYAN)
        pdf.cell(pdf.w - pdf.l_margin - pdf.r_margin - 25, 8, sanitize_for_pdf(narrative.heading))
        pdf.set_text_color(*BAND_COLORS[narrative.loop.band])
        pdf.cell(25, 8, f"{narrative.loop.score}%", align="R",
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.score_bar(narrative.loop.score, narrative.loop.band)
        pdf.paragraph(narrative.text, color=GRAY)
        pdf.ln(3)


def _focus_page(pdf: ReportPDF, content: ReportContent) -> None:
    pdf.add_page()
    pdf.section_title("Priority Focus Area")
    weakest = content.weakest_loop.name.value
    pdf.write_line(f"{weakest} Loop - Your Highest Impact Improvement Area",
                   size=14, style="B", color=BAND_COLORS[ScoreBand.LOW], height=9)
    pdf.paragraph(content.focus_statement)

    pdf.write_line("Root Causes:", style="B", color=CYAN)
    for cause in content.root_causes:
        pdf.bullet(cause)
    pdf.ln(4)

    pdf.write_line("Recommended Fixes:", size=13, style="B", color=CYAN)
    for selected in content.fixes:
        pdf.ln(2)
        pdf.set_font(FONT, "B", 12)
        pdf.set_text_color(*CYAN)
        pdf.cell(pdf.w - pdf.l_margin - pdf.r_margin - 35, 7, sanitize_for_pdf(selected.fix.name))
        pdf.set_font(FONT, "B", 9)
        pdf.set_text_color(*PRIORITY_COLORS[selected.priority.value])
        pdf.cell(35, 7, f"{selected.priority.value} PRIORITY", align="R",
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.paragraph(f"Action: {selected.fix.description}", size=10)
        pdf.paragraph(f"Impact: {selected.fix.impact}", size=10, color=BAND_COLORS[ScoreBand.HIGH])

    if content.priority_metrics:
        pdf.section_title("Top Metrics to Improve")
        for metric in content.priority_metrics:
            pdf.bullet(
                f"{metric.name} ({metric.loop.value}): {metric.formatted_value} "
                f"- {metric.normalized_score}% of benchmark"
            )
        pdf.ln(3)

    if content.detected_patterns:
        pdf.section_title("Detected Patterns")
        for pattern in content.detected_patterns:
            pdf.bullet(f"[{pattern.priority.value.upper()}] {pattern.description}")


def _next_steps_page(pdf: ReportPDF, content: ReportContent) -> None:
    pdf.add_page()
    pdf.section_title("Recommended Next Steps")
    pdf.paragraph(
        "Based on your diagnostic results, we recommend focusing on the priority areas "
        "identified above. Our team can help you implement these improvements systematically "
        "and achieve measurable results within 90 days."
    )
    for index, recommendation in enumerate(content.recommendations, start=1):
        pdf.write_line(
            f"{index}. {recommendation.loop.value} Loop Optimization "
            f"({recommendation.priority.value} Priority)",
            size=12, style="B", color=CYAN,
        )
        pdf.paragraph(recommendation.description, size=10, color=GRAY)

    pdf.ln(4)
    pdf.write_line("Run a Free GTM System Diagnostic", size=16, style="B", color=CYAN, height=10)
    pdf.paragraph("Book your complimentary ASR session to:")
    pdf.bullet("Benchmark GTM health across Pipeline, Conversion and Expansion")
    pdf.bullet("Quantify top breakdowns by $ impact and ROI window")
    pdf.bullet("Receive a precision-engineered Fix Console roadmap")
    pdf.ln(4)
    pdf.write_line(f"BOOK SESSION: {BOOKING_URL}", size=10, style="B")
    pdf.write_line(f"EMAIL: {CONTACT_EMAIL}", size=10, style="B")
    pdf.write_line(f"LEARN MORE: {WEBSITE_URL}", size=10, style="B")


def render_pdf(content: ReportContent, logo_path: Optional[Path] = None) -> bytes:
    """
    Render report content to PDF bytes.

    Args:
        content: Output of build_report_content.
        logo_path: Optional PNG/JPEG placed on the cover.

    Returns:
        The complete PDF document.
    """
    pdf = ReportPDF(generated_year=content.generated_at.year)
    pdf.set_title(sanitize_for_pdf(f"Alpine GTM Infrastructure Report - {content.client_name}"))
    pdf.set_author("The Alpine System")

    _cover_page(pdf, content, logo_path)
    _summary_page(pdf, content)
    _loop_page(pdf, content)
    _focus_page(pdf, content)
    _next_steps_page(pdf, content)

    return bytes(pdf.output())


# =============================================================================
# Renderer
# =============================================================================


class ReportRenderer:
    """
    Bounded, time-limited PDF rendering into an output directory.

    One instance is created in the application lifespan. At most
    `max_concurrent` renders run at once; further requests wait for a slot.
    """

    def __init__(
        self,
        output_dir: Path,
        fix_library: FixLibrary,
        logo_path: Optional[Path] = None,
        max_concurrent: int = 2,
        timeout_seconds: float = 30.0,
    ):
        self.output_dir = Path(output_dir)
        self.fix_library = fix_library
        self.logo_path = logo_path
        self.timeout_seconds = timeout_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def render(self, request: PdfReportRequest) -> str:
        """
        Render and store a report.

        Args:
            request: Scores and client name from the results page.

        Returns:
            File name of the stored report inside output_dir.

        Raises:
            RenderError: If rendering fails, exceeds the timeout, or the file
                cannot be written.
        """
        content = build_report_content(request, self.fix_library)
        filename = report_filename(request.client_name)
        started = time.monotonic()

        # The slot is held until the worker thread returns, not until the
        # caller stops waiting, so timed-out renders still count.
        await self._semaphore.acquire()
        worker = asyncio.ensure_future(
            asyncio.to_thread(render_pdf, content, self.logo_path)
        )
        worker.add_done_callback(self._release_slot)
        try:
            pdf_bytes = await asyncio.wait_for(
                asyncio.shield(worker), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise RenderError(
                f"PDF rendering exceeded {self.timeout_seconds:.0f}s for {request.client_name}"
            ) from e
        except Exception as e:
            raise RenderError(f"PDF rendering failed: {e}") from e

        try:
            await asyncio.to_thread(self._write, filename, pdf_bytes)
        except OSError as e:
            raise RenderError(f"Could not save PDF report {filename}: {e}") from e

        elapsed = time.monotonic() - started
        logger.info(
            f"Rendered PDF report {filename} ({len(pdf_bytes) / 1024:.1f} KB in {elapsed:.2f}s)"
        )
        return filename

    def _release_slot(self, worker: asyncio.Future) -> None:
        self._semaphore.release()
        # Mark the outcome of abandoned renders as retrieved
        if not worker.cancelled() and worker.exception() is not None:
            logger.debug(f"Abandoned PDF render ended with: {worker.exception()}")

    def _write(self, filename: str, pdf_bytes: bytes) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        (self.output_dir / filename).write_bytes(pdf_bytes)

    def resolve(self, filename: str) -> Optional[Path]:
        """
        Locate a previously rendered report.

        Returns:
            Path of the file, or None for unknown names and names that would
            leave the output directory.
        """
        if not REPORT_NAME_PATTERN.match(filename) or filename.startswith("."):
            return None
        path = (self.output_dir / filename).resolve()
        if path.parent != self.output_dir.resolve() or not path.is_file():
            return None
        return path
