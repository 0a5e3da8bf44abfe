"""
Tests for PDF report rendering (services/pdf_report.py).

Covers file naming, text sanitizing for the core fonts, the rendered
document, and the ReportRenderer's timeout, failure and path handling.
"""

import asyncio
import re
import threading
import time
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from signal_rating.core.exceptions import RenderError
from signal_rating.models.schemas import LoopScores, PdfReportRequest
from signal_rating.services.insights import build_report_content
from signal_rating.services.pdf_report import (
    REPORT_NAME_PATTERN,
    ReportRenderer,
    format_report_date,
    render_pdf,
    report_filename,
    sanitize_for_pdf,
)


class TestHelpers:

    def test_report_filename_slug(self):
        assert report_filename("Acme, Inc.", 1700000000000) == (
            "alpine-gtm-report-acme--inc--1700000000000.pdf"
        )

    @pytest.mark.parametrize("client_name", ["Stra\u017fe GmbH", "\u212aelvin Labs", "Café Ünited"])
    def test_report_filename_is_ascii(self, client_name):
        filename = report_filename(client_name, 1)

        assert REPORT_NAME_PATTERN.match(filename)
        assert filename.isascii()

    def test_report_filename_default_timestamp(self):
        assert re.fullmatch(r"alpine-gtm-report-acme-\d{13}\.pdf", report_filename("Acme"))

    def test_sanitize_for_pdf(self):
        assert sanitize_for_pdf("Growth → “scale” – fast…") == 'Growth -> "scale" - fast...'
        assert sanitize_for_pdf("Café") == "Café"
        assert sanitize_for_pdf("Ω team") == "? team"

    def test_format_report_date(self):
        assert format_report_date(datetime(2025, 1, 5)) == "January 5, 2025"


class TestRenderPdf:

    def test_renders_pdf_document(self, fix_library, sample_report_request):
        content = build_report_content(sample_report_request, fix_library)
        pdf_bytes = render_pdf(content)

        assert isinstance(pdf_bytes, bytes)
        assert pdf_bytes.startswith(b"%PDF-")

    def test_non_latin_client_name(self, fix_library):
        request = PdfReportRequest(
            client_name="Ωmega Café → Labs",
            overall_score=0.3,
            loop_scores=LoopScores(pipeline=0.2, conversion=0.3, expansion=0.4),
        )
        content = build_report_content(request, fix_library)
        assert render_pdf(content).startswith(b"%PDF-")

    def test_missing_logo_is_ignored(self, fix_library, sample_report_request, tmp_path):
        content = build_report_content(sample_report_request, fix_library)
        assert render_pdf(content, logo_path=tmp_path / "missing.png").startswith(b"%PDF-")


class TestReportRenderer:

    pytestmark = pytest.mark.asyncio

    async def test_render_writes_file(self, fix_library, sample_report_request, tmp_path):
        renderer = ReportRenderer(tmp_path / "temp_pdfs", fix_library)

        filename = await renderer.render(sample_report_request)

        assert filename.startswith("alpine-gtm-report-acme-analytics-")
        path = renderer.resolve(filename)
        assert path is not None
        assert path.read_bytes().startswith(b"%PDF-")

    async def test_timeout_raises_render_error(self, fix_library, sample_report_request, tmp_path):
        def slow_render(content, logo_path=None):
            time.sleep(0.5)
            return b"%PDF-late"

        renderer = ReportRenderer(tmp_path, fix_library, timeout_seconds=0.05)
        with patch('signal_rating.services.pdf_report.render_pdf', side_effect=slow_render):
            with pytest.raises(RenderError, match="exceeded"):
                await renderer.render(sample_report_request)

    async def test_render_failure_raises_render_error(self, fix_library, sample_report_request, tmp_path):
        renderer = ReportRenderer(tmp_path, fix_library)
        with patch('signal_rating.services.pdf_report.render_pdf', side_effect=RuntimeError("font")):
            with pytest.raises(RenderError, match="font"):
                await renderer.render(sample_report_request)
        assert list(tmp_path.iterdir()) == []

    async def test_concurrent_renders(self, fix_library, tmp_path):
        renderer = ReportRenderer(tmp_path, fix_library, max_concurrent=1)
        requests = [
            PdfReportRequest(
                client_name=f"Client {index}",
                overall_score=0.5,
                loop_scores=LoopScores(pipeline=0.5, conversion=0.5, expansion=0.5),
                timestamp=datetime(2025, 1, 15, tzinfo=timezone.utc),
            )
            for index in range(3)
        ]

        filenames = await asyncio.gather(*(renderer.render(r) for r in requests))

        assert len(set(filenames)) == 3
        assert all(renderer.resolve(name) is not None for name in filenames)

    async def test_timed_out_renders_keep_their_slot(self, fix_library, sample_report_request, tmp_path):
        lock = threading.Lock()
        counts = {"active": 0, "peak": 0}

        def slow_render(content, logo_path=None):
            with lock:
                counts["active"] += 1
                counts["peak"] = max(counts["peak"], counts["active"])
            time.sleep(0.2)
            with lock:
                counts["active"] -= 1
            return b"%PDF-late"

        renderer = ReportRenderer(tmp_path, fix_library, max_concurrent=1, timeout_seconds=0.05)
        with patch('signal_rating.services.pdf_report.render_pdf', side_effect=slow_render):
            results = await asyncio.gather(
                *(renderer.render(sample_report_request) for _ in range(4)),
                return_exceptions=True,
            )
            while counts["active"]:
                await asyncio.sleep(0.05)

        assert all(isinstance(result, RenderError) for result in results)
        assert counts["peak"] == 1


class TestResolve:

    @pytest.mark.parametrize("filename", [
        "../secrets.pdf",
        "..%2Fsecrets.pdf",
        ".hidden.pdf",
        "report.txt",
        "missing.pdf",
    ])
    def test_rejects_unknown_or_unsafe_names(self, fix_library, tmp_path, filename):
        (tmp_path / "reports").mkdir()
        (tmp_path / "secrets.pdf").write_bytes(b"%PDF-secret")
        renderer = ReportRenderer(tmp_path / "reports", fix_library)

        assert renderer.resolve(filename) is None
