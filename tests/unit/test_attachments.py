"""Unit tests for the attachment resolver.

All HTTP traffic goes through ``httpx.MockTransport`` so the tests can assert
exactly which requests (HEAD check vs GET download) were issued.
"""

from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from benchscrape.modules.extraction.attachments import (
    AttachmentDownloadError,
    AttachmentResolver,
    is_pdf_locator,
    resolve_attachments,
)
from benchscrape.modules.extraction.progress import ProgressCounter

PDF_BYTES = b"%PDF-1.7\n1 0 obj <<>> endobj\n%%EOF"


def _recording_client(
    requests: list[httpx.Request],
    *,
    head_content_type: str = "text/html",
    get_status: int = 200,
    head_error: bool = False,
) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "HEAD":
            if head_error:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, headers={"content-type": head_content_type})
        return httpx.Response(
            get_status,
            headers={"content-type": "application/pdf"},
            content=PDF_BYTES if get_status == 200 else b"not found",
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Suffix detection
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("locator", "expected"),
    [
        ("https://example.com/papers/report.pdf", True),
        ("https://example.com/papers/REPORT.PDF", True),
        ("https://example.com/papers/report.Pdf?download=1#page=3", True),
        ("https://example.com/blog/launch", False),
        ("https://example.com/pdf/launch", False),
        ("https://example.com/launch?format=.pdf", False),
    ],
)
def test_is_pdf_locator(locator: str, expected: bool) -> None:
    assert is_pdf_locator(locator) is expected


# ---------------------------------------------------------------------------
# Single-locator resolution
# ---------------------------------------------------------------------------


async def test_pdf_suffix_downloads_without_head_request() -> None:
    """A .pdf locator is downloaded straight away, no HEAD request."""
    requests: list[httpx.Request] = []
    async with _recording_client(requests) as client:
        attachment = await AttachmentResolver(client).resolve("https://example.com/report.PDF")

    assert [r.method for r in requests] == ["GET"]
    assert attachment is not None
    assert attachment.mime_type == "application/pdf"
    assert base64.b64decode(attachment.payload) == PDF_BYTES
    assert attachment.size_bytes == len(PDF_BYTES)


async def test_html_content_type_yields_no_attachment() -> None:
    """Non-PDF suffix + non-PDF content type → HEAD only, no download."""
    requests: list[httpx.Request] = []
    async with _recording_client(requests, head_content_type="text/html; charset=utf-8") as client:
        attachment = await AttachmentResolver(client).resolve("https://example.com/blog/launch")

    assert attachment is None
    assert [r.method for r in requests] == ["HEAD"]


async def test_pdf_content_type_triggers_download() -> None:
    """Extension-less locator served as application/pdf is downloaded."""
    requests: list[httpx.Request] = []
    async with _recording_client(requests, head_content_type="application/pdf; qs=0.001") as client:
        attachment = await AttachmentResolver(client).resolve("https://arxiv.org/pdf/2501.00001")

    assert attachment is not None
    assert [r.method for r in requests] == ["HEAD", "GET"]


async def test_head_failure_fails_open() -> None:
    """A HEAD request that raises is treated as "not a PDF" and the run continues."""
    requests: list[httpx.Request] = []
    async with _recording_client(requests, head_error=True) as client:
        attachment = await AttachmentResolver(client).resolve("https://example.com/blog/launch")

    assert attachment is None
    assert [r.method for r in requests] == ["HEAD"]


async def test_download_error_status_is_fatal() -> None:
    """A PDF whose download returns 404 raises instead of being skipped."""
    requests: list[httpx.Request] = []
    async with _recording_client(requests, get_status=404) as client:
        with pytest.raises(AttachmentDownloadError) as exc_info:
            await AttachmentResolver(client).resolve("https://example.com/missing.pdf")

    assert exc_info.value.status_code == 404
    assert exc_info.value.locator == "https://example.com/missing.pdf"


async def test_resolve_advances_progress() -> None:
    requests: list[httpx.Request] = []
    progress = ProgressCounter(stage="locator check", total=1)
    async with _recording_client(requests) as client:
        await AttachmentResolver(client).resolve("https://example.com/blog", progress)

    assert progress.completed == 1
    assert progress.completed == progress.total


# ---------------------------------------------------------------------------
# Fan-out over all locators
# ---------------------------------------------------------------------------


async def test_resolve_attachments_keeps_locator_order() -> None:
    """Only PDFs come back, in the order the locators were given."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(200, headers={"content-type": "text/html"})
        return httpx.Response(200, content=request.url.path.encode())

    locators = [
        "https://example.com/b.pdf",
        "https://example.com/blog",
        "https://example.com/a.pdf",
    ]
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        attachments = await resolve_attachments(locators, client=client)

    assert [a.locator for a in attachments] == [
        "https://example.com/b.pdf",
        "https://example.com/a.pdf",
    ]
    assert base64.b64decode(attachments[1].payload) == b"/a.pdf"


async def test_resolve_attachments_propagates_download_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(AttachmentDownloadError):
            await resolve_attachments(["https://example.com/report.pdf"], client=client)


async def test_failed_download_waits_for_sibling_downloads() -> None:
    """A failing PDF does not leave the other downloads running when the error surfaces."""
    finished: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/broken.pdf":
            return httpx.Response(500)
        await asyncio.sleep(0.05)
        finished.append(request.url.path)
        return httpx.Response(200, content=PDF_BYTES)

    locators = ["https://example.com/slow.pdf", "https://example.com/broken.pdf"]
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(AttachmentDownloadError) as exc_info:
            await resolve_attachments(locators, client=client)

        assert finished == ["/slow.pdf"]

    assert exc_info.value.locator == "https://example.com/broken.pdf"
