"""Attachment Resolver - detects PDF locators and downloads them for inline use.

A locator counts as a PDF when its path ends in ``.pdf`` (case-insensitive).
Otherwise a HEAD request decides by ``content-type``; a failed HEAD request means
"not a PDF" and the run continues with the page fetched by the model itself.
A PDF whose download returns a non-2xx status aborts the run.
"""

from __future__ import annotations

import base64
from urllib.parse import urlparse

import httpx
import structlog

from benchscrape.core.config import settings
from benchscrape.modules.extraction.concurrency import gather_all
from benchscrape.modules.extraction.progress import ProgressCounter
from benchscrape.modules.extraction.schemas import PDF_MIME_TYPE, Attachment

logger = structlog.get_logger()


class AttachmentDownloadError(RuntimeError):
    """A PDF locator could not be downloaded (non-success HTTP status)."""

    def __init__(self, locator: str, status_code: int) -> None:
        super().__init__(f"Failed to download {locator}: HTTP {status_code}")
        self.locator = locator
        self.status_code = status_code


def is_pdf_locator(locator: str) -> bool:
    """True if the locator's path ends in .pdf (query and fragment ignored)."""
    path = urlparse(locator).path
    return path.lower().endswith(".pdf")


class AttachmentResolver:
    """Resolves locators to PDF attachments over a shared httpx client."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def head_is_pdf(self, locator: str) -> bool:
        """HEAD the locator and check its content type. Failures count as not-PDF."""
        try:
            resp = await self.client.head(locator)
        except Exception:
            logger.warning("PDF HEAD check failed, treating as web page", locator=locator, exc_info=True)
            return False
        content_type = resp.headers.get("content-type", "").lower()
        return PDF_MIME_TYPE in content_type

    async def download(self, locator: str) -> Attachment:
        """Download a PDF and base64-encode it."""
        logger.info("Downloading PDF", locator=locator)
        resp = await self.client.get(locator)
        if not resp.is_success:
            raise AttachmentDownloadError(locator, resp.status_code)

        data = resp.content
        logger.info("PDF downloaded", locator=locator, size_kb=round(len(data) / 1024, 1))
        return Attachment(
            locator=locator,
            payload=base64.b64encode(data).decode("ascii"),
            size_bytes=len(data),
        )

    async def resolve(
        self,
        locator: str,
        progress: ProgressCounter | None = None,
    ) -> Attachment | None:
        """Return an Attachment if the locator is a PDF, else None."""
        if is_pdf_locator(locator) or await self.head_is_pdf(locator):
            attachment: Attachment | None = await self.download(locator)
        else:
            attachment = None

        if progress is not None:
            progress.advance(locator=locator, attached=attachment is not None)
        return attachment


def build_http_client() -> httpx.AsyncClient:
    """httpx client used for HEAD checks and downloads."""
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": settings.http_user_agent},
    )


async def resolve_attachments(
    locators: list[str],
    client: httpx.AsyncClient | None = None,
) -> list[Attachment]:
    """Resolve all locators concurrently; returns attachments in locator order."""
    progress = ProgressCounter(stage="locator check", total=len(locators))

    async def _run(http: httpx.AsyncClient) -> list[Attachment | None]:
        resolver = AttachmentResolver(http)
        return await gather_all(
            *(resolver.resolve(locator, progress) for locator in locators)
        )

    if client is not None:
        results = await _run(client)
    else:
        async with build_http_client() as http:
            results = await _run(http)

    attachments = [a for a in results if a is not None]
    logger.info(
        "Attachments resolved",
        locators=len(locators),
        attachments=len(attachments),
    )
    return attachments
