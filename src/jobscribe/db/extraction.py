"""Turn uploaded blobs into the text stored alongside a document."""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import PurePath
from typing import Protocol

import pdfplumber

from jobscribe.errors import ExtractionError
from jobscribe.types import UploadBlob

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md", ".text"}
GENERIC_CONTENT_TYPES = {"", "application/octet-stream"}


class ContentExtractor(Protocol):
    async def extract(self, blob: UploadBlob) -> str: ...


def _declared_type(blob: UploadBlob) -> str:
    return blob.content_type.split(";", 1)[0].strip().lower()


def _is_pdf(blob: UploadBlob) -> bool:
    declared = _declared_type(blob)
    if declared not in GENERIC_CONTENT_TYPES:
        return declared == "application/pdf"
    if PurePath(blob.name).suffix.lower() == ".pdf":
        return True
    return blob.data[:5] == b"%PDF-"


def _is_text(blob: UploadBlob) -> bool:
    declared = _declared_type(blob)
    if declared not in GENERIC_CONTENT_TYPES:
        return declared.startswith("text/")
    return PurePath(blob.name).suffix.lower() in TEXT_SUFFIXES


class PdfTextExtractor:
    async def extract(self, blob: UploadBlob) -> str:
        try:
            pdf = await asyncio.to_thread(pdfplumber.open, io.BytesIO(blob.data))
        except Exception as exc:
            raise ExtractionError(f"could not parse {blob.name!r} as PDF: {exc}") from exc

        try:
            pages: list[str] = []
            for page in pdf.pages:
                text = await asyncio.to_thread(page.extract_text)
                pages.append(text or "")
        except Exception as exc:
            raise ExtractionError(f"could not read text from {blob.name!r}: {exc}") from exc
        finally:
            pdf.close()

        return "\n".join(pages).strip()


class PlainTextExtractor:
    async def extract(self, blob: UploadBlob) -> str:
        try:
            return blob.data.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise ExtractionError(f"{blob.name!r} is not valid UTF-8 text") from exc


class BlobExtractor:
    """Dispatches on the declared content type.

    The file suffix and the PDF magic bytes only decide when the type is
    missing or generic.
    """

    def __init__(
        self,
        pdf: ContentExtractor | None = None,
        text: ContentExtractor | None = None,
    ):
        self.pdf = pdf or PdfTextExtractor()
        self.text = text or PlainTextExtractor()

    async def extract(self, blob: UploadBlob) -> str:
        if not blob.data:
            raise ExtractionError(f"{blob.name!r} is empty")
        if _is_pdf(blob):
            return await self.pdf.extract(blob)
        if _is_text(blob):
            return await self.text.extract(blob)
        logger.warning("Unsupported upload name=%s content_type=%s", blob.name, blob.content_type)
        raise ExtractionError(f"unsupported document type for {blob.name!r}")
