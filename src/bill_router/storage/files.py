"""Fetching the original uploaded bill so it can be attached to billing calls."""

from __future__ import annotations

from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel

from bill_router.exceptions import FileFetchError
from bill_router.routing.payloads import resolve_content_type

logger = structlog.get_logger(__name__)

DEFAULT_FILENAME = "upload.bin"


class FileReference(BaseModel):
    """Where the uploaded file lives: a direct URL or a path in the bills bucket."""

    file_url: str | None = None
    file_path: str | None = None

    def is_empty(self) -> bool:
        return not (self.file_url or self.file_path)

    @property
    def filename(self) -> str:
        return self.file_path or DEFAULT_FILENAME

    def resolve_url(self, base_url: str) -> str | None:
        if self.file_url:
            return self.file_url
        if self.file_path and base_url:
            return f"{base_url.rstrip('/')}/{quote(self.file_path, safe='')}"
        return None

    @property
    def is_pdf(self) -> bool:
        name = (self.file_path or self.file_url or "").lower().split("?", 1)[0]
        return name.endswith(".pdf")


class OriginalFile(BaseModel):
    filename: str
    content: bytes
    content_type: str

    def as_multipart(self) -> tuple[str, bytes, str]:
        return (self.filename, self.content, self.content_type)


async def fetch_file(client: httpx.AsyncClient, ref: FileReference, base_url: str) -> OriginalFile:
    """Download the file behind *ref*.

    Raises :class:`FileFetchError` when the reference cannot be resolved or
    the download fails.
    """
    url = ref.resolve_url(base_url)
    if url is None:
        raise FileFetchError("No file URL could be resolved from the file reference")

    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("file_fetch_failed", url=url, error=str(exc))
        raise FileFetchError(f"Failed to fetch original file: {exc}") from exc

    content_type = resolve_content_type(response.headers.get("content-type"), url)
    logger.debug("file_fetched", url=url, size_bytes=len(response.content), content_type=content_type)
    return OriginalFile(filename=ref.filename, content=response.content, content_type=content_type)
