"""Best-effort import of remote video thumbnails into the content store."""

import asyncio
import re
import tempfile
import time
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console

from ..db.store import ContentStore

console = Console()

_SLUG_RE = re.compile(r"[^\w]+", re.UNICODE)


def slugify(text: str, max_length: int = 50) -> str:
    """Reduce text to a filename-safe slug; Unicode letters are kept."""
    slug = _SLUG_RE.sub("-", text).strip("-_")[:max_length].strip("-_")
    return slug or "thumbnail"


def image_extension(content_type: Optional[str]) -> str:
    """Pick a file extension from a Content-Type header."""
    if content_type and "png" in content_type.lower():
        return ".png"
    return ".jpg"


class ThumbnailImporter:
    """Download an image and register it as media; failures never propagate."""

    def __init__(
        self,
        store: ContentStore,
        timeout: float = 20.0,
        max_seconds: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the importer.

        Args:
            store: Content store receiving the media record
            timeout: HTTP timeout in seconds
            max_seconds: Total wall-clock budget per import
            client: Preconfigured HTTP client (owned by the caller)
        """
        self.store = store
        self.timeout = timeout
        self.max_seconds = max_seconds
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def _download_and_register(self, url: str, alt_text: str) -> Optional[int]:
        response = await self.client.get(url)
        if response.status_code != 200:
            console.print(f"[yellow][Thumbnail] Download failed ({response.status_code}): {url}[/yellow]")
            return None

        content_type = response.headers.get("content-type", "image/jpeg")
        extension = image_extension(content_type)
        mime_type = "image/png" if extension == ".png" else "image/jpeg"
        filename = f"yt-{slugify(alt_text)}-{int(time.time() * 1000)}{extension}"

        with tempfile.TemporaryDirectory(prefix="autonews-thumb-") as tmp_dir:
            path = Path(tmp_dir) / filename
            path.write_bytes(response.content)
            media = await self.store.create_media(path, alt_text, mime_type)

        console.print(f"[dim][Thumbnail] Imported {filename} as media {media.id}[/dim]")
        return media.id

    async def import_thumbnail(self, url: Optional[str], alt_text: str) -> Optional[int]:
        """
        Import one image.

        Returns:
            Media record ID, or None when the image could not be imported
        """
        if not url:
            return None
        try:
            return await asyncio.wait_for(
                self._download_and_register(url, alt_text),
                timeout=self.max_seconds,
            )
        except asyncio.TimeoutError:
            console.print(f"[yellow][Thumbnail] Import exceeded {self.max_seconds:.0f}s: {url}[/yellow]")
        except Exception as e:
            console.print(f"[yellow][Thumbnail] Import failed for {url}: {e}[/yellow]")
        return None

    async def aclose(self) -> None:
        """Release network resources."""
        if self._owns_client:
            await self.client.aclose()
