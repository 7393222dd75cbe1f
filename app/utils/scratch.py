"""Scratch area for media that must be processed locally.

Each acquisition owns a private temp directory. Files are written under
random names so concurrent requests never collide, and ``release`` removes the
whole directory no matter how far acquisition got.
"""

from __future__ import annotations

import shutil
import tempfile
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

import structlog

from app.clients.storage_client import mime_type_for
from app.core.errors import ForensicsError
from app.core.metrics import forensics_scratch_downloads_total

logger = structlog.get_logger(__name__)


class MediaDownloader(Protocol):
    async def download(self, path: str) -> bytes: ...


@dataclass(frozen=True)
class LocalMedia:
    path: str
    local_path: Path
    mime_type: str


class MediaScratch:
    """Downloads media paths into a private directory until released."""

    def __init__(self, storage: MediaDownloader, prefix: str = "forensics-") -> None:
        self._storage = storage
        self._prefix = prefix
        self._directory: Path | None = None
        self._files: list[LocalMedia] = []
        self._released = False

    @property
    def directory(self) -> Path | None:
        return self._directory

    @property
    def files(self) -> list[LocalMedia]:
        return list(self._files)

    def _ensure_directory(self) -> Path:
        if self._released:
            raise RuntimeError("scratch area already released")
        if self._directory is None:
            self._directory = Path(tempfile.mkdtemp(prefix=self._prefix))
        return self._directory

    async def acquire(self, paths: Sequence[str]) -> list[LocalMedia]:
        """Download ``paths``; a failed download is skipped, not raised."""
        directory = self._ensure_directory()
        acquired: list[LocalMedia] = []
        for path in paths:
            try:
                content = await self._storage.download(path)
            except ForensicsError as e:
                forensics_scratch_downloads_total.labels(status="skipped").inc()
                logger.warning("Skipping media download", path=path, error=e.message)
                continue

            extension = PurePosixPath(path).suffix.lower()
            local_path = directory / f"{uuid.uuid4().hex}{extension}"
            local_path.write_bytes(content)
            media = LocalMedia(path=path, local_path=local_path, mime_type=mime_type_for(path))
            acquired.append(media)
            self._files.append(media)
            forensics_scratch_downloads_total.labels(status="success").inc()
        return acquired

    def release(self) -> None:
        """Remove every acquired file. Safe to call more than once."""
        self._released = True
        if self._directory is None:
            return
        shutil.rmtree(self._directory, ignore_errors=True)
        logger.debug("Released scratch area", directory=str(self._directory), files=len(self._files))
        self._directory = None
        self._files.clear()


@asynccontextmanager
async def scratch_media(storage: MediaDownloader) -> AsyncIterator[MediaScratch]:
    """Yield a ``MediaScratch`` that is released on every exit path."""
    scratch = MediaScratch(storage)
    try:
        yield scratch
    finally:
        scratch.release()
