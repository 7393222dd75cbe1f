"""EXIF forensics over locally downloaded images (Pillow)."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from PIL import ExifTags, Image, UnidentifiedImageError

from app.collectors.base import BaseCollector, CollectorResult
from app.core.config import ForensicsConfig
from app.core.errors import ErrorCode, ForensicsError
from app.schemas.v1.forensics import ExifForensics
from app.utils.scratch import LocalMedia

logger = structlog.get_logger(__name__)

EDITING_TOOLS = ("photoshop", "gimp", "lightroom", "snapseed", "vsco", "canva")
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
NO_IMAGES_WARNING = "No images available for EXIF analysis"

_XMP_CREATOR_TOOL = re.compile(
    r"CreatorTool(?:=\"([^\"]*)\"|>([^<]*)<)",
)
_XMP_INFO_KEYS = ("xmp", "XML:com.adobe.xmp")


@dataclass
class ImageMetadata:
    """Forensic-relevant metadata of one image."""

    has_gps: bool = False
    gps: tuple[Any, Any] | None = None
    date_taken: datetime | None = None
    date_modified: datetime | None = None
    date_mismatch: bool = False
    software: str | None = None
    camera: str | None = None
    warnings: list[str] = field(default_factory=list)
    stripped: bool = False
    error: str | None = None

    @property
    def has_edits(self) -> bool:
        return bool(self.software)


def _parse_exif_date(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip().rstrip("\x00"), EXIF_DATE_FORMAT)
    except ValueError:
        return None


def _text(value: Any) -> str | None:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None
    value = value.strip().rstrip("\x00").strip()
    return value or None


def _xmp_creator_tool(image: Image.Image) -> str | None:
    for key in _XMP_INFO_KEYS:
        raw = image.info.get(key)
        if raw is None:
            continue
        packet = raw.decode("utf-8", errors="ignore") if isinstance(raw, bytes) else str(raw)
        match = _XMP_CREATOR_TOOL.search(packet)
        if match:
            return _text(match.group(1) or match.group(2))
    return None


def extract_image_metadata(path: Path, mismatch_days: int = 30) -> ImageMetadata:
    """Read GPS, dates, software and camera from one image file.

    Never raises; an unreadable file yields a record with a single
    ``Failed to extract EXIF`` warning.
    """
    try:
        with Image.open(path) as image:
            exif = image.getexif()
            gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            creator_tool = _xmp_creator_tool(image)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        return ImageMetadata(warnings=[f"Failed to extract EXIF: {e}"], stripped=True)

    metadata = ImageMetadata()
    if not exif and not exif_ifd and not creator_tool:
        metadata.stripped = True

    latitude = gps_ifd.get(ExifTags.GPS.GPSLatitude)
    longitude = gps_ifd.get(ExifTags.GPS.GPSLongitude)
    if latitude and longitude:
        metadata.has_gps = True
        metadata.gps = (latitude, longitude)

    metadata.date_taken = _parse_exif_date(exif_ifd.get(ExifTags.Base.DateTimeOriginal))
    metadata.date_modified = _parse_exif_date(exif.get(ExifTags.Base.DateTime))
    if metadata.date_taken and metadata.date_modified:
        days = (metadata.date_modified - metadata.date_taken).total_seconds() / 86400
        if days > mismatch_days:
            metadata.date_mismatch = True
            metadata.warnings.append(f"Image modified {round(days)} days after capture")

    metadata.software = (
        _text(exif.get(ExifTags.Base.Software))
        or creator_tool
        or _text(exif.get(ExifTags.Base.ProcessingSoftware))
    )
    if metadata.software and any(tool in metadata.software.lower() for tool in EDITING_TOOLS):
        metadata.warnings.append(f"Edited with: {metadata.software}")

    model = _text(exif.get(ExifTags.Base.Model))
    if model:
        make = _text(exif.get(ExifTags.Base.Make)) or ""
        metadata.camera = f"{make} {model}".strip()

    return metadata


def aggregate_metadata(items: Sequence[ImageMetadata], max_warnings: int = 5) -> ExifForensics:
    """OR the per-image flags together and cap the concatenated warnings."""
    warnings = [warning for item in items for warning in item.warnings]
    return ExifForensics(
        has_gps=any(item.has_gps for item in items),
        has_edits=any(item.has_edits for item in items),
        date_mismatch=any(item.date_mismatch for item in items),
        warnings=warnings[:max_warnings],
    )


def format_metadata_for_prompt(metadata: ImageMetadata, index: int, kind: str = "image") -> str:
    lines = [f"[{kind.upper()} {index + 1}]"]
    if metadata.stripped:
        lines.append("  WARNING: Metadata appears to be stripped (common in reused/stolen content)")
        return "\n".join(lines)

    if metadata.date_taken:
        lines.append(f"  Original Timestamp: {metadata.date_taken.isoformat()}")
    if metadata.gps:
        lines.append(f"  GPS Coordinates: {metadata.gps[0]}, {metadata.gps[1]}")
    else:
        lines.append("  GPS: Not available")
    if metadata.camera:
        lines.append(f"  Camera: {metadata.camera}")
    if metadata.software:
        lines.append(f"  Editing Software: {metadata.software}")
    if metadata.date_modified and metadata.date_taken and metadata.date_modified > metadata.date_taken:
        lines.append("  WARNING: Image appears to have been edited after capture")
        lines.append(
            f"  Modified: {metadata.date_modified.isoformat()} "
            f"(Original: {metadata.date_taken.isoformat()})"
        )
    return "\n".join(lines)


async def read_image_metadata(
    media: Sequence[LocalMedia], mismatch_days: int = 30
) -> dict[str, ImageMetadata]:
    """Read each downloaded image off the event loop, keyed by storage path.

    Non-image media is ignored. A decoder crash is recorded on that image's
    entry instead of being raised.
    """
    metadata: dict[str, ImageMetadata] = {}
    for item in media:
        if not item.mime_type.startswith("image/"):
            continue
        try:
            metadata[item.path] = await asyncio.to_thread(
                extract_image_metadata, item.local_path, mismatch_days
            )
        except Exception as exc:
            logger.warning("EXIF extraction crashed", path=item.path, error=str(exc))
            metadata[item.path] = ImageMetadata(
                warnings=[f"EXIF analysis failed: {exc}"], stripped=True, error=str(exc)
            )
    return metadata


class ExifCollector(BaseCollector[Sequence[ImageMetadata], ExifForensics]):
    """Summarizes metadata already read by ``read_image_metadata``."""

    def __init__(self, config: ForensicsConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return "exif"

    def _default(self, warning: str) -> ExifForensics:
        return ExifForensics(warnings=[warning])

    async def collect(self, data: Sequence[ImageMetadata]) -> CollectorResult[ExifForensics]:
        items = list(data)[: self._config.max_exif_images]
        if not items:
            return CollectorResult.success(self._default(NO_IMAGES_WARNING))

        failures = [item.error for item in items if item.error]
        if len(failures) == len(items):
            error = ForensicsError(
                ErrorCode.EXIF_EXTRACTION_FAILED,
                f"EXIF analysis failed: {failures[0]}",
                service="exif",
                operation="collect",
            )
            return CollectorResult.degraded(self._default(error.message), error)

        logger.debug("EXIF summarized", images=len(items))
        return CollectorResult.success(aggregate_metadata(items, self._config.max_warnings))
