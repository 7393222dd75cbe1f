"""Root conftest for tests."""

import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

if os.getenv("APP_ENV", "").strip().lower() == "prod":
    raise RuntimeError("Refusing to run tests with APP_ENV=prod")

os.environ["APP_ENV"] = "local"
os.environ["SECURITY_SKIP_JWT_VALIDATION"] = "true"
os.environ.setdefault("SERVER_PORT", "8003")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "service-role-key")

CREATOR = "0x" + "a" * 40
DONOR_FUNDED_BY_CREATOR = "0x" + "b" * 40
DONOR_INDEPENDENT = "0x" + "c" * 40


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    dir_marker_map = {
        "unit": pytest.mark.unit,
        "smoke": pytest.mark.smoke,
    }
    for item in items:
        test_path = str(item.fspath)
        for dir_name, marker in dir_marker_map.items():
            if f"/{dir_name}/" in test_path or f"\\{dir_name}\\" in test_path:
                item.add_marker(marker)
                break


@pytest.fixture
def forensics_config():
    from app.core.config import ForensicsConfig

    return ForensicsConfig()


@pytest.fixture
def recorded_sleeps():
    """Sleep replacement that records requested delays instead of waiting."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def mock_provider():
    """Mock Gemini provider for tests."""
    provider = AsyncMock()
    provider.generate.return_value = "analysis"
    provider.delete_file.return_value = None
    return provider


@pytest.fixture
def mock_storage():
    """Mock storage client returning signed URLs for any path."""
    from app.clients.storage_client import ResolvedMedia, mime_type_for

    storage = AsyncMock()

    async def _resolve(path: str) -> ResolvedMedia:
        return ResolvedMedia(url=f"https://signed.example/{path}", mime_type=mime_type_for(path))

    storage.resolve.side_effect = _resolve
    storage.download.return_value = b"bytes"
    storage.health_check.return_value = True
    return storage


@pytest.fixture
def jpeg_factory(tmp_path: Path):
    """Write small JPEG files, optionally with EXIF tags."""
    from PIL import Image

    def _create(name: str = "photo.jpg", tags: dict | None = None) -> Path:
        path = tmp_path / name
        image = Image.new("RGB", (8, 8), color=(200, 120, 40))
        exif = Image.Exif()
        for tag, value in (tags or {}).items():
            exif[tag] = value
        image.save(path, format="JPEG", exif=exif.tobytes())
        return path

    return _create
