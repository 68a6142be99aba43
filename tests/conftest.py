"""Shared pytest fixtures for PlantLens tests."""

from __future__ import annotations

import io
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from plantlens.api.main import create_app
from plantlens.core.config import PlantLensConfig


class FakeAnalyzer:
    """Stand-in for :class:`PlantAnalyzer` that never touches the network.

    Records every call so tests can assert on what was sent.  Set
    ``error`` to make the next calls fail the way a provider failure would.
    """

    model = "fake-model"

    def __init__(self, result: str = "Healthy fern. Water weekly.") -> None:
        self.result = result
        self.error: Exception | None = None
        self.calls: list[tuple[bytes, str]] = []

    async def analyze(self, image_bytes: bytes, mime_type: str) -> str:
        self.calls.append((image_bytes, mime_type))
        if self.error is not None:
            raise self.error
        return self.result


def make_image_bytes(fmt: str = "JPEG", size: tuple[int, int] = (64, 48)) -> bytes:
    """Encode a small solid-colour image in *fmt*."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(34, 139, 34)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> PlantLensConfig:
    """Create a test configuration with temporary scratch directories.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        PlantLensConfig instance for testing
    """
    return PlantLensConfig(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        uploads_dir=temp_dir / "uploads",
        reports_dir=temp_dir / "reports",
        static_dir=temp_dir / "public",
    )


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def test_client(test_config: PlantLensConfig, fake_analyzer: FakeAnalyzer) -> TestClient:
    """FastAPI TestClient over an app wired to the fake analyzer."""
    app = create_app(test_config, analyzer=fake_analyzer)
    return TestClient(app)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG", size=(120, 80))
