"""Tests for plantlens.core.analyzer — the Gemini client wrapper.

The ``google.genai`` client is replaced with a ``MagicMock`` whose async
``generate_content`` is an ``AsyncMock``, so no network access occurs.
Tests cover:

- Lazy client creation and reuse.
- The request sent to the provider (model, instruction, inline image).
- Translation of provider failures, empty answers and a missing key into
  ExternalServiceError.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from plantlens.core.analyzer import PlantAnalyzer
from plantlens.core.config import PlantLensConfig
from plantlens.core.errors import ExternalServiceError


def _mock_client(text: str | None = "A healthy Boston fern.") -> MagicMock:
    """Build a mock genai client whose aio.models.generate_content returns *text*."""
    client = MagicMock()
    response = MagicMock()
    response.text = text
    client.aio.models.generate_content = AsyncMock(return_value=response)
    return client


@pytest.fixture
def mock_client(monkeypatch) -> MagicMock:
    client = _mock_client()
    factory = MagicMock(return_value=client)
    monkeypatch.setattr("plantlens.core.analyzer.genai.Client", factory)
    client.factory = factory
    return client


class TestInitialState:
    def test_no_client_until_first_use(self, test_config: PlantLensConfig, mock_client):
        analyzer = PlantAnalyzer(test_config)
        assert analyzer._client is None
        mock_client.factory.assert_not_called()

    def test_model_from_config(self, test_config: PlantLensConfig):
        assert PlantAnalyzer(test_config).model == "gemini-test"


class TestAnalyze:
    def test_returns_text(self, test_config, mock_client, jpeg_bytes):
        analyzer = PlantAnalyzer(test_config)
        result = asyncio.run(analyzer.analyze(jpeg_bytes, "image/jpeg"))
        assert result == "A healthy Boston fern."

    def test_client_built_with_key(self, test_config, mock_client, jpeg_bytes):
        analyzer = PlantAnalyzer(test_config)
        asyncio.run(analyzer.analyze(jpeg_bytes, "image/jpeg"))
        mock_client.factory.assert_called_once_with(api_key="test-key")

    def test_client_reused(self, test_config, mock_client, jpeg_bytes):
        """Two analyses should share one client."""
        analyzer = PlantAnalyzer(test_config)
        asyncio.run(analyzer.analyze(jpeg_bytes, "image/jpeg"))
        asyncio.run(analyzer.analyze(jpeg_bytes, "image/jpeg"))
        assert mock_client.factory.call_count == 1
        assert mock_client.aio.models.generate_content.await_count == 2

    def test_request_shape(self, test_config, mock_client, png_bytes):
        """The instruction and the inline image should be sent together."""
        analyzer = PlantAnalyzer(test_config)
        asyncio.run(analyzer.analyze(png_bytes, "image/png"))

        kwargs = mock_client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-test"
        prompt, part = kwargs["contents"]
        assert prompt == test_config.analysis_prompt
        assert part.inline_data.data == png_bytes
        assert part.inline_data.mime_type == "image/png"

    def test_strips_whitespace(self, test_config, monkeypatch, jpeg_bytes):
        client = _mock_client("  Monstera deliciosa.\n")
        monkeypatch.setattr("plantlens.core.analyzer.genai.Client", MagicMock(return_value=client))
        result = asyncio.run(PlantAnalyzer(test_config).analyze(jpeg_bytes, "image/jpeg"))
        assert result == "Monstera deliciosa."


class TestFailures:
    def test_missing_key(self, temp_dir, monkeypatch, mock_client, jpeg_bytes):
        """Without a key the call fails before any client is built."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("PLANTLENS_GEMINI_API_KEY", raising=False)
        config = PlantLensConfig(
            _env_file=None,
            uploads_dir=temp_dir / "uploads",
            reports_dir=temp_dir / "reports",
        )
        with pytest.raises(ExternalServiceError):
            asyncio.run(PlantAnalyzer(config).analyze(jpeg_bytes, "image/jpeg"))
        mock_client.factory.assert_not_called()

    def test_provider_error(self, test_config, mock_client, jpeg_bytes):
        """Any exception from the provider becomes ExternalServiceError."""
        cause = RuntimeError("503 UNAVAILABLE")
        mock_client.aio.models.generate_content.side_effect = cause
        with pytest.raises(ExternalServiceError) as exc_info:
            asyncio.run(PlantAnalyzer(test_config).analyze(jpeg_bytes, "image/jpeg"))
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_answer(self, test_config, monkeypatch, jpeg_bytes, text):
        client = _mock_client(text)
        monkeypatch.setattr("plantlens.core.analyzer.genai.Client", MagicMock(return_value=client))
        with pytest.raises(ExternalServiceError):
            asyncio.run(PlantAnalyzer(test_config).analyze(jpeg_bytes, "image/jpeg"))
