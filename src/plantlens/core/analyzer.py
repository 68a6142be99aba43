"""Gemini client wrapper for plant image analysis.

This module provides :class:`PlantAnalyzer`, the single point of contact
with the inference provider.  One analyzer is constructed at application
startup and shared by all requests; it holds no per-request state.

Key Responsibilities
--------------------
- **Lazy client creation** - the ``google.genai`` client is only built on the
  first analysis, so the service starts (and serves reports) without a key.
- **Request shaping** - the configured instruction and the image bytes are
  sent together as one multimodal ``generate_content`` call.
- **Error translation** - any provider failure, a missing key, or an empty
  answer becomes :class:`~plantlens.core.errors.ExternalServiceError`.

Usage
-----
::

    from plantlens.core.config import PlantLensConfig
    from plantlens.core.analyzer import PlantAnalyzer

    analyzer = PlantAnalyzer(PlantLensConfig())
    text = await analyzer.analyze(image_bytes, "image/jpeg")
"""

from __future__ import annotations

import logging
import time

from google import genai
from google.genai import types

from plantlens.core.config import PlantLensConfig
from plantlens.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class PlantAnalyzer:
    """Sends plant images to Gemini and returns the text analysis.

    Attributes:
        _config (PlantLensConfig):
            Application configuration - key, model name and instruction.
        _client (genai.Client | None):
            The provider client, or ``None`` until first use.
    """

    def __init__(self, config: PlantLensConfig) -> None:
        self._config = config
        self._client: genai.Client | None = None

    @property
    def model(self) -> str:
        return self._config.gemini_model

    def _get_client(self) -> genai.Client:
        """Return the provider client, creating it on first call.

        Raises:
            ExternalServiceError: If no API key is configured.
        """
        if self._client is None:
            if not self._config.api_key_configured:
                logger.error("Gemini API key is not configured.")
                raise ExternalServiceError("The analysis service is not configured.")
            self._client = genai.Client(api_key=self._config.gemini_api_key)
            logger.info("Gemini client created for model '%s'.", self.model)
        return self._client

    async def analyze(self, image_bytes: bytes, mime_type: str) -> str:
        """Analyze a plant photo.

        Args:
            image_bytes: Raw image file contents.
            mime_type: Declared MIME type of the image, e.g. ``"image/png"``.

        Returns:
            The provider's free-text analysis.

        Raises:
            ExternalServiceError: If the key is missing, the call fails, or
                the provider returns no text.
        """
        client = self._get_client()
        contents = [
            self._config.analysis_prompt,
            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
        ]

        start = time.perf_counter()
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
            )
        except Exception as exc:
            logger.error("Error analyzing image with '%s': %s", self.model, exc)
            raise ExternalServiceError() from exc

        text = (response.text or "").strip()
        if not text:
            logger.error("Model '%s' returned an empty analysis.", self.model)
            raise ExternalServiceError()

        logger.info(
            "Analyzed %d-byte %s image in %.2fs.",
            len(image_bytes),
            mime_type,
            time.perf_counter() - start,
        )
        return text
