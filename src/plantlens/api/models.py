"""Pydantic request and response models for the PlantLens API.

These models define the JSON schema for every API endpoint.  FastAPI uses
them for automatic request validation, serialisation, and OpenAPI
documentation generation.

Models
------
AnalysisResponse
    Body returned by ``POST /analyze`` - the analysis text and the uploaded
    image as a data URI.
DownloadRequest
    Payload for ``POST /download`` - the analysis text and, optionally, the
    image to embed in the report.
ErrorResponse
    Body of every non-2xx response.
HealthResponse
    Body returned by ``GET /api/health``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnalysisResponse(BaseModel):
    """Response body for the ``POST /analyze`` endpoint.

    Attributes:
        result: Free-text analysis from the model.
        image: ``data:<mime>;base64,<payload>`` of the uploaded file, so the
            client can redisplay it and pass it to ``POST /download``.
    """

    result: str = Field(..., description="Free-text analysis of the plant.")
    image: str = Field(..., description="The uploaded image as a base64 data URI.")


class DownloadRequest(BaseModel):
    """Request body for the ``POST /download`` endpoint.

    Attributes:
        result: Analysis text to print in the report.
        image: Optional data URI (or bare base64) of the image.  When present
            the report gains a second page holding the image.
    """

    result: str = Field(..., description="Analysis text to include in the report.")
    image: str | None = Field(
        default=None,
        description="Optional base64 data URI of the analysed image.",
    )


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Client-facing error message.")


class HealthResponse(BaseModel):
    """Body of ``GET /api/health``.

    Attributes:
        status: Always ``"ok"`` when the process is serving requests.
        version: Installed PlantLens version.
        model: Gemini model name the analyzer is configured with.
        api_key_configured: Whether a provider API key was found.  No
            provider call is made to check it.
    """

    status: str = "ok"
    version: str
    model: str
    api_key_configured: bool
