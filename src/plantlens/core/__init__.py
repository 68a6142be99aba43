"""Core functionality for plant image analysis and report rendering.

This package holds everything that is independent of HTTP:

- **PlantLensConfig**: Configuration management using Pydantic Settings
- **PlantAnalyzer**: Wrapper around the Gemini client that turns image bytes
  into a free-text analysis
- **build_report**: ReportLab rendering of an analysis into a PDF file
- **scratch_file**: Scoped scratch files that are always removed
- **Error taxonomy**: ``PlantLensError`` and its subclasses, each carrying the
  HTTP status code the API layer maps it to

See Also
--------
- :mod:`plantlens.api.main` - the FastAPI application that wires these
  components into request handlers.
"""

from plantlens.core.analyzer import PlantAnalyzer
from plantlens.core.config import PlantLensConfig
from plantlens.core.errors import (
    ExternalServiceError,
    PayloadTooLargeError,
    PlantLensError,
    StorageError,
    ValidationError,
)
from plantlens.core.report import build_report
from plantlens.core.scratch import scratch_file

__all__ = [
    "ExternalServiceError",
    "PayloadTooLargeError",
    "PlantAnalyzer",
    "PlantLensConfig",
    "PlantLensError",
    "StorageError",
    "ValidationError",
    "build_report",
    "scratch_file",
]
