"""PlantLens - plant photo analysis with Gemini and PDF reports."""

__version__ = "0.1.0"

from plantlens.core.config import PlantLensConfig

__all__ = [
    "PlantLensConfig",
    "__version__",
]
