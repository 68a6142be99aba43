"""Configuration management for PlantLens.

This module provides centralized configuration management using Pydantic Settings.
Configuration is loaded from environment variables with the PLANTLENS_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Keyword arguments passed to ``PlantLensConfig(...)``
2. Environment variables (PLANTLENS_* prefix)
3. .env file in the working directory
4. Default values defined in PlantLensConfig

Two fields also accept the unprefixed names that deployments commonly set:
``GEMINI_API_KEY`` for the provider key and ``PORT`` for the listen port.

Example .env file:
    GEMINI_API_KEY=your-key
    PLANTLENS_GEMINI_MODEL=gemini-2.5-flash
    PLANTLENS_UPLOADS_DIR=uploads
    PLANTLENS_REPORTS_DIR=reports

Explicit Construction
---------------------
No module-level config instance exists.  The process entry
point (:func:`plantlens.api.main.main`) or :func:`plantlens.api.main.create_app`
builds one at startup and hands it to the components that need it:

    from plantlens.core.config import PlantLensConfig
    from plantlens.api.main import create_app

    app = create_app(PlantLensConfig())

Directory Management
--------------------
The configuration creates its scratch directories on initialization:
- uploads_dir: Request-scoped copies of uploaded images
- reports_dir: Request-scoped PDF reports
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ANALYSIS_PROMPT = (
    "Analyze this plant image and provide a detailed analysis of its species, "
    "health, care instructions, and any interesting facts in plain text without markdown."
)


class PlantLensConfig(BaseSettings):
    """Main configuration for PlantLens.

    Attributes
    ----------
    Provider Settings:
        gemini_api_key : str | None
            API key for the Gemini API.  ``None`` leaves the service running
            but every analysis request fails with a provider error.
        gemini_model : str
            Gemini model name used for image analysis
        analysis_prompt : str
            Instruction sent alongside every image

    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Listen port (1-65535)
        log_level : Literal["critical", "error", "warning", "info", "debug"]
            uvicorn log level

    Paths:
        uploads_dir : Path
            Scratch directory for uploaded images
        reports_dir : Path
            Scratch directory for generated reports
        static_dir : Path
            Public assets served at ``/`` when the directory exists

    Limits:
        max_upload_bytes : int
            Largest accepted image, both for uploads and for images embedded
            in report requests
        report_image_box : tuple[int, int]
            Width and height in points of the box the report image is fit into

    Examples
    --------
        >>> cfg = PlantLensConfig(gemini_api_key="test", uploads_dir="/tmp/up")
        >>> cfg.server_port
        2206
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PLANTLENS_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Provider settings
    gemini_api_key: str | None = Field(
        default=None,
        description="API key for the Gemini API",
        validation_alias=AliasChoices("PLANTLENS_GEMINI_API_KEY", "GEMINI_API_KEY"),
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for image analysis",
    )
    analysis_prompt: str = Field(
        default=DEFAULT_ANALYSIS_PROMPT,
        description="Instruction sent with every uploaded image",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=2206,
        description="Server port",
        ge=1,
        le=65535,
        validation_alias=AliasChoices("PLANTLENS_SERVER_PORT", "PORT"),
    )
    log_level: Literal["critical", "error", "warning", "info", "debug"] = Field(
        default="info",
        description="uvicorn log level",
    )

    # Paths
    uploads_dir: Path = Field(
        default=Path("uploads"),
        description="Scratch directory for uploaded images",
    )
    reports_dir: Path = Field(
        default=Path("reports"),
        description="Scratch directory for generated PDF reports",
    )
    static_dir: Path = Field(
        default=Path("public"),
        description="Directory of public assets served at /",
    )

    # Limits
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest accepted image in bytes",
        ge=1,
    )
    report_image_box: tuple[int, int] = Field(
        default=(500, 400),
        description="Width and height (points) the report image is fit into",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the scratch directories.

        Args:
            **kwargs: Configuration overrides (typically from tests)
        """
        super().__init__(**kwargs)

        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.reports_dir.mkdir(parents=True, exist_ok=True)

    @property
    def api_key_configured(self) -> bool:
        """Whether a non-empty Gemini API key was supplied."""
        return bool(self.gemini_api_key and self.gemini_api_key.strip())
