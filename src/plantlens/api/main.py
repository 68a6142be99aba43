"""PlantLens — FastAPI Application.

This module builds the FastAPI application, defines all REST API routes, and
provides the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application is stateless between requests:

- **Configuration** is a :class:`~plantlens.core.config.PlantLensConfig`
  built once at startup and stored on ``app.state``.
- **Image analysis** is delegated to
  :class:`~plantlens.core.analyzer.PlantAnalyzer`, also stored on
  ``app.state`` and shared by all requests.
- **Report rendering** is delegated to
  :func:`~plantlens.core.report.build_report`.
- **Scratch files** (uploads and reports) are request-scoped and removed once
  the request is done with them.
- **Errors** from :mod:`plantlens.core.errors` are turned into
  ``{"error": "..."}`` JSON bodies with the status code each class carries.
- **Static assets** are served from ``static_dir`` when it exists.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/analyze``                  Analyze an uploaded plant photo
POST      ``/download``                 Render an analysis as a PDF report
GET       ``/api/health``               Version, model, key status
GET       ``/``                         Static front end (if present)
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    plantlens

Direct invocation::

    python -m plantlens.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import BinaryIO

from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from plantlens import __version__
from plantlens.api.models import AnalysisResponse, DownloadRequest, ErrorResponse, HealthResponse
from plantlens.core import data_uri
from plantlens.core.analyzer import PlantAnalyzer
from plantlens.core.config import PlantLensConfig
from plantlens.core.errors import (
    PayloadTooLargeError,
    PlantLensError,
    StorageError,
    ValidationError,
)
from plantlens.core.report import build_report
from plantlens.core.scratch import discard, report_path, scratch_file

logger = logging.getLogger(__name__)

ANALYZE_ERROR = "An error occurred while analyzing the image."
REPORT_ERROR = "An error occurred while generating the PDF report."

_COPY_CHUNK = 64 * 1024

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies — pull the startup-built collaborators off the application.
# ---------------------------------------------------------------------------


def get_config(request: Request) -> PlantLensConfig:
    return request.app.state.config


def get_analyzer(request: Request) -> PlantAnalyzer:
    return request.app.state.analyzer


# ---------------------------------------------------------------------------
# Upload helpers.
# ---------------------------------------------------------------------------


def _save_upload(source: BinaryIO, dest: Path, limit: int) -> int:
    """Copy an uploaded file to *dest*, refusing anything above *limit* bytes.

    Args:
        source: The spooled upload file.
        dest: Scratch path to write.
        limit: Maximum number of bytes accepted.

    Returns:
        Number of bytes written.

    Raises:
        PayloadTooLargeError: If the upload exceeds *limit*.
        OSError: If the scratch file cannot be written.
    """
    written = 0
    with open(dest, "wb") as buffer:
        while chunk := source.read(_COPY_CHUNK):
            written += len(chunk)
            if written > limit:
                raise PayloadTooLargeError(f"Image exceeds the {limit}-byte limit.")
            buffer.write(chunk)
    return written


def _upload_mime_type(declared: str | None, data: bytes) -> str:
    """Return the declared MIME type, or sniff one when it is not ``image/*``.

    Raises:
        ValidationError: If the type has to be sniffed and Pillow cannot read
            the bytes.
    """
    mime_type = (declared or "").lower()
    if mime_type.startswith("image/"):
        return mime_type
    try:
        return data_uri.sniff_mime_type(data)
    except ValidationError as exc:
        raise ValidationError("Uploaded file must be an image.") from exc


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    responses=_ERROR_RESPONSES,
)
async def analyze_image(
    image: UploadFile | None = File(default=None),
    config: PlantLensConfig = Depends(get_config),
    analyzer: PlantAnalyzer = Depends(get_analyzer),
) -> AnalysisResponse:
    """Analyze an uploaded plant photo.

    The upload is copied into a scratch file under ``uploads_dir``, read
    back, sent to the analyzer, and returned to the client as a data URI
    alongside the analysis.  The scratch file is removed whether or not the
    analysis succeeds.

    A client that labels the file with a generic type such as
    ``application/octet-stream`` still gets an analysis: the real type is
    read from the image bytes.

    Args:
        image: The multipart file field ``image``.  Other form fields are
            ignored.

    Returns:
        :class:`AnalysisResponse` with the analysis text and the image.

    Raises:
        ValidationError: 400 if no file or an empty file was sent, or if the
            declared type is not ``image/*`` and the bytes are not a
            readable image.
        PayloadTooLargeError: 413 if the file exceeds ``max_upload_bytes``.
        ExternalServiceError: 500 if the provider call fails.
        StorageError: 500 if the scratch file cannot be written or read.
    """
    if image is None:
        raise ValidationError("No image file uploaded")

    try:
        with scratch_file(config.uploads_dir) as upload_path:
            try:
                await run_in_threadpool(
                    _save_upload, image.file, upload_path, config.max_upload_bytes
                )
                image_bytes = await run_in_threadpool(upload_path.read_bytes)
            except OSError as exc:
                logger.error("Error storing upload %s: %s", upload_path, exc)
                raise StorageError(ANALYZE_ERROR) from exc

            if not image_bytes:
                raise ValidationError("Uploaded image file is empty.")

            mime_type = _upload_mime_type(image.content_type, image_bytes)
            encoded = data_uri.encode(image_bytes, mime_type)
            result = await analyzer.analyze(image_bytes, mime_type)
    except PlantLensError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error analyzing image")
        raise PlantLensError(ANALYZE_ERROR) from exc

    return AnalysisResponse(result=result, image=encoded)


@router.post(
    "/download",
    response_class=FileResponse,
    responses={
        **_ERROR_RESPONSES,
        200: {"content": {"application/pdf": {}}, "description": "The PDF report."},
    },
)
async def download_report(
    req: DownloadRequest,
    config: PlantLensConfig = Depends(get_config),
) -> FileResponse:
    """Render an analysis into a PDF and send it as a download.

    The PDF is written to a timestamped file under ``reports_dir``, streamed
    to the client, and deleted by a background task once the response has
    been sent.

    Args:
        req: Validated :class:`DownloadRequest` payload.

    Returns:
        A ``FileResponse`` with ``Content-Disposition: attachment``.

    Raises:
        ValidationError: 400 if ``image`` is not a decodable picture.
        PayloadTooLargeError: 413 if the image exceeds ``max_upload_bytes``.
        StorageError: 500 if the report cannot be written.
    """
    image_bytes = None
    if req.image:
        _, image_bytes = data_uri.decode(req.image)
        if len(image_bytes) > config.max_upload_bytes:
            raise PayloadTooLargeError(
                f"Image exceeds the {config.max_upload_bytes}-byte limit."
            )

    try:
        path = report_path(config.reports_dir)
        await run_in_threadpool(
            build_report,
            path,
            req.result,
            image_bytes,
            image_box=config.report_image_box,
        )
    except PlantLensError:
        raise
    except OSError as exc:
        logger.error("Error preparing report directory %s: %s", config.reports_dir, exc)
        raise StorageError(REPORT_ERROR) from exc
    except Exception as exc:
        logger.exception("Unexpected error generating PDF report")
        raise PlantLensError(REPORT_ERROR) from exc

    return FileResponse(
        path,
        media_type="application/pdf",
        filename=path.name,
        background=BackgroundTask(discard, path),
    )


@router.get("/api/health", response_model=HealthResponse)
async def health(
    config: PlantLensConfig = Depends(get_config),
    analyzer: PlantAnalyzer = Depends(get_analyzer),
) -> HealthResponse:
    """Report the version, analysis model, and whether a key is configured."""
    return HealthResponse(
        version=__version__,
        model=analyzer.model,
        api_key_configured=config.api_key_configured,
    )


# ---------------------------------------------------------------------------
# Error handlers.
# ---------------------------------------------------------------------------


async def _handle_plantlens_error(request: Request, exc: PlantLensError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:]) or "body"
        problems.append(f"{field}: {err.get('msg', 'invalid')}")
    message = "Invalid request: " + "; ".join(problems)
    return JSONResponse(status_code=400, content={"error": message})


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": PlantLensError.default_message})


# ---------------------------------------------------------------------------
# Application lifecycle and factory.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and shutdown.

    The collaborators on ``app.state`` are built by :func:`create_app`, so
    they exist even when the application is driven without a lifespan
    (e.g. a ``TestClient`` used outside a ``with`` block).
    """
    config: PlantLensConfig = app.state.config
    if not config.api_key_configured:
        logger.warning("No Gemini API key configured; /analyze will fail until one is set.")
    logger.info(
        "PlantLens %s ready (model=%s, uploads=%s, reports=%s).",
        __version__,
        config.gemini_model,
        config.uploads_dir,
        config.reports_dir,
    )

    yield

    logger.info("PlantLens shutting down.")


def create_app(
    config: PlantLensConfig | None = None,
    analyzer: PlantAnalyzer | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration.  Loaded from the environment when
            omitted.
        analyzer: Analyzer to use for ``/analyze``.  A :class:`PlantAnalyzer`
            over *config* when omitted.

    Returns:
        The configured application.
    """
    config = config or PlantLensConfig()

    app = FastAPI(
        title="PlantLens",
        description="Plant photo analysis with Gemini and downloadable PDF reports.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.analyzer = analyzer or PlantAnalyzer(config)

    # Allow cross-origin requests so a front end served from another port can
    # call the API during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PlantLensError, _handle_plantlens_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, _handle_unexpected)

    app.include_router(router)

    # Mounted last so API routes match first.
    if config.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(config.static_dir), html=True), name="static")
    else:
        logger.info("Static directory %s not found; not serving static files.", config.static_dir)

    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Builds the configuration from the environment (``PLANTLENS_*``,
    ``GEMINI_API_KEY``, ``PORT``) and serves the application on
    ``server_host:server_port``.  Defaults to ``0.0.0.0:2206``.

    This function is registered as the ``plantlens`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    config = PlantLensConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        create_app(config),
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    main()
