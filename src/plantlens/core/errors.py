"""Error taxonomy for PlantLens.

Every failure that a request handler can surface is one of the classes below.
Each carries the HTTP status code the API layer responds with and a message
that is safe to show to the client.  The underlying cause, when there is one,
is chained with ``raise ... from exc`` and logged server-side only.

========================  ======  ==========================================
Class                     Status  Raised for
========================  ======  ==========================================
``ValidationError``       400     Missing file, bad MIME type, bad data URI,
                                  unreadable image, malformed request body
``PayloadTooLargeError``  413     Image above ``max_upload_bytes``
``ExternalServiceError``  500     Gemini failure, missing key, empty answer
``StorageError``          500     Scratch or report file I/O failure
========================  ======  ==========================================
"""

from __future__ import annotations


class PlantLensError(Exception):
    """Base class for errors that map onto an HTTP response.

    Attributes:
        message: Client-facing description of the failure.
        status_code: HTTP status code for the response.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PlantLensError):
    """The client sent something the service cannot work with."""

    status_code = 400
    default_message = "Invalid request."


class PayloadTooLargeError(ValidationError):
    """An image exceeded the configured size limit."""

    status_code = 413
    default_message = "Image is too large."


class ExternalServiceError(PlantLensError):
    """The inference provider failed or returned nothing usable."""

    status_code = 500
    default_message = "An error occurred while analyzing the image."


class StorageError(PlantLensError):
    """Reading or writing a scratch or report file failed."""

    status_code = 500
    default_message = "A storage error occurred."
