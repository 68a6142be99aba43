"""Data URI helpers.

The analysis endpoint hands the uploaded image back to the client as a
``data:<mime>;base64,<payload>`` string so the client can redisplay it and
later send it to the report endpoint.  The report endpoint accepts either
that form or a bare base64 payload.
"""

from __future__ import annotations

import base64
import binascii
import io
import re
import struct

from PIL import Image, UnidentifiedImageError

from plantlens.core.errors import ValidationError

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?;base64,(?P<data>.*)$", re.DOTALL)


def encode(data: bytes, mime_type: str) -> str:
    """Return *data* as a base64 data URI with the given MIME type."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def decode(value: str) -> tuple[str | None, bytes]:
    """Split a data URI (or bare base64 string) into MIME type and bytes.

    Args:
        value: ``data:<mime>;base64,<payload>`` or just ``<payload>``.

    Returns:
        Tuple of ``(mime_type, data)``.  ``mime_type`` is ``None`` for a bare
        payload.

    Raises:
        ValidationError: If the payload is not valid standard or URL-safe
            base64, or is empty.
    """
    value = value.strip()
    mime_type = None
    payload = value

    match = _DATA_URI_RE.match(value)
    if match:
        mime_type = match.group("mime")
        payload = match.group("data")
    elif value.startswith("data:"):
        raise ValidationError("Image must be a base64 data URI.")

    compact = "".join(payload.split())
    try:
        data = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        # URL-safe alphabet, often sent without padding.
        padded = compact + "=" * (-len(compact) % 4)
        try:
            data = base64.b64decode(padded, altchars=b"-_", validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError("Image is not valid base64 data.") from exc

    if not data:
        raise ValidationError("Image data is empty.")
    return mime_type, data


def check_image(data: bytes) -> str:
    """Verify that *data* is a picture Pillow can read.

    Returns:
        The Pillow format name, e.g. ``"JPEG"`` or ``"PNG"``.

    Raises:
        ValidationError: If Pillow cannot identify or verify the image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, struct.error) as exc:
        raise ValidationError("Image could not be read.") from exc
    return fmt or "UNKNOWN"


def sniff_mime_type(data: bytes) -> str:
    """Work out the MIME type of *data* from its content.

    Used when a client labels an upload ``application/octet-stream`` or
    similar instead of an ``image/*`` type.

    Raises:
        ValidationError: If Pillow cannot read the bytes or the format has
            no known MIME type.
    """
    fmt = check_image(data)
    mime_type = Image.MIME.get(fmt)
    if mime_type is None:
        raise ValidationError("Image could not be read.")
    return mime_type
