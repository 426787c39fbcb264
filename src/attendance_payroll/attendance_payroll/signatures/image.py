from __future__ import annotations

import base64
import binascii
import io

import qrcode
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError

MAX_SIGNATURE_BYTES = 512 * 1024
ALLOWED_FORMATS = frozenset({"PNG", "JPEG", "WEBP"})


def decode_signature_image(payload: str) -> bytes:
    """Decode a base64 (or ``data:image/...;base64,``) signature and check it is an image."""

    if not payload or not payload.strip():
        raise ValidationError("Signature image is required")

    data = payload.strip()
    if data.startswith("data:"):
        header, _, data = data.partition(",")
        if ";base64" not in header:
            raise ValidationError("Signature image must be base64 encoded")

    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Signature image is not valid base64")
    if len(raw) > MAX_SIGNATURE_BYTES:
        raise ValidationError("Signature image is too large")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Signature image could not be decoded")
    if fmt not in ALLOWED_FORMATS:
        raise ValidationError(f"Unsupported signature image format: {fmt}")
    return raw


def qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
