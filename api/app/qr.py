# qr.py

"""Utility helpers to render QR symbols for table deep links."""

from __future__ import annotations

import base64
from io import BytesIO

import qrcode
from PIL import Image

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

# Persisted artifact shown in the back office
ARTIFACT_WIDTH = 400
# Standalone downloads and archive entries
DOWNLOAD_WIDTH = 800


def encode_image(
    data: str,
    width: int = ARTIFACT_WIDTH,
    margin: int = 2,
    error_correction: str = "H",
) -> Image.Image:
    """Return a ``width`` x ``width`` RGB image of the QR symbol for ``data``.

    Parameters
    ----------
    data:
        Text or URL to encode.
    width:
        Edge length of the returned image in pixels.
    margin:
        Quiet zone around the symbol, in modules.
    error_correction:
        One of ``L``, ``M``, ``Q`` or ``H``.
    """

    if width <= 0:
        raise ValueError("width must be positive")
    try:
        level = _ERROR_CORRECTION[error_correction.upper()]
    except KeyError:
        raise ValueError(f"Unknown error correction level: {error_correction}")

    qr = qrcode.QRCode(error_correction=level, box_size=1, border=margin)
    qr.add_data(data)
    qr.make(fit=True)
    modules = qr.modules_count + 2 * margin
    qr.box_size = max(1, width // modules)

    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB")
    if img.width > width:
        return img.resize((width, width), Image.NEAREST)
    # Modules stay box_size wide; the leftover pixels widen the quiet zone
    canvas = Image.new("RGB", (width, width), "white")
    offset = (width - img.width) // 2
    canvas.paste(img, (offset, offset))
    return canvas


def encode_png(
    data: str,
    width: int = DOWNLOAD_WIDTH,
    margin: int = 2,
    error_correction: str = "H",
) -> bytes:
    """Return PNG bytes of the QR symbol for ``data``."""

    img = encode_image(data, width=width, margin=margin, error_correction=error_correction)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_data_url(data: str, width: int = ARTIFACT_WIDTH) -> str:
    """Return ``data`` rendered as a base64 PNG data URL."""

    b64 = base64.b64encode(encode_png(data, width=width)).decode("ascii")
    return f"data:image/png;base64,{b64}"


__all__ = [
    "ARTIFACT_WIDTH",
    "DOWNLOAD_WIDTH",
    "encode_image",
    "encode_png",
    "qr_data_url",
]
