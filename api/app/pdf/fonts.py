"""Font lookup for rendered QR documents."""

from __future__ import annotations

from functools import lru_cache

from PIL import ImageFont

_REGULAR = ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf")
_BOLD = ("DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "Arial Bold.ttf")


@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False):
    """Return a TrueType font of ``size`` pixels, or Pillow's bundled font.

    System fonts are tried first so documents match the rest of the
    printables; hosts without them still render with the default face.
    """
    for name in _BOLD if bold else _REGULAR:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


__all__ = ["load_font"]
