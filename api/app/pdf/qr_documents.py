"""Printable QR documents for dining tables.

Three outputs are produced from a list of tables and :class:`DocumentOptions`:

* a single-table PDF (one A5 page),
* a batch PDF, either one A5 page per table (``single``) or a 2x2 grid on A4
  (``multiple``),
* a ZIP archive holding one PNG per table.

Rendering is read-only: each table's deep link is rebuilt from its stored
``qr_token`` and nothing is re-signed or persisted. Documents are assembled
fully in memory so a failure never yields a truncated file.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Sequence
from zipfile import ZipFile

from PIL import Image, ImageDraw

from ..domain.tables import TableRecord
from ..qr import DOWNLOAD_WIDTH, encode_image
from .fonts import load_font
from .layout import A4, A5, grid_cell

DPI = 150
LAYOUTS = ("single", "multiple")

BLACK = (0, 0, 0)
GREY = (102, 102, 102)
BORDER = (204, 204, 204)

SINGLE_MARGIN = 40.0
GRID_MARGIN = 30.0


class DocumentError(ValueError):
    """Raised when a QR document cannot be produced."""


class UnsupportedLayout(DocumentError):
    pass


@dataclass(frozen=True)
class DocumentOptions:
    restaurant_name: str = "Smart Restaurant"
    include_wifi: bool = False
    wifi_name: str = ""
    wifi_password: str = ""
    layout: str = "single"


class _Page:
    """A white page measured in points and drawn at ``dpi``."""

    def __init__(self, size: tuple[float, float], dpi: int) -> None:
        self.width, self.height = size
        self.scale = dpi / 72
        self.image = Image.new("RGB", (self.px(self.width), self.px(self.height)), "white")
        self.draw = ImageDraw.Draw(self.image)

    def px(self, pt: float) -> int:
        return int(round(pt * self.scale))

    def text(
        self,
        text: str,
        y: float,
        size: float,
        *,
        x: float = 0.0,
        width: float | None = None,
        bold: bool = False,
        fill: tuple[int, int, int] = BLACK,
    ) -> float:
        """Draw ``text`` centred in ``[x, x + width]`` and return the next ``y``."""
        width = self.width - x if width is None else width
        font = load_font(self.px(size), bold)
        for line in self._wrap(text, font, self.px(width)):
            line_px = self.draw.textlength(line, font=font)
            left = self.px(x) + (self.px(width) - line_px) / 2
            self.draw.text((left, self.px(y)), line, font=font, fill=fill)
            y += size * 1.25
        return y

    def _wrap(self, text: str, font, max_px: int) -> list[str]:
        lines: list[str] = []
        current = ""
        for word in text.split():
            candidate = f"{current} {word}".strip()
            if current and self.draw.textlength(candidate, font=font) > max_px:
                lines.append(current)
                current = word
            else:
                current = candidate
        if current:
            lines.append(current)
        return lines

    def rect(self, x: float, y: float, width: float, height: float) -> None:
        box = (self.px(x), self.px(y), self.px(x + width), self.px(y + height))
        self.draw.rectangle(box, outline=BORDER, width=max(1, self.px(0.75)))

    def qr(
        self,
        encoder: Callable[..., Image.Image],
        url: str,
        x: float,
        y: float,
        size: float,
    ) -> None:
        """Encode ``url`` at the printed pixel size and place it at ``(x, y)``."""
        self.image.paste(encoder(url, width=self.px(size)), (self.px(x), self.px(y)))


class QRDocumentRenderer:
    """Render tables' current QR codes into PDFs, PNGs and ZIP archives.

    ``link_builder`` maps ``(table_id, token)`` to the deep link and is
    normally :meth:`QRTokenIssuer.build_deep_link`.
    """

    def __init__(
        self,
        link_builder: Callable[[str, str], str],
        encoder: Callable[..., Image.Image] = encode_image,
        dpi: int = DPI,
    ) -> None:
        self.link_builder = link_builder
        self.encoder = encoder
        self.dpi = dpi

    def _link(self, table: TableRecord) -> str:
        if not table.qr_token:
            raise DocumentError(f"Table {table.table_number} has no QR code")
        return self.link_builder(table.id, table.qr_token)

    def table_image(self, table: TableRecord) -> bytes:
        """Return a high resolution PNG of ``table``'s QR code."""
        img = self.encoder(self._link(table), width=DOWNLOAD_WIDTH)
        buf = BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    def table_document(
        self, table: TableRecord, options: DocumentOptions | None = None
    ) -> bytes:
        """Return a one page PDF for ``table``."""
        return self._save_pdf([self._table_page(table, options or DocumentOptions())])

    def batch_document(
        self, tables: Sequence[TableRecord], options: DocumentOptions | None = None
    ) -> bytes:
        """Return a PDF holding every table in input order."""
        options = options or DocumentOptions()
        if options.layout not in LAYOUTS:
            raise UnsupportedLayout(f"Unsupported layout: {options.layout}")
        if not tables:
            raise DocumentError("No tables to render")
        if options.layout == "single":
            pages = [self._table_page(t, options) for t in tables]
        else:
            pages = self._grid_pages(tables)
        return self._save_pdf(pages)

    def archive(self, tables: Sequence[TableRecord]) -> bytes:
        """Return a ZIP with one ``table-<number>-qr.png`` entry per table."""
        if not tables:
            raise DocumentError("No tables to render")
        buffer = BytesIO()
        with ZipFile(buffer, "w") as zf:
            for table in tables:
                zf.writestr(f"table-{table.table_number}-qr.png", self.table_image(table))
        return buffer.getvalue()

    def _table_page(self, table: TableRecord, options: DocumentOptions) -> Image.Image:
        url = self._link(table)
        page = _Page(A5, self.dpi)
        margin = SINGLE_MARGIN
        content = page.width - 2 * margin

        y = page.text(options.restaurant_name, margin, 24, x=margin, width=content, bold=True)
        y = page.text(f"Table {table.table_number}", y + 6, 32, x=margin, width=content, bold=True)
        if table.location:
            y = page.text(table.location, y, 14, x=margin, width=content, fill=GREY)
        y += 14

        qr_size = min(250.0, content - 40)
        page.qr(self.encoder, url, (page.width - qr_size) / 2, y, qr_size)
        y += qr_size + 20

        y = page.text("Scan to Order", y, 18, x=margin, width=content, bold=True)
        y = page.text(
            "Scan this QR code with your phone camera to view our menu and place orders.",
            y + 6,
            12,
            x=margin + 20,
            width=content - 40,
            fill=GREY,
        )

        if options.include_wifi and options.wifi_name:
            y = page.text("WiFi Information", y + 12, 12, x=margin, width=content, bold=True)
            y = page.text(
                f"Network: {options.wifi_name}", y, 11, x=margin, width=content, fill=GREY
            )
            if options.wifi_password:
                page.text(
                    f"Password: {options.wifi_password}",
                    y,
                    11,
                    x=margin,
                    width=content,
                    fill=GREY,
                )
        return page.image

    def _grid_pages(self, tables: Sequence[TableRecord]) -> list[Image.Image]:
        pages: list[_Page] = []
        for index, table in enumerate(tables):
            cell = grid_cell(A4[0], A4[1], len(tables), index, margin=GRID_MARGIN)
            if cell.page == len(pages):
                pages.append(_Page(A4, self.dpi))
            page = pages[cell.page]
            url = self._link(table)

            page.rect(cell.x, cell.y, cell.width, cell.height)
            page.text(
                f"Table {table.table_number}",
                cell.y + 10,
                16,
                x=cell.x + 5,
                width=cell.width - 10,
                bold=True,
            )
            qr_size = min(120.0, cell.width - 20)
            page.qr(
                self.encoder,
                url,
                cell.x + (cell.width - qr_size) / 2,
                cell.y + 35,
                qr_size,
            )
            y = page.text(
                "Scan to Order",
                cell.y + 45 + qr_size,
                10,
                x=cell.x + 5,
                width=cell.width - 10,
                fill=GREY,
            )
            if table.location:
                page.text(
                    table.location, y + 2, 8, x=cell.x + 5, width=cell.width - 10, fill=GREY
                )
        return [p.image for p in pages]

    def _save_pdf(self, pages: list[Image.Image]) -> bytes:
        buf = BytesIO()
        pages[0].save(
            buf,
            format="PDF",
            save_all=True,
            append_images=pages[1:],
            resolution=float(self.dpi),
            quality=95,
        )
        return buf.getvalue()


__all__ = [
    "DocumentError",
    "DocumentOptions",
    "LAYOUTS",
    "QRDocumentRenderer",
    "UnsupportedLayout",
]
