"""Page geometry for printable QR documents.

All measurements are PDF points (1/72 inch). Nothing here touches an image
or document library so the grid maths can be checked on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil

A4 = (595.28, 841.89)
A5 = (419.53, 595.28)

GRID_COLUMNS = 2
GRID_ROWS = 2
PER_PAGE = GRID_COLUMNS * GRID_ROWS


@dataclass(frozen=True)
class CellBox:
    """Bounding box of one grid cell on page ``page`` (0-based)."""

    page: int
    x: float
    y: float
    width: float
    height: float


def grid_page_count(item_count: int) -> int:
    """Return how many four-up pages ``item_count`` items need."""
    if item_count < 0:
        raise ValueError("item_count must not be negative")
    return ceil(item_count / PER_PAGE)


def grid_cell(
    page_width: float,
    page_height: float,
    item_count: int,
    item_index: int,
    margin: float = 30.0,
    gutter: float = 10.0,
) -> CellBox:
    """Return the cell for ``item_index`` in a 2x2 row-major grid.

    Each cell spans half the printable width and height, less ``gutter`` on
    its right and bottom edges. A new page starts every four items.
    """

    if not 0 <= item_index < item_count:
        raise IndexError(f"item_index {item_index} out of range for {item_count} items")
    cell_width = (page_width - 2 * margin) / GRID_COLUMNS
    cell_height = (page_height - 2 * margin) / GRID_ROWS
    slot = item_index % PER_PAGE
    col = slot % GRID_COLUMNS
    row = slot // GRID_COLUMNS
    return CellBox(
        page=item_index // PER_PAGE,
        x=margin + col * cell_width,
        y=margin + row * cell_height,
        width=cell_width - gutter,
        height=cell_height - gutter,
    )


__all__ = ["A4", "A5", "CellBox", "PER_PAGE", "grid_cell", "grid_page_count"]
