from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from passportsheet.core.models import LayoutPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompositeResult:
    """
    Print sheet plus what happened to each planned cell.

    skipped holds (col, row) of cells that would have been clipped by the
    paper edge; they are left blank rather than drawn partially.
    """
    sheet_bgr: np.ndarray
    placed: int
    skipped: List[Tuple[int, int]] = field(default_factory=list)


def compose_sheet(
    photo_bgr: np.ndarray,
    plan: LayoutPlan,
    paper_color_bgr: Tuple[int, int, int] = (255, 255, 255),
) -> CompositeResult:
    """Paint copies of photo_bgr at every planned cell that fits entirely on the paper."""
    ph, pw = photo_bgr.shape[:2]
    if (pw, ph) != (plan.photo_width_px, plan.photo_height_px):
        raise ValueError(
            f"Photo is {pw}x{ph} pixels but the plan expects {plan.photo_width_px}x{plan.photo_height_px}."
        )

    sheet = np.full((plan.paper_height_px, plan.paper_width_px, 3), paper_color_bgr, dtype=np.uint8)

    placed = 0
    skipped: List[Tuple[int, int]] = []
    for col, row, x, y in plan.cells():
        if not plan.cell_fits(x, y):
            logger.warning("Photo at position (%d,%d) would be cropped, skipping", col + 1, row + 1)
            skipped.append((col, row))
            continue
        sheet[y : y + ph, x : x + pw] = photo_bgr[:, :, :3]
        placed += 1

    logger.info("Placed %d of %d photos on %dx%d sheet", placed, plan.placed_count, plan.paper_width_px, plan.paper_height_px)
    return CompositeResult(sheet_bgr=sheet, placed=placed, skipped=skipped)
