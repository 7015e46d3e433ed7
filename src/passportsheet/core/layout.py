"""
Print layout: tile a fixed-size photo onto a sheet of paper with cutting gaps.

Both paper orientations are tried and the one holding more photos wins (ties
keep the paper as given). Leftover space is spread so every gap, interior and
outer, is at least the minimum cutting spacing. All arithmetic is integer
pixels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from passportsheet.core.errors import InvalidPrintFormatError
from passportsheet.core.models import LayoutPlan, PrintFormatSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Axis:
    count: int
    margin: int
    spacing: int


def fit_count(paper_px: int, photo_px: int, min_spacing_px: int) -> int:
    """
    Photos that fit along one axis with min_spacing_px margins on both ends
    and between photos:

      count * photo + (count - 1) * spacing + 2 * margin <= paper
    """
    return (paper_px - 2 * min_spacing_px + min_spacing_px) // (photo_px + min_spacing_px)


def distribute(paper_px: int, photo_px: int, count: int, min_spacing_px: int) -> _Axis:
    """Spread the space left over by count photos into margins and gaps."""
    remaining = paper_px - count * photo_px
    if count > 1:
        spacing = min_spacing_px
        margin = (remaining - (count - 1) * spacing) // 2
        if margin < min_spacing_px:
            spacing = remaining // count
            margin = spacing // 2
    else:
        spacing = 0
        margin = remaining // 2
    return _Axis(count=count, margin=margin, spacing=spacing)


def grid_for_orientation(
    paper_width_px: int,
    paper_height_px: int,
    photo_width_px: int,
    photo_height_px: int,
    min_spacing_px: int,
) -> Optional[Tuple[_Axis, _Axis]]:
    """
    Column and row layout for one paper orientation, or None when a single
    photo does not physically fit.

    Counts are clamped to at least one, so paper that holds one photo with
    thinner than minimum margins still yields a 1x1 grid.
    """
    cols = max(1, fit_count(paper_width_px, photo_width_px, min_spacing_px))
    rows = max(1, fit_count(paper_height_px, photo_height_px, min_spacing_px))
    x_axis = distribute(paper_width_px, photo_width_px, cols, min_spacing_px)
    y_axis = distribute(paper_height_px, photo_height_px, rows, min_spacing_px)
    if x_axis.margin < 0 or y_axis.margin < 0 or x_axis.spacing < 0 or y_axis.spacing < 0:
        return None
    return x_axis, y_axis


def plan(
    paper_width_px: int,
    paper_height_px: int,
    photo_width_px: int,
    photo_height_px: int,
    min_spacing_px: int,
    requested_count: Optional[int] = None,
) -> LayoutPlan:
    """
    Plan a grid of photos on the paper.

    Raises:
      InvalidPrintFormatError: non-positive sizes, negative spacing, a
        requested count below one, or paper too small for a single photo in
        either orientation.
    """
    if min(paper_width_px, paper_height_px, photo_width_px, photo_height_px) <= 0:
        raise InvalidPrintFormatError(
            f"Paper {paper_width_px}x{paper_height_px} and photo {photo_width_px}x{photo_height_px} "
            "must have positive sizes."
        )
    if min_spacing_px < 0:
        raise InvalidPrintFormatError(f"Minimum spacing must not be negative, got {min_spacing_px}.")
    if requested_count is not None and requested_count < 1:
        raise InvalidPrintFormatError(f"Requested photo count must be at least 1, got {requested_count}.")

    given = grid_for_orientation(paper_width_px, paper_height_px, photo_width_px, photo_height_px, min_spacing_px)
    swapped = grid_for_orientation(paper_height_px, paper_width_px, photo_width_px, photo_height_px, min_spacing_px)

    def capacity(grid: Optional[Tuple[_Axis, _Axis]]) -> int:
        return grid[0].count * grid[1].count if grid is not None else 0

    if given is None and swapped is None:
        raise InvalidPrintFormatError(
            f"Paper {paper_width_px}x{paper_height_px}px cannot hold a {photo_width_px}x{photo_height_px}px "
            "photo in either orientation."
        )

    use_swapped = capacity(swapped) > capacity(given)
    if use_swapped:
        x_axis, y_axis = swapped  # type: ignore[misc]
        oriented_w, oriented_h = paper_height_px, paper_width_px
    else:
        x_axis, y_axis = given  # type: ignore[misc]
        oriented_w, oriented_h = paper_width_px, paper_height_px

    total = x_axis.count * y_axis.count
    placed = total if requested_count is None else min(total, requested_count)

    result = LayoutPlan(
        columns=x_axis.count,
        rows=y_axis.count,
        placed_count=placed,
        origin_x=x_axis.margin,
        origin_y=y_axis.margin,
        spacing_x=x_axis.spacing,
        spacing_y=y_axis.spacing,
        orientation_swapped=use_swapped,
        paper_width_px=oriented_w,
        paper_height_px=oriented_h,
        photo_width_px=photo_width_px,
        photo_height_px=photo_height_px,
        min_spacing_px=min_spacing_px,
    )
    logger.debug(
        "Layout %dx%d grid on %dx%d paper%s: origin=(%d,%d) spacing=(%d,%d) placed=%d",
        result.columns, result.rows, oriented_w, oriented_h, " (rotated)" if use_swapped else "",
        result.origin_x, result.origin_y, result.spacing_x, result.spacing_y, placed,
    )
    return result


def plan_for_format(spec: PrintFormatSpec) -> LayoutPlan:
    return plan(
        spec.paper_width_px,
        spec.paper_height_px,
        spec.photo_width_px,
        spec.photo_height_px,
        spec.min_spacing_px,
        spec.requested_count,
    )
