from __future__ import annotations

from typing import List

from passportsheet.core.models import CropRect, DocumentRatioProfile, LayoutPlan
from passportsheet.validation.report import RuleResult, ValidationReport

# Rounding both sides of the crop independently can move the width this far from the ideal.
ASPECT_TOLERANCE_PX = 1.0


def validate_crop(crop: CropRect, image_width: int, image_height: int, profile: DocumentRatioProfile) -> ValidationReport:
    """
    Check a crop window against the geometric guarantees of the aligner.

    This verifies geometry only; it says nothing about whether the resulting
    photo will be accepted by an authority.
    """
    results: List[RuleResult] = []

    # Rule: Minimum size
    size_ok = crop.width >= 1 and crop.height >= 1
    results.append(
        RuleResult(
            rule_id="Minimum size",
            passed=size_ok,
            message=f"{crop.width}x{crop.height} pixels.",
            metrics={"width": crop.width, "height": crop.height},
        )
    )

    # Rule: Aspect ratio
    expected_w = crop.height * profile.aspect_ratio
    dw = crop.width - expected_w
    aspect_ok = abs(dw) <= ASPECT_TOLERANCE_PX
    msg = f"Width {crop.width}px vs {expected_w:.1f}px for {profile.photo_width_px}:{profile.photo_height_px}."
    if not aspect_ok:
        msg += " Crop would be distorted when resized."
    results.append(
        RuleResult(
            rule_id="Aspect ratio",
            passed=aspect_ok,
            message=msg,
            metrics={"width": crop.width, "expected_width": expected_w, "dw_px": dw, "tolerance_px": ASPECT_TOLERANCE_PX},
        )
    )

    # Rule: Containment
    inside = crop.x >= 0 and crop.y >= 0 and crop.right <= image_width and crop.bottom <= image_height
    msg = f"({crop.x},{crop.y})-({crop.right},{crop.bottom}) within {image_width}x{image_height}."
    if not inside:
        msg = f"({crop.x},{crop.y})-({crop.right},{crop.bottom}) exceeds {image_width}x{image_height}."
    results.append(
        RuleResult(
            rule_id="Containment",
            passed=inside,
            message=msg,
            metrics={"box": crop.as_box(), "image": (image_width, image_height)},
        )
    )

    return ValidationReport.from_results(results)


def validate_layout(plan: LayoutPlan) -> ValidationReport:
    """Check that every planned cell is printable and every cut has room."""
    results: List[RuleResult] = []

    # Rule: Cell containment
    outside = [(col, row) for col, row, x, y in plan.cells() if not plan.cell_fits(x, y)]
    msg = f"All {plan.placed_count} cell(s) lie on the {plan.paper_width_px}x{plan.paper_height_px} paper."
    if outside:
        cells = ", ".join(f"({c + 1},{r + 1})" for c, r in outside)
        msg = f"{len(outside)} cell(s) would be cropped: {cells}."
    results.append(
        RuleResult(
            rule_id="Cell containment",
            passed=not outside,
            message=msg,
            metrics={"outside": outside},
        )
    )

    # Rule: Placed count
    count_ok = 1 <= plan.placed_count <= plan.capacity
    results.append(
        RuleResult(
            rule_id="Placed count",
            passed=count_ok,
            message=f"{plan.placed_count} of {plan.capacity} ({plan.columns}x{plan.rows}).",
            metrics={"placed": plan.placed_count, "capacity": plan.capacity},
        )
    )

    # Rule: Cutting spacing
    gaps = [plan.origin_x, plan.origin_y]
    if plan.columns > 1:
        gaps.append(plan.spacing_x)
    if plan.rows > 1:
        gaps.append(plan.spacing_y)
    narrowest = min(gaps)
    spacing_ok = narrowest >= plan.min_spacing_px
    msg = f"Narrowest gap {narrowest}px (minimum {plan.min_spacing_px}px)."
    if not spacing_ok:
        msg += " Margins are too thin to cut cleanly."
    results.append(
        RuleResult(
            rule_id="Cutting spacing",
            passed=spacing_ok,
            message=msg,
            metrics={"narrowest_px": narrowest, "min_spacing_px": plan.min_spacing_px},
        )
    )

    return ValidationReport.from_results(results)


def format_report_text(report: ValidationReport, title: str = "Geometry Check") -> str:
    lines: List[str] = []
    lines.append(title)
    lines.append("-" * max(len(title), 16))
    lines.append(f"Overall: {'PASS' if report.passed else 'FAIL'}")
    lines.append("")
    for r in report.results:
        mark = "✅" if r.passed else "❌"
        lines.append(f"{mark} {r.rule_id}: {r.message}")
    return "\n".join(lines)
