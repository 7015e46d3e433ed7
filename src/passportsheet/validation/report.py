from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from passportsheet.core.models import AlignmentResult, DocumentRatioProfile, LayoutPlan
from passportsheet.core.profiles import px_to_mm


@dataclass(frozen=True)
class RuleResult:
    """
    Result of a single geometric check.
    """
    rule_id: str
    passed: bool
    message: str
    metrics: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationReport:
    """
    Collection of check results for one crop or one layout.
    """
    passed: bool
    results: list[RuleResult]

    @classmethod
    def from_results(cls, results: list[RuleResult]) -> "ValidationReport":
        return cls(passed=all(r.passed for r in results), results=list(results))

    def failures(self) -> list[RuleResult]:
        return [r for r in self.results if not r.passed]


def _mm(px: float, dpi: Optional[int]) -> str:
    if not dpi:
        return ""
    return f" ({px_to_mm(px, dpi):.1f}mm)"


def format_alignment_text(result: AlignmentResult, profile: DocumentRatioProfile, dpi: Optional[int] = None) -> str:
    d = result.diagnostics
    crop = result.crop
    h = profile.photo_height_px
    lines: List[str] = []
    lines.append("Passport photo specifications:")
    lines.append(
        f"   - Photo size: {profile.photo_width_px}x{profile.photo_height_px} pixels"
        + (f" at {dpi} DPI" if dpi else "")
    )
    lines.append(f"   - Head height (chin-to-skull): {d.target_head_height_px:.0f} pixels ({profile.head_height_ratio * 100:.1f}% of {h})")
    lines.append(f"   - Eyes position: {d.eye_from_top_px:.0f} pixels from top ({profile.eye_position_ratio * 100:.1f}% of {h})")
    lines.append(f"   - Headspace above head: {d.headspace_px:.0f} pixels ({profile.headspace_ratio * 100:.1f}% of {h})")
    lines.append(
        f"   - Face detection target: {d.target_face_size_px:.0f} pixels "
        f"({profile.face_detection_to_head_ratio * 100:.1f}% of head height)"
    )
    lines.append(f"Face alignment: crop {crop.width}x{crop.height} at ({crop.x},{crop.y}), scale {d.scale:.2f}")
    if d.headspace_corrected:
        lines.append("   - Adjusted crop position for headspace requirement")
    if d.oversize_fallback:
        lines.append(f"   - Crop larger than image; downscaled by {d.downscale:.3f}")
    return "\n".join(lines)


def format_layout_text(plan: LayoutPlan, dpi: Optional[int] = None, name: str = "") -> str:
    lines: List[str] = []
    rotated = " [rotated]" if plan.orientation_swapped else ""
    title = f"{name}{rotated}" if name else f"{plan.paper_width_px}x{plan.paper_height_px}px{rotated}"
    lines.append(f"Print layout {title}: {plan.columns}x{plan.rows} grid, {plan.placed_count} photo(s)")
    lines.append(f"   - Start: ({plan.origin_x},{plan.origin_y})")
    lines.append(
        f"   - Spacing: {plan.spacing_x}px{_mm(plan.spacing_x, dpi)} horizontal, "
        f"{plan.spacing_y}px{_mm(plan.spacing_y, dpi)} vertical"
    )
    margin = min(plan.origin_x, plan.origin_y)
    lines.append(f"   - Margin: {margin}px{_mm(margin, dpi)}")
    return "\n".join(lines)
