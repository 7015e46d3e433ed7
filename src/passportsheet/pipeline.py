"""
End-to-end processing: photo in, print sheet out.

  load (EXIF-corrected) -> detect face -> align (or center-crop fallback)
  -> crop/resize -> plan layout -> compose sheet -> save
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from passportsheet.core.alignment import align
from passportsheet.core.errors import DegenerateFaceError
from passportsheet.core.layout import plan_for_format
from passportsheet.core.models import (
    AlignmentResult,
    CropRect,
    DocumentRatioProfile,
    FaceBox,
    LayoutPlan,
    ProcessingParams,
)
from passportsheet.core.profiles import (
    PRINT_FORMAT_ALIASES,
    PRINT_FORMATS,
    get_profile,
    make_print_spec,
    parse_print_format,
)
from passportsheet.imaging.compositor import compose_sheet
from passportsheet.imaging.crop import center_crop_rect, crop_and_resize
from passportsheet.imaging.detector import Calibration, FaceDetector, MediaPipeFaceDetector, detect_face
from passportsheet.imaging.io import bgr_np_to_pil, load_image_rgb, pil_to_bgr_np, save_image
from passportsheet.validation.report import ValidationReport
from passportsheet.validation.validator import validate_crop, validate_layout

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ProcessingResult:
    output_path: str
    profile: DocumentRatioProfile
    crop: CropRect
    plan: LayoutPlan
    placed: int
    face: Optional[FaceBox] = None
    alignment: Optional[AlignmentResult] = None
    used_fallback: bool = False
    skipped: List[Tuple[int, int]] = field(default_factory=list)
    crop_report: Optional[ValidationReport] = None
    layout_report: Optional[ValidationReport] = None
    format_label: str = ""


def default_output_path(input_path: PathLike, format_label: str) -> str:
    """<input dir>/<stem>_passport_photos_<format>.jpg"""
    input_dir = os.path.dirname(os.fspath(input_path))
    stem = Path(input_path).stem
    return os.path.join(input_dir, f"{stem}_passport_photos_{format_label.replace(' ', '_')}.jpg")


def choose_crop(
    image_width: int,
    image_height: int,
    face: Optional[FaceBox],
    profile: DocumentRatioProfile,
) -> Tuple[CropRect, Optional[AlignmentResult]]:
    """
    Align on the detected face, or fall back to a center crop when there is
    no face or the face box is degenerate. ImageTooSmallError propagates.
    """
    if face is None:
        logger.warning("Face detection failed, using center crop")
        return center_crop_rect(image_width, image_height, profile), None
    try:
        result = align(image_width, image_height, face, profile)
    except DegenerateFaceError as e:
        logger.warning("Unusable face box (%s), using center crop", e)
        return center_crop_rect(image_width, image_height, profile), None
    return result.crop, result


def process_passport_photo(
    input_path: PathLike,
    output_path: Optional[PathLike] = None,
    params: ProcessingParams = ProcessingParams(),
    detector: Optional[FaceDetector] = None,
    profiles: Optional[Mapping[str, Mapping[str, Any]]] = None,
    calibration: Optional[Calibration] = None,
) -> ProcessingResult:
    """
    Process input image and save a print sheet of passport photos.

    Args:
      input_path: path to input image
      output_path: path to write the sheet; derived from input name and format when None
      params: processing parameters (profile, print format, DPI, spacing, count)
      detector: face detector; MediaPipe when None
      profiles: extra profile table entries, overriding built-ins by id
      calibration: optional detector-specific correction applied to the face box
    """
    profile = get_profile(params.profile_id, params.dpi, extra=profiles)
    paper = parse_print_format(params.print_format)
    spec = make_print_spec(paper, profile, params.dpi, params.min_spacing_mm, params.photo_count)
    layout = plan_for_format(spec)

    if output_path is None:
        output_path = default_output_path(input_path, paper.label)

    pil = load_image_rgb(input_path)
    bgr = pil_to_bgr_np(pil)
    img_h, img_w = bgr.shape[:2]
    logger.info("Loaded %s (%dx%d)", input_path, img_w, img_h)

    if detector is None:
        detector = MediaPipeFaceDetector()
    face = detect_face(bgr, detector, max_dimension=params.max_detection_dimension, calibration=calibration)

    crop, alignment = choose_crop(img_w, img_h, face, profile)
    crop_report = validate_crop(crop, img_w, img_h, profile)
    for r in crop_report.failures():
        logger.warning("Crop check failed: %s: %s", r.rule_id, r.message)

    photo = crop_and_resize(bgr, crop, profile.photo_width_px, profile.photo_height_px)

    layout_report = validate_layout(layout)
    for r in layout_report.failures():
        logger.warning("Layout check failed: %s: %s", r.rule_id, r.message)

    composite = compose_sheet(photo, layout)
    save_image(bgr_np_to_pil(composite.sheet_bgr), output_path, quality=params.jpeg_quality, dpi=params.dpi)
    logger.info("Saved %s", output_path)

    return ProcessingResult(
        output_path=os.fspath(output_path),
        profile=profile,
        crop=crop,
        plan=layout,
        placed=composite.placed,
        face=face,
        alignment=alignment,
        used_fallback=alignment is None,
        skipped=composite.skipped,
        crop_report=crop_report,
        layout_report=layout_report,
        format_label=paper.label,
    )


def describe_formats(params: ProcessingParams, profiles: Optional[Mapping[str, Mapping[str, Any]]] = None) -> List[Dict[str, Any]]:
    """Planned capacity of each predefined print format for the configured profile."""
    profile = get_profile(params.profile_id, params.dpi, extra=profiles)
    aliases = {v: k for k, v in PRINT_FORMAT_ALIASES.items()}
    rows: List[Dict[str, Any]] = []
    for code, paper in PRINT_FORMATS.items():
        layout = plan_for_format(make_print_spec(paper, profile, params.dpi, params.min_spacing_mm))
        rows.append(
            {
                "code": code,
                "alias": aliases.get(code, ""),
                "label": paper.label,
                "photos": layout.placed_count,
                "columns": layout.columns,
                "rows": layout.rows,
                "rotated": layout.orientation_swapped,
            }
        )
    return rows
