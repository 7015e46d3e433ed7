from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from passportsheet.core.errors import InvalidRatioProfileError


@dataclass(frozen=True)
class ProcessingParams:
    """
    Parameters that control how a print sheet is generated.

    profile_id:
        Key into the document profile registry (e.g. "at", "us").
    print_format:
        Predefined print format code ("10x15", "13x18", "1", "2") or a custom
        "WxH" size in centimetres.
    dpi:
        Print resolution used to convert millimetres to pixels. Default 300.
    min_spacing_mm:
        Minimum cutting gap between photos and around the sheet edge.
    photo_count:
        Optional cap on the number of photos placed on the sheet.
    max_detection_dimension:
        Images larger than this (either side) are downscaled before face detection.
    jpeg_quality:
        Quality used when the output is written as JPEG.
    """
    profile_id: str = "at"
    print_format: str = "10x15"
    dpi: int = 300
    min_spacing_mm: float = 2.0
    photo_count: Optional[int] = None
    max_detection_dimension: int = 1200
    jpeg_quality: int = 95


_RATIO_FIELDS = (
    "head_height_ratio",
    "eye_position_ratio",
    "headspace_ratio",
    "face_detection_to_head_ratio",
    "eye_level_in_face_ratio",
    "forehead_extension_ratio",
)


@dataclass(frozen=True)
class DocumentRatioProfile:
    """
    Anthropometric ratios for one document standard.

    All ratios are fractions of the photo height except the three detector
    calibration ratios, which are fractions of the detector's face box:

      face_detection_to_head_ratio: share of the true head height the box captures
      eye_level_in_face_ratio:      eye line, measured down from the top of the box
      forehead_extension_ratio:     skull extension above the top of the box

    Construction validates the profile and raises InvalidRatioProfileError.
    """
    photo_width_px: int
    photo_height_px: int
    head_height_ratio: float
    eye_position_ratio: float
    headspace_ratio: float
    face_detection_to_head_ratio: float
    eye_level_in_face_ratio: float
    forehead_extension_ratio: float
    name: str = ""

    def __post_init__(self) -> None:
        if self.photo_width_px <= 0 or self.photo_height_px <= 0:
            raise InvalidRatioProfileError(
                f"{self.name or 'profile'}: photo size must be positive, "
                f"got {self.photo_width_px}x{self.photo_height_px}."
            )
        for field_name in _RATIO_FIELDS:
            value = getattr(self, field_name)
            if not (0.0 < value < 1.0):
                raise InvalidRatioProfileError(
                    f"{self.name or 'profile'}: {field_name}={value} must be within (0, 1)."
                )
        if self.headspace_ratio + self.head_height_ratio > 1.0:
            raise InvalidRatioProfileError(
                f"{self.name or 'profile'}: headspace_ratio + head_height_ratio "
                f"= {self.headspace_ratio + self.head_height_ratio:.3f} exceeds 1."
            )

    @property
    def aspect_ratio(self) -> float:
        return self.photo_width_px / self.photo_height_px


@dataclass(frozen=True)
class FaceBox:
    """Square face region in original-image pixel coordinates."""
    center_x: float
    center_y: float
    size: float
    confidence: float = 0.0

    @property
    def top(self) -> float:
        return self.center_y - self.size / 2.0


@dataclass(frozen=True)
class CropRect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def as_box(self) -> Tuple[int, int, int, int]:
        """(left, top, right, bottom), the order Pillow's crop() expects."""
        return (self.x, self.y, self.right, self.bottom)


@dataclass(frozen=True)
class AlignmentDiagnostics:
    """
    Measurements computed while aligning a face, for display only.

    The *_px values are in final photo pixels; scale maps source pixels to
    final pixels before any oversize downscale.
    """
    target_head_height_px: float
    eye_from_top_px: float
    headspace_px: float
    target_face_size_px: float
    scale: float
    headspace_corrected: bool = False
    oversize_fallback: bool = False
    downscale: Optional[float] = None


@dataclass(frozen=True)
class AlignmentResult:
    crop: CropRect
    diagnostics: AlignmentDiagnostics


@dataclass(frozen=True)
class PrintFormatSpec:
    """Paper and photo sizes in pixels for one print job."""
    paper_width_px: int
    paper_height_px: int
    photo_width_px: int
    photo_height_px: int
    min_spacing_px: int
    requested_count: Optional[int] = None
    name: str = ""


@dataclass(frozen=True)
class LayoutPlan:
    """
    Grid of photos on a print sheet.

    paper_width_px/paper_height_px are the oriented paper size: when
    orientation_swapped is True they are the input paper dimensions swapped.
    origin_x/origin_y double as the outer margins.
    """
    columns: int
    rows: int
    placed_count: int
    origin_x: int
    origin_y: int
    spacing_x: int
    spacing_y: int
    orientation_swapped: bool
    paper_width_px: int
    paper_height_px: int
    photo_width_px: int
    photo_height_px: int
    min_spacing_px: int = 0

    @property
    def capacity(self) -> int:
        return self.columns * self.rows

    def cell_origin(self, col: int, row: int) -> Tuple[int, int]:
        x = self.origin_x + col * (self.photo_width_px + self.spacing_x)
        y = self.origin_y + row * (self.photo_height_px + self.spacing_y)
        return x, y

    def cell_fits(self, x: int, y: int) -> bool:
        """Strict no-crop test: the whole photo must lie on the paper."""
        return (
            x >= 0
            and y >= 0
            and x + self.photo_width_px <= self.paper_width_px
            and y + self.photo_height_px <= self.paper_height_px
        )

    def cells(self) -> Iterator[Tuple[int, int, int, int]]:
        """Yield (col, row, x, y) for the first placed_count cells, row by row."""
        emitted = 0
        for row in range(self.rows):
            for col in range(self.columns):
                if emitted >= self.placed_count:
                    return
                x, y = self.cell_origin(col, row)
                yield col, row, x, y
                emitted += 1
