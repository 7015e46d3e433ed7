"""
Face alignment: turn a detected face box into a crop window that satisfies a
document's head height, eye line and headspace ratios.

The work runs in explicit phases over a float window so each correction can be
tested on its own:

  ideal_window      -> scale the window so the head has the target size and
                       put the eye line at the profile's position
  enforce_headspace -> move the window up if the skull would sit too close
                       to the top edge
  clamp_to_image    -> translate (never resize) the window into the image
  shrink_to_fit     -> last resort when the window is larger than the image

Only the final step rounds to integer pixels.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from passportsheet.core.errors import DegenerateFaceError, ImageTooSmallError
from passportsheet.core.models import (
    AlignmentDiagnostics,
    AlignmentResult,
    CropRect,
    DocumentRatioProfile,
    FaceBox,
)

logger = logging.getLogger(__name__)

# Applied on top of the fitting downscale so the shrunk window has some room to move.
OVERSIZE_SAFETY_MARGIN = 0.95


@dataclass(frozen=True)
class Window:
    """Crop window in source pixels, before rounding."""
    x: float
    y: float
    width: float
    height: float


def eye_line_y(face: FaceBox, profile: DocumentRatioProfile) -> float:
    """Estimated eye line in source pixels."""
    return face.top + face.size * profile.eye_level_in_face_ratio


def _place(width: float, height: float, face: FaceBox, profile: DocumentRatioProfile) -> Window:
    x = face.center_x - width / 2.0
    y = eye_line_y(face, profile) - height * profile.eye_position_ratio
    return Window(x=x, y=y, width=width, height=height)


def ideal_window(face: FaceBox, profile: DocumentRatioProfile) -> Tuple[Window, float]:
    """
    Size and place the crop window so that, once resized to the profile's
    photo size, the head has the target height and the eyes sit on the
    profile's eye line. The face is centred horizontally.

    Returns (window, scale) where scale maps source pixels to photo pixels.
    """
    if not math.isfinite(face.size) or face.size <= 0:
        raise DegenerateFaceError(f"Face box size must be positive and finite, got {face.size}.")
    if not (math.isfinite(face.center_x) and math.isfinite(face.center_y)):
        raise DegenerateFaceError(f"Face box center must be finite, got ({face.center_x}, {face.center_y}).")

    target_head_height = profile.photo_height_px * profile.head_height_ratio
    target_face_size = target_head_height * profile.face_detection_to_head_ratio
    scale = target_face_size / face.size

    width = profile.photo_width_px / scale
    height = profile.photo_height_px / scale
    return _place(width, height, face, profile), scale


def enforce_headspace(window: Window, face: FaceBox, profile: DocumentRatioProfile) -> Tuple[Window, bool]:
    """
    Guarantee at least the profile's headspace above the estimated skull top.

    The headspace ratio is a minimum, so the window only ever moves up.
    Returns (window, corrected).
    """
    skull_top = face.top - face.size * profile.forehead_extension_ratio
    min_y = skull_top - window.height * profile.headspace_ratio
    if window.y > min_y:
        return replace(window, y=min_y), True
    return window, False


def clamp_to_image(window: Window, image_width: int, image_height: int) -> Window:
    """Translate the window into the image. Never changes its size."""
    x = min(max(window.x, 0.0), image_width - window.width)
    y = min(max(window.y, 0.0), image_height - window.height)
    # a window wider than the image pins to the left/top edge
    return replace(window, x=max(x, 0.0), y=max(y, 0.0))


def fits_image(window: Window, image_width: int, image_height: int) -> bool:
    return window.width <= image_width and window.height <= image_height


def shrink_to_fit(
    window: Window,
    face: FaceBox,
    profile: DocumentRatioProfile,
    image_width: int,
    image_height: int,
) -> Tuple[Window, float]:
    """
    Downscale an oversized window (keeping its aspect ratio) so it fits the
    image, re-place it around the original eye line and face centre, and
    clamp it again. Returns (window, downscale).
    """
    downscale = min(image_width / window.width, image_height / window.height) * OVERSIZE_SAFETY_MARGIN
    if downscale <= 0:
        raise ImageTooSmallError(
            f"Image {image_width}x{image_height} cannot host a "
            f"{window.width:.0f}x{window.height:.0f} crop window."
        )
    placed = _place(window.width * downscale, window.height * downscale, face, profile)
    return clamp_to_image(placed, image_width, image_height), downscale


def to_crop_rect(window: Window, image_width: int, image_height: int) -> CropRect:
    """Round a fitted window to integer pixels, keeping it inside the image."""
    width = min(int(round(window.width)), image_width)
    height = min(int(round(window.height)), image_height)
    if width < 1 or height < 1:
        raise DegenerateFaceError(
            f"Crop window collapsed to {window.width:.2f}x{window.height:.2f} pixels."
        )
    x = min(max(int(round(window.x)), 0), image_width - width)
    y = min(max(int(round(window.y)), 0), image_height - height)
    return CropRect(x=x, y=y, width=width, height=height)


def align(image_width: int, image_height: int, face: FaceBox, profile: DocumentRatioProfile) -> AlignmentResult:
    """
    Compute the crop window for a passport photo.

    Args:
      image_width, image_height: source image size in pixels
      face: detected face box in source pixel coordinates
      profile: document ratio profile

    Raises:
      DegenerateFaceError: the face box has no usable size
      ImageTooSmallError: the image cannot host even a downscaled window
    """
    if image_width <= 0 or image_height <= 0:
        raise ImageTooSmallError(f"Image size must be positive, got {image_width}x{image_height}.")

    window, scale = ideal_window(face, profile)
    window, headspace_corrected = enforce_headspace(window, face, profile)
    if headspace_corrected:
        logger.debug("Moved crop window up to keep %.0f%% headspace", profile.headspace_ratio * 100)

    window = clamp_to_image(window, image_width, image_height)

    downscale: Optional[float] = None
    if not fits_image(window, image_width, image_height):
        window, downscale = shrink_to_fit(window, face, profile, image_width, image_height)
        logger.warning(
            "Crop window larger than the %dx%d image; downscaled by %.3f", image_width, image_height, downscale
        )

    crop = to_crop_rect(window, image_width, image_height)

    diagnostics = AlignmentDiagnostics(
        target_head_height_px=profile.photo_height_px * profile.head_height_ratio,
        eye_from_top_px=profile.photo_height_px * profile.eye_position_ratio,
        headspace_px=profile.photo_height_px * profile.headspace_ratio,
        target_face_size_px=profile.photo_height_px * profile.head_height_ratio * profile.face_detection_to_head_ratio,
        scale=scale,
        headspace_corrected=headspace_corrected,
        oversize_fallback=downscale is not None,
        downscale=downscale,
    )
    logger.debug(
        "Aligned face (%.0f,%.0f) size %.0f -> crop %dx%d at (%d,%d), scale %.3f",
        face.center_x, face.center_y, face.size, crop.width, crop.height, crop.x, crop.y, scale,
    )
    return AlignmentResult(crop=crop, diagnostics=diagnostics)
