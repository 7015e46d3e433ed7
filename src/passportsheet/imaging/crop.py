from __future__ import annotations

import cv2
import numpy as np

from passportsheet.core.errors import ImageTooSmallError
from passportsheet.core.models import CropRect, DocumentRatioProfile

# Fallback crops sit this far down the free vertical space, leaving room for a portrait's head.
FALLBACK_TOP_FRACTION = 0.2


def resize_bgr(img_bgr: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize an OpenCV BGR image to an exact size with Lanczos resampling."""
    if width <= 0 or height <= 0:
        raise ValueError("Target size must be > 0")
    return cv2.resize(img_bgr, (width, height), interpolation=cv2.INTER_LANCZOS4)


def crop_and_resize(img_bgr: np.ndarray, rect: CropRect, width: int, height: int) -> np.ndarray:
    """Cut rect out of img_bgr and resize it to width x height."""
    h, w = img_bgr.shape[:2]
    if rect.x < 0 or rect.y < 0 or rect.right > w or rect.bottom > h or rect.width <= 0 or rect.height <= 0:
        raise ValueError(f"Crop {rect} lies outside the {w}x{h} image.")
    region = img_bgr[rect.y : rect.bottom, rect.x : rect.right]
    return resize_bgr(region, width, height)


def center_crop_rect(image_width: int, image_height: int, profile: DocumentRatioProfile) -> CropRect:
    """
    Largest window with the profile's aspect ratio, centred horizontally and
    placed slightly above centre. Used when no usable face was detected.
    """
    if image_width <= 0 or image_height <= 0:
        raise ImageTooSmallError(f"Image size must be positive, got {image_width}x{image_height}.")

    pw, ph = profile.photo_width_px, profile.photo_height_px
    if image_width * ph > image_height * pw:
        crop_h = image_height
        crop_w = image_height * pw // ph
    else:
        crop_w = image_width
        crop_h = image_width * ph // pw

    if crop_w < 1 or crop_h < 1:
        raise ImageTooSmallError(f"Image {image_width}x{image_height} is too small for a center crop.")

    x = (image_width - crop_w) // 2
    y = int((image_height - crop_h) * FALLBACK_TOP_FRACTION)
    return CropRect(x=x, y=y, width=crop_w, height=crop_h)
