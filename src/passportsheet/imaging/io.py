from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image, ImageOps

PathLike = Union[str, Path]


def load_image_rgb(path: PathLike) -> Image.Image:
    """Load an image, apply EXIF orientation, return RGB PIL Image."""
    img = Image.open(path)
    img = ImageOps.exif_transpose(img)
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img


def pil_to_bgr_np(img: Image.Image) -> np.ndarray:
    """PIL RGB -> OpenCV BGR numpy array."""
    arr = np.array(img.convert("RGB"))
    return cv2.cvtColor(arr, cv2.COLOR_RGB2BGR)


def bgr_np_to_pil(img_bgr: np.ndarray) -> Image.Image:
    """OpenCV BGR numpy array -> PIL RGB."""
    rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb)


def save_image(img: Image.Image, output_path: PathLike, quality: int = 95, dpi: int = 300) -> None:
    """Save with print DPI metadata; JPEG gets a high quality setting."""
    out_lower = str(output_path).lower()
    if out_lower.endswith((".jpg", ".jpeg")):
        img.save(output_path, format="JPEG", quality=quality, optimize=True, dpi=(dpi, dpi))
    else:
        img.save(output_path, dpi=(dpi, dpi))
