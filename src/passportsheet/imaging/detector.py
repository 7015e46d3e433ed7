"""
Face detection collaborator.

A detector sees a grayscale buffer (possibly downscaled) and returns square
candidate boxes in that buffer's coordinates. detect_face() handles the
downscale, maps the best candidate back to original-image pixels and applies
an optional calibration hook.

Calibration hooks correct a particular detector's systematic bias (for
example a box that sits consistently left of the nose). Their constants are
specific to one detector and are off by default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import cv2
import numpy as np

from passportsheet.core.models import FaceBox

logger = logging.getLogger(__name__)

MIN_FACE_SIZE_PX = 40
MAX_FACE_SIZE_RATIO = 0.8  # of the shorter buffer side
CONFIDENCE_WEIGHT = 100.0

Calibration = Callable[[FaceBox], FaceBox]


@dataclass(frozen=True)
class Detection:
    """Square face candidate in detector-buffer coordinates."""
    center_x: float
    center_y: float
    size: float
    confidence: float


class FaceDetector(Protocol):
    def detect(self, gray: np.ndarray, min_size: int, max_size: int) -> Sequence[Detection]:
        ...


class MediaPipeFaceDetector:
    """
    MediaPipe face detection (full-range model).

    MediaPipe expects RGB, so the grayscale buffer is replicated across three
    channels. Its rectangular boxes are squared on their longer side.
    """

    def __init__(self, min_detection_confidence: float = 0.5, model_selection: int = 1):
        self.min_detection_confidence = min_detection_confidence
        self.model_selection = model_selection

    def detect(self, gray: np.ndarray, min_size: int, max_size: int) -> List[Detection]:
        import mediapipe as mp  # heavy import, only needed when detecting

        if gray.ndim == 3:
            gray = cv2.cvtColor(gray, cv2.COLOR_BGR2GRAY)
        rgb = np.stack([gray, gray, gray], axis=-1).astype(np.uint8)
        h, w = gray.shape[:2]

        mp_face_detection = mp.solutions.face_detection
        with mp_face_detection.FaceDetection(
            model_selection=self.model_selection,
            min_detection_confidence=self.min_detection_confidence,
        ) as face_detection:
            results = face_detection.process(rgb)

        found: List[Detection] = []
        for det in results.detections or []:
            bb = det.location_data.relative_bounding_box
            box_w = bb.width * w
            box_h = bb.height * h
            size = max(box_w, box_h)
            if size < min_size or size > max_size:
                continue
            found.append(
                Detection(
                    center_x=(bb.xmin + bb.width / 2.0) * w,
                    center_y=(bb.ymin + bb.height / 2.0) * h,
                    size=size,
                    confidence=float(det.score[0]) if det.score else 0.0,
                )
            )
        return found


@dataclass(frozen=True)
class HorizontalShiftCalibration:
    """Shift the face centre sideways by a fraction of the box size."""
    fraction: float

    def __call__(self, face: FaceBox) -> FaceBox:
        return replace(face, center_x=face.center_x + face.size * self.fraction)


def detection_score(det: Detection) -> float:
    """Prefer large, confident faces."""
    return det.size + det.confidence * CONFIDENCE_WEIGHT


def select_best(detections: Sequence[Detection]) -> Optional[Detection]:
    if not detections:
        return None
    return max(detections, key=detection_score)


def rescale_detection(det: Detection, scale_factor: float) -> FaceBox:
    """Map a detection from a buffer scaled by scale_factor back to original pixels."""
    return FaceBox(
        center_x=det.center_x / scale_factor,
        center_y=det.center_y / scale_factor,
        size=det.size / scale_factor,
        confidence=det.confidence,
    )


def detection_buffer(image_bgr: np.ndarray, max_dimension: int) -> Tuple[np.ndarray, float]:
    """Grayscale copy of the image, downscaled so neither side exceeds max_dimension."""
    h, w = image_bgr.shape[:2]
    scale_factor = 1.0
    if max(w, h) > max_dimension:
        scale_factor = max_dimension / float(max(w, h))
        image_bgr = cv2.resize(
            image_bgr,
            (max(1, int(w * scale_factor)), max(1, int(h * scale_factor))),
            interpolation=cv2.INTER_AREA,
        )
    if image_bgr.ndim == 3:
        gray = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2GRAY)
    else:
        gray = image_bgr
    return gray, scale_factor


def detect_face(
    image_bgr: np.ndarray,
    detector: FaceDetector,
    max_dimension: int = 1200,
    calibration: Optional[Calibration] = None,
) -> Optional[FaceBox]:
    """Return the best face in original-image coordinates, or None if nothing was found."""
    gray, scale_factor = detection_buffer(image_bgr, max_dimension)
    gh, gw = gray.shape[:2]
    max_size = int(min(gw, gh) * MAX_FACE_SIZE_RATIO)

    candidates = detector.detect(gray, MIN_FACE_SIZE_PX, max_size)
    best = select_best(candidates)
    if best is None:
        logger.info("No face detected")
        return None

    face = rescale_detection(best, scale_factor)
    if calibration is not None:
        face = calibration(face)
    logger.info(
        "Face detected at (%.0f,%.0f) with size %.0f (confidence %.2f, %d candidate(s))",
        face.center_x, face.center_y, face.size, face.confidence, len(candidates),
    )
    return face
