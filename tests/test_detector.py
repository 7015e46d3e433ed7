import unittest
from unittest import skipIf

import numpy as np

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.models import FaceBox
from passportsheet.imaging import detector as dt


def _can_use_mediapipe() -> bool:
    try:
        import mediapipe as mp
        return hasattr(mp, "solutions")
    except Exception:
        return False


class StubDetector:
    """Records the buffer it was given and returns canned detections."""

    def __init__(self, detections):
        self.detections = detections
        self.calls = []

    def detect(self, gray, min_size, max_size):
        self.calls.append((gray.shape, min_size, max_size))
        return self.detections


class TestSelection(unittest.TestCase):
    def test_best_by_size_and_confidence(self):
        small_sure = dt.Detection(center_x=10, center_y=10, size=50, confidence=0.99)
        large_unsure = dt.Detection(center_x=10, center_y=10, size=100, confidence=0.2)
        mid = dt.Detection(center_x=10, center_y=10, size=120, confidence=0.9)
        self.assertIs(dt.select_best([small_sure, large_unsure, mid]), mid)
        self.assertIsNone(dt.select_best([]))

    def test_rescale(self):
        face = dt.rescale_detection(dt.Detection(center_x=60, center_y=30, size=20, confidence=0.5), 0.5)
        self.assertEqual(face, FaceBox(center_x=120, center_y=60, size=40, confidence=0.5))


class TestDetectionBuffer(unittest.TestCase):
    def test_small_image_not_scaled(self):
        gray, scale = dt.detection_buffer(np.zeros((480, 640, 3), dtype=np.uint8), 1200)
        self.assertEqual(gray.shape, (480, 640))
        self.assertEqual(scale, 1.0)

    def test_large_image_downscaled(self):
        gray, scale = dt.detection_buffer(np.zeros((1800, 2400, 3), dtype=np.uint8), 1200)
        self.assertAlmostEqual(scale, 0.5)
        self.assertEqual(gray.shape, (900, 1200))


class TestDetectFace(unittest.TestCase):
    def test_maps_back_to_original_pixels(self):
        stub = StubDetector([dt.Detection(center_x=600, center_y=400, size=150, confidence=0.8)])
        face = dt.detect_face(np.zeros((1800, 2400, 3), dtype=np.uint8), stub, max_dimension=1200)

        self.assertEqual(face, FaceBox(center_x=1200, center_y=800, size=300, confidence=0.8))
        shape, min_size, max_size = stub.calls[0]
        self.assertEqual(shape, (900, 1200))
        self.assertEqual(min_size, dt.MIN_FACE_SIZE_PX)
        self.assertEqual(max_size, 720)

    def test_no_face(self):
        self.assertIsNone(dt.detect_face(np.zeros((100, 100, 3), dtype=np.uint8), StubDetector([])))

    def test_calibration_hook(self):
        stub = StubDetector([dt.Detection(center_x=50, center_y=50, size=40, confidence=0.9)])
        face = dt.detect_face(
            np.zeros((100, 100, 3), dtype=np.uint8), stub, calibration=dt.HorizontalShiftCalibration(0.1)
        )
        self.assertAlmostEqual(face.center_x, 54.0)
        self.assertEqual(face.center_y, 50)


@skipIf(not _can_use_mediapipe(), "mediapipe face detection not available")
class TestMediaPipeFaceDetector(unittest.TestCase):
    def test_blank_image_has_no_faces(self):
        found = dt.MediaPipeFaceDetector().detect(np.full((240, 320), 128, dtype=np.uint8), 40, 200)
        self.assertEqual(found, [])


if __name__ == "__main__":
    unittest.main()
