import os
import tempfile
import unittest

import numpy as np
from PIL import Image

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.errors import ImageTooSmallError
from passportsheet.core.layout import plan
from passportsheet.core.models import CropRect, LayoutPlan
from passportsheet.imaging import compositor, crop, io
from tests.test_models import make_profile


class TestImageIO(unittest.TestCase):
    def test_pil_bgr_roundtrip(self):
        img = Image.fromarray(np.array([[[10, 20, 30], [40, 50, 60]], [[70, 80, 90], [100, 110, 120]]], dtype=np.uint8), "RGB")
        bgr = io.pil_to_bgr_np(img)
        self.assertEqual(list(bgr[0, 0]), [30, 20, 10])
        back = io.bgr_np_to_pil(bgr)
        self.assertTrue(np.array_equal(np.asarray(img), np.asarray(back)))

    def test_save_and_load_jpeg_with_dpi(self):
        img = Image.new("RGB", (40, 30), (200, 10, 10))
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "out.jpg")
            io.save_image(img, path, quality=90, dpi=300)
            with Image.open(path) as saved:
                self.assertEqual(saved.format, "JPEG")
                self.assertEqual(saved.size, (40, 30))
                self.assertAlmostEqual(saved.info["dpi"][0], 300, delta=1)
            loaded = io.load_image_rgb(path)
            self.assertEqual(loaded.mode, "RGB")

    def test_load_converts_grayscale(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "gray.png")
            Image.new("L", (8, 8), 128).save(path)
            self.assertEqual(io.load_image_rgb(path).mode, "RGB")


class TestCrop(unittest.TestCase):
    def test_resize_bgr(self):
        out = crop.resize_bgr(np.zeros((10, 20, 3), dtype=np.uint8), 7, 5)
        self.assertEqual(out.shape, (5, 7, 3))
        with self.assertRaises(ValueError):
            crop.resize_bgr(np.zeros((10, 20, 3), dtype=np.uint8), 0, 5)

    def test_crop_and_resize_takes_region(self):
        bgr = np.zeros((100, 100, 3), dtype=np.uint8)
        bgr[20:60, 10:40] = [0, 0, 255]
        out = crop.crop_and_resize(bgr, CropRect(10, 20, 30, 40), 15, 20)
        self.assertEqual(out.shape, (20, 15, 3))
        self.assertTrue((out[:, :, 2] > 200).all())

    def test_crop_outside_image_rejected(self):
        with self.assertRaises(ValueError):
            crop.crop_and_resize(np.zeros((50, 50, 3), dtype=np.uint8), CropRect(30, 0, 30, 30), 10, 10)

    def test_center_crop_wide_image(self):
        profile = make_profile()
        r = crop.center_crop_rect(1000, 531, profile)
        self.assertEqual((r.width, r.height), (413, 531))
        self.assertEqual((r.x, r.y), (293, 0))

    def test_center_crop_tall_image(self):
        profile = make_profile()
        r = crop.center_crop_rect(413, 1531, profile)
        self.assertEqual((r.width, r.height), (413, 531))
        self.assertEqual((r.x, r.y), (0, 200))

    def test_center_crop_empty_image(self):
        with self.assertRaises(ImageTooSmallError):
            crop.center_crop_rect(0, 10, make_profile())


class TestCompositor(unittest.TestCase):
    def test_places_every_cell(self):
        layout = plan(1772, 1181, 413, 531, 24)
        photo = np.zeros((531, 413, 3), dtype=np.uint8)
        result = compositor.compose_sheet(photo, layout)

        self.assertEqual(result.sheet_bgr.shape, (1181, 1772, 3))
        self.assertEqual(result.placed, 8)
        self.assertEqual(result.skipped, [])
        # margin stays white, first cell is painted
        self.assertTrue((result.sheet_bgr[0, 0] == 255).all())
        self.assertTrue((result.sheet_bgr[layout.origin_y, layout.origin_x] == 0).all())
        self.assertEqual(int((result.sheet_bgr[:, :, 0] == 0).sum()), 8 * 413 * 531)

    def test_respects_requested_count(self):
        layout = plan(1772, 1181, 413, 531, 24, requested_count=3)
        result = compositor.compose_sheet(np.zeros((531, 413, 3), dtype=np.uint8), layout)
        self.assertEqual(result.placed, 3)

    def test_skips_cells_that_would_be_cropped(self):
        layout = LayoutPlan(
            columns=3, rows=1, placed_count=3, origin_x=10, origin_y=10, spacing_x=10, spacing_y=0,
            orientation_swapped=False, paper_width_px=100, paper_height_px=50,
            photo_width_px=30, photo_height_px=30, min_spacing_px=10,
        )
        result = compositor.compose_sheet(np.zeros((30, 30, 3), dtype=np.uint8), layout)
        self.assertEqual(result.placed, 2)
        self.assertEqual(result.skipped, [(2, 0)])
        # nothing drawn past the second photo
        self.assertTrue((result.sheet_bgr[:, 80:] == 255).all())

    def test_photo_size_must_match_plan(self):
        layout = plan(1772, 1181, 413, 531, 24)
        with self.assertRaises(ValueError):
            compositor.compose_sheet(np.zeros((100, 100, 3), dtype=np.uint8), layout)


if __name__ == "__main__":
    unittest.main()
