import unittest

from tests._test_path import SRC  # noqa: F401

from passportsheet.core.layout import plan
from passportsheet.core.models import CropRect, LayoutPlan
from passportsheet.validation import validator as v
from tests.test_models import make_profile


def _find(report, rule_id: str):
    for r in report.results:
        if r.rule_id == rule_id:
            return r
    raise AssertionError(f"Rule not found: {rule_id}")


class TestValidateCrop(unittest.TestCase):
    def setUp(self):
        self.profile = make_profile()

    def test_aligned_crop_passes(self):
        report = v.validate_crop(CropRect(352, 201, 296, 381), 1000, 1000, self.profile)
        self.assertEqual(len(report.results), 3)
        self.assertTrue(report.passed)
        self.assertEqual(report.failures(), [])

    def test_distorted_crop_fails_aspect(self):
        report = v.validate_crop(CropRect(0, 0, 381, 381), 1000, 1000, self.profile)
        self.assertFalse(report.passed)
        self.assertFalse(_find(report, "Aspect ratio").passed)
        self.assertTrue(_find(report, "Containment").passed)

    def test_crop_outside_image_fails_containment(self):
        report = v.validate_crop(CropRect(800, 700, 296, 381), 1000, 1000, self.profile)
        self.assertFalse(_find(report, "Containment").passed)
        self.assertIn("exceeds", _find(report, "Containment").message)

    def test_empty_crop_fails_minimum_size(self):
        report = v.validate_crop(CropRect(0, 0, 0, 0), 1000, 1000, self.profile)
        self.assertFalse(_find(report, "Minimum size").passed)


class TestValidateLayout(unittest.TestCase):
    def test_planned_sheet_passes(self):
        report = v.validate_layout(plan(1772, 1181, 413, 531, 24))
        self.assertTrue(report.passed)

    def test_thin_margins_fail_cutting_spacing(self):
        report = v.validate_layout(plan(420, 540, 413, 531, 24))
        self.assertTrue(_find(report, "Cell containment").passed)
        self.assertFalse(_find(report, "Cutting spacing").passed)
        self.assertEqual(_find(report, "Cutting spacing").metrics["narrowest_px"], 3)

    def test_out_of_bounds_cells_reported(self):
        bad = LayoutPlan(
            columns=3, rows=1, placed_count=3, origin_x=10, origin_y=10, spacing_x=10, spacing_y=0,
            orientation_swapped=False, paper_width_px=100, paper_height_px=50,
            photo_width_px=30, photo_height_px=30, min_spacing_px=10,
        )
        report = v.validate_layout(bad)
        containment = _find(report, "Cell containment")
        self.assertFalse(containment.passed)
        self.assertEqual(containment.metrics["outside"], [(2, 0)])
        self.assertIn("(3,1)", containment.message)

    def test_format_report_text(self):
        report = v.validate_layout(plan(1772, 1181, 413, 531, 24))
        txt = v.format_report_text(report, title="Layout Check")
        self.assertIn("Layout Check", txt)
        self.assertIn("Overall: PASS", txt)
        self.assertIn("Cell containment:", txt)


if __name__ == "__main__":
    unittest.main()
