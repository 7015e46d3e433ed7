"""
Command line entry point.

Usage:
  passport-photo in.jpg                 # 10x15cm sheet, Austrian profile
  passport-photo in.jpg 13x18 --profile uk
  passport-photo in.jpg 9x13 --count 4 --output sheet.jpg
  passport-photo --list
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import Any, Dict, Optional

from passportsheet.core.models import ProcessingParams
from passportsheet.core.profiles import (
    DEFAULT_PRINT_FORMAT,
    available_profiles,
    get_profile,
    load_profiles,
    read_profile_table,
)
from passportsheet.pipeline import ProcessingResult, describe_formats, process_passport_photo
from passportsheet.validation.report import format_alignment_text, format_layout_text
from passportsheet.validation.validator import format_report_text


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate a print sheet of passport photos from a portrait.")
    p.add_argument("input", nargs="?", help="Path to input image (jpg/png)")
    p.add_argument(
        "format",
        nargs="?",
        default=DEFAULT_PRINT_FORMAT,
        help="Print format: 10x15 (1), 13x18 (2) or a custom WxH size in cm (default: 10x15)",
    )
    p.add_argument("--output", "-o", help="Path to output image (default: derived from input name and format)")
    p.add_argument("--profile", "-p", default=ProcessingParams.profile_id, help="Document profile id (default: at)")
    p.add_argument("--profiles", help="JSON file with extra document profiles")
    p.add_argument("--count", "-n", type=int, help="Maximum number of photos on the sheet")
    p.add_argument("--dpi", type=int, default=ProcessingParams.dpi, help="Print resolution (default: 300)")
    p.add_argument(
        "--min-spacing-mm",
        type=float,
        default=ProcessingParams.min_spacing_mm,
        help="Minimum cutting gap between photos in mm (default: 2.0)",
    )
    p.add_argument("--list", action="store_true", help="List document profiles and print formats, then exit")
    p.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    return p


def _print_listing(params: ProcessingParams, extra: Optional[Dict[str, Dict[str, Any]]]) -> None:
    print("Document profiles:")
    for key in available_profiles(extra):
        profile = get_profile(key, params.dpi, extra=extra)
        print(f"  {key:<4} {profile.name} - {profile.photo_width_px}x{profile.photo_height_px}px")
    print("")
    print(f"Print formats (profile '{params.profile_id}'):")
    for row in describe_formats(params, extra):
        rotated = " [rotated]" if row["rotated"] else ""
        print(f"  {row['alias']}. {row['label']}{rotated} - {row['photos']} photos ({row['columns']}x{row['rows']} grid)")
    print("  Custom size: WxH in cm, e.g. 9x13")


def _print_summary(result: ProcessingResult, dpi: int) -> None:
    if result.alignment is not None:
        print(format_alignment_text(result.alignment, result.profile, dpi))
    else:
        print("Face detection failed, used center crop")
    print(format_layout_text(result.plan, dpi, name=result.format_label))
    for col, row in result.skipped:
        print(f"Photo at position ({col + 1},{row + 1}) would be cropped, skipped")
    if result.crop_report is not None:
        print(format_report_text(result.crop_report, title="Crop Check"))
    if result.layout_report is not None:
        print(format_report_text(result.layout_report, title="Layout Check"))
    print(f"Saved: {result.output_path} ({result.placed} photos in {result.plan.columns}x{result.plan.rows} grid)")


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    params = replace(
        ProcessingParams(),
        profile_id=args.profile,
        print_format=args.format,
        dpi=args.dpi,
        min_spacing_mm=args.min_spacing_mm,
        photo_count=args.count,
    )

    try:
        extra = None
        if args.profiles:
            # every entry must validate, not just the one selected
            load_profiles(args.profiles, params.dpi)
            extra = read_profile_table(args.profiles)
        if args.list:
            _print_listing(params, extra)
            return 0
        if not args.input:
            parser.error("an input image is required")
        if not os.path.exists(args.input):
            raise FileNotFoundError(f"Input file does not exist: {args.input}")

        result = process_passport_photo(
            input_path=args.input,
            output_path=args.output,
            params=params,
            profiles=extra,
        )
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    _print_summary(result, params.dpi)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
