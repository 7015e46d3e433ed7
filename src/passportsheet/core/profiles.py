"""
Document ratio profiles and print formats.

Both registries are plain data tables in millimetres; pixel sizes are derived
at a print resolution (pixels = mm * dpi / 25.4). Adding a country means
adding a table entry (or a JSON file passed to load_profiles), not code.

The three detector calibration ratios describe how the face detector's box
relates to the real head. They belong to the detector rather than the country
and are shared by every built-in entry.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from passportsheet.core.errors import InvalidPrintFormatError, InvalidRatioProfileError
from passportsheet.core.models import DocumentRatioProfile, PrintFormatSpec

DEFAULT_DPI = 300
MM_PER_INCH = 25.4

DETECTOR_CALIBRATION: Dict[str, float] = {
    "face_detection_to_head_ratio": 0.70,
    "eye_level_in_face_ratio": 0.42,
    "forehead_extension_ratio": 0.15,
}

DOCUMENT_PROFILES: Dict[str, Dict[str, Any]] = {
    "at": {
        "name": "Austria (35x45mm)",
        "width_mm": 35,
        "height_mm": 45,
        "head_height_ratio": 0.75,
        "eye_position_ratio": 0.48,
        "headspace_ratio": 0.10,
    },
    "eu": {
        "name": "EU / Schengen (35x45mm)",
        "width_mm": 35,
        "height_mm": 45,
        "head_height_ratio": 0.75,
        "eye_position_ratio": 0.48,
        "headspace_ratio": 0.10,
    },
    "de": {
        "name": "Germany (35x45mm)",
        "width_mm": 35,
        "height_mm": 45,
        "head_height_ratio": 0.75,
        "eye_position_ratio": 0.48,
        "headspace_ratio": 0.10,
    },
    "uk": {
        "name": "United Kingdom (35x45mm)",
        "width_mm": 35,
        "height_mm": 45,
        "head_height_ratio": 0.73,  # 29-34mm chin to crown
        "eye_position_ratio": 0.45,
        "headspace_ratio": 0.10,
    },
    "us": {
        "name": "United States (2x2in)",
        "width_mm": 50.8,
        "height_mm": 50.8,
        "head_height_ratio": 0.60,  # 50-69%
        "eye_position_ratio": 0.42,  # eyes 1 1/8 - 1 3/8 in from the bottom
        "headspace_ratio": 0.12,
    },
    "ca": {
        "name": "Canada (50x70mm)",
        "width_mm": 50,
        "height_mm": 70,
        "head_height_ratio": 0.48,  # 31-36mm chin to crown
        "eye_position_ratio": 0.42,
        "headspace_ratio": 0.15,
    },
    "in": {
        "name": "India (51x51mm)",
        "width_mm": 51,
        "height_mm": 51,
        "head_height_ratio": 0.60,
        "eye_position_ratio": 0.42,
        "headspace_ratio": 0.12,
    },
}

DEFAULT_PROFILE_ID = "at"


@dataclass(frozen=True)
class PaperFormat:
    """Paper size in millimetres, as given (landscape for the built-in formats)."""
    code: str
    label: str
    width_mm: float
    height_mm: float


PRINT_FORMATS: Dict[str, PaperFormat] = {
    "10x15": PaperFormat(code="10x15", label="10x15cm", width_mm=150, height_mm=100),
    "13x18": PaperFormat(code="13x18", label="13x18cm", width_mm=180, height_mm=130),
}

# Numbered shortcuts, in menu order.
PRINT_FORMAT_ALIASES: Dict[str, str] = {"1": "10x15", "2": "13x18"}

DEFAULT_PRINT_FORMAT = "10x15"

_CUSTOM_FORMAT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[xX]\s*(\d+(?:\.\d+)?)\s*(?:cm)?\s*$")


def mm_to_px(mm: float, dpi: int = DEFAULT_DPI) -> int:
    return int(round(mm * dpi / MM_PER_INCH))


def px_to_mm(px: float, dpi: int = DEFAULT_DPI) -> float:
    return px * MM_PER_INCH / dpi


def build_profile(entry: Mapping[str, Any], dpi: int = DEFAULT_DPI) -> DocumentRatioProfile:
    """
    Build a profile from a table entry.

    Entries give the photo size either in millimetres (width_mm/height_mm) or
    directly in pixels (width_px/height_px). Detector calibration ratios
    default to DETECTOR_CALIBRATION.
    """
    try:
        if "width_px" in entry and "height_px" in entry:
            width_px = int(entry["width_px"])
            height_px = int(entry["height_px"])
        else:
            width_px = mm_to_px(float(entry["width_mm"]), dpi)
            height_px = mm_to_px(float(entry["height_mm"]), dpi)

        ratios = {**DETECTOR_CALIBRATION}
        for key in ratios:
            if key in entry:
                ratios[key] = float(entry[key])

        return DocumentRatioProfile(
            photo_width_px=width_px,
            photo_height_px=height_px,
            head_height_ratio=float(entry["head_height_ratio"]),
            eye_position_ratio=float(entry["eye_position_ratio"]),
            headspace_ratio=float(entry["headspace_ratio"]),
            name=str(entry.get("name", "")),
            **ratios,
        )
    except InvalidRatioProfileError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidRatioProfileError(f"Malformed profile entry {dict(entry)!r}: {e}") from e


def available_profiles(extra: Optional[Mapping[str, Mapping[str, Any]]] = None) -> List[str]:
    table = {**DOCUMENT_PROFILES, **(extra or {})}
    return sorted(table)


def get_profile(
    profile_id: str,
    dpi: int = DEFAULT_DPI,
    extra: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> DocumentRatioProfile:
    """Look up a profile by id (case-insensitive); extra entries override built-ins."""
    table = {**DOCUMENT_PROFILES, **(extra or {})}
    key = profile_id.strip().lower()
    if key not in table:
        raise InvalidRatioProfileError(
            f"Unknown document profile '{profile_id}'. Available: {', '.join(sorted(table))}."
        )
    return build_profile(table[key], dpi)


def read_profile_table(path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    """Read a JSON object mapping profile ids to table entries."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidRatioProfileError(f"{path}: expected a JSON object of profiles.")
    return {str(k).lower(): dict(v) for k, v in data.items()}


def load_profiles(path: Union[str, Path], dpi: int = DEFAULT_DPI) -> Dict[str, DocumentRatioProfile]:
    """Load and validate every profile in a JSON file."""
    return {key: build_profile(entry, dpi) for key, entry in read_profile_table(path).items()}


def get_print_format(code: str) -> PaperFormat:
    key = PRINT_FORMAT_ALIASES.get(code.strip(), code.strip().lower())
    if key not in PRINT_FORMATS:
        raise InvalidPrintFormatError(
            f"Unknown print format '{code}'. Use {', '.join(PRINT_FORMATS)} or a custom WxH size in cm."
        )
    return PRINT_FORMATS[key]


def parse_print_format(text: str) -> PaperFormat:
    """
    Resolve a predefined format code or alias, or a custom "WxH" size in
    centimetres such as "9x13" or "20x30cm".
    """
    try:
        return get_print_format(text)
    except InvalidPrintFormatError:
        pass

    m = _CUSTOM_FORMAT_RE.match(text)
    if not m:
        raise InvalidPrintFormatError(
            f"Invalid print format '{text}'. Use {', '.join(PRINT_FORMATS)} or a custom WxH size in cm."
        )
    width_cm, height_cm = float(m.group(1)), float(m.group(2))
    if width_cm <= 0 or height_cm <= 0:
        raise InvalidPrintFormatError(f"Paper size must be positive, got {text}.")
    label = f"{m.group(1)}x{m.group(2)}cm"
    return PaperFormat(code=label, label=label, width_mm=width_cm * 10, height_mm=height_cm * 10)


def make_print_spec(
    paper: PaperFormat,
    profile: DocumentRatioProfile,
    dpi: int = DEFAULT_DPI,
    min_spacing_mm: float = 2.0,
    count: Optional[int] = None,
) -> PrintFormatSpec:
    return PrintFormatSpec(
        paper_width_px=mm_to_px(paper.width_mm, dpi),
        paper_height_px=mm_to_px(paper.height_mm, dpi),
        photo_width_px=profile.photo_width_px,
        photo_height_px=profile.photo_height_px,
        min_spacing_px=mm_to_px(min_spacing_mm, dpi),
        requested_count=count,
        name=paper.label,
    )
