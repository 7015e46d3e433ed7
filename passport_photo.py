#!/usr/bin/env python3
"""
passport_photo.py

Generate a print sheet of passport photos from a portrait:
- Detects a face (MediaPipe face detection)
- Crops so head height, eye line and headspace match a document profile
- Tiles as many copies as fit onto the chosen paper size

Usage:
  python passport_photo.py in.jpg
  python passport_photo.py in.jpg 13x18 --profile uk
  python passport_photo.py in.jpg 9x13 --count 4 -o sheet.jpg

Notes:
- Only the photo geometry is checked; always verify the final photo meets
  the issuing authority's other requirements (background, expression).
"""

import os
import sys

HERE = os.path.dirname(os.path.abspath(__file__))
SRC = os.path.join(HERE, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from passportsheet.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
