from __future__ import annotations


class PassportSheetError(ValueError):
    """Base class for geometry errors raised by the alignment and layout engines."""


class DegenerateFaceError(PassportSheetError):
    """The detected face box has no usable size."""


class ImageTooSmallError(PassportSheetError):
    """The source image cannot host even a downscaled crop window."""


class InvalidRatioProfileError(PassportSheetError):
    """A document ratio profile has ratios outside (0, 1) or leaves no room for the head."""


class InvalidPrintFormatError(PassportSheetError):
    """The paper cannot hold a single photo in either orientation."""
